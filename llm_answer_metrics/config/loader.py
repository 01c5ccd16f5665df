"""
Configuration loader for LLM Answer Metrics.

Loads metrics.config.yaml, validates it with the AnalysisConfig Pydantic
model and returns the immutable configuration used by the engine.

Functions:
    load_config: Main entrypoint to load and validate metrics.config.yaml
    format_validation_error: Render a pydantic ValidationError one line per field
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from llm_answer_metrics.exceptions import ConfigFileNotFoundError, ConfigValidationError

from .schema import AnalysisConfig

logger = logging.getLogger(__name__)


def load_config(config_path: str | Path) -> AnalysisConfig:
    """
    Load and validate metrics.config.yaml.

    This function:
    1. Loads YAML from the specified path
    2. Validates structure using the AnalysisConfig Pydantic model
    3. Returns the frozen AnalysisConfig (brands + engine thresholds)

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        AnalysisConfig with validated brands and engine settings

    Raises:
        ConfigFileNotFoundError: If config file doesn't exist at the specified path
        ConfigValidationError: If YAML is invalid or config validation fails

    Example:
        >>> config = load_config("metrics.config.yaml")
        >>> config.brand_set().names
        ('Acme Rewards', 'Zenith Card')

    Security:
        - Uses yaml.safe_load() to prevent code injection
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigValidationError(
            f"Failed to read configuration file {config_path}: {e}"
        ) from e

    if raw_config is None:
        raise ConfigValidationError(f"Configuration file is empty: {config_path}")

    if not isinstance(raw_config, dict):
        raise ConfigValidationError(
            f"Configuration root must be a mapping in {config_path}, "
            f"got {type(raw_config).__name__}"
        )

    try:
        config = AnalysisConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigValidationError(
            f"Configuration validation failed in {config_path}:\n"
            + format_validation_error(e)
        ) from e

    logger.info(
        "Configuration loaded",
        extra={
            "context": {
                "path": str(config_path),
                "brands": len(config.brands.mine) + len(config.brands.competitors),
            }
        },
    )

    return config


def format_validation_error(error: ValidationError) -> str:
    """
    Format pydantic validation errors in a user-friendly way.

    Example:
        >>> print(format_validation_error(e))
          - brands.mine: Value error, brands.mine must contain at least one brand
    """
    error_messages = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"])
        msg = item["msg"]
        error_messages.append(f"  - {loc}: {msg}")
    return "\n".join(error_messages)
