"""
Custom exceptions for LLM Answer Metrics.

This module provides a hierarchy of exceptions that enable type-safe error
handling throughout the engine. All exceptions inherit from the base
LLMAnswerMetricsError for consistent catching.

Exception Hierarchy:
    LLMAnswerMetricsError (base)
    ├── ConfigurationError
    │   ├── ConfigFileNotFoundError
    │   └── ConfigValidationError
    ├── AnswerFileError
    ├── AggregationError
    └── InvariantViolationError (also an AssertionError)

Malformed answer text and invalid cited URLs are NOT errors: the extractor
treats them as empty or absent. Small samples are NOT errors either: they
are surfaced as confidence intervals and low_sample flags on metric rows.

Usage:
    from llm_answer_metrics.exceptions import ConfigurationError

    try:
        config = load_config(path)
    except ConfigFileNotFoundError as e:
        logger.error(f"Config file not found: {e}")
        sys.exit(1)
"""


class LLMAnswerMetricsError(Exception):
    """
    Base exception for all LLM Answer Metrics errors.

    All custom exceptions in this package inherit from this class.
    This enables catching all engine-specific errors with a single except clause.

    Example:
        try:
            report = run_analysis(answers, config)
        except LLMAnswerMetricsError as e:
            logger.error(f"Analysis failed: {e}")
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(LLMAnswerMetricsError):
    """
    Base class for configuration-related errors.

    Raised when configuration loading, parsing, or validation fails.
    Should be caught and result in exit code 1 (configuration error).
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """
    Configuration file does not exist at the specified path.

    Example:
        raise ConfigFileNotFoundError("/path/to/metrics.config.yaml")
    """

    pass


class ConfigValidationError(ConfigurationError):
    """
    Configuration file is invalid (schema validation failed).

    Should include details about which field(s) failed validation.

    Example:
        raise ConfigValidationError("Field 'brands' must be a non-empty list")
    """

    pass


# ============================================================================
# Input Errors
# ============================================================================


class AnswerFileError(LLMAnswerMetricsError):
    """
    Answers file could not be read or contains a malformed record.

    Raised by the storage reader. The message names the offending record
    index so the caller can fix the upstream export.

    Example:
        raise AnswerFileError("Record 3 is missing required field 'platform'")
    """

    pass


# ============================================================================
# Aggregation / Invariant Errors
# ============================================================================


class AggregationError(LLMAnswerMetricsError):
    """
    Aggregation was requested for an unknown scope.

    Example:
        raise AggregationError("Unknown scope 'region'")
    """

    pass


class InvariantViolationError(LLMAnswerMetricsError, AssertionError):
    """
    An internal invariant of the engine was broken.

    This is a programming error, never a data problem. Typical case: a
    citation attributed to a brand outside the analysis's closed brand set.
    It subclasses AssertionError so that it is never mistaken for a
    recoverable per-answer failure, and the pipeline re-raises it instead
    of isolating it.

    Example:
        raise InvariantViolationError("Brand 'Globex' is not in the brand set")
    """

    pass
