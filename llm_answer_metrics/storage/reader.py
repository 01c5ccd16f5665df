"""
Answer file loading for LLM Answer Metrics.

Answers arrive as exports from whatever system queried the LLM platforms.
Three layouts are accepted:

    - a JSON array of answer objects
    - a JSON object with an "answers" array
    - JSON Lines (one answer object per line, blank lines ignored)

Keys may be snake_case or camelCase (prompt_id / promptId, raw_text /
rawText / text, cited_urls / citedUrls). Timestamps, when present, must be
ISO 8601 with a UTC marker or offset and are normalized to "...Z".

Example:
    >>> answers = load_answer_records("answers.jsonl")
    >>> answers[0].platform
    'openai'
"""

import json
import logging
from pathlib import Path
from typing import Any

from ..aggregator.metrics import AggregatedMetric
from ..exceptions import AnswerFileError
from ..models import AnswerRecord
from ..utils.time import format_utc, parse_timestamp

logger = logging.getLogger(__name__)

# field -> accepted keys, first present wins
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "prompt_id": ("prompt_id", "promptId"),
    "platform": ("platform",),
    "topic": ("topic",),
    "persona": ("persona",),
    "raw_text": ("raw_text", "rawText", "text"),
    "cited_urls": ("cited_urls", "citedUrls"),
    "timestamp": ("timestamp",),
}

REQUIRED_FIELDS = ("prompt_id", "platform")


def load_answer_records(path: str | Path) -> list[AnswerRecord]:
    """
    Load and validate answers from a JSON or JSONL file.

    Args:
        path: Path to the answers file

    Returns:
        AnswerRecords in file order

    Raises:
        AnswerFileError: If the file is missing, unparseable, or a record is
            malformed (the message names the record index)
    """
    path = Path(path)
    if not path.exists():
        raise AnswerFileError(f"Answers file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise AnswerFileError(f"Failed to read answers file {path}: {e}") from e

    raw_records = _parse_records(content, path)
    records = [_to_answer_record(raw, index) for index, raw in enumerate(raw_records)]

    logger.info(
        f"Loaded {len(records)} answers from {path}",
        extra={"context": {"path": str(path), "answers": len(records)}},
    )
    return records


def _parse_records(content: str, path: Path) -> list[Any]:
    stripped = content.strip()
    if not stripped:
        return []

    if stripped[0] in "[{":
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError:
            # A JSONL file also starts with "{"
            if stripped[0] == "[":
                raise AnswerFileError(f"Invalid JSON in answers file {path}") from None
        else:
            if isinstance(data, list):
                return data
            if isinstance(data, dict) and "answers" in data:
                answers = data["answers"]
                if not isinstance(answers, list):
                    raise AnswerFileError(
                        f"'answers' must be a list in {path}, got {type(answers).__name__}"
                    )
                return answers
            if isinstance(data, dict):
                return [data]

    records = []
    for line_number, line in enumerate(stripped.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise AnswerFileError(
                f"Invalid JSON on line {line_number} of {path}: {e.msg}"
            ) from e
    return records


def _pick(raw: dict, field_name: str) -> Any:
    for key in FIELD_ALIASES[field_name]:
        if key in raw:
            return raw[key]
    return None


def _optional_tag(value: Any, field_name: str, index: int) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise AnswerFileError(
            f"Record {index}: '{field_name}' must be a string, got {type(value).__name__}"
        )
    return value.strip() or None


def _to_answer_record(raw: Any, index: int) -> AnswerRecord:
    if not isinstance(raw, dict):
        raise AnswerFileError(
            f"Record {index} must be an object, got {type(raw).__name__}"
        )

    values = {name: _pick(raw, name) for name in FIELD_ALIASES}

    for name in REQUIRED_FIELDS:
        value = values[name]
        if value is None or not str(value).strip():
            raise AnswerFileError(f"Record {index} is missing required field '{name}'")

    cited_urls = values["cited_urls"]
    if cited_urls is None:
        cited_urls = []
    elif not isinstance(cited_urls, list):
        raise AnswerFileError(
            f"Record {index}: 'cited_urls' must be a list, got {type(cited_urls).__name__}"
        )

    timestamp = values["timestamp"]
    if timestamp is None or timestamp == "":
        timestamp = ""
    else:
        try:
            timestamp = format_utc(parse_timestamp(timestamp))
        except ValueError as e:
            raise AnswerFileError(f"Record {index}: {e}") from e

    return AnswerRecord(
        prompt_id=str(values["prompt_id"]).strip(),
        platform=str(values["platform"]).strip(),
        raw_text=values["raw_text"],
        topic=_optional_tag(values["topic"], "topic", index),
        persona=_optional_tag(values["persona"], "persona", index),
        cited_urls=tuple(str(url) for url in cited_urls if url is not None),
        timestamp=timestamp,
    )


def load_aggregated_metrics(path: str | Path) -> list[AggregatedMetric]:
    """
    Load the rows of an earlier analysis from its aggregated_metrics.json.

    Only the rows are read back; they serve as the rank_change baseline of
    the next analysis.

    Raises:
        AnswerFileError: If the file is missing, unparseable or a row is
            malformed
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise AnswerFileError(f"Previous metrics file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise AnswerFileError(f"Failed to read previous metrics {path}: {e}") from e

    if not isinstance(data, list):
        raise AnswerFileError(f"Previous metrics in {path} must be a list of scopes")

    rows = []
    for scope_index, scope in enumerate(data):
        if not isinstance(scope, dict) or not isinstance(scope.get("rows"), list):
            raise AnswerFileError(f"Scope {scope_index} in {path} has no 'rows' list")
        for row in scope["rows"]:
            try:
                rows.append(
                    AggregatedMetric(
                        **{
                            **row,
                            "visibility_confidence_interval": tuple(
                                row["visibility_confidence_interval"]
                            ),
                            "citation_confidence_interval": tuple(
                                row["citation_confidence_interval"]
                            ),
                        }
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                raise AnswerFileError(
                    f"Scope {scope_index} in {path} has a malformed row: {e}"
                ) from e
    return rows
