"""
Tests for storage.writer module.

Tests analysis artifact writing (analysis_meta.json, extraction_results.json,
aggregated_metrics.json) with proper error handling.
"""

import json
import os
from pathlib import Path

import pytest
from freezegun import freeze_time

from llm_answer_metrics.config.schema import AnalysisConfig
from llm_answer_metrics.models import AnswerRecord
from llm_answer_metrics.pipeline import run_analysis
from llm_answer_metrics.storage.reader import load_aggregated_metrics
from llm_answer_metrics.storage.writer import (
    AGGREGATED_METRICS_FILENAME,
    ANALYSIS_META_FILENAME,
    EXTRACTION_RESULTS_FILENAME,
    build_analysis_meta,
    create_analysis_directory,
    scope_summary_to_dict,
    write_analysis_report,
    write_json,
)


@pytest.fixture
def report():
    """A small analysis over two platforms."""
    config = AnalysisConfig.model_validate(
        {"brands": {"mine": ["Acme Rewards Card"], "competitors": ["Zenith Card"]}}
    )
    answers = [
        AnswerRecord(
            "p-1",
            "openai",
            "Acme Rewards Card is excellent. Zenith Card has high fees.",
            topic="travel",
            cited_urls=("https://www.acmerewardscard.com/terms",),
        ),
        AnswerRecord("p-2", "gemini", "Zenith Card is popular.", topic="travel"),
    ]
    with freeze_time("2025-11-02 08:00:00"):
        return run_analysis(answers, config)


class TestCreateAnalysisDirectory:
    """Tests for create_analysis_directory function."""

    def test_creates_directory(self, tmp_path):
        """Test that directory is created under the output dir."""
        output_dir = str(tmp_path / "output")

        result = create_analysis_directory(output_dir, "2025-11-02T08-00-00Z")

        assert result == os.path.join(output_dir, "2025-11-02T08-00-00Z")
        assert os.path.isdir(result)

    def test_creates_parent_directories(self, tmp_path):
        """Test that missing parents are created."""
        output_dir = str(tmp_path / "nested" / "output")

        result = create_analysis_directory(output_dir, "2025-11-02T08-00-00Z")

        assert os.path.isdir(result)

    def test_idempotent_existing_directory(self, tmp_path):
        """Test that calling twice doesn't fail (exist_ok=True)."""
        output_dir = str(tmp_path / "output")

        first = create_analysis_directory(output_dir, "2025-11-02T08-00-00Z")
        second = create_analysis_directory(output_dir, "2025-11-02T08-00-00Z")

        assert first == second

    def test_permission_error_handling(self, tmp_path, monkeypatch):
        """Test that PermissionError is re-raised with a helpful message."""

        def deny(self, *args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "mkdir", deny)

        with pytest.raises(PermissionError, match="Permission denied"):
            create_analysis_directory(str(tmp_path), "2025-11-02T08-00-00Z")

    def test_os_error_handling(self, tmp_path, monkeypatch):
        """Test that other OSErrors mention disk space and permissions."""

        def full(self, *args, **kwargs):
            raise OSError("No space left on device")

        monkeypatch.setattr(Path, "mkdir", full)

        with pytest.raises(OSError, match="Check disk space"):
            create_analysis_directory(str(tmp_path), "2025-11-02T08-00-00Z")


class TestWriteJson:
    """Tests for write_json function."""

    def test_pretty_printed_utf8(self, tmp_path):
        """Test indent=2, non-ASCII preserved and a trailing newline."""
        filepath = tmp_path / "data.json"

        write_json(str(filepath), {"brand": "Zénith", "score": 52.5})

        content = filepath.read_text(encoding="utf-8")
        assert content == '{\n  "brand": "Zénith",\n  "score": 52.5\n}\n'

    def test_not_serializable(self, tmp_path):
        """Test that non-serializable data raises TypeError."""
        with pytest.raises(TypeError, match="not JSON-serializable"):
            write_json(str(tmp_path / "bad.json"), {"value": object()})

    def test_missing_directory(self, tmp_path):
        """Test that unwritable paths raise OSError."""
        with pytest.raises(OSError, match="Cannot write JSON file"):
            write_json(str(tmp_path / "missing" / "data.json"), {})


class TestScopeSummaryToDict:
    """Tests for scope_summary_to_dict function."""

    def test_statistics_then_rows(self, report):
        """Test that scope statistics and rows are serialized."""
        data = scope_summary_to_dict(report.overall)

        assert data["scope"] == "overall"
        assert data["scope_value"] == "all"
        assert data["total_answers"] == 2
        assert data["low_sample"] is True
        assert set(data["coefficient_of_variation"]) == {
            "visibility_score",
            "share_of_voice",
            "avg_position",
            "depth_of_mention",
            "citation_share",
            "sentiment_score",
        }
        assert [row["brand"] for row in data["rows"]] == ["Acme Rewards Card", "Zenith Card"]

    def test_json_serializable(self, report):
        """Test that every field survives json.dumps."""
        json.dumps(scope_summary_to_dict(report.overall))


class TestBuildAnalysisMeta:
    """Tests for build_analysis_meta function."""

    def test_counts_and_scopes(self, report):
        """Test that meta carries identity, counts and scope list."""
        meta = build_analysis_meta(report)

        assert meta["analysis_id"] == "2025-11-02T08-00-00Z"
        assert meta["generated_at"] == "2025-11-02T08:00:00Z"
        assert meta["total_answers"] == 2
        assert meta["extracted_answers"] == 2
        assert meta["failed_answers"] == 0
        assert meta["failures"] == []
        assert meta["scopes"][0] == {"scope": "overall", "scope_value": "all"}
        assert {"scope": "platform", "scope_value": "gemini"} in meta["scopes"]


class TestWriteAnalysisReport:
    """Tests for write_analysis_report function."""

    def test_writes_all_artifacts(self, tmp_path, report):
        """Test that all three files are written into the analysis directory."""
        analysis_dir = write_analysis_report(str(tmp_path), report)

        assert analysis_dir == os.path.join(str(tmp_path), "2025-11-02T08-00-00Z")
        for filename in (
            ANALYSIS_META_FILENAME,
            EXTRACTION_RESULTS_FILENAME,
            AGGREGATED_METRICS_FILENAME,
        ):
            assert os.path.isfile(os.path.join(analysis_dir, filename))

    def test_extraction_results_content(self, tmp_path, report):
        """Test that extraction results hold one entry per answer."""
        analysis_dir = write_analysis_report(str(tmp_path), report)

        with open(os.path.join(analysis_dir, EXTRACTION_RESULTS_FILENAME), encoding="utf-8") as f:
            results = json.load(f)

        assert [r["prompt_id"] for r in results] == ["p-1", "p-2"]
        first = results[0]
        assert [m["brand"] for m in first["mention_facts"]] == [
            "Acme Rewards Card",
            "Zenith Card",
        ]
        assert first["citation_facts"][0]["type"] == "brand"
        assert first["sentiment_fact"]["label"] == "mixed"

    def test_aggregated_metrics_readable_as_previous(self, tmp_path, report):
        """Test that written rows load back as the next run's baseline."""
        analysis_dir = write_analysis_report(str(tmp_path), report)

        rows = load_aggregated_metrics(os.path.join(analysis_dir, AGGREGATED_METRICS_FILENAME))

        assert rows == report.rows
