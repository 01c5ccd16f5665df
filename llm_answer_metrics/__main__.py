"""
Entry point for running LLM Answer Metrics as a module.

Enables execution via:
    python -m llm_answer_metrics [command] [options]

This is equivalent to running the installed CLI:
    llm-answer-metrics [command] [options]

Examples:
    python -m llm_answer_metrics --help
    python -m llm_answer_metrics analyze --config metrics.config.yaml --answers answers.jsonl
    python -m llm_answer_metrics validate --config metrics.config.yaml
"""

from llm_answer_metrics.cli import app

if __name__ == "__main__":
    app()
