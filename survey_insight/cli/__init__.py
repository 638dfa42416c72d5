"""Command line interface (python -m survey_insight.cli)."""
