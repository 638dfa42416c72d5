"""Survey Insight: survey response import, quality flagging and summaries."""

__version__ = "0.1.0"
