"""Mobile money ingestion adapters and agent session storage."""

__version__ = "0.1.0"
