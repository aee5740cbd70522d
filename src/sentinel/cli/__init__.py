"""Command-line interface for ingest-sentinel."""
