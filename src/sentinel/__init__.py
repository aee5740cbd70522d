"""
ingest-sentinel: health monitor for a content-ingestion pipeline.

Watches the ingest store and the pipeline's service ports on a schedule
and notifies operators when sources appear, data stops flowing, transcode
failures climb or a port stops answering.
"""

__version__ = "0.1.0"
