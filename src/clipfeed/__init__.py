"""clipfeed — short-video feed with keyset paging, upload ingestion and likes."""

__version__ = "0.1.0"
