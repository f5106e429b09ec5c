"""HTTP ingestion and query API for the log pipeline."""
