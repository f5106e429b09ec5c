"""Core library for the log ingestion and analysis pipeline."""
