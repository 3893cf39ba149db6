"""Ingestion pipeline, merging and day bucketing."""
