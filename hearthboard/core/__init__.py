"""Shared infrastructure: configuration, HTTP clients, retries and logging."""
