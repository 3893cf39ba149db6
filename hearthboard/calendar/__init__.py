"""Calendar feed retrieval, parsing and data models."""
