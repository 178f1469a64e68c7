"""Market bounded context: application layer (use cases)."""
