"""Domain models and shared helpers."""
