"""Upload validation, naming and persistence."""
