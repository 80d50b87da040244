"""Storage adapters for the reading collection."""
