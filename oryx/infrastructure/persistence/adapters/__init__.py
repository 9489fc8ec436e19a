"""Storage adapters for the collection data layer."""
