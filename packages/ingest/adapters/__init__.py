"""Redis adapters for the creation job queue."""
