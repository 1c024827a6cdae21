"""Job queue adapter and reference event producer."""
