"""Infrastructure adapters: record stores, logging and metrics."""
