"""Read-only data sources consumed by checks."""
