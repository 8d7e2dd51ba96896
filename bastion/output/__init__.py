"""Report rendering: JSON for machines, rich text for people."""
