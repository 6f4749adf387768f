"""Model serving service."""
