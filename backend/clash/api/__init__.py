"""Read-only dashboard API."""
