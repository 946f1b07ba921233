"""Event constants."""
