"""Integrations with services outside the stream compositions backend."""
