"""Metrics for the stream compositions backend."""
