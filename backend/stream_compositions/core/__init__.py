"""Core services of the stream compositions backend."""
