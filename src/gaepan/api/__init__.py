"""HTTP API for the Gaepan service."""
