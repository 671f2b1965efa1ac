"""HTTP API package."""
