"""Use cases — one per CLI command, returning result dataclasses."""
