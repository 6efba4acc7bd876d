"""Logging setup shared by every entry point."""
