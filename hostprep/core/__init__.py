"""Core engine, models, configuration and use cases."""
