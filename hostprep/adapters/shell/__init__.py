"""Shell-level actions: commands and managed config blocks."""
