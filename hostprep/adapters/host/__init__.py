"""Host-level actions and read-only presence probes."""
