"""Host-level services used around a provisioning run."""
