"""Configuration loading: hostprep.yml → StepRegistry."""
