"""Settings models and YAML loading."""
