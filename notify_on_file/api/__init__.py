"""HTTP API for the headless host."""
