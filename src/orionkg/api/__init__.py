"""HTTP API for orionkg."""
