"""HTTP API for scrollshot."""
