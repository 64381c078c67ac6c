"""Dashboard module — aggregate statistics."""
