"""Personal todo lists."""
