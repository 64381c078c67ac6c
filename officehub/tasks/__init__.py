"""Tasks module — assigned work items."""
