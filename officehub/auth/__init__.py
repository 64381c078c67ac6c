"""Auth module — login, sessions, role-based access dependencies."""
