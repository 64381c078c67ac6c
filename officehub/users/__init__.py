"""Users module — User and Role models, login-id allocation, user administration."""
