"""Authentication: registration, login, JWT access tokens."""
