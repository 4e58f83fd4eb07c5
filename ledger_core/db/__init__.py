"""Database engine, sessions and request dependencies."""
