"""Database models and transaction helpers."""
