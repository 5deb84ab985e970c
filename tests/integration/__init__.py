"""HTTP integration tests."""
