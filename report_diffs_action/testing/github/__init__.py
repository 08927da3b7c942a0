"""GitHub payload helpers for tests."""
