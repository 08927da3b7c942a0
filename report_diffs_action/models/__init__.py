"""Data models shared across the action."""
