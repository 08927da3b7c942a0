"""Test run API payload helpers for tests."""
