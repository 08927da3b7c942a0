"""Test run executors."""
