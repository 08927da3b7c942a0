"""Test helpers: factories and API payload builders."""
