"""Replicated key/value store node."""
