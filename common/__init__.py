"""Shared helpers used by every node component."""
