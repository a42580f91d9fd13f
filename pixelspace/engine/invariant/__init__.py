"""Invariant (64-dim) feature steps."""
