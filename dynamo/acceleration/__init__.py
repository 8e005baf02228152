"""Parallel classification backends."""
