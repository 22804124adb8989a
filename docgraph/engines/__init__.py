"""Structural rules and traversals over the documentation graph."""
