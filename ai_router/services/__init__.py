"""Routing services package."""
