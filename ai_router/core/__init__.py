"""Core configuration, logging, metrics and exceptions."""
