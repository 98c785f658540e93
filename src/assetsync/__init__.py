"""Synchronization of licensed catalog assets into pluggable sync targets."""

__version__ = "0.1.0"
