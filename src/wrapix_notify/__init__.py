"""Relay desktop notifications from sandboxed processes to the host."""

__version__ = "0.1.0"
