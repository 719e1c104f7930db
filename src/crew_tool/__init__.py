"""Supervised one-shot invocation of crew-agents worker processes."""

__version__ = "0.1.0"
