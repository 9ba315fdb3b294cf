"""Letterpress - compose messages from reusable fragments."""

__version__ = "0.1.0"
