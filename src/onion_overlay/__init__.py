"""Simulated three-hop onion routing overlay."""

__version__ = "0.1.0"
