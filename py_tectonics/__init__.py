"""Procedural planetary terrain from simplified plate tectonics."""

__version__ = "0.1.0"
