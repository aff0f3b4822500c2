"""Procedural planet generation: tiles, tectonic plates, climate and terrain."""

__version__ = "0.1.0"
