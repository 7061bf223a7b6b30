"""Aggregates YouTube live chat and video metadata across several streams."""

__version__ = "0.1.0"
