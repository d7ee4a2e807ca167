"""Postboard: a single-page blog with remote avatars."""

__version__ = "0.1.0"
