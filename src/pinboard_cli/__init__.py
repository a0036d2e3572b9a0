"""Command line client for the pinboard.in bookmarks service."""

__version__ = "0.1.0"
