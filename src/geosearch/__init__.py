"""
geosearch: Search and autocomplete client for the loyalty business finder.

Structured text search, map search around the device position, debounced
field suggestions, and moderation submissions for values the user typed
that the directory does not know yet.
"""

__version__ = "0.1.0"
