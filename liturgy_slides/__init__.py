"""Slide decks for Catholic mass: AELF readings and hymn lyrics, paginated by word count."""

__version__ = "0.1.0"
