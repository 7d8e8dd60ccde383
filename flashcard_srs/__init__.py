"""Spaced-repetition scheduling for flashcards."""

__version__ = "0.1.0"
