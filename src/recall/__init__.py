"""Recall - OCR and fuzzy search for text in your photos."""

__version__ = "0.1.0"
