"""ragger — a minimal retrieval-augmented-generation pipeline over HTML documents."""

__version__ = "0.1.0"
