"""Text to entity-relationship graph extraction and synthesis."""

__version__ = "0.1.0"
