"""Text ingestion and preprocessing."""

from textgraph.ingestion.text_processor import ProcessedText, SourceType, TextMetadata, TextProcessor

__all__ = ["ProcessedText", "SourceType", "TextMetadata", "TextProcessor"]
