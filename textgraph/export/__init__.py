"""Graph exporters."""

from textgraph.export.exporter import (
    ExportFormat,
    ExportMetadata,
    ExportOptions,
    ExportResult,
    GraphExporter,
)

__all__ = ["ExportFormat", "ExportMetadata", "ExportOptions", "ExportResult", "GraphExporter"]
