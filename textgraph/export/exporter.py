"""Graph export to JSON, CSV and GraphViz DOT files."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import BaseModel, Field

from textgraph.errors import ExportError
from textgraph.graph.models import InteractiveGraph, NodeType

_DOT_SHAPES = {
    NodeType.ENTITY: "ellipse",
    NodeType.CONCEPT: "circle",
    NodeType.ATTRIBUTE: "box",
    NodeType.RELATIONSHIP: "diamond",
}


class ExportFormat(str, Enum):
    """Supported output formats."""

    JSON = "json"
    CSV = "csv"
    DOT = "dot"

    @property
    def extension(self) -> str:
        return self.value


class ExportOptions(BaseModel):
    format: ExportFormat = ExportFormat.JSON
    include_metadata: bool = True
    compact_output: bool = False


class ExportMetadata(BaseModel):
    export_timestamp: str
    original_graph_nodes: int
    original_graph_edges: int
    exported_format: str
    file_size_bytes: int


class ExportResult(BaseModel):
    """Outcome of a single export."""

    success: bool = True
    file_path: Optional[str] = None
    content: Optional[str] = Field(default=None, description="Rendered output unless compact")
    metadata: ExportMetadata


class GraphExporter:
    """Renders an :class:`InteractiveGraph` and writes it to disk.

    Existing files are never overwritten: ``graph.json`` becomes
    ``graph_01.json``, ``graph_02.json`` and so on.
    """

    def export(
        self,
        graph: InteractiveGraph,
        output_path: str | Path,
        options: Optional[ExportOptions] = None,
    ) -> ExportResult:
        """Render ``graph`` in the requested format and write it next to ``output_path``.

        Raises:
            ExportError: If the output cannot be written
        """
        options = options or ExportOptions()
        content = self.render(graph, options)
        path = self.resolve_output_path(Path(output_path), options.format)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ExportError(f"Failed to write {options.format.value} file {path}: {exc}") from exc

        logger.info(f"Exported graph as {options.format.value} to {path}")
        return ExportResult(
            success=True,
            file_path=str(path),
            content=None if options.compact_output else content,
            metadata=ExportMetadata(
                export_timestamp=datetime.now(timezone.utc).isoformat(),
                original_graph_nodes=len(graph.nodes),
                original_graph_edges=len(graph.edges),
                exported_format=options.format.value.upper(),
                file_size_bytes=len(content.encode("utf-8")),
            ),
        )

    def render(self, graph: InteractiveGraph, options: ExportOptions) -> str:
        if options.format == ExportFormat.JSON:
            return self.to_json(graph, options)
        if options.format == ExportFormat.CSV:
            return self.to_csv(graph)
        if options.format == ExportFormat.DOT:
            return self.to_dot(graph)
        raise ExportError(f"Unsupported export format: {options.format}")

    # -----------------------
    # Renderers
    # -----------------------
    @staticmethod
    def to_json(graph: InteractiveGraph, options: ExportOptions) -> str:
        if options.include_metadata:
            data: Dict[str, Any] = graph.model_dump(mode="json", by_alias=True)
        else:
            data = {
                "nodes": [node.model_dump(mode="json") for node in graph.nodes],
                "edges": [edge.model_dump(mode="json", by_alias=True) for edge in graph.edges],
            }
        if options.compact_output:
            return json.dumps(data, separators=(",", ":"))
        return json.dumps(data, indent=2)

    @staticmethod
    def to_csv(graph: InteractiveGraph) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        buffer.write("# NODES\n")
        writer.writerow(["id", "label", "type", "color", "shape", "size", "confidence"])
        for node in graph.nodes:
            writer.writerow(
                [
                    node.id,
                    node.label,
                    node.node_type.value,
                    node.color,
                    node.shape,
                    node.size,
                    node.metadata.confidence,
                ]
            )

        buffer.write("\n# EDGES\n")
        writer.writerow(["id", "from", "to", "label", "type", "color", "width", "confidence"])
        for edge in graph.edges:
            writer.writerow(
                [
                    edge.id,
                    edge.from_id,
                    edge.to_id,
                    edge.label,
                    edge.edge_type.value,
                    edge.color,
                    edge.width,
                    edge.metadata.confidence,
                ]
            )
        return buffer.getvalue()

    @staticmethod
    def to_dot(graph: InteractiveGraph) -> str:
        lines = [
            "digraph EntityRelationshipGraph {",
            "  rankdir=TB;",
            "  node [shape=ellipse, style=filled];",
            "  edge [fontsize=10];",
            "",
        ]
        for node in graph.nodes:
            lines.append(
                f'  "{escape_dot(node.id)}" [label="{escape_dot(node.label)}", '
                f'shape={_DOT_SHAPES[node.node_type]}, fillcolor="{node.color}", '
                f'tooltip="Confidence: {node.metadata.confidence:.2f}"];'
            )
        lines.append("")
        for edge in graph.edges:
            lines.append(
                f'  "{escape_dot(edge.from_id)}" -> "{escape_dot(edge.to_id)}" '
                f'[label="{escape_dot(edge.label)}", color="{edge.color}", '
                f'penwidth={edge.width}, tooltip="Confidence: {edge.metadata.confidence:.2f}"];'
            )
        lines.append("}")
        return "\n".join(lines) + "\n"

    # -----------------------
    # Paths
    # -----------------------
    @staticmethod
    def resolve_output_path(path: Path, export_format: ExportFormat) -> Path:
        """Add the format extension when missing and avoid clobbering existing files."""
        if not path.suffix:
            path = path.with_suffix(f".{export_format.extension}")

        candidate = path
        counter = 0
        while candidate.exists():
            counter += 1
            candidate = path.with_name(f"{path.stem}_{counter:02d}{path.suffix}")
        return candidate


def escape_dot(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
