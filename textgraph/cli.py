"""Command line interface: generate graphs, analyze text, write default config."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from textgraph.errors import ConfigurationError, GraphError, TextProcessingError
from textgraph.export.exporter import ExportFormat, ExportOptions, GraphExporter
from textgraph.extraction.entity_extractor import EntityExtractor
from textgraph.ingestion.text_processor import SourceType, TextProcessor
from textgraph.pipeline.graph_pipeline import GraphPipeline
from textgraph.utils.config import Config, load_config
from textgraph.utils.logging_setup import setup_logging

app = typer.Typer(help="Convert text into entity-relationship graphs.")

console = Console(color_system=None, force_terminal=False, width=120)

PREVIEW_LIMIT = 5
KEY_PHRASE_LIMIT = 10


def _load(config_path: Optional[Path]) -> Config:
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValidationError, yaml.YAMLError, ValueError) as exc:
        raise ConfigurationError(f"Could not load configuration: {exc}") from exc


def _read_input(path: Path) -> str:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TextProcessingError(f"Could not read input file {path}: {exc}") from exc
    if not text.strip():
        raise TextProcessingError(f"Input file is empty: {path}")
    return text


def _configure_logging(cfg: Config, verbose: bool) -> None:
    setup_logging("DEBUG" if verbose else cfg.logging.level, log_file=cfg.logging.file)


@app.command("generate")
def generate(
    input_path: Path = typer.Argument(..., help="Input text file."),
    output: Path = typer.Option(..., "--output", "-o", help="Output file path."),
    export_format: ExportFormat = typer.Option(
        ExportFormat.JSON, "--format", "-f", help="Export format.", case_sensitive=False
    ),
    source_type: str = typer.Option(
        "document", help="Source type (chat, document, email, article)."
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file."),
    use_llm: bool = typer.Option(False, help="Use an LLM for extraction."),
    deep_analysis: bool = typer.Option(
        False, help="Run deep analysis after LLM extraction (requires --use-llm)."
    ),
    llm_model: Optional[str] = typer.Option(None, help="LLM model name."),
    llm_endpoint: Optional[str] = typer.Option(None, help="LLM endpoint URL."),
    include_metadata: bool = typer.Option(
        True, "--metadata/--no-metadata", help="Include graph metadata in JSON output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Extract facts from a text file and export the resulting graph."""
    try:
        cfg = _load(config)
        _configure_logging(cfg, verbose)

        if use_llm:
            cfg.extraction.use_llm = True
        if llm_model:
            cfg.extraction.llm.model = llm_model
        if llm_endpoint:
            cfg.extraction.llm.endpoint = llm_endpoint

        text = _read_input(input_path)
        console.print(f"Loaded {input_path} ({len(text)} characters)")

        pipeline = GraphPipeline(cfg)
        result = pipeline.run_sync(
            text, SourceType.parse(source_type), deep_analysis=deep_analysis
        )
        meta = result.extraction.metadata
        console.print(
            f"Extracted {meta.total_entities} entities, {meta.total_relationships} relationships, "
            f"{meta.total_concepts} concepts ({meta.extraction_method})"
        )
        console.print(
            f"Graph: {result.graph.metadata.total_nodes} nodes, "
            f"{result.graph.metadata.total_edges} edges"
        )

        export = GraphExporter().export(
            result.graph,
            output,
            ExportOptions(format=export_format, include_metadata=include_metadata),
        )
    except GraphError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    console.print(f"[green]Graph exported to {export.file_path}[/green]")
    console.print(f"File size: {export.metadata.file_size_bytes} bytes")


@app.command("analyze")
def analyze(
    input_path: Path = typer.Argument(..., help="Input text file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show key phrases and a preview."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file."),
) -> None:
    """Show text statistics and, with --verbose, an extraction preview."""
    try:
        cfg = _load(config)
        _configure_logging(cfg, verbose=False)

        text = _read_input(input_path)
        processor = TextProcessor(cfg.text_processing)
        processed = processor.process(text, SourceType.DOCUMENT)

        table = Table(title="Text Analysis", show_header=False)
        table.add_row("Original length", f"{len(text)} characters")
        table.add_row("Word count", str(processed.metadata.word_count))
        table.add_row("Sentence count", str(processed.metadata.sentence_count))
        table.add_row("Detected language", processed.metadata.language)
        table.add_row("Source type", processed.metadata.source_type.value)
        console.print(table)

        if not verbose:
            return

        key_phrases = processor.extract_key_phrases(processed.cleaned_text)
        console.print(f"\n[bold]Key phrases found: {len(key_phrases)}[/bold]")
        for i, phrase in enumerate(key_phrases[:KEY_PHRASE_LIMIT], start=1):
            console.print(f"  {i}. {phrase}")

        extraction = EntityExtractor(cfg.extraction).extract_sync(processed)
        entities = Table(title=f"Entities ({len(extraction.entities)})")
        entities.add_column("Name", style="cyan")
        entities.add_column("Type")
        entities.add_column("Conf")
        for entity in extraction.entities[:PREVIEW_LIMIT]:
            entities.add_row(entity.name, str(entity.entity_type), f"{entity.confidence:.2f}")
        console.print(entities)

        console.print(f"Relationships found: {len(extraction.relationships)}")
        for i, relationship in enumerate(extraction.relationships[:PREVIEW_LIMIT], start=1):
            console.print(f"  {i}. {relationship.label}")

        console.print(f"Concepts found: {len(extraction.concepts)}")
        for i, concept in enumerate(extraction.concepts[:PREVIEW_LIMIT], start=1):
            console.print(f"  {i}. {concept.name}")
    except GraphError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)


@app.command("config")
def write_config(
    output: Path = typer.Option(
        Path("graph_config.yaml"), "--output", "-o", help="Where to write the configuration."
    ),
) -> None:
    """Write the default configuration to a YAML file."""
    path = Config().to_yaml(output)
    console.print(f"[green]Configuration file created: {path}[/green]")


def run() -> None:
    """Entrypoint for Typer."""
    app()


if __name__ == "__main__":
    run()
