"""End-to-end text to graph pipeline.

This module chains the processing steps for a single input text:
1. Text cleaning and sentence/word splitting
2. Entity, relationship and concept extraction (optionally with deep analysis)
3. Graph construction
4. Layout
"""

from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger
from pydantic import BaseModel

from textgraph.extraction.entity_extractor import EntityExtractor
from textgraph.extraction.llm_extractor import LLMExtractor
from textgraph.extraction.models import ExtractionResult
from textgraph.graph.graph_builder import GraphBuilder
from textgraph.graph.models import InteractiveGraph
from textgraph.ingestion.text_processor import ProcessedText, SourceType, TextProcessor
from textgraph.utils.config import Config


class PipelineResult(BaseModel):
    """Intermediate and final products of one pipeline run."""

    processed: ProcessedText
    extraction: ExtractionResult
    graph: InteractiveGraph


class GraphPipeline:
    """Turns raw text into a laid-out :class:`InteractiveGraph`.

    Example:
        >>> pipeline = GraphPipeline(config)
        >>> result = pipeline.run_sync("Alice works at TechCorp.")
        >>> print(result.graph.metadata.total_nodes)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        llm_extractor: Optional[LLMExtractor] = None,
    ) -> None:
        self.config = config or Config()
        self.text_processor = TextProcessor(self.config.text_processing)
        self.extractor = EntityExtractor(self.config.extraction, llm_extractor=llm_extractor)
        self.graph_builder = GraphBuilder(self.config)

    async def run(
        self,
        text: str,
        source_type: SourceType = SourceType.DOCUMENT,
        *,
        deep_analysis: bool = False,
    ) -> PipelineResult:
        """Process ``text`` through every stage and return all intermediate results.

        Raises:
            TextProcessingError: If the text is empty
            EntityExtractionError: If deep analysis is requested without LLM support
            GraphBuildingError: If the extracted facts do not form a valid graph
        """
        processed = self.text_processor.process(text, source_type)
        logger.info(
            f"Processed text: {processed.metadata.word_count} words, "
            f"{processed.metadata.sentence_count} sentences"
        )

        if deep_analysis:
            extraction = await self.extractor.extract_with_deep_analysis(processed)
        else:
            extraction = await self.extractor.extract(processed)

        graph = self.graph_builder.build_graph(extraction, text)
        self.graph_builder.apply_layout(graph)

        return PipelineResult(processed=processed, extraction=extraction, graph=graph)

    def run_sync(
        self,
        text: str,
        source_type: SourceType = SourceType.DOCUMENT,
        *,
        deep_analysis: bool = False,
    ) -> PipelineResult:
        return asyncio.run(self.run(text, source_type, deep_analysis=deep_analysis))
