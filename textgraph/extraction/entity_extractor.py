"""Extraction orchestrator.

Runs entity, relationship and concept extraction for one
:class:`ProcessedText`, choosing the LLM or the pattern path per
configuration. On the LLM path each fact kind degrades to the pattern path on
its own when the model call fails.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

from loguru import logger

from textgraph.errors import EntityExtractionError, LLMExtractionError, TextProcessingError
from textgraph.extraction.enrichment import DEEP_ANALYSIS_STAGES, FactSet
from textgraph.extraction.llm_extractor import LLMExtractor
from textgraph.extraction.models import (
    DEEP_ANALYSIS_CONFIDENCE_THRESHOLD,
    DEFAULT_CONFIDENCE_THRESHOLD,
    ExtractionResult,
)
from textgraph.extraction.pattern_extractor import PatternExtractor
from textgraph.ingestion.text_processor import ProcessedText
from textgraph.utils.config import ExtractionConfig

_T = TypeVar("_T")

PATTERN_METHOD = "pattern-based"
FALLBACK_SUFFIX = "+pattern-fallback"


class EntityExtractor:
    """Entry point for extracting facts from processed text.

    Example:
        >>> extractor = EntityExtractor(ExtractionConfig())
        >>> result = extractor.extract_sync(processed)
        >>> print(result.metadata.total_entities)
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        llm_extractor: Optional[LLMExtractor] = None,
    ) -> None:
        self.config = config or ExtractionConfig()
        self.pattern_extractor = PatternExtractor(self.config)
        self.llm_extractor = llm_extractor
        if self.llm_extractor is None and self.config.use_llm:
            self.llm_extractor = LLMExtractor(self.config.llm)

        logger.info(
            "Initialized EntityExtractor",
            use_llm=self.config.use_llm,
            model=self.config.llm.model if self.config.use_llm else None,
        )

    # -----------------------
    # Public API
    # -----------------------
    async def extract(self, processed: ProcessedText) -> ExtractionResult:
        """Extract entities, then relationships, then concepts.

        Raises:
            TextProcessingError: If the processed text is empty
        """
        self._require_text(processed)
        started = time.perf_counter()

        if self.config.use_llm:
            facts, fallbacks = await self._extract_with_llm(processed)
            method = self._llm_method(fallbacks)
        else:
            facts, fallbacks = self._extract_with_patterns(processed), []
            method = PATTERN_METHOD

        result = ExtractionResult.build(
            facts.entities,
            facts.relationships,
            facts.concepts,
            processing_time_ms=_elapsed_ms(started),
            confidence_threshold=DEFAULT_CONFIDENCE_THRESHOLD,
            extraction_method=method,
            fallbacks=fallbacks,
        )
        logger.info(
            f"Extracted {result.metadata.total_entities} entities, "
            f"{result.metadata.total_relationships} relationships, "
            f"{result.metadata.total_concepts} concepts",
            method=method,
        )
        return result

    async def extract_with_deep_analysis(self, processed: ProcessedText) -> ExtractionResult:
        """LLM extraction followed by the deep-analysis enrichment stages.

        Raises:
            EntityExtractionError: If LLM usage is disabled in configuration
            TextProcessingError: If the processed text is empty
        """
        if not self.config.use_llm:
            raise EntityExtractionError("Deep analysis requires LLM to be enabled")
        self._require_text(processed)
        started = time.perf_counter()

        facts, fallbacks = await self._extract_with_llm(processed)
        logger.info("Base extraction complete, running deep analysis stages")

        for stage in DEEP_ANALYSIS_STAGES:
            facts = stage(facts, processed.cleaned_text)
            logger.debug(
                f"Stage {stage.__name__} finished",
                entities=len(facts.entities),
                relationships=len(facts.relationships),
                concepts=len(facts.concepts),
            )

        return ExtractionResult.build(
            facts.entities,
            facts.relationships,
            facts.concepts,
            processing_time_ms=_elapsed_ms(started),
            confidence_threshold=DEEP_ANALYSIS_CONFIDENCE_THRESHOLD,
            extraction_method=f"deep-analysis:{self._llm_method(fallbacks)}",
            fallbacks=fallbacks,
        )

    def extract_sync(self, processed: ProcessedText) -> ExtractionResult:
        """Synchronous wrapper around :meth:`extract`."""
        return asyncio.run(self.extract(processed))

    # -----------------------
    # Extraction paths
    # -----------------------
    def _extract_with_patterns(self, processed: ProcessedText) -> FactSet:
        entities = self.pattern_extractor.extract_entities(processed)
        relationships = self.pattern_extractor.extract_relationships(processed, entities)
        concepts = self.pattern_extractor.extract_concepts(processed)
        return FactSet(entities, relationships, concepts)

    async def _extract_with_llm(self, processed: ProcessedText) -> Tuple[FactSet, List[str]]:
        llm = self.llm_extractor
        if llm is None:
            raise EntityExtractionError("LLM extraction requested but no LLM extractor is available")

        text = processed.cleaned_text
        fallbacks: List[str] = []

        entities = await self._with_fallback(
            "entities",
            lambda: llm.extract_entities(text),
            lambda: self.pattern_extractor.extract_entities(processed),
            fallbacks,
        )
        relationships = await self._with_fallback(
            "relationships",
            lambda: llm.extract_relationships(text, entities),
            lambda: self.pattern_extractor.extract_relationships(processed, entities),
            fallbacks,
        )
        concepts = await self._with_fallback(
            "concepts",
            lambda: llm.extract_concepts(text),
            lambda: self.pattern_extractor.extract_concepts(processed),
            fallbacks,
        )
        return FactSet(entities, relationships, concepts), fallbacks

    async def _with_fallback(
        self,
        kind: str,
        llm_call: Callable[[], Awaitable[_T]],
        pattern_call: Callable[[], _T],
        fallbacks: List[str],
    ) -> _T:
        try:
            return await llm_call()
        except LLMExtractionError as exc:
            logger.warning(
                f"LLM {kind} extraction failed, falling back to patterns",
                provider=self.config.llm.provider,
                model=self.config.llm.model,
                error=str(exc),
            )
            fallbacks.append(kind)
            return pattern_call()

    # -----------------------
    # Helpers
    # -----------------------
    def _llm_method(self, fallbacks: List[str]) -> str:
        method = f"llm:{self.config.llm.model}"
        if fallbacks:
            method += FALLBACK_SUFFIX
        return method

    @staticmethod
    def _require_text(processed: ProcessedText) -> None:
        if not processed.original_text.strip():
            raise TextProcessingError("Cannot extract from empty text")


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
