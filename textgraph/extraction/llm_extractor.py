"""LLM-powered entity, relationship and concept extraction.

This module talks to an external text-completion service: an Ollama-style
``/api/generate`` endpoint or an OpenAI-compatible chat API. Prompts are
rendered from YAML templates and the JSON array embedded in the reply is
validated into the same fact models the pattern extractor produces.

Every failure (transport error, timeout, non-success status, unparseable or
schema-invalid reply) surfaces as :class:`LLMExtractionError` so that the
orchestrator can fall back to pattern extraction.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple

import httpx
import openai
import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from textgraph.errors import LLMExtractionError
from textgraph.extraction.models import (
    NAME_ATTRIBUTE_CONFIDENCE,
    Attribute,
    AttributeType,
    Concept,
    Entity,
    EntityKind,
    EntityType,
    Relationship,
    RelationshipType,
    clamp_confidence,
)
from textgraph.utils.config import LLMConfig
from textgraph.utils.llm_client import create_http_client, create_openai_client

DEFAULT_PROMPTS_PATH = Path(__file__).parent / "prompts" / "extraction_prompts.yaml"

_ENTITY_TYPE_MAP: Dict[str, EntityType] = {
    "person": EntityType.of(EntityKind.PERSON),
    "place": EntityType.of(EntityKind.PLACE),
    "organization": EntityType.of(EntityKind.ORGANIZATION),
    "event": EntityType.of(EntityKind.EVENT),
    "product": EntityType.of(EntityKind.PRODUCT),
    "concept": EntityType.of(EntityKind.CONCEPT),
}


class _LLMEntity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    type: str
    confidence: float


class _LLMRelationship(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    relationship: str
    confidence: float


class _LLMConcept(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    description: str
    confidence: float


class _GenerateResponse(BaseModel):
    """Body of a non-streaming ``/api/generate`` reply."""

    model_config = ConfigDict(extra="ignore")

    model: str = ""
    created_at: str = ""
    response: str
    done: bool = True


_ENTITIES = TypeAdapter(List[_LLMEntity])
_RELATIONSHIPS = TypeAdapter(List[_LLMRelationship])
_CONCEPTS = TypeAdapter(List[_LLMConcept])


class LLMExtractor:
    """LLM extractor with provider switch, bounded retries, and strict parsing."""

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        prompts_path: str | Path = DEFAULT_PROMPTS_PATH,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.config = config or LLMConfig()
        self.prompts_path = Path(prompts_path)
        self.prompts = self._load_prompts(self.prompts_path)
        self._transport = transport
        self._sleep = sleep_fn or asyncio.sleep

        logger.info(
            "Initialized LLMExtractor",
            provider=self.config.provider,
            model=self.config.model,
            endpoint=self.config.endpoint,
        )

    # -----------------------
    # Public API
    # -----------------------
    async def extract_entities(self, text: str) -> List[Entity]:
        """Extract entities from ``text`` using the configured LLM provider."""
        system, user = self._render_prompt("entity_extraction", {"text": text})
        raw_response = await self._call_llm(system=system, user=user)
        return self._parse_entities_response(raw_response)

    async def extract_relationships(
        self, text: str, entities: Sequence[Entity]
    ) -> List[Relationship]:
        """Extract relationships between the given ``entities``."""
        context = {
            "text": text,
            "entity_names": json.dumps([entity.name for entity in entities]),
        }
        system, user = self._render_prompt("relationship_extraction", context)
        raw_response = await self._call_llm(system=system, user=user)
        return self._parse_relationships_response(raw_response, entities)

    async def extract_concepts(self, text: str) -> List[Concept]:
        system, user = self._render_prompt("concept_extraction", {"text": text})
        raw_response = await self._call_llm(system=system, user=user)
        return self._parse_concepts_response(raw_response)

    # -----------------------
    # Prompt handling
    # -----------------------
    def _load_prompts(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Extraction prompt template not found: {path}")
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Prompt template root must be a mapping/dict: {path}")
        return data

    def _render_prompt(self, key: str, context: Dict[str, Any]) -> Tuple[str, str]:
        if key not in self.prompts:
            raise KeyError(f"Prompt key not found in template: {key}")

        prompt = self.prompts.get(key) or {}
        system = str(prompt.get("system", "")).strip()
        user_template = str(prompt.get("user_template", "{text}"))

        try:
            user = user_template.format(**context)
        except KeyError as exc:
            missing = exc.args[0]
            raise KeyError(f"Missing placeholder '{missing}' in prompt context for '{key}'")
        return system, user

    # -----------------------
    # LLM invocation
    # -----------------------
    async def _call_llm(self, *, system: str, user: str) -> str:
        attempts = self.config.retry_attempts
        last_error: Exception | None = None

        logger.info(f"Calling LLM for extraction using {self.config.provider}: {self.config.model}")

        for attempt in range(1, attempts + 1):
            try:
                if self.config.provider == "ollama":
                    return await self._call_ollama(system=system, user=user)
                if self.config.provider == "openai":
                    return await self._call_openai(system=system, user=user)
                raise LLMExtractionError(f"Unsupported LLM provider: {self.config.provider}")
            except (httpx.HTTPError, openai.OpenAIError, ValidationError, ValueError) as exc:
                last_error = exc
                logger.warning(
                    "LLM request failed",
                    attempt=attempt,
                    max_attempts=attempts,
                    error=str(exc),
                )
                if attempt >= attempts:
                    break
                backoff = min(2 ** (attempt - 1), 8)
                await self._sleep(backoff)

        raise LLMExtractionError(f"LLM request failed: {last_error}") from last_error

    async def _call_ollama(self, *, system: str, user: str) -> str:
        prompt = f"{system}\n\n{user}" if system else user
        payload = {"model": self.config.model, "prompt": prompt, "stream": False}

        async with create_http_client(
            timeout=self.config.timeout, transport=self._transport
        ) as client:
            response = await client.post(self.config.endpoint, json=payload)
            response.raise_for_status()
            body = _GenerateResponse.model_validate(response.json())

        logger.debug(f"LLM replied with {len(body.response)} characters", model=body.model)
        return body.response

    async def _call_openai(self, *, system: str, user: str) -> str:
        messages = [{"role": "user", "content": user}]
        if system:
            messages.insert(0, {"role": "system", "content": system})

        async with create_openai_client(
            api_key=self.config.api_key,
            base_url=self.config.endpoint,
            timeout=self.config.timeout,
        ) as client:
            response = await client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                stream=False,
            )

        if not response.choices:
            raise ValueError("LLM returned no choices")
        content = response.choices[0].message.content
        return str(content or "")

    # -----------------------
    # Parsing helpers
    # -----------------------
    def _parse_entities_response(self, response_text: str) -> List[Entity]:
        items = self._validate(_ENTITIES, response_text, "entities")

        entities: List[Entity] = []
        seen: Set[str] = set()
        for item in items:
            name = item.name.strip()
            if not name or name in seen:
                continue
            seen.add(name)
            entities.append(
                Entity(
                    name=name,
                    entity_type=self._map_entity_type(item.type),
                    attributes=[
                        Attribute(
                            name="extraction_method",
                            value="LLM",
                            attribute_type=AttributeType.other("method"),
                            confidence=NAME_ATTRIBUTE_CONFIDENCE,
                        )
                    ],
                    confidence=clamp_confidence(item.confidence),
                )
            )
        return entities

    def _parse_relationships_response(
        self, response_text: str, entities: Sequence[Entity]
    ) -> List[Relationship]:
        items = self._validate(_RELATIONSHIPS, response_text, "relationships")
        by_name = {entity.name.lower(): entity for entity in entities}

        relationships: List[Relationship] = []
        for item in items:
            source = by_name.get(item.source.strip().lower())
            target = by_name.get(item.target.strip().lower())
            if source is None or target is None:
                logger.debug(
                    "Dropping LLM relationship with unknown endpoint",
                    source=item.source,
                    target=item.target,
                )
                continue
            relationships.append(
                Relationship(
                    source_id=source.id,
                    target_id=target.id,
                    relationship_type=RelationshipType.other(item.relationship),
                    label=item.relationship,
                    confidence=clamp_confidence(item.confidence),
                )
            )
        return relationships

    def _parse_concepts_response(self, response_text: str) -> List[Concept]:
        items = self._validate(_CONCEPTS, response_text, "concepts")

        concepts: List[Concept] = []
        seen: Set[str] = set()
        for item in items:
            name = item.name.strip()
            if not name or name in seen:
                continue
            seen.add(name)
            concepts.append(
                Concept(
                    name=name,
                    description=item.description,
                    confidence=clamp_confidence(item.confidence),
                )
            )
        return concepts

    def _validate(self, adapter: TypeAdapter, response_text: str, what: str) -> List[Any]:
        data = self._extract_json_array(response_text)
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            raise LLMExtractionError(f"LLM {what} do not match the expected schema: {exc}") from exc

    @staticmethod
    def _extract_json_array(text: str) -> Any:
        """Parse the bracketed JSON array embedded in ``text``.

        Leading and trailing commentary around the array is tolerated.
        """
        start = text.find("[") if text else -1
        end = text.rfind("]") if text else -1
        if start < 0 or end < start:
            raise LLMExtractionError("No JSON array found in LLM response")

        try:
            return json.loads(text[start:end + 1])
        except json.JSONDecodeError as exc:
            raise LLMExtractionError(f"Failed to parse LLM response as JSON: {exc}") from exc

    @staticmethod
    def _map_entity_type(raw_type: str) -> EntityType:
        mapped = _ENTITY_TYPE_MAP.get(raw_type.strip().lower())
        if mapped is not None:
            return mapped
        return EntityType.other(raw_type.strip() or "Unknown")
