"""Text preprocessing for extraction.

This module turns raw input into a :class:`ProcessedText`: a normalized copy of
the text, its ordered sentence list, the ordered (stopword-filtered) word list
and a rough language tag. Extraction only ever reads these fields.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Set

from loguru import logger
from pydantic import BaseModel, Field

from textgraph.errors import TextProcessingError
from textgraph.utils.config import TextProcessingConfig

DEFAULT_STOPWORDS: frozenset[str] = frozenset(
    """
    a about above after again against all am an and any are as at be because been
    before being below between both but by can could did do does doing down during
    each few for from further had has have having he her here hers herself him
    himself his how i if in into is it its itself just me more most my myself no
    nor not now of off on once only or other our ours ourselves out over own same
    she should so some such than that the their theirs them themselves then there
    these they this those through to too under until up very was we were what when
    where which while who whom why will with would you your yours yourself
    yourselves
    """.split()
)

_COMMON_ENGLISH_WORDS = {"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}
_IMPORTANT_TERM_RE = re.compile(
    r"\b(?:important|key|main|primary|essential|critical|vital|crucial)\s+\w+\b"
)
_NOUN_PHRASE_RE = re.compile(r"\b(?:[A-Z][a-z]*\s*){1,3}\b")


class SourceType(str, Enum):
    """Kind of document the text came from."""

    CHAT_MESSAGE = "ChatMessage"
    DOCUMENT = "Document"
    EMAIL = "Email"
    ARTICLE = "Article"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str) -> "SourceType":
        aliases = {
            "chat": cls.CHAT_MESSAGE,
            "chatmessage": cls.CHAT_MESSAGE,
            "document": cls.DOCUMENT,
            "doc": cls.DOCUMENT,
            "email": cls.EMAIL,
            "article": cls.ARTICLE,
        }
        return aliases.get(value.strip().lower(), cls.UNKNOWN)


class TextMetadata(BaseModel):
    word_count: int
    sentence_count: int
    character_count: int
    language: str
    source_type: SourceType


class ProcessedText(BaseModel):
    """Preprocessed view of a single input text."""

    original_text: str
    sentences: List[str] = Field(default_factory=list)
    words: List[str] = Field(default_factory=list)
    cleaned_text: str
    metadata: TextMetadata


class TextProcessor:
    """Normalize text and split it into sentences and words.

    Example:
        >>> processor = TextProcessor()
        >>> processed = processor.process("TechCorp is a company.")
        >>> processed.sentences
        ['TechCorp is a company']
    """

    def __init__(self, config: Optional[TextProcessingConfig] = None) -> None:
        self.config = config or TextProcessingConfig()
        self._sentence_re = re.compile(r"[.!?]+\s*")
        self._word_re = re.compile(r"\b\w+\b")
        self._cleanup_re = re.compile(r"[^\w\s.,!?;:\-()\[\]]")
        self._whitespace_re = re.compile(r"\s+")
        self.stopwords = self._load_stopwords()

        logger.debug(
            "Initialized TextProcessor",
            remove_stopwords=self.config.remove_stopwords,
            stopwords=len(self.stopwords),
        )

    def process(self, text: str, source_type: SourceType = SourceType.DOCUMENT) -> ProcessedText:
        """Clean ``text`` and split it into sentences and filtered words.

        Raises:
            TextProcessingError: If the text is empty or whitespace only.
        """
        if not text or not text.strip():
            raise TextProcessingError("Input text is empty")

        cleaned = self.clean(text)
        sentences = self.split_sentences(cleaned)
        words = self.extract_words(cleaned)

        metadata = TextMetadata(
            word_count=len(words),
            sentence_count=len(sentences),
            character_count=len(text),
            language=self.detect_language(cleaned),
            source_type=source_type,
        )
        return ProcessedText(
            original_text=text,
            sentences=sentences,
            words=words,
            cleaned_text=cleaned,
            metadata=metadata,
        )

    def clean(self, text: str) -> str:
        text = text.strip().replace("\t", " ").replace("\r", "")
        text = self._cleanup_re.sub(" ", text)
        return self._whitespace_re.sub(" ", text).strip()

    def split_sentences(self, text: str) -> List[str]:
        return [part.strip() for part in self._sentence_re.split(text) if part.strip()]

    def extract_words(self, text: str) -> List[str]:
        words = [match.group(0).lower() for match in self._word_re.finditer(text)]
        if self.config.remove_stopwords:
            words = [word for word in words if word not in self.stopwords]
        return words

    def detect_language(self, text: str) -> str:
        tokens = text.split()
        if not tokens:
            return "unknown"
        english = sum(1 for token in tokens if token.lower() in _COMMON_ENGLISH_WORDS)
        return "english" if english / len(tokens) > 0.1 else "unknown"

    def extract_context_windows(self, text: str, window_size: int) -> List[str]:
        """Return one whitespace-token window centred on every token."""
        tokens = text.split()
        half = window_size // 2
        windows: List[str] = []
        for i in range(len(tokens)):
            start = max(0, i - half)
            end = min(i + half + 1, len(tokens))
            windows.append(" ".join(tokens[start:end]))
        return windows

    def extract_key_phrases(self, text: str) -> List[str]:
        """Capitalized phrases and "key/main/..." terms, longest first, deduplicated."""
        phrases = [m.group(0).strip() for m in _NOUN_PHRASE_RE.finditer(text)]
        phrases.extend(m.group(0).strip() for m in _IMPORTANT_TERM_RE.finditer(text))

        seen: Set[str] = set()
        unique: List[str] = []
        for phrase in phrases:
            if phrase and phrase not in seen:
                seen.add(phrase)
                unique.append(phrase)
        return sorted(unique, key=len, reverse=True)

    def _load_stopwords(self) -> Set[str]:
        stopwords: Set[str] = set(DEFAULT_STOPWORDS)
        if self.config.stopwords_file:
            stopwords.update(self._read_stopwords_file(Path(self.config.stopwords_file)))
        stopwords.update(_normalize_words(self.config.custom_stopwords))
        return stopwords

    @staticmethod
    def _read_stopwords_file(path: Path) -> Iterable[str]:
        if not path.exists():
            raise TextProcessingError(f"Stopwords file not found: {path}")
        lines = path.read_text(encoding="utf-8").splitlines()
        return _normalize_words(line for line in lines if not line.lstrip().startswith("#"))


def _normalize_words(words: Iterable[str]) -> List[str]:
    return [word.strip().lower() for word in words if word.strip()]
