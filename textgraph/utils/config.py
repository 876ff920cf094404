"""Configuration management using Pydantic for validation."""

import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NodeColors(BaseModel):
    """Colors per graph element type."""

    entity: str = "#FF6B6B"
    relationship: str = "#4ECDC4"
    concept: str = "#45B7D1"
    attribute: str = "#FFA07A"


class NodeShapes(BaseModel):
    """Shapes per graph element type."""

    entity: str = "ellipse"
    relationship: str = "box"
    concept: str = "circle"
    attribute: str = "diamond"


class LayoutConfig(BaseModel):
    """Layout configuration."""

    algorithm: str = "hierarchical"
    spacing: float = 200.0
    hierarchical: bool = True


class PhysicsConfig(BaseModel):
    """Physics settings embedded for the renderer; not used by layout math."""

    enabled: bool = True
    stabilization: bool = True
    repulsion: float = 200.0
    spring_length: float = 150.0
    spring_constant: float = 0.04


class LLMConfig(BaseModel):
    """LLM configuration."""

    provider: Literal["ollama", "openai"] = "ollama"
    model: str = "llama3.2"
    endpoint: str = "http://localhost:11434/api/generate"
    api_key: str | None = None
    timeout: float = 60.0
    retry_attempts: int = 1

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("Timeout must be greater than 0")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate at least one request is made."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v


class ExtractionConfig(BaseModel):
    """Entity, relationship and concept extraction configuration."""

    use_llm: bool = False
    llm: LLMConfig = Field(default_factory=LLMConfig)
    entity_patterns: List[str] = Field(
        default=[
            r"\b[A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)*\b",
            r"\b(?:person|people|individual|user|customer|client)\b",
        ]
    )
    relationship_patterns: List[str] = Field(
        default=[
            r"\b(?:has|have|is|are|was|were|contains|includes|owns|belongs)\b",
            r"\b(?:connected to|related to|associated with|linked to|part of)\b",
            r"\b(?:uses|utilizes|creates|generates|influences|affects)\b",
        ]
    )
    concept_patterns: List[str] = Field(
        default=[
            r"\b(?:concept|idea|principle|theory|method|approach|strategy)\b",
            r"\b(?:system|process|workflow|procedure|protocol)\b",
        ]
    )

    @field_validator("entity_patterns", "relationship_patterns", "concept_patterns")
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        """Reject patterns that are not valid regular expressions."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"Invalid regular expression {pattern!r}: {exc}") from exc
        return v


class TextProcessingConfig(BaseModel):
    """Text preprocessing configuration."""

    remove_stopwords: bool = True
    stopwords_file: Optional[str] = None
    custom_stopwords: List[str] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: Optional[str] = None


class Config(BaseSettings):
    """Main configuration class."""

    model_config = SettingsConfigDict(
        env_prefix="TEXTGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    node_colors: NodeColors = Field(default_factory=NodeColors)
    node_shapes: NodeShapes = Field(default_factory=NodeShapes)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    physics: PhysicsConfig = Field(default_factory=PhysicsConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    text_processing: TextProcessingConfig = Field(default_factory=TextProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @staticmethod
    def _deep_merge_dict(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge two dicts (overrides win).

        This is used to apply environment-derived overrides on top of YAML defaults.
        """
        merged: Dict[str, Any] = dict(base)
        for key, value in overrides.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge_dict(merged[key], value)
            else:
                merged[key] = value
        return merged

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = "config/config.yaml") -> "Config":
        """Load configuration from a YAML (or JSON) file and environment variables.

        Precedence (highest to lowest):
        1) Environment variables / .env
        2) YAML file
        3) Model defaults

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML file is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        if not isinstance(yaml_config, dict):
            raise ValueError(f"YAML config root must be a mapping/dict: {yaml_path}")

        # Only non-default env values are layered over the file contents.
        env_overrides = cls().model_dump(exclude_defaults=True)
        merged = cls._deep_merge_dict(yaml_config, env_overrides)

        return cls(**merged)

    def to_yaml(self, yaml_path: str | Path) -> Path:
        """Write this configuration to a YAML file and return its path."""
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)
        yaml_path.write_text(
            yaml.safe_dump(self.model_dump(mode="json"), sort_keys=False),
            encoding="utf-8",
        )
        return yaml_path


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Global Config instance

    Raises:
        RuntimeError: If configuration hasn't been initialized
    """
    global _config
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call load_config() first.")
    return _config


def load_config(yaml_path: str | Path | None = None) -> Config:
    """Load configuration from a file, or from defaults and environment.

    Args:
        yaml_path: Path to YAML configuration file; None uses defaults + env only

    Returns:
        Loaded Config instance
    """
    global _config
    _config = Config.from_yaml(yaml_path) if yaml_path is not None else Config()
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
