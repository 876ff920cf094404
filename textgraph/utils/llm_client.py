"""LLM client creation factory.

This module provides a centralized way to create the async HTTP clients used
to reach a language-model service (an Ollama-style generate endpoint, or an
OpenAI-compatible API) with consistent base URLs, keys and timeouts.
"""

import os
from typing import Any, Optional

import httpx
from loguru import logger
from openai import AsyncOpenAI


def _mask(api_key: Optional[str]) -> str:
    return f"{api_key[:4]}...{api_key[-4:]}" if api_key and len(api_key) > 8 else "None"


def create_http_client(
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Create an async HTTP client for generate-style endpoints.

    Args:
        timeout: Request timeout in seconds.
        transport: Optional transport override (e.g. ``httpx.MockTransport`` in tests).
        **kwargs: Additional arguments to pass to the AsyncClient constructor.

    Returns:
        Configured AsyncClient; the caller owns closing it.
    """
    logger.debug(f"Creating HTTP client: timeout={timeout}")
    return httpx.AsyncClient(timeout=timeout, transport=transport, **kwargs)


def create_openai_client(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    max_retries: int = 0,
    **kwargs: Any,
) -> AsyncOpenAI:
    """Create and configure an async OpenAI client.

    Args:
        api_key: The API key. If None, tries env var or defaults.
        base_url: The base URL. If None, tries env var.
        timeout: Request timeout in seconds.
        max_retries: Number of retries performed by the client itself.
        **kwargs: Additional arguments to pass to the AsyncOpenAI constructor.

    Returns:
        Configured AsyncOpenAI client.
    """
    # Local OpenAI-compatible servers accept any key.
    final_api_key = api_key or os.getenv("OPENAI_API_KEY") or "not-needed"
    final_base_url = base_url or os.getenv("OPENAI_BASE_URL")

    logger.debug(
        f"Creating OpenAI client: base_url={final_base_url}, "
        f"api_key={_mask(final_api_key)}, timeout={timeout}"
    )

    return AsyncOpenAI(
        api_key=final_api_key,
        base_url=final_base_url,
        timeout=timeout,
        max_retries=max_retries,
        **kwargs,
    )
