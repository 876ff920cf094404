from __future__ import annotations

from pathlib import Path

from loguru import logger

from textgraph.utils.logging_setup import setup_logging


def test_setup_logging_writes_to_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "textgraph.log"

    setup_logging("debug", log_file=log_file)
    logger.debug("graph built")
    logger.remove()

    assert "graph built" in log_file.read_text(encoding="utf-8")


def test_setup_logging_filters_below_level(tmp_path: Path) -> None:
    log_file = tmp_path / "textgraph.log"

    setup_logging("WARNING", log_file=log_file)
    logger.info("hidden")
    logger.warning("shown")
    logger.remove()

    content = log_file.read_text(encoding="utf-8")
    assert "shown" in content
    assert "hidden" not in content
