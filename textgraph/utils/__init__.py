"""Shared utilities: configuration, logging and LLM client factories."""
