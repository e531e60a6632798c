"""Tests for the dspy-backed language service settings."""

from __future__ import annotations

import pytest

from filechat.config.models import LLMSettings
from filechat.llm.backend import lm_kwargs, model_name


@pytest.mark.parametrize(
    ("provider", "model", "expected"),
    [
        ("gemini", "gemini/gemini-2.5-flash", "gemini/gemini-2.5-flash"),
        ("openai", "gpt-4o-mini", "openai/gpt-4o-mini"),
        ("ollama", " llama3 ", "ollama/llama3"),
        ("", "gpt-4o-mini", "gpt-4o-mini"),
    ],
)
def test_model_name_applies_provider_prefix(provider: str, model: str, expected: str) -> None:
    assert model_name(LLMSettings(provider=provider, model=model)) == expected


def test_lm_kwargs_disable_cache_and_retries() -> None:
    kwargs = lm_kwargs(LLMSettings(provider="openai", model="gpt-4o-mini"))

    assert kwargs["model"] == "openai/gpt-4o-mini"
    assert kwargs["cache"] is False
    assert kwargs["num_retries"] == 0
    assert "api_base" not in kwargs
    assert "api_key" not in kwargs


def test_lm_kwargs_forward_endpoint_and_key() -> None:
    settings = LLMSettings(api_base_url="http://localhost:11434", api_key="secret")

    kwargs = lm_kwargs(settings)

    assert kwargs["api_base"] == "http://localhost:11434"
    assert kwargs["api_key"] == "secret"
