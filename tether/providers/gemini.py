"""Gemini LLM provider — uses OpenAI-compatible endpoint."""

from __future__ import annotations

from ..config import ProviderKind
from .openai import OpenAIProvider

_GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta/openai/"


class GeminiProvider(OpenAIProvider):
    # Gemini may omit tool call ids; synthesized ones keep results correlated
    name = "gemini"
    kind = ProviderKind.GOOGLE
    default_base_url = _GEMINI_BASE
    call_id_prefix = "gemini_call_"
