"""
LLM Service

Single entry point for text generation. Gemini models go through google-genai,
`gpt-*` models through the OpenAI Chat Completions API.
"""

import os
from typing import Dict, Tuple

from google import genai
from openai import OpenAI

OPENAI_MODEL_PREFIX = "gpt-"


def _gemini_api_key() -> str:
    api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise ValueError("Set GOOGLE_API_KEY or GEMINI_API_KEY")
    return api_key


def _run_gemini(prompt: str, model: str) -> Tuple[str, Dict[str, int]]:
    client = genai.Client(api_key=_gemini_api_key())
    response = client.models.generate_content(model=model, contents=prompt)

    usage = {}
    metadata = response.usage_metadata
    if metadata is not None:
        usage = {
            "prompt_tokens": metadata.prompt_token_count or 0,
            "output_tokens": metadata.candidates_token_count or 0,
            "total_tokens": metadata.total_token_count or 0,
        }
    return response.text or "", usage


def _run_openai(prompt: str, model: str) -> Tuple[str, Dict[str, int]]:
    if not os.getenv("OPENAI_API_KEY"):
        raise ValueError("Set OPENAI_API_KEY")
    client = OpenAI()
    resp = client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": prompt}],
    )

    usage = {}
    if resp.usage is not None:
        usage = {
            "prompt_tokens": resp.usage.prompt_tokens or 0,
            "output_tokens": resp.usage.completion_tokens or 0,
            "total_tokens": resp.usage.total_tokens or 0,
        }
    return resp.choices[0].message.content or "", usage


def generate_text(prompt: str, model: str) -> Tuple[str, Dict[str, int]]:
    """
    Send a single-turn prompt to the given model.

    Args:
        prompt: Full prompt text
        model: Model name, e.g. "gemini-2.0-flash" or "gpt-5-mini"

    Returns:
        tuple: (reply text, usage dict with prompt_tokens/output_tokens/total_tokens)

    Raises:
        ValueError: If the API key for the model's provider is missing
    """
    if model.startswith(OPENAI_MODEL_PREFIX):
        return _run_openai(prompt, model)
    return _run_gemini(prompt, model)


def is_rate_limit_error(err: Exception) -> bool:
    """True if the error looks like a quota / rate-limit rejection."""
    if err is None:
        return False
    text = str(err).upper()
    return "429" in text or "RESOURCE_EXHAUSTED" in text
