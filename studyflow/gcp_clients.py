"""
gcp_clients.py - Google Cloud + Vertex AI helpers

This module owns the two external collaborators of the API:
1. Firestore, the document database holding users, tasks and daily logs.
2. Vertex AI generative models (Gemini), used for schedule suggestions,
   habit insights and short advice answers.

Generation helpers never fabricate output. Any failure (SDK error, timeout,
safety block, empty or unparsable reply) is raised as GenerationError so that
callers can report the dependency as unavailable.
"""

import re
import json
import asyncio
import logging
from typing import Any, Dict, Optional

from google.cloud import firestore
import vertexai
from vertexai.generative_models import GenerativeModel, GenerationConfig

from .config import GCP_PROJECT, GCP_LOCATION, VERTEX_MODEL_NAME, VERTEX_TIMEOUT_SECONDS

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())

# Flag to track Vertex initialization
_vertex_initialized = False

# Lazily created Firestore client shared by request handlers
_firestore_client: Optional[firestore.Client] = None


class GenerationError(RuntimeError):
    """Raised when the generative model cannot produce a usable response."""


def init_vertex() -> None:
    """
    Initialize Vertex AI for text generation.
    Safe to call multiple times.
    """
    global _vertex_initialized
    if _vertex_initialized:
        return

    try:
        _logger.info("Initializing Vertex AI: project=%s, location=%s", GCP_PROJECT, GCP_LOCATION)
        vertexai.init(project=GCP_PROJECT, location=GCP_LOCATION)
        _vertex_initialized = True
        _logger.info("Vertex AI initialized successfully")
    except Exception as e:
        _logger.exception("Vertex AI initialization failed: %s", e)
        _vertex_initialized = False


def _strip_code_fences(raw: str) -> str:
    """Remove ```json fences some models wrap around JSON output."""
    cleaned = re.sub(r"```(?:json)?", "", raw)
    return cleaned.strip()


def parse_json_response(raw: Optional[str]) -> Dict[str, Any]:
    """
    Parse a model reply into a JSON object.

    Raises GenerationError if the reply is empty or is not a JSON object.
    """
    if not raw or not raw.strip():
        raise GenerationError("Model returned an empty response")
    text = _strip_code_fences(raw)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        # Fall back to the first {...} block when the model adds prose around the JSON
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if not match:
            raise GenerationError("No JSON object found in model response")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise GenerationError(f"Model response is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise GenerationError("Model response JSON is not an object")
    return parsed


async def _generate(prompt_text: str, generation_config: GenerationConfig, model_name: Optional[str]) -> str:
    init_vertex()
    if not _vertex_initialized:
        raise GenerationError("Vertex AI is not initialized")

    model = GenerativeModel(model_name or VERTEX_MODEL_NAME)
    try:
        response = await asyncio.wait_for(
            model.generate_content_async(prompt_text, generation_config=generation_config),
            timeout=VERTEX_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as e:
        _logger.error("Vertex AI generation timed out after %.1fs", VERTEX_TIMEOUT_SECONDS)
        raise GenerationError("Generation timed out") from e
    except Exception as e:
        _logger.exception("Vertex AI generation failed: %s", e)
        raise GenerationError(f"Generation failed: {e}") from e

    # A blocked prompt comes back without candidates
    if not response.candidates:
        _logger.warning("Vertex AI response was blocked. Prompt Feedback: %s", response.prompt_feedback)
        raise GenerationError("Generation was blocked by safety filters")

    try:
        return response.candidates[0].content.parts[0].text
    except (IndexError, AttributeError) as e:
        raise GenerationError("Model response had no text part") from e


async def vertex_generate_json(
    prompt_text: str,
    response_schema: Dict[str, Any],
    model_name: Optional[str] = None,
    temperature: float = 0.4,
    max_output_tokens: int = 4096,
) -> Dict[str, Any]:
    """
    Generate a JSON object constrained by `response_schema`.

    Args:
        prompt_text: The input prompt to the model.
        response_schema: Vertex (OpenAPI subset) schema the reply must follow.
        model_name: Override the configured model if provided.
        temperature: Controls creativity (higher = more random).
        max_output_tokens: Upper bound on generated tokens.

    Returns:
        The parsed JSON object.

    Raises:
        GenerationError on any failure; there is no automatic retry.
    """
    generation_config = GenerationConfig(
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        response_mime_type="application/json",
        response_schema=response_schema,
    )
    raw = await _generate(prompt_text, generation_config, model_name)
    return parse_json_response(raw)


async def vertex_generate_text(
    prompt_text: str,
    model_name: Optional[str] = None,
    temperature: float = 0.7,
    max_output_tokens: int = 512,
) -> str:
    """Generate a plain-text reply. Raises GenerationError on failure or empty output."""
    generation_config = GenerationConfig(temperature=temperature, max_output_tokens=max_output_tokens)
    text = await _generate(prompt_text, generation_config, model_name)
    if not text or not text.strip():
        raise GenerationError("Model returned an empty response")
    return text.strip()


def get_firestore_client() -> Optional[firestore.Client]:
    """
    Return the shared Firestore client, creating it on first use.

    Returns:
        Firestore client instance, or None on failure.
    """
    global _firestore_client
    if _firestore_client is not None:
        return _firestore_client
    try:
        _logger.debug("Initializing Firestore client for project: %s", GCP_PROJECT)
        _firestore_client = firestore.Client(project=GCP_PROJECT)
        return _firestore_client
    except Exception as e:
        _logger.exception("Firestore client initialization failed: %s", e)
        return None
