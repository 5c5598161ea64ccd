"""
ASO Observatory - Narrative generation client

Request/response contract for the external text-generation service that
writes safety reports, plus the HTTP client used in production.

The service is consumed, not implemented here: a client turns a
NarrativeRequest(prompt) into a NarrativeResponse(text), or raises
ConfigurationError / NarrativeServiceError.
"""

import logging
import os
from typing import Dict, List, Protocol

import requests
from pydantic import BaseModel, Field

from aso_emulator import config
from aso_emulator.errors import ConfigurationError, NarrativeServiceError

logger = logging.getLogger(__name__)


class NarrativeRequest(BaseModel):
    prompt: str = Field(..., description="Fully rendered report prompt")


class NarrativeResponse(BaseModel):
    text: str = ""


class NarrativeClient(Protocol):
    def generate(self, request: NarrativeRequest) -> NarrativeResponse: ...


class GeminiNarrativeClient:
    """
    Calls the generateContent REST endpoint with requests.

    The API key is read from the environment on every call, so a missing
    key fails the request rather than the process.
    """

    def __init__(
        self,
        base_url: str = config.NARRATIVE_API_URL,
        model: str = config.NARRATIVE_MODEL,
        timeout: float = config.NARRATIVE_TIMEOUT_SECONDS,
        api_key_env: str = config.API_KEY_ENV,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.api_key_env = api_key_env

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _api_key(self) -> str:
        key = os.environ.get(self.api_key_env, "").strip()
        if not key:
            raise ConfigurationError(f"API key is missing in environment ({self.api_key_env})")
        return key

    def generate(self, request: NarrativeRequest) -> NarrativeResponse:
        key = self._api_key()
        payload = {"contents": [{"parts": [{"text": request.prompt}]}]}

        try:
            resp = requests.post(
                self.endpoint,
                json=payload,
                headers={"x-goog-api-key": key},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise NarrativeServiceError(f"Error calling narrative API: {exc}") from exc
        except ValueError as exc:
            raise NarrativeServiceError("Narrative API returned invalid JSON.") from exc

        return NarrativeResponse(text=extract_text(data))


def extract_text(data: Dict) -> str:
    """
    Join the text parts of the first candidate.

    Any payload that does not have the candidates/content/parts shape is a
    collaborator failure and raises NarrativeServiceError.
    """
    if not isinstance(data, dict):
        raise NarrativeServiceError("Narrative API returned an unexpected payload.")
    candidates = data.get("candidates") or []
    if not isinstance(candidates, list):
        raise NarrativeServiceError("Narrative API returned malformed candidates.")
    if not candidates:
        raise NarrativeServiceError("Narrative API returned no candidates.")

    first = candidates[0]
    if not isinstance(first, dict):
        raise NarrativeServiceError("Narrative API returned a malformed candidate.")
    content = first.get("content") or {}
    if not isinstance(content, dict):
        raise NarrativeServiceError("Narrative API returned malformed content.")
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        raise NarrativeServiceError("Narrative API returned malformed parts.")

    texts: List[str] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        text = part.get("text", "")
        if not isinstance(text, str):
            raise NarrativeServiceError("Narrative API returned a non-text part.")
        texts.append(text)
    return "".join(texts)
