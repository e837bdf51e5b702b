from __future__ import annotations
from typing import Any, Dict, Optional

import httpx

from .errors import CollaboratorError

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-3-flash-preview"

class GeminiCollaborator:
    """
    Sends one generateContent request and returns the raw response text.
    Any transport, HTTP or shape problem is raised as CollaboratorError.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        api_base: str = DEFAULT_API_BASE,
        timeout: Optional[float] = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _payload(
        self, query: str, system_instruction: str, response_schema: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": query}]}]}
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        # no schema: plain text reply
        if response_schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }
        return payload

    async def generate(
        self, query: str, system_instruction: str = "", response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        if not self.api_key:
            raise CollaboratorError("missing API key (set GEMINI_API_KEY)")

        url = f"{self.api_base}/models/{self.model}:generateContent"
        payload = self._payload(query, system_instruction, response_schema)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as http:
            try:
                response = await http.post(url, params={"key": self.api_key}, json=payload)
            except httpx.TimeoutException as e:
                raise CollaboratorError(f"timeout after {self.timeout}s") from e
            except httpx.HTTPError as e:
                raise CollaboratorError(f"request failed: {e}") from e

        if response.status_code != 200:
            raise CollaboratorError(f"HTTP {response.status_code}: {response.text[:300]}")

        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CollaboratorError("response has no candidate content") from e

        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))
