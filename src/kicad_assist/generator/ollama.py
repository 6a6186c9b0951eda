"""HTTP client for an Ollama generator service.

Endpoints used:

* ``GET  /api/tags``     -> ``{"models": [{"name": ...}, ...]}``
* ``POST /api/generate`` -> one JSON object (``stream=false``) or
  newline-delimited JSON objects with ``response`` fragments and a final
  ``"done": true`` (``stream=true``).
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx

from ..config import Settings
from ..constants import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT_S, MAX_PROMPT_ENTRIES
from ..exceptions import (
    AssistError,
    GeneratorProtocolError,
    GeneratorTimeoutError,
    GeneratorUnavailableError,
)
from ..logging_config import create_logger
from ..prompts.system_prompt import build_system_prompt
from ..schema.context import ContextSnapshot
from ..schema.results import GeneratorResponse
from .cancel import CancelToken

logger = create_logger(__name__)

ChunkCallback = Callable[[str], None]

PROBE_TIMEOUT_S = 5.0


class OllamaClient:
    """Synchronous Ollama client with streaming and cancellation.

    The underlying ``httpx.Client`` may be injected; a client created here is
    closed by :meth:`close`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        cap_components: int = MAX_PROMPT_ENTRIES,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.cap_components = cap_components
        self._model = model
        self._available = False
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout_s))

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.Client | None = None) -> OllamaClient:
        return cls(
            base_url=settings.base_url,
            model=settings.model,
            timeout_s=settings.timeout_s,
            cap_components=settings.cap_components,
            client=client,
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    # ── Availability and models ────────────────────────────────────

    def is_available(self) -> bool:
        """Probe ``/api/tags``. A success is cached; a failure is retried next call."""
        if self._available:
            return True
        try:
            resp = self._client.get(self._url("/api/tags"), timeout=min(self.timeout_s, PROBE_TIMEOUT_S))
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug(f"Generator at {self.base_url} not available: {e}")
            return False
        self._available = True
        return True

    def list_models(self) -> list[str]:
        """Model names reported by the server; empty on any failure."""
        try:
            resp = self._client.get(self._url("/api/tags"), timeout=min(self.timeout_s, PROBE_TIMEOUT_S))
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Could not list models from {self.base_url}: {e}")
            return []
        if not isinstance(data, dict):
            return []
        models = data.get("models") or []
        return [m["name"] for m in models if isinstance(m, dict) and m.get("name")]

    def select_default_model(self) -> str:
        """Pick the preferred model if listed, else a code model, else the first one."""
        models = self.list_models()
        if not models or DEFAULT_MODEL in models:
            return DEFAULT_MODEL
        for name in models:
            lowered = name.lower()
            if "coder" in lowered or "code" in lowered:
                return name
        return models[0]

    def get_model(self) -> str:
        if self._model is None:
            self._model = self.select_default_model()
            logger.info(f"Using generator model {self._model}")
        return self._model

    def set_model(self, name: str) -> None:
        self._model = name

    def set_base_url(self, url: str) -> None:
        """Point at another server; the availability cache is dropped."""
        self.base_url = url.rstrip("/")
        self._available = False

    # ── Generation ─────────────────────────────────────────────────

    def _payload(self, prompt: str, context: ContextSnapshot | None, stream: bool) -> dict[str, Any]:
        return {
            "model": self.get_model(),
            "prompt": prompt,
            "system": build_system_prompt(context or ContextSnapshot(), self.cap_components),
            "stream": stream,
        }

    def _transport_error(self, e: httpx.HTTPError) -> AssistError:
        if isinstance(e, httpx.TimeoutException):
            return GeneratorTimeoutError(
                f"Generator request timed out after {self.timeout_s}s", base_url=self.base_url
            )
        return GeneratorUnavailableError(
            f"Generator service at {self.base_url} is not available: {e}", base_url=self.base_url
        )

    @staticmethod
    def _failure(e: AssistError, text: str = "") -> GeneratorResponse:
        return GeneratorResponse(
            success=False, text=text, error=e.message, complete=False, error_code=e.error_code
        )

    @staticmethod
    def _status_error(resp: httpx.Response) -> str:
        try:
            detail = resp.json().get("error")
        except (ValueError, AttributeError):
            detail = None
        return f"HTTP error {resp.status_code}" + (f": {detail}" if detail else "")

    def generate(self, prompt: str, context: ContextSnapshot | None = None) -> GeneratorResponse:
        """Send a buffered request and return the whole reply."""
        payload = self._payload(prompt, context, stream=False)
        try:
            resp = self._client.post(self._url("/api/generate"), json=payload, timeout=self.timeout_s)
        except httpx.HTTPError as e:
            return self._failure(self._transport_error(e))

        if resp.is_error:
            return GeneratorResponse(success=False, error=self._status_error(resp), complete=False)

        try:
            data = resp.json()
            if not isinstance(data, dict):
                raise ValueError("not a JSON object")
        except ValueError as e:
            return self._failure(
                GeneratorProtocolError(f"Invalid JSON from generator: {e}", body=resp.text[:200])
            )

        if data.get("error"):
            return GeneratorResponse(success=False, error=str(data["error"]), complete=False)
        return GeneratorResponse(success=True, text=str(data.get("response", "")), complete=True)

    def generate_streaming(
        self,
        prompt: str,
        context: ContextSnapshot | None = None,
        on_chunk: ChunkCallback | None = None,
        cancel_token: CancelToken | None = None,
    ) -> GeneratorResponse:
        """Stream a reply, calling ``on_chunk`` for every fragment.

        The token is checked before the request is sent and before each
        streamed line. On cancellation the text received so far is returned
        with ``complete=False`` and ``cancelled=True``.
        """
        if cancel_token is not None and cancel_token.is_cancelled:
            return GeneratorResponse(success=True, complete=False, cancelled=True)

        payload = self._payload(prompt, context, stream=True)
        parts: list[str] = []
        try:
            with self._client.stream(
                "POST", self._url("/api/generate"), json=payload, timeout=self.timeout_s
            ) as resp:
                if resp.is_error:
                    resp.read()
                    return GeneratorResponse(success=False, error=self._status_error(resp), complete=False)

                for line in resp.iter_lines():
                    if cancel_token is not None and cancel_token.is_cancelled:
                        logger.info("Generation cancelled")
                        return GeneratorResponse(
                            success=True, text="".join(parts), complete=False, cancelled=True
                        )
                    if not line.strip():
                        continue
                    try:
                        obj = json.loads(line)
                    except json.JSONDecodeError:
                        logger.debug(f"Skipping malformed stream line: {line[:80]!r}")
                        continue
                    if not isinstance(obj, dict):
                        continue
                    if obj.get("error"):
                        return GeneratorResponse(
                            success=False, text="".join(parts), error=str(obj["error"]), complete=False
                        )
                    fragment = obj.get("response")
                    if fragment:
                        parts.append(fragment)
                        if on_chunk is not None:
                            on_chunk(fragment)
                    if obj.get("done"):
                        return GeneratorResponse(success=True, text="".join(parts), complete=True)
        except httpx.HTTPError as e:
            return self._failure(self._transport_error(e), text="".join(parts))

        logger.debug("Stream ended without a done marker")
        return GeneratorResponse(success=True, text="".join(parts), complete=False)

    # ── Lifecycle ──────────────────────────────────────────────────

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> OllamaClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
