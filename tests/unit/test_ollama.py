"""Tests for the Ollama generator client, using httpx.MockTransport."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from kicad_assist.config import Settings
from kicad_assist.generator import CancelToken, OllamaClient
from kicad_assist.schema import ContextSnapshot, EditorKind

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler, **kwargs: object) -> OllamaClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return OllamaClient(base_url="http://ollama.test", client=http, **kwargs)  # type: ignore[arg-type]


def _ndjson(*objs: object) -> bytes:
    return "".join(json.dumps(o) + "\n" for o in objs).encode()


def _tags(*names: str) -> httpx.Response:
    return httpx.Response(200, json={"models": [{"name": n} for n in names]})


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


# ── Availability and models ─────────────────────────────────────────


class TestAvailability:
    def test_available(self) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return _tags()

        client = _client(handler)
        assert client.is_available() is True
        assert client.is_available() is True
        assert calls == ["/api/tags"]

    def test_unavailable_is_retried(self) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)
        assert client.is_available() is False
        assert client.is_available() is False
        assert len(calls) == 2

    def test_set_base_url_drops_cache(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.host)
            return _tags()

        client = _client(handler)
        client.is_available()
        client.set_base_url("http://other.test/")
        assert client.base_url == "http://other.test"
        client.is_available()
        assert seen == ["ollama.test", "other.test"]

    def test_list_models(self) -> None:
        client = _client(lambda r: _tags("llama3:8b", "qwen2.5-coder:7b"))
        assert client.list_models() == ["llama3:8b", "qwen2.5-coder:7b"]

    def test_list_models_on_failure(self) -> None:
        assert _client(_refuse).list_models() == []
        assert _client(lambda r: httpx.Response(200, text="nope")).list_models() == []


class TestModelSelection:
    @pytest.mark.parametrize(
        ("names", "expected"),
        [
            ((), "qwen2.5-coder:32b"),
            (("llama3:8b", "qwen2.5-coder:32b"), "qwen2.5-coder:32b"),
            (("llama3:8b", "codellama:13b"), "codellama:13b"),
            (("llama3:8b", "mistral"), "llama3:8b"),
        ],
    )
    def test_default_model(self, names: tuple[str, ...], expected: str) -> None:
        assert _client(lambda r: _tags(*names)).select_default_model() == expected

    def test_configured_model_wins(self) -> None:
        client = _client(_refuse, model="phi3")
        assert client.get_model() == "phi3"

    def test_selection_is_lazy_and_sticky(self) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return _tags("codellama:7b")

        client = _client(handler)
        assert calls == []
        assert client.get_model() == "codellama:7b"
        assert client.get_model() == "codellama:7b"
        assert calls == ["/api/tags"]
        client.set_model("llama3")
        assert client.get_model() == "llama3"

    def test_from_settings(self) -> None:
        settings = Settings(base_url="http://gpu:11434", model="llama3", timeout_s=5.0)
        client = OllamaClient.from_settings(settings)
        try:
            assert client.base_url == "http://gpu:11434"
            assert client.get_model() == "llama3"
            assert client.timeout_s == 5.0
        finally:
            client.close()


# ── Buffered generation ─────────────────────────────────────────────


class TestGenerate:
    def test_success_and_payload(self) -> None:
        captured: dict[str, object] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured.update(json.loads(request.content))
            return httpx.Response(200, json={"response": "add component Device:R", "done": True})

        context = ContextSnapshot(editor_kind=EditorKind.SCHEMATIC, symbol_libs={"Device": ("R",)})
        resp = _client(handler, model="m").generate("a resistor", context)

        assert resp.success and resp.complete
        assert resp.text == "add component Device:R"
        assert captured["model"] == "m"
        assert captured["prompt"] == "a resistor"
        assert captured["stream"] is False
        assert "Device:R" in str(captured["system"])

    def test_http_error_status(self) -> None:
        resp = _client(
            lambda r: httpx.Response(404, json={"error": "model 'm' not found"}), model="m"
        ).generate("x")
        assert not resp.success
        assert resp.error == "HTTP error 404: model 'm' not found"
        assert resp.error_code is None

    def test_error_body(self) -> None:
        resp = _client(lambda r: httpx.Response(200, json={"error": "out of memory"}), model="m").generate("x")
        assert not resp.success
        assert resp.error == "out of memory"

    def test_invalid_json(self) -> None:
        resp = _client(lambda r: httpx.Response(200, text="<html>"), model="m").generate("x")
        assert not resp.success
        assert resp.error_code == "GENERATOR_PROTOCOL"

    def test_unreachable(self) -> None:
        resp = _client(_refuse, model="m").generate("x")
        assert not resp.success
        assert resp.error_code == "GENERATOR_UNAVAILABLE"

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        resp = _client(handler, model="m").generate("x")
        assert resp.error_code == "TIMEOUT"


# ── Streaming ───────────────────────────────────────────────────────


class TestGenerateStreaming:
    def test_chunks_in_order(self) -> None:
        body = _ndjson(
            {"response": "add component "},
            {"response": "Device:R"},
            {"response": "", "done": True},
        )
        chunks: list[str] = []
        resp = _client(lambda r: httpx.Response(200, content=body), model="m").generate_streaming(
            "x", on_chunk=chunks.append
        )
        assert resp.success and resp.complete
        assert chunks == ["add component ", "Device:R"]
        assert resp.text == "add component Device:R"

    def test_malformed_lines_skipped(self) -> None:
        body = b'{"response": "a"}\nnot json\n\n[1]\n{"response": "b", "done": true}\n'
        resp = _client(lambda r: httpx.Response(200, content=body), model="m").generate_streaming("x")
        assert resp.text == "ab"
        assert resp.complete

    def test_missing_done_marker(self) -> None:
        body = _ndjson({"response": "partial"})
        resp = _client(lambda r: httpx.Response(200, content=body), model="m").generate_streaming("x")
        assert resp.success
        assert resp.text == "partial"
        assert resp.complete is False

    def test_error_object_mid_stream(self) -> None:
        body = _ndjson({"response": "a"}, {"error": "model crashed"})
        resp = _client(lambda r: httpx.Response(200, content=body), model="m").generate_streaming("x")
        assert not resp.success
        assert resp.error == "model crashed"
        assert resp.text == "a"

    def test_http_error_status(self) -> None:
        resp = _client(
            lambda r: httpx.Response(500, json={"error": "boom"}), model="m"
        ).generate_streaming("x")
        assert not resp.success
        assert resp.error == "HTTP error 500: boom"

    def test_cancel_before_request(self) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(200, content=b"")

        token = CancelToken()
        token.cancel()
        resp = _client(handler, model="m").generate_streaming("x", cancel_token=token)
        assert resp.cancelled and resp.success and not resp.complete
        assert calls == []

    def test_cancel_between_chunks(self) -> None:
        body = _ndjson(
            {"response": "add component Device:R\n"},
            {"response": "connect R1.1 to C1.1\n"},
            {"response": "", "done": True},
        )
        token = CancelToken()
        chunks: list[str] = []

        def on_chunk(chunk: str) -> None:
            chunks.append(chunk)
            token.cancel()

        resp = _client(lambda r: httpx.Response(200, content=body), model="m").generate_streaming(
            "x", on_chunk=on_chunk, cancel_token=token
        )
        assert resp.cancelled
        assert resp.complete is False
        assert chunks == ["add component Device:R\n"]
        assert resp.text == "add component Device:R\n"

    def test_unreachable(self) -> None:
        resp = _client(_refuse, model="m").generate_streaming("x")
        assert resp.error_code == "GENERATOR_UNAVAILABLE"


class TestCancelToken:
    def test_one_way(self) -> None:
        token = CancelToken()
        assert not token.is_cancelled
        token.raise_if_cancelled()
        token.cancel()
        token.cancel()
        assert token.is_cancelled
        assert repr(token) == "CancelToken(cancelled=True)"

    def test_raise_if_cancelled(self) -> None:
        from kicad_assist.exceptions import CancelledError

        token = CancelToken()
        token.cancel()
        with pytest.raises(CancelledError):
            token.raise_if_cancelled()
