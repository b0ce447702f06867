"""Tests for the LSP server."""

from __future__ import annotations

import asyncio
import json

import pytest
import pytest_asyncio

from conftest import FakeStore
from ucmlens.lsp.server import (
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    REQUEST_CANCELLED,
    SERVER_NOT_INITIALIZED,
    LSPServer,
)
from ucmlens.models import Scope
from ucmlens.providers.context import EditorIntelligence

URI = "file:///scratch.u"


def _request(msg_id: int, method: str, params: dict | None = None) -> dict:
    return {"jsonrpc": "2.0", "id": msg_id, "method": method, "params": params or {}}


def _position(line: int, character: int) -> dict:
    return {"textDocument": {"uri": URI}, "position": {"line": line, "character": character}}


@pytest.fixture
def server(intelligence: EditorIntelligence) -> LSPServer:
    return LSPServer(intelligence)


@pytest_asyncio.fixture
async def ready(server: LSPServer) -> LSPServer:
    """An initialized server with one scratch file open."""
    await server._handle_message(_request(1, "initialize"))
    server._handle_notification("initialized", {})
    server._handle_notification(
        "textDocument/didOpen",
        {
            "textDocument": {
                "uri": URI,
                "languageId": "unison",
                "version": 1,
                "text": "ys = base.List.map (f, xs)\nxs = base.Li\nr = match x with",
            }
        },
    )
    return server


class TestLSPProtocol:
    @pytest.mark.asyncio
    async def test_initialize(self, server: LSPServer):
        response = await server._handle_message(_request(1, "initialize"))
        result = response["result"]
        caps = result["capabilities"]
        assert result["serverInfo"]["name"] == "ucmlens"
        assert caps["hoverProvider"] is True
        assert caps["definitionProvider"] is True
        assert caps["textDocumentSync"] == 1
        assert caps["completionProvider"]["triggerCharacters"] == ["."]
        assert caps["signatureHelpProvider"]["triggerCharacters"] == ["(", " "]
        assert caps["signatureHelpProvider"]["retriggerCharacters"] == [","]

    @pytest.mark.asyncio
    async def test_initialize_sets_scope(self, server: LSPServer):
        await server._handle_message(
            _request(1, "initialize", {"initializationOptions": {"project": "other"}})
        )
        assert server.intelligence.scope == Scope(project="other", branch="main")

    @pytest.mark.asyncio
    async def test_request_before_initialize(self, server: LSPServer):
        response = await server._handle_message(_request(1, "textDocument/hover", _position(0, 0)))
        assert response["error"]["code"] == SERVER_NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_unknown_method(self, ready: LSPServer):
        response = await ready._handle_message(_request(2, "textDocument/rename"))
        assert response["error"]["code"] == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_unopened_document(self, ready: LSPServer):
        params = {
            "textDocument": {"uri": "file:///other.u"},
            "position": {"line": 0, "character": 0},
        }
        response = await ready._handle_message(_request(2, "textDocument/hover", params))
        assert response["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_notification_gets_no_response(self, ready: LSPServer):
        message = {"jsonrpc": "2.0", "method": "initialized", "params": {}}
        assert await ready._handle_message(message) is None

    @pytest.mark.asyncio
    async def test_shutdown(self, ready: LSPServer):
        response = await ready._handle_message(_request(9, "shutdown"))
        assert response["result"] is None
        assert ready.shutdown_requested

    @pytest.mark.asyncio
    async def test_read_message_framing(self, server: LSPServer):
        body = json.dumps(_request(3, "shutdown")).encode("utf-8")
        reader = asyncio.StreamReader()
        reader.feed_data(b"Content-Length: %d\r\n\r\n" % len(body) + body)
        reader.feed_eof()

        message = await server._read_message(reader)
        assert message["id"] == 3
        assert await server._read_message(reader) is None


class TestLSPDocuments:
    @pytest.mark.asyncio
    async def test_did_change_full_sync(self, ready: LSPServer):
        ready._handle_notification(
            "textDocument/didChange",
            {
                "textDocument": {"uri": URI, "version": 2},
                "contentChanges": [{"text": "z = 42"}],
            },
        )
        assert ready.documents[URI].text == "z = 42"
        assert ready.documents[URI].version == 2

    @pytest.mark.asyncio
    async def test_did_close(self, ready: LSPServer):
        ready._handle_notification("textDocument/didClose", {"textDocument": {"uri": URI}})
        assert URI not in ready.documents

    @pytest.mark.asyncio
    async def test_malformed_notifications_are_dropped(self, ready: LSPServer):
        ready._handle_notification("textDocument/didOpen", {})
        ready._handle_notification("textDocument/didChange", {"textDocument": {"uri": URI}})
        ready._handle_notification(
            "textDocument/didChange",
            {"textDocument": {"uri": URI}, "contentChanges": [{}]},
        )
        ready._handle_notification("textDocument/didClose", {})
        assert list(ready.documents) == [URI]

        response = await ready._handle_message(
            _request(2, "textDocument/hover", _position(2, 5))
        )
        assert response["result"] is not None

    @pytest.mark.asyncio
    async def test_set_scope(self, ready: LSPServer):
        ready._handle_notification("ucm/setScope", {"project": "p2", "branch": "dev"})
        assert ready.intelligence.scope == Scope(project="p2", branch="dev")


class TestLSPFeatures:
    @pytest.mark.asyncio
    async def test_hover(self, ready: LSPServer):
        response = await ready._handle_message(_request(2, "textDocument/hover", _position(0, 15)))
        contents = response["result"]["contents"]
        assert contents["kind"] == "markdown"
        assert "```unison" in contents["value"]

    @pytest.mark.asyncio
    async def test_hover_keyword(self, ready: LSPServer):
        response = await ready._handle_message(_request(2, "textDocument/hover", _position(2, 6)))
        assert "pattern" in response["result"]["contents"]["value"]

    @pytest.mark.asyncio
    async def test_completion(self, ready: LSPServer):
        response = await ready._handle_message(
            _request(2, "textDocument/completion", _position(1, 12))
        )
        result = response["result"]
        assert result["isIncomplete"] is False
        assert [item["label"] for item in result["items"]] == ["base.List", "base.List.map"]

    @pytest.mark.asyncio
    async def test_signature_help(self, ready: LSPServer):
        response = await ready._handle_message(
            _request(2, "textDocument/signatureHelp", _position(0, 23))
        )
        result = response["result"]
        assert result["signatures"][0]["label"].startswith("base.List.map : ")
        assert result["activeParameter"] == 1

    @pytest.mark.asyncio
    async def test_definition_returns_nothing(self, ready: LSPServer, store: FakeStore):
        response = await ready._handle_message(
            _request(2, "textDocument/definition", _position(0, 15))
        )
        assert response["result"] is None
        assert store.find_calls == []

    @pytest.mark.asyncio
    async def test_definition_click_sends_navigate(self, ready: LSPServer):
        sent: list[dict] = []

        async def record(message: dict) -> None:
            sent.append(message)

        ready._send = record
        response = await ready._handle_message(
            _request(2, "ucm/definitionClick", _position(0, 15))
        )
        await asyncio.sleep(0)

        assert response["result"] == {"navigated": True}
        assert sent == [
            {
                "jsonrpc": "2.0",
                "method": "ucm/navigate",
                "params": {"name": "base.List.map", "type": "term"},
            }
        ]

    @pytest.mark.asyncio
    async def test_cancel_request(self, ready: LSPServer, store: FakeStore):
        store.gate = asyncio.Event()
        task = asyncio.create_task(
            ready._handle_message(_request(7, "textDocument/hover", _position(0, 15)))
        )
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        ready._handle_notification("$/cancelRequest", {"id": 7})
        store.gate.set()

        response = await task
        assert response["error"]["code"] == REQUEST_CANCELLED
        assert 7 not in ready._pending
