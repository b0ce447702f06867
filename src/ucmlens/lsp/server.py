"""LSP server - expose the ucmlens providers over the Language Server Protocol.

Implements the JSON-RPC 2.0 stdio transport (Content-Length framing) directly.
Only the features backed by the codebase API are advertised: hover,
completion, definition and signature help.

Definitions have no file locations, so ``textDocument/definition`` never
resolves anything. Editors send ``ucm/definitionClick`` on an explicit
go-to-definition action instead, and receive a ``ucm/navigate`` notification
with the resolved name and type.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

from ucmlens import __version__
from ucmlens.cancellation import CancellationToken
from ucmlens.models import DefinitionType, Scope
from ucmlens.providers.base import Position, TextDocument
from ucmlens.providers.completion import CompletionProvider
from ucmlens.providers.context import EditorIntelligence
from ucmlens.providers.definition import DefinitionProvider
from ucmlens.providers.hover import HoverProvider
from ucmlens.providers.signature import SignatureHelpProvider

logger = logging.getLogger("ucmlens.lsp")

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_NOT_INITIALIZED = -32002
REQUEST_CANCELLED = -32800

TEXT_DOCUMENT_SYNC_FULL = 1


class RPCError(Exception):
    """An error that maps onto a JSON-RPC error response."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code


class LSPServer:
    """Language server over stdio backed by an EditorIntelligence service."""

    SERVER_NAME = "ucmlens"
    SERVER_VERSION = __version__

    def __init__(self, intelligence: EditorIntelligence) -> None:
        self.intelligence = intelligence
        self.documents: dict[str, TextDocument] = {}
        self.hover_provider: HoverProvider | None = None
        self.completion_provider: CompletionProvider | None = None
        self.definition_provider: DefinitionProvider | None = None
        self.signature_help_provider: SignatureHelpProvider | None = None
        self.initialized = False
        self.shutdown_requested = False
        self._pending: dict[Any, CancellationToken] = {}
        self._tasks: set[asyncio.Task] = set()
        self._writer: asyncio.StreamWriter | None = None
        self._write_lock = asyncio.Lock()

        intelligence.register(self)
        self._unsubscribe = intelligence.on_definition_requested(self._on_navigate)

    # =========================================================================
    # Provider registration (EditorSurface)
    # =========================================================================

    def register_hover_provider(self, provider: HoverProvider) -> None:
        self.hover_provider = provider

    def register_completion_provider(self, provider: CompletionProvider) -> None:
        self.completion_provider = provider

    def register_definition_provider(self, provider: DefinitionProvider) -> None:
        self.definition_provider = provider

    def register_signature_help_provider(self, provider: SignatureHelpProvider) -> None:
        self.signature_help_provider = provider

    # =========================================================================
    # JSON-RPC transport (stdio)
    # =========================================================================

    async def run_stdio(self) -> None:
        """Run the language server over stdio."""
        loop = asyncio.get_event_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin.buffer)

        writer_transport, writer_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout.buffer
        )
        self._writer = asyncio.StreamWriter(writer_transport, writer_protocol, None, loop)

        logger.info("ucmlens language server started (stdio transport)")

        try:
            while True:
                try:
                    message = await self._read_message(reader)
                except (asyncio.IncompleteReadError, ValueError) as e:
                    logger.error("Malformed message, stopping: %s", e)
                    break
                if message is None or message.get("method") == "exit":
                    break

                if "id" in message and "method" in message:
                    task = asyncio.create_task(self._respond(message))
                    self._tasks.add(task)
                    task.add_done_callback(self._tasks.discard)
                else:
                    self._handle_notification(
                        message.get("method", ""), message.get("params") or {}
                    )
        finally:
            for task in list(self._tasks):
                task.cancel()
            self._unsubscribe()
            await self.intelligence.close()
            logger.info("Language server shutting down")

    async def _read_message(self, reader: asyncio.StreamReader) -> dict | None:
        """Read a JSON-RPC message with Content-Length header."""
        content_length = 0
        while True:
            line = await reader.readline()
            if not line:
                return None
            line = line.decode("utf-8").strip()
            if not line:
                break  # End of headers
            if line.lower().startswith("content-length:"):
                content_length = int(line.split(":")[1].strip())

        if content_length == 0:
            return None

        body = await reader.readexactly(content_length)
        return json.loads(body.decode("utf-8"))

    async def _send(self, message: dict) -> None:
        """Write a JSON-RPC message with Content-Length header."""
        if self._writer is None:
            logger.debug("No client attached; dropping %s", message.get("method", "response"))
            return
        body = json.dumps(message).encode("utf-8")
        header = f"Content-Length: {len(body)}\r\n\r\n".encode()
        async with self._write_lock:
            self._writer.write(header + body)
            await self._writer.drain()

    async def _respond(self, message: dict) -> None:
        response = await self._handle_message(message)
        if response is not None:
            await self._send(response)

    async def _handle_message(self, message: dict) -> dict | None:
        """Route a JSON-RPC message to the appropriate handler."""
        method = message.get("method", "")
        msg_id = message.get("id")
        params = message.get("params") or {}

        # Notifications (no id) don't get responses
        if msg_id is None:
            self._handle_notification(method, params)
            return None

        token = CancellationToken()
        self._pending[msg_id] = token
        try:
            result = await self._dispatch(method, params, token)
            if token.is_cancellation_requested:
                raise RPCError(REQUEST_CANCELLED, "Request cancelled")
            return {"jsonrpc": "2.0", "id": msg_id, "result": result}
        except RPCError as e:
            return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": e.code, "message": str(e)}}
        except Exception as e:
            logger.exception("Error handling %s", method)
            return {
                "jsonrpc": "2.0",
                "id": msg_id,
                "error": {"code": INTERNAL_ERROR, "message": str(e)},
            }
        finally:
            self._pending.pop(msg_id, None)

    def _handle_notification(self, method: str, params: dict) -> None:
        """Handle a notification (no response needed).

        Notifications cannot report errors back, so a malformed one is logged
        and dropped.
        """
        try:
            self._apply_notification(method, params)
        except Exception:
            logger.exception("Error handling notification %s", method)

    def _apply_notification(self, method: str, params: dict) -> None:
        if method == "initialized":
            logger.info("Client initialized")
        elif method == "$/cancelRequest":
            token = self._pending.get(params.get("id"))
            if token is not None:
                logger.debug("Request cancelled: %s", params.get("id"))
                token.cancel()
        elif method == "textDocument/didOpen":
            doc = params["textDocument"]
            self.documents[doc["uri"]] = TextDocument(
                doc["uri"], doc.get("text", ""), doc.get("version", 0)
            )
        elif method == "textDocument/didChange":
            doc = params["textDocument"]
            changes = params.get("contentChanges") or []
            if changes and doc["uri"] in self.documents:
                # Full sync: the last change carries the whole text
                self.documents[doc["uri"]].update(changes[-1]["text"], doc.get("version"))
        elif method == "textDocument/didClose":
            self.documents.pop(params["textDocument"]["uri"], None)
        elif method == "ucm/setScope":
            self._set_scope(params)
        else:
            logger.debug("Ignoring notification %s", method)

    async def _dispatch(self, method: str, params: dict, token: CancellationToken) -> Any:
        """Dispatch a JSON-RPC request to its handler."""
        if method == "initialize":
            return self._rpc_initialize(params)
        if method == "shutdown":
            self.shutdown_requested = True
            return None
        if not self.initialized:
            raise RPCError(SERVER_NOT_INITIALIZED, "Server not initialized")

        if method == "textDocument/hover":
            return await self._rpc_hover(params, token)
        elif method == "textDocument/completion":
            return await self._rpc_completion(params, token)
        elif method == "textDocument/definition":
            return await self._rpc_definition(params, token)
        elif method == "textDocument/signatureHelp":
            return await self._rpc_signature_help(params, token)
        elif method == "ucm/definitionClick":
            return await self._rpc_definition_click(params, token)
        else:
            raise RPCError(METHOD_NOT_FOUND, f"Unknown method: {method}")

    # =========================================================================
    # Handlers
    # =========================================================================

    def _rpc_initialize(self, params: dict) -> dict:
        """Handle the initialize handshake."""
        options = params.get("initializationOptions") or {}
        if options.get("project"):
            self._set_scope(options)
        self.initialized = True

        capabilities: dict[str, Any] = {"textDocumentSync": TEXT_DOCUMENT_SYNC_FULL}
        if self.hover_provider:
            capabilities["hoverProvider"] = True
        if self.completion_provider:
            capabilities["completionProvider"] = {
                "triggerCharacters": self.completion_provider.trigger_characters,
            }
        if self.definition_provider:
            capabilities["definitionProvider"] = True
        if self.signature_help_provider:
            capabilities["signatureHelpProvider"] = {
                "triggerCharacters": self.signature_help_provider.trigger_characters,
                "retriggerCharacters": self.signature_help_provider.retrigger_characters,
            }

        return {
            "capabilities": capabilities,
            "serverInfo": {"name": self.SERVER_NAME, "version": self.SERVER_VERSION},
        }

    def _set_scope(self, params: dict) -> None:
        project = params.get("project") or ""
        branch = params.get("branch") or "main"
        self.intelligence.set_scope(Scope(project=project, branch=branch) if project else None)

    def _document_position(self, params: dict) -> tuple[TextDocument, Position]:
        try:
            uri = params["textDocument"]["uri"]
            position = Position.model_validate(params["position"])
        except (KeyError, TypeError, ValueError) as e:
            raise RPCError(INVALID_PARAMS, f"Invalid text document position: {e}") from e
        document = self.documents.get(uri)
        if document is None:
            raise RPCError(INVALID_PARAMS, f"Document not open: {uri}")
        return document, position

    async def _rpc_hover(self, params: dict, token: CancellationToken) -> dict | None:
        document, position = self._document_position(params)
        hover = await self.hover_provider.provide_hover(document, position, token)
        return hover.to_lsp() if hover else None

    async def _rpc_completion(self, params: dict, token: CancellationToken) -> dict:
        document, position = self._document_position(params)
        completion = await self.completion_provider.provide_completion_items(
            document, position, token
        )
        return completion.model_dump(by_alias=True, exclude_none=True)

    async def _rpc_definition(self, params: dict, token: CancellationToken) -> None:
        document, position = self._document_position(params)
        return await self.definition_provider.provide_definition(document, position, token)

    async def _rpc_definition_click(self, params: dict, token: CancellationToken) -> dict:
        document, position = self._document_position(params)
        notified = await self.definition_provider.trigger_definition_click(
            document, position, token
        )
        return {"navigated": notified}

    async def _rpc_signature_help(self, params: dict, token: CancellationToken) -> dict | None:
        document, position = self._document_position(params)
        help_ = await self.signature_help_provider.provide_signature_help(
            document, position, token
        )
        return help_.model_dump(by_alias=True, exclude_none=True) if help_ else None

    def _on_navigate(self, name: str, type_: DefinitionType) -> None:
        notification = {
            "jsonrpc": "2.0",
            "method": "ucm/navigate",
            "params": {"name": name, "type": type_.value},
        }
        task = asyncio.ensure_future(self._send(notification))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
