"""Local HTTP listener that catches the OAuth redirect.

Binds 127.0.0.1 starting at DEFAULT_PORT, moving to the next port while the
candidate is in use. The first request carrying ``code`` or ``error`` settles
the flow and shuts the listener down; anything else (e.g. /favicon.ico) gets a
404 and the listener keeps waiting.
"""

import asyncio
import errno
import sys
from urllib.parse import parse_qs, urlsplit

from tokenflow.errors import CallbackFailure, PortBindFailure, RedirectError
from tokenflow.flow import AuthorizationFlow

HOST = "127.0.0.1"
DEFAULT_PORT = 8091
MAX_PORT_ATTEMPTS = 100
MAX_PORT = 65535

SUCCESS_BODY = "Authentication successful! Please return to the console."
FAILURE_PREFIX = "Authentication failed: "


def _response(status: str, body: str) -> bytes:
    payload = body.encode()
    head = (
        f"HTTP/1.1 {status}\r\n"
        "Content-Type: text/plain; charset=utf-8\r\n"
        f"Content-Length: {len(payload)}\r\n"
        "Connection: close\r\n"
        "\r\n"
    )
    return head.encode() + payload


def parse_redirect(target: str) -> tuple[str | None, str | None]:
    """Return (code, error) from a request target like ``/?code=abc``."""
    query = parse_qs(urlsplit(target).query)
    code = query.get("code", [None])[0]
    error = query.get("error", [None])[0]
    return code or None, error or None


async def _read_target(reader: asyncio.StreamReader) -> str | None:
    """Read the request line and headers; return the request target."""
    request_line = await reader.readline()
    parts = request_line.decode("latin-1").split()
    if len(parts) < 2:
        return None
    # Headers are irrelevant; consume them so the client sees a clean close.
    while True:
        line = await reader.readline()
        if line in (b"\r\n", b"\n", b""):
            break
    return parts[1]


async def _respond(writer: asyncio.StreamWriter, status: str, body: str) -> None:
    """Answer a request that does not touch the flow; a vanished client is ignored."""
    try:
        writer.write(_response(status, body))
        await writer.drain()
    except ConnectionError:
        pass


class LoopbackServer:
    """HTTP listener on 127.0.0.1 that settles ``flow`` from the OAuth redirect."""

    def __init__(
        self, flow: AuthorizationFlow, start_port: int = DEFAULT_PORT
    ) -> None:
        self.flow = flow
        self.port = start_port
        self._server: asyncio.Server | None = None
        self._writers: set[asyncio.StreamWriter] = set()
        self._stopped: asyncio.Server | None = None
        self._answered = False

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    async def listen(self) -> int:
        """Bind the first free port at or after ``self.port`` and return it."""
        for _ in range(MAX_PORT_ATTEMPTS):
            if self.port > MAX_PORT:
                break
            try:
                self._server = await asyncio.start_server(
                    self._handle, HOST, self.port
                )
            except OSError as exc:
                if exc.errno != errno.EADDRINUSE:
                    raise PortBindFailure(
                        f"Could not listen on {HOST}:{self.port}: {exc}"
                    ) from exc
                print(
                    f"port {self.port} is in use, trying another one",
                    file=sys.stderr,
                )
                self.port += 1
                continue
            # Port 0 asks the OS for any free port; report the one it chose.
            self.port = self._server.sockets[0].getsockname()[1]
            return self.port
        raise PortBindFailure(
            f"No free port found after {MAX_PORT_ATTEMPTS} attempts"
            f" (last tried {self.port - 1})"
        )

    def close(self) -> None:
        """Stop accepting and drop any open connections. Safe to call repeatedly."""
        server, self._server = self._server, None
        if server is not None:
            server.close()
            self._stopped = server
        writers, self._writers = self._writers, set()
        for writer in writers:
            writer.close()

    async def wait_closed(self) -> None:
        """Wait until the listener closed by ``close`` has released its sockets."""
        if self._stopped is not None:
            await self._stopped.wait_closed()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self._writers.add(writer)
        try:
            try:
                target = await _read_target(reader)
            except (ConnectionError, asyncio.IncompleteReadError):
                # Dropped before a full request, e.g. a cancelled preconnect.
                return
            if target is None:
                await _respond(writer, "400 Bad Request", "")
                return
            try:
                await self._on_auth_callback(target, writer)
            except Exception as exc:
                self.close()
                failure = CallbackFailure(f"Redirect handling failed: {exc}")
                failure.__cause__ = exc
                self.flow.abort(failure)
        finally:
            self._writers.discard(writer)
            if not writer.is_closing():
                writer.close()

    async def _on_auth_callback(
        self, target: str, writer: asyncio.StreamWriter
    ) -> None:
        code, error = parse_redirect(target)
        if not code and not error:
            await _respond(writer, "404 Not Found", "")
            return
        # Only the first redirect carrying code or error counts.
        if self._answered:
            return
        self._answered = True
        if error:
            writer.write(_response("200 OK", FAILURE_PREFIX + error))
            await writer.drain()
            self.close()
            self.flow.abort(RedirectError(error))
        else:
            writer.write(_response("200 OK", SUCCESS_BODY))
            await writer.drain()
            self.close()
            await self.flow.complete(code)
