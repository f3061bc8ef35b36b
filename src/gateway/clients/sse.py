"""Server-Sent Events decoding for RAG backend streams.

Backends stream one JSON object per ``data:`` line. The decoder is tolerant
of lines split across network reads and of servers that simply hang up
instead of sending ``[DONE]``.
"""

import asyncio
import codecs
import json
from collections.abc import AsyncGenerator, AsyncIterable
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from gateway.core.errors import ProtocolError
from gateway.observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

DONE_MARKER = "[DONE]"
IGNORED_FIELDS = ("event:", "id:", "retry:", ":")
PEER_CLOSED_MARKERS = (
    "peer closed",
    "incomplete",
    "disconnected",
    "terminated",
    "other side closed",
    "connection reset",
)

_DONE = object()


def is_peer_closed(exc: BaseException) -> bool:
    """Return True when ``exc`` means the server closed the stream on us."""
    if isinstance(exc, (ConnectionResetError, EOFError, asyncio.IncompleteReadError)):
        return True
    if isinstance(exc, (httpx.RemoteProtocolError, httpx.ReadError)):
        cause = exc.__cause__ or exc.__context__
        if isinstance(cause, (ConnectionResetError, EOFError)):
            return True
        message = str(exc).lower()
        return any(marker in message for marker in PEER_CLOSED_MARKERS)
    return False


def _parse_line(line: str) -> str | object | None:
    """Return the JSON text of a line, ``_DONE``, or None for no payload."""
    text = line.strip()
    if not text:
        return None

    if text.startswith("data:"):
        text = text[5:].strip()
    elif text.startswith(IGNORED_FIELDS):
        return None

    if not text:
        return None
    if text == DONE_MARKER:
        return _DONE
    return text


def _decode(text: str, model: type[T] | None) -> Any:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON in SSE stream: {e}", detail=text[:200]) from e

    if model is None:
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ProtocolError(f"Unexpected SSE payload: {e}", detail=text[:200]) from e


async def parse_sse_stream(
    chunks: AsyncIterable[bytes | str],
    model: type[T] | None = None,
) -> AsyncGenerator[Any, None]:
    """Decode an SSE byte stream into JSON payloads.

    Args:
        chunks: Raw body chunks, split at arbitrary boundaries.
        model: Optional pydantic model each payload is validated into.

    Yields:
        One decoded payload per ``data:`` line.

    Raises:
        ProtocolError: If a payload is not valid JSON or does not fit ``model``.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    iterator = chunks.__aiter__()

    while True:
        try:
            chunk = await iterator.__anext__()
        except StopAsyncIteration:
            break
        except Exception as e:
            if is_peer_closed(e):
                logger.debug("sse.stream.closed_by_peer", error=str(e))
                break
            raise

        buffer += chunk if isinstance(chunk, str) else decoder.decode(chunk)
        *lines, buffer = buffer.split("\n")

        for line in lines:
            parsed = _parse_line(line)
            if parsed is _DONE:
                return
            if parsed is not None:
                yield _decode(parsed, model)

    buffer += decoder.decode(b"", final=True)
    parsed = _parse_line(buffer)
    if parsed is not None and parsed is not _DONE:
        yield _decode(parsed, model)
