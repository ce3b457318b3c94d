"""
Streaming JSON codec over one TCP connection.

Envelopes are JSON objects written back to back. They need no separator,
though we write a newline after each one and skip whitespace between them.
"""

import asyncio
import codecs
import json
import logging
import re
from typing import Any, Optional

from prisclient.errors import ConnectionError, Disconnected
from prisclient.models.envelope import Query
from prisclient.transport.envelope import encode_envelope, parse_envelope

logger = logging.getLogger(__name__)

READ_CHUNK = 4096
MAX_ENVELOPE_SIZE = 1 << 20  # 1 MiB

# What a decode error may stop at when the object is only cut short: part of
# a number, a literal or a \uXXXX escape.
_PARTIAL_TOKEN = re.compile(r"-?[0-9.eE+-]*|t(?:r(?:u)?)?|f(?:a(?:l(?:s)?)?)?|n(?:u(?:l)?)?|u[0-9a-fA-F]{0,4}")


class EnvelopeStream:
    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        read_timeout: Optional[float] = None,
    ):
        self._reader = reader
        self._writer = writer
        self._read_timeout = read_timeout
        self._json = json.JSONDecoder()
        self._text = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self) -> Query:
        """Read the next envelope.

        Raises Disconnected on a clean end of stream, ConnectionError on
        transport failures and broken framing, and EnvelopeError when a
        well-framed object does not fit the Query schema. After an
        EnvelopeError the stream is still usable.
        """
        return parse_envelope(await self._read_object())

    async def write(self, query: Query) -> None:
        if self._closed:
            raise ConnectionError("stream is closed")
        try:
            self._writer.write(encode_envelope(query))
            await self._writer.drain()
        except OSError as e:
            raise ConnectionError(f"write failed: {e}") from e

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug("Error while closing stream: %s", e)

    async def _read_object(self) -> Any:
        while True:
            self._buffer = self._buffer.lstrip()
            if self._buffer:
                if self._buffer[0] != "{":
                    raise ConnectionError(
                        "unexpected data on stream", details={"data": self._buffer[:64]},
                    )
                try:
                    obj, end = self._json.raw_decode(self._buffer)
                except json.JSONDecodeError as e:
                    if not _incomplete(self._buffer, e):
                        raise ConnectionError(
                            "malformed JSON on stream",
                            details={"error": e.msg, "data": self._buffer[max(e.pos - 32, 0):e.pos + 32]},
                        ) from e
                    if len(self._buffer) > MAX_ENVELOPE_SIZE:
                        raise ConnectionError(f"envelope larger than {MAX_ENVELOPE_SIZE} bytes")
                else:
                    self._buffer = self._buffer[end:]
                    return obj

            chunk = await self._read_chunk()
            try:
                if not chunk:
                    self._buffer += self._text.decode(b"", final=True)
                    if self._buffer.strip():
                        raise ConnectionError("stream ended in the middle of an envelope")
                    raise Disconnected()
                self._buffer += self._text.decode(chunk)
            except UnicodeDecodeError as e:
                raise ConnectionError(f"invalid UTF-8 on stream: {e}") from e

    async def _read_chunk(self) -> bytes:
        try:
            if self._read_timeout is None:
                return await self._reader.read(READ_CHUNK)
            return await asyncio.wait_for(self._reader.read(READ_CHUNK), timeout=self._read_timeout)
        except asyncio.TimeoutError as e:
            raise ConnectionError(
                f"no data from hub in {self._read_timeout}s", code="read_timeout",
            ) from e
        except OSError as e:
            raise ConnectionError(f"read failed: {e}") from e


def _incomplete(buffer: str, error: json.JSONDecodeError) -> bool:
    """True if the decode error only means the object has not fully arrived."""
    if error.pos >= len(buffer) or error.msg.startswith("Unterminated string"):
        return True
    return _PARTIAL_TOKEN.fullmatch(buffer[error.pos:]) is not None
