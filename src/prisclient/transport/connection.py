"""
Connection manager: dial, engage handshake, reconnect with a fixed delay.

States: disconnected -> connecting -> authenticating -> connected, then
back to disconnected, or failed when auto retry is off and a dial or
handshake fails.

The live EnvelopeStream is published only after the hub answers the engage
with a proceed, so no other traffic can use a half-authenticated socket.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Optional

from prisclient.auth import compute_credential, random_id
from prisclient.errors import ConnectionError, Disconnected, EnvelopeError, HandshakeError
from prisclient.models.envelope import Action, ClientType, CommandBlock, Query, QueryType
from prisclient.transport.stream import EnvelopeStream

RETRY_DELAY = 5.0
SERVER_ID = "server"


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    CONNECTED = "connected"
    FAILED = "failed"


class ConnectionManager:
    def __init__(
        self,
        host: str,
        port: int,
        client_type: ClientType,
        source_id: str,
        secret: str = "",
        auto_retry: bool = False,
        logger: Optional[logging.Logger] = None,
        retry_delay: float = RETRY_DELAY,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
    ):
        self._host = host
        self._port = port
        self._client_type = client_type
        self._source_id = source_id
        self._secret = secret
        self._auto_retry = auto_retry
        self._logger = logger or logging.getLogger(__name__)
        self.retry_delay = retry_delay
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout

        self._state = ConnectionState.DISCONNECTED
        self._stream: Optional[EnvelopeStream] = None
        self._assigned_id = source_id

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    @property
    def auto_retry(self) -> bool:
        return self._auto_retry

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED and self._stream is not None

    @property
    def stream(self) -> Optional[EnvelopeStream]:
        """The current stream, or None while not connected. Fetch it per operation."""
        return self._stream if self.connected else None

    @property
    def assigned_id(self) -> str:
        """Identity confirmed by the hub on the last successful engage."""
        return self._assigned_id

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            self._logger.debug("Connection %s: %s -> %s", self.address, self._state.value, state.value)
            self._state = state

    async def connect(self) -> EnvelopeStream:
        """Dial and engage until connected.

        With auto retry on, every failure is followed by a fixed delay and
        another attempt, without limit. With it off, the first failure is
        fatal: the state becomes failed and ConnectionError is raised.
        """
        while True:
            try:
                return await self._attempt()
            except ConnectionError as e:
                self._set_state(ConnectionState.DISCONNECTED)
                if not self._auto_retry:
                    self._set_state(ConnectionState.FAILED)
                    self._logger.critical(
                        "Error connecting to priscilla server at %s, and auto retry is not set: %s",
                        self.address, e,
                    )
                    raise
                self._logger.error("Error connecting to priscilla server at %s: %s", self.address, e)
                await self._backoff()

    async def reconnect(self) -> EnvelopeStream:
        """Wait the retry delay, then connect again."""
        await self.disconnect()
        await self._backoff()
        return await self.connect()

    async def disconnect(self) -> None:
        stream, self._stream = self._stream, None
        if self._state != ConnectionState.FAILED:
            self._set_state(ConnectionState.DISCONNECTED)
        if stream is not None:
            await stream.close()

    async def _backoff(self) -> None:
        self._logger.error("Auto retry in %s seconds...", self.retry_delay)
        await asyncio.sleep(self.retry_delay)

    async def _attempt(self) -> EnvelopeStream:
        self._set_state(ConnectionState.CONNECTING)
        stream = await self._dial()

        self._set_state(ConnectionState.AUTHENTICATING)
        try:
            assigned_id = await asyncio.wait_for(self._engage(stream), timeout=self._connect_timeout)
        except asyncio.TimeoutError as e:
            await stream.close()
            raise HandshakeError(f"No reply to engage within {self._connect_timeout}s") from e
        except BaseException:
            await stream.close()
            raise

        self._assigned_id = assigned_id
        self._stream = stream
        self._set_state(ConnectionState.CONNECTED)
        self._logger.info("Priscilla engaged at %s as %s", self.address, assigned_id)
        return stream

    async def _dial(self) -> EnvelopeStream:
        self._logger.debug("Connecting to %s...", self.address)
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._connect_timeout,
            )
        except (asyncio.TimeoutError, OSError) as e:
            raise ConnectionError(f"TCP connect to {self.address} failed: {e}") from e
        return EnvelopeStream(reader, writer, read_timeout=self._read_timeout)

    async def _engage(self, stream: EnvelopeStream) -> str:
        timestamp = int(time.time())
        credential = compute_credential(self._secret, self._source_id, timestamp) if self._secret else ""
        await stream.write(Query(
            type=QueryType.COMMAND,
            source=self._source_id,
            to=SERVER_ID,
            command=CommandBlock(
                id=random_id(),
                action=Action.ENGAGE,
                type=self._client_type.value,
                time=timestamp,
                data=credential,
            ),
        ))

        try:
            reply = await stream.read()
        except Disconnected as e:
            raise HandshakeError("Hub closed the connection during engage") from e
        except EnvelopeError as e:
            raise HandshakeError(f"Unreadable reply to engage: {e}", details=e.details) from e
        except ConnectionError as e:
            raise HandshakeError(f"Engage failed: {e}", details=e.details) from e

        if reply.type != QueryType.COMMAND or reply.command is None or reply.command.action != Action.PROCEED:
            raise HandshakeError("Unexpected response from server", details={"reply": reply.to_wire()})

        return reply.command.data or self._source_id
