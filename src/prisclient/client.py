"""
PrisClient: session engine for a Priscilla hub connection.

``run`` connects, starts the read loop as a background task and then runs the
write loop in the calling task:

    outbound, inbound = asyncio.Queue(), asyncio.Queue()
    client = PrisClient("localhost", 4517, "responder", "echo", secret="...")
    await client.run(outbound, inbound)

Envelopes put on ``outbound`` are validated and sent; valid envelopes from the
hub appear on ``inbound``. Putting ``None`` on ``outbound`` ends the session.
"""

import asyncio
import contextlib
import logging
from typing import Optional

from prisclient.config import ClientConfig
from prisclient.errors import ConfigurationError, ConnectionError, Disconnected, EnvelopeError
from prisclient.models.envelope import ClientType, Query
from prisclient.transport.connection import RETRY_DELAY, ConnectionManager, ConnectionState
from prisclient.transport.envelope import disengage_notice
from prisclient.validator import validate_inbound, validate_outbound


class PrisClient:
    def __init__(
        self,
        host: str,
        port: int,
        client_type: str,
        source_id: str,
        secret: str = "",
        auto_retry: bool = False,
        logger: Optional[logging.Logger] = None,
        retry_delay: float = RETRY_DELAY,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
    ):
        try:
            ctype = ClientType(client_type)
        except ValueError:
            raise ConfigurationError(
                "client type has to be adapter or responder", details={"client_type": client_type},
            ) from None

        self._logger = logger or logging.getLogger("prisclient")
        self._conn = ConnectionManager(
            host=host,
            port=port,
            client_type=ctype,
            source_id=source_id,
            secret=secret,
            auto_retry=auto_retry,
            logger=self._logger,
            retry_delay=retry_delay,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )
        self._client_type = ctype
        self._reader_task: Optional[asyncio.Task[None]] = None

    @classmethod
    def from_config(cls, config: ClientConfig, logger: Optional[logging.Logger] = None) -> "PrisClient":
        return cls(
            host=config.host,
            port=config.port,
            client_type=config.client_type.value,
            source_id=config.source_id,
            secret=config.secret,
            auto_retry=config.auto_retry,
            logger=logger,
            retry_delay=config.retry_delay,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )

    @property
    def client_type(self) -> ClientType:
        return self._client_type

    @property
    def state(self) -> ConnectionState:
        return self._conn.state

    @property
    def connected(self) -> bool:
        return self._conn.connected

    @property
    def listening(self) -> bool:
        """True while the read loop is running."""
        return self._reader_task is not None and not self._reader_task.done()

    @property
    def source_id(self) -> str:
        """Session identity as confirmed by the hub."""
        return self._conn.assigned_id

    async def connect(self) -> None:
        """Dial and engage. Raises ConnectionError when auto retry is off and this fails."""
        await self._conn.connect()

    async def run(self, outbound: asyncio.Queue[Optional[Query]], inbound: asyncio.Queue[Query]) -> None:
        """Connect, then relay envelopes until ``None`` arrives on ``outbound``."""
        await self.connect()
        self._reader_task = asyncio.create_task(self._listen(inbound))
        try:
            while True:
                query = await self._next_outbound(outbound)
                if query is None:
                    self._logger.debug("Outbound queue closed, ending session")
                    return
                await self.send(query)
        finally:
            await self.close()

    async def send(self, query: Query) -> bool:
        """Validate and send one envelope. Returns False if it was dropped.

        Nothing is queued while disconnected: envelopes sent during a
        reconnect are lost. An empty ``source`` is filled with the session
        identity on the copy that goes out; the caller's envelope only gains
        a command id when it had none.
        """
        if not validate_outbound(query, self._logger):
            self._logger.error("Invalid query, dropping: %s", query.to_wire())
            return False
        stream = self._conn.stream
        if stream is None:
            self._logger.debug("Not connected, dropping query: %s", query.to_wire())
            return False
        if not query.source:
            query = query.model_copy(update={"source": self._conn.assigned_id})
        try:
            await stream.write(query)
        except ConnectionError as e:
            self._logger.error("Failed to send query: %s", e)
            return False
        return True

    async def close(self) -> None:
        task, self._reader_task = self._reader_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._conn.disconnect()

    async def _next_outbound(self, outbound: asyncio.Queue[Optional[Query]]) -> Optional[Query]:
        """Wait for the next outbound envelope, re-raising a read loop crash."""
        reader = self._reader_task
        if reader is not None and not reader.done():
            getter = asyncio.ensure_future(outbound.get())
            try:
                done, _ = await asyncio.wait({getter, reader}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                if not getter.done():
                    getter.cancel()
            if getter in done:
                return getter.result()
        if reader is not None and reader.done() and not reader.cancelled() and reader.exception() is not None:
            raise reader.exception()
        return await outbound.get()

    async def _listen(self, inbound: asyncio.Queue[Query]) -> None:
        while True:
            stream = self._conn.stream
            if stream is None:
                break
            try:
                query = await stream.read()
            except EnvelopeError as e:
                self._logger.error("Invalid query from server: %s", e)
                continue
            except Disconnected:
                self._logger.error("Priscilla disconnected")
            except ConnectionError as e:
                self._logger.error("Priscilla connection error: %s", e)
            else:
                if validate_inbound(query, self._logger):
                    self._logger.debug("Query received: %s", query.to_wire())
                    await inbound.put(query)
                else:
                    self._logger.error("Invalid query from server, dropping: %s", query.to_wire())
                continue

            if not self._conn.auto_retry:
                break
            await self._conn.reconnect()

        await self._conn.disconnect()
        self._logger.info("Priscilla session ended")
        await inbound.put(disengage_notice())
