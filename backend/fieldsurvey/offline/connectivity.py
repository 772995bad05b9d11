"""Connectivity observer: online/offline state with edge-triggered reconnect events."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

import httpx

from fieldsurvey.config import settings

logger = logging.getLogger(__name__)

OnlineCallback = Callable[[], Awaitable[None] | None]


class ConnectivityObserver:
    """Tracks the host's connectivity signal.

    ``is_online()`` is optimistic while the signal is unknown, so the system
    attempts a sync rather than refusing to try. Subscribers are notified once
    per offline -> online transition and never on online -> offline.
    """

    def __init__(self, online: bool | None = None):
        self._online = online
        self._subscribers: list[OnlineCallback] = []

    def is_online(self) -> bool:
        return True if self._online is None else self._online

    @property
    def signal_known(self) -> bool:
        return self._online is not None

    def on_became_online(self, callback: OnlineCallback) -> Callable[[], None]:
        """Register ``callback``; returns an idempotent unsubscribe handle."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def set_online(self, online: bool) -> None:
        """Feed the host signal; fires subscribers on an offline -> online edge."""
        was_offline = self._online is False
        self._online = online
        if online and was_offline:
            logger.info("Connectivity restored; notifying %d subscriber(s)", len(self._subscribers))
            await self._notify()
        elif not online and not was_offline:
            logger.info("Connectivity lost; submissions will be kept as drafts")

    async def _notify(self) -> None:
        # Copy: callbacks may unsubscribe while we iterate
        for callback in list(self._subscribers):
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Reconnect subscriber %r failed", callback)


class HttpConnectivityProbe:
    """Polls the record-store health endpoint and feeds an observer.

    Any HTTP response means the server is reachable (a degraded backend still
    accepts uploads or reports a proper error); transport errors mean offline.
    """

    def __init__(
        self,
        observer: ConnectivityObserver,
        url: str | None = None,
        interval: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.observer = observer
        self.url = url or f"{settings.REMOTE_API_URL.rstrip('/')}/api/health"
        self.interval = interval if interval is not None else settings.CONNECTIVITY_PROBE_INTERVAL_SECONDS
        self.timeout = timeout if timeout is not None else settings.CONNECTIVITY_PROBE_TIMEOUT_SECONDS
        self._transport = transport
        self._task: asyncio.Task | None = None

    async def check(self) -> bool:
        """Probe once, update the observer and return the observed state."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                await client.get(self.url)
            online = True
        except httpx.TransportError as exc:
            logger.debug("Connectivity probe to %s failed: %s", self.url, exc)
            online = False
        await self.observer.set_online(online)
        return online

    async def _run(self) -> None:
        while True:
            try:
                await self.check()
            except Exception:
                logger.exception("Connectivity probe crashed; retrying")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="connectivity-probe")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
