"""
Outbound queue — ordered, spaced delivery of chat messages.

Some chat transports reorder or garble messages sent back-to-back, so every
outbound line goes through one FIFO that is drained at most one message per
tick. No deduplication, no priorities; a failed send is logged and dropped.
"""
import asyncio
import logging
from collections import deque
from typing import Deque, List, Optional, Protocol

from models.chat import OutboundMessage

logger = logging.getLogger(__name__)


class ChatTransport(Protocol):
    async def send(self, channel: str, text: str) -> None: ...


class OutboundQueue:

    def __init__(self, transport: ChatTransport, interval: float = 0.15):
        self.transport = transport
        self.interval = interval
        self._queue: Deque[OutboundMessage] = deque()
        self._seq = 0
        self._task: Optional[asyncio.Task] = None

    def enqueue(self, channel: str, text: str) -> OutboundMessage:
        self._seq += 1
        msg = OutboundMessage(channel=channel, text=text, seq=self._seq)
        self._queue.append(msg)
        logger.debug("[%s] Queued #%d: %.80s", channel, msg.seq, text)
        return msg

    def __len__(self) -> int:
        return len(self._queue)

    def pending(self) -> List[OutboundMessage]:
        return list(self._queue)

    async def drain_once(self) -> Optional[OutboundMessage]:
        """Deliver the oldest queued message, if any."""
        if not self._queue:
            return None
        msg = self._queue.popleft()
        try:
            await self.transport.send(msg.channel, msg.text)
        except Exception as exc:
            logger.warning(f"[{msg.channel}] Dropped message #{msg.seq}: {exc}")
        return msg

    # ── Lifecycle ──────────────────────────────────────────────────────────────

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._drain_loop(), name="outbound-queue")

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _drain_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.drain_once()
