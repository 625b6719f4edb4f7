from __future__ import annotations

import asyncio
import inspect
import logging
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple

from colorkit import repositories
from colorkit.engine.context import ResolutionContext
from colorkit.engine.days import NEUTRAL, DayAppearance
from colorkit.engine.normalize import date_key, parse_date_key
from colorkit.settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaintItem:
    kind: str  # "event", "day" or "blocks"
    key: str
    value: Any


class RepaintScheduler:
    """Runs bulk paint passes in chunks, one pass at a time.

    A trigger that arrives while a pass is running is dropped; the next
    trigger paints whatever is current by then.
    """

    def __init__(self, paint: Callable[[PaintItem], Any], chunk_size: Optional[int] = None):
        self._paint = paint
        self.chunk_size = max(1, int(chunk_size or get_settings().repaint_chunk_size))
        self._in_flight = False
        self.passes = 0
        self.dropped = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def drop(self) -> bool:
        self.dropped += 1
        logger.debug("Repaint pass in flight, dropping trigger")
        return False

    async def trigger(self, items: Iterable[PaintItem]) -> bool:
        if self._in_flight:
            return self.drop()
        self._in_flight = True
        try:
            pending = list(items)
            for start in range(0, len(pending), self.chunk_size):
                for item in pending[start:start + self.chunk_size]:
                    result = self._paint(item)
                    if inspect.isawaitable(result):
                        await result
                await asyncio.sleep(0)
            self.passes += 1
            logger.debug("Repaint pass %d painted %d items", self.passes, len(pending))
        finally:
            self._in_flight = False
        return True


SnapshotProvider = Callable[[str], Awaitable[dict]]


class Overlay:
    """Keeps the visible events and dates of one user painted."""

    def __init__(
        self,
        user_email: str,
        paint: Callable[[PaintItem], Any],
        snapshot_provider: SnapshotProvider = repositories.get_settings_or_last_known,
        chunk_size: Optional[int] = None,
        neutral: DayAppearance = NEUTRAL,
    ):
        self.user_email = user_email
        self.neutral = neutral
        self.scheduler = RepaintScheduler(paint, chunk_size)
        self._provider = snapshot_provider
        self._events: List[Tuple[str, Optional[str]]] = []
        self._dates: List[str] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    def show(self, events: Iterable[Tuple[str, Optional[str]]] = (), dates: Iterable[Any] = ()) -> None:
        self._events = [(event_id, calendar_id) for event_id, calendar_id in events]
        keys = []
        for day in dates:
            parsed = parse_date_key(day)
            if parsed is None:
                logger.warning("Skipping unreadable date %r", day)
                continue
            keys.append(date_key(parsed))
        self._dates = keys

    def attach(self, subscribe: Callable[[Callable], Callable[[], None]] = repositories.on_settings_changed) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = subscribe(self._on_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_change(self, user_email: str, snapshot: dict) -> None:
        if user_email != self.user_email:
            return
        await self.refresh(snapshot)

    def items(self, snapshot: dict) -> List[PaintItem]:
        ctx = ResolutionContext(snapshot, neutral=self.neutral)
        out = [PaintItem("event", event_id, ctx.resolve_event_color(event_id, calendar_id)) for event_id, calendar_id in self._events]
        for key in self._dates:
            out.append(PaintItem("day", key, ctx.resolve_day_appearance(key)))
            out.append(PaintItem("blocks", key, ctx.resolve_time_blocks(key)))
        return out

    async def refresh(self, snapshot: Optional[dict] = None) -> bool:
        if self.scheduler.in_flight:
            return self.scheduler.drop()
        if snapshot is None:
            snapshot = await self._provider(self.user_email)
        return await self.scheduler.trigger(self.items(snapshot))


def _log_paint(item: PaintItem) -> None:
    value = item.value.as_dict() if hasattr(item.value, "as_dict") else item.value
    logger.info("paint %s %s -> %s", item.kind, item.key, value)


async def run_forever(overlay: Overlay, interval: float = 5.0) -> None:
    while True:
        await overlay.refresh()
        await asyncio.sleep(interval)


if __name__ == "__main__":
    from datetime import date, timedelta

    from colorkit import client
    from colorkit.logging_config import configure_logging

    configure_logging()
    user = os.getenv("COLORKIT_USER_EMAIL", "")
    client.configure(lambda: user)

    async def _remote_snapshot(_user_email: str) -> dict:
        return await asyncio.to_thread(client.settings_or_fallback)

    overlay = Overlay(user, _log_paint, snapshot_provider=_remote_snapshot)
    today = date.today()
    overlay.show(dates=[today + timedelta(days=offset) for offset in range(7)])
    asyncio.run(run_forever(overlay))
