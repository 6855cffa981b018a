"""
Post-commit side effects of order transitions.

After a transition commits, the lifecycle engine hands the follow-up work to
SideEffects:
    - email through the notification dispatcher
    - order.status.updated (or other) events on the order's topic

Both are scheduled as background asyncio tasks that the request does not
await. Each is bounded by settings.side_effect_timeout_seconds; a failure or
timeout is logged as a SideEffectFailure and never reaches the caller or the
stored order.
"""
import asyncio
import logging
from datetime import datetime, timezone

from config import settings
from domain.constants import EVENT_ORDER_STATUS_UPDATED, order_topic
from domain.enums import NotificationChannel
from domain.errors import SideEffectFailure

logger = logging.getLogger(__name__)


class SideEffects:
    """Schedules and tracks fire-and-forget email + event-bus work."""

    def __init__(self, dispatcher, event_bus, timeout_seconds: float | None = None):
        self.dispatcher = dispatcher
        self.event_bus = event_bus
        self.timeout_seconds = timeout_seconds or settings.side_effect_timeout_seconds
        self._tasks: set[asyncio.Task] = set()
        self.failures_total = 0

    # ── Scheduling ──────────────────────────────────────────────────

    def _spawn(self, coro, *, effect: str, order_id: int | None) -> asyncio.Task:
        task = asyncio.create_task(self._guarded(coro, effect=effect, order_id=order_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(self, coro, *, effect: str, order_id: int | None) -> bool:
        try:
            ok = await asyncio.wait_for(coro, timeout=self.timeout_seconds)
            if ok is False:
                raise SideEffectFailure(effect, order_id, "dispatcher reported failure")
            return True
        except asyncio.TimeoutError:
            self._record(SideEffectFailure(effect, order_id, f"timed out after {self.timeout_seconds}s"))
        except SideEffectFailure as failure:
            self._record(failure)
        except Exception as e:
            self._record(SideEffectFailure(effect, order_id, repr(e)))
        return False

    def _record(self, failure: SideEffectFailure) -> None:
        self.failures_total += 1
        logger.warning(f"⚠️  Side effect failed (transition kept): {failure}")

    # ── Public API ──────────────────────────────────────────────────

    def send_email(self, *, order_id: int, user_id: int, template: str, context: dict) -> asyncio.Task:
        return self._spawn(
            self.dispatcher.send(user_id, NotificationChannel.EMAIL.value, template, context),
            effect=f"email:{template}",
            order_id=order_id,
        )

    def publish(self, *, order_id: int, event: str, data: dict) -> asyncio.Task:
        return self._spawn(
            self.event_bus.publish(order_topic(order_id), event, data),
            effect=f"event:{event}",
            order_id=order_id,
        )

    def status_updated(self, *, order_id: int, status: str, notes: str | None) -> asyncio.Task:
        return self.publish(
            order_id=order_id,
            event=EVENT_ORDER_STATUS_UPDATED,
            data={
                "orderId": order_id,
                "status": status,
                "notes": notes,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for in-flight side effects (shutdown, tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
