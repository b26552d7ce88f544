"""
Source Health Monitor

Tracks a healthy/unhealthy flag per registered puzzle source and runs a
periodic background probe so a recovered source is rediscovered without
waiting for user traffic.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Callable, Awaitable, Any
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from loguru import logger


PROBE_JOB_ID = "source_health_probe"

StatusCallback = Callable[[str, bool, str], Awaitable[None]]


@dataclass
class HealthState:
    """Health of one source and its last transition."""
    source: str
    healthy: bool = True
    changed_at: Optional[datetime] = None
    reason: str = "registered"

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "healthy": self.healthy,
            "changed_at": self.changed_at.isoformat() if self.changed_at else None,
            "reason": self.reason,
        }


class SourceHealthMonitor:
    """
    Monitors health status of puzzle sources.

    Features:
    - Boolean health flag per source, healthy on registration
    - Transition timestamp and reason
    - Event callbacks for status changes
    - Interval probe driven by APScheduler
    """

    def __init__(self):
        self._states: dict[str, HealthState] = {}
        self._status_callbacks: list[StatusCallback] = []
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._probe: Optional[Callable[[], Awaitable[Any]]] = None

    def register(self, source: str) -> None:
        """Start tracking a source as healthy."""
        self._states[source] = HealthState(
            source=source,
            healthy=True,
            changed_at=datetime.now(timezone.utc),
            reason="registered",
        )
        logger.info(f"Health monitor tracking {source}")

    def unregister(self, source: str) -> None:
        self._states.pop(source, None)

    def register_status_callback(self, callback: StatusCallback) -> None:
        """
        Register a callback for status changes.

        Callback receives: source name, is_healthy, reason
        """
        self._status_callbacks.append(callback)

    def is_healthy(self, source: str) -> bool:
        state = self._states.get(source)
        return state.healthy if state else False

    async def mark_healthy(self, source: str, reason: str = "OK") -> None:
        await self._set_health(source, True, reason)

    async def mark_unhealthy(self, source: str, reason: str) -> None:
        await self._set_health(source, False, reason)

    async def _set_health(self, source: str, healthy: bool, reason: str) -> None:
        state = self._states.get(source)
        if state is None:
            return
        if state.healthy == healthy:
            return

        state.healthy = healthy
        state.changed_at = datetime.now(timezone.utc)
        state.reason = reason

        if healthy:
            logger.info(f"[{source}] marked healthy: {reason}")
        else:
            logger.warning(f"[{source}] marked unhealthy: {reason}")

        await self._notify_status_change(source, healthy, reason)

    async def _notify_status_change(self, source: str, is_healthy: bool, reason: str) -> None:
        """Notify registered callbacks of status change."""
        for callback in self._status_callbacks:
            try:
                await callback(source, is_healthy, reason)
            except Exception as e:
                logger.error(f"Error in health status callback: {e}")

    def healthy_sources(self) -> list[str]:
        return [source for source, state in self._states.items() if state.healthy]

    def get_state(self, source: str) -> Optional[HealthState]:
        return self._states.get(source)

    def get_all_states(self) -> dict[str, dict]:
        return {source: state.to_dict() for source, state in self._states.items()}

    def clear(self) -> None:
        self._states.clear()

    # ==================== Periodic Probe ====================

    @property
    def is_probing(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start_probing(
        self,
        probe: Callable[[], Awaitable[Any]],
        interval_seconds: float,
    ) -> None:
        """
        Run `probe` every `interval_seconds` on the current event loop.

        Must be called from a running loop. Restarting replaces the job.
        """
        if interval_seconds <= 0:
            raise ValueError("Probe interval must be positive")

        self._probe = probe

        if self.scheduler is None:
            self.scheduler = AsyncIOScheduler(
                jobstores={"default": MemoryJobStore()},
                executors={"default": AsyncIOExecutor()},
                job_defaults={
                    "coalesce": True,
                    "max_instances": 1,
                    "misfire_grace_time": 60,
                },
                timezone="UTC",
            )

        self.scheduler.add_job(
            self.run_probe,
            trigger=IntervalTrigger(seconds=interval_seconds),
            id=PROBE_JOB_ID,
            name="Source health probe",
            replace_existing=True,
        )

        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(f"Health probe scheduled every {interval_seconds:.0f}s")

    async def run_probe(self) -> None:
        """Run the configured probe once. Errors are logged, never raised."""
        if self._probe is None:
            return
        try:
            await self._probe()
        except Exception as e:
            logger.error(f"Health probe failed: {e}")

    def stop_probing(self) -> None:
        """Cancel the periodic probe."""
        if self.scheduler is not None:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            self.scheduler = None
            logger.info("Health probe stopped")
        self._probe = None
