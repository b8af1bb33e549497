"""
Background broadcast jobs.

A debtor broadcast can take minutes (one message per delay interval), so
it runs as an asyncio task detached from the request that started it.
Progress and completion are published as `wa_broadcast` events and can be
polled by job id.
"""

import asyncio
import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Optional

from billing_backend.app.schemas.messaging import BroadcastJobResponse, BroadcastSummary
from billing_backend.app.services.events import EventBroker, EventType
from billing_backend.app.services.messaging.gateway import MessagingGateway

logger = logging.getLogger("billing.messaging.broadcast")


class JobState:
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BroadcastJob:

    def __init__(self, template: str, actor_id: Optional[int]):
        self.id = uuid.uuid4().hex
        self.template = template
        self.actor_id = actor_id
        self.state = JobState.RUNNING
        self.started_at = datetime.now(timezone.utc)
        self.finished_at: Optional[datetime] = None
        self.summary = BroadcastSummary()
        self.error: Optional[str] = None
        self.task: Optional[asyncio.Task] = None

    def to_response(self) -> BroadcastJobResponse:
        return BroadcastJobResponse(
            id=self.id,
            state=self.state,
            started_at=self.started_at,
            finished_at=self.finished_at,
            summary=self.summary.model_copy(deep=True),
            error=self.error
        )


class BroadcastJobManager:
    """Launches broadcast jobs and keeps the most recent ones for polling."""

    def __init__(self, gateway: MessagingGateway, broker: EventBroker, history_size: int = 20):
        self.gateway = gateway
        self.broker = broker
        self.history_size = history_size
        self._jobs: "OrderedDict[str, BroadcastJob]" = OrderedDict()

    def get(self, job_id: str) -> Optional[BroadcastJob]:
        return self._jobs.get(job_id)

    def launch(self, template: str, actor_id: Optional[int] = None) -> BroadcastJob:
        job = BroadcastJob(template, actor_id)
        self._jobs[job.id] = job
        self._trim()

        job.task = asyncio.create_task(self._run(job))
        logger.info("Broadcast job %s started by user %s", job.id, actor_id)
        self._publish(job)
        return job

    async def _run(self, job: BroadcastJob) -> None:
        def on_progress(summary: BroadcastSummary) -> None:
            job.summary = summary
            self._publish(job)

        try:
            job.summary = await self.gateway.broadcast_to_debtors(
                job.template, job.actor_id, on_progress=on_progress
            )
            job.state = JobState.COMPLETED
        except asyncio.CancelledError:
            job.state = JobState.FAILED
            job.error = "Broadcast cancelled"
            raise
        except Exception as exc:
            # A hard failure of the whole run (e.g. the debtor query), as
            # opposed to per-customer send failures which are in the summary.
            logger.exception("Broadcast job %s failed", job.id)
            job.state = JobState.FAILED
            job.error = str(exc)
        finally:
            job.finished_at = datetime.now(timezone.utc)
            self._publish(job)

    def _publish(self, job: BroadcastJob) -> None:
        self.broker.publish(EventType.WA_BROADCAST, job.to_response().model_dump(mode="json"))

    def _trim(self) -> None:
        while len(self._jobs) > self.history_size:
            oldest_id, oldest = next(iter(self._jobs.items()))
            if oldest.state == JobState.RUNNING:
                break
            del self._jobs[oldest_id]

    async def shutdown(self) -> None:
        for job in self._jobs.values():
            if job.task and not job.task.done():
                job.task.cancel()
        await asyncio.gather(
            *(job.task for job in self._jobs.values() if job.task),
            return_exceptions=True
        )
