"""Worker that drains the notification outbox.

Uses SELECT FOR UPDATE SKIP LOCKED via claim_next_job so concurrent workers
never deliver the same entry. A failed delivery is retried with a linear
backoff until NOTIFICATION_MAX_ATTEMPTS, then marked failed.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import socket
from datetime import timedelta
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.config import settings
from hiring_core.db.session import get_async_session_context
from hiring_core.models.notification import NotificationJob, NotificationJobStatus
from hiring_core.repositories.account_repository import AccountRepository
from hiring_core.repositories.notification_repository import NotificationRepository
from hiring_core.services.email_sender import EmailSender, LoggingEmailSender
from hiring_core.utils.time import utc_now

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class NotificationJobRunner:
    """Poll and deliver outbox entries."""

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        email_sender: Optional[EmailSender] = None,
        worker_id: Optional[str] = None,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[int] = None,
    ) -> None:
        self.session_factory = session_factory or get_async_session_context
        self.email_sender = email_sender or LoggingEmailSender()
        self.worker_id = worker_id or f"notify-{socket.gethostname()}-{os.getpid()}"
        self.poll_interval = poll_interval if poll_interval is not None else settings.NOTIFICATION_POLL_INTERVAL
        self.max_attempts = max_attempts or settings.NOTIFICATION_MAX_ATTEMPTS
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.NOTIFICATION_RETRY_BACKOFF_SECONDS
        )
        self._stop_event = asyncio.Event()

    def request_stop(self) -> None:
        self._stop_event.set()

    async def _deliver(self, session: AsyncSession, job: NotificationJob) -> None:
        if job.send_email:
            account = await AccountRepository(session).get_by_id(job.account_id)
            if account is None:
                raise LookupError(f"account {job.account_id} no longer exists")
            await self.email_sender.send(account.email, job.title, job.body)
        NotificationRepository(session).add_in_app(job.account_id, job.type, job.title, job.body, job.data)

    async def run_once(self) -> bool:
        """Claim and deliver a single outbox entry if one is due."""
        async with self.session_factory() as session:
            now = utc_now()
            job = await NotificationRepository(session).claim_next_job(now)
            if job is None:
                return False

            job.attempts += 1
            try:
                await self._deliver(session, job)
            except Exception as exc:
                job.last_error = str(exc)[:1000] or exc.__class__.__name__
                if job.attempts >= self.max_attempts:
                    job.status = NotificationJobStatus.FAILED
                    logger.error(
                        "Worker %s gave up on notification job %s after %d attempts: %s",
                        self.worker_id,
                        job.id,
                        job.attempts,
                        job.last_error,
                    )
                else:
                    job.available_at = now + timedelta(seconds=self.backoff_seconds * job.attempts)
                    logger.warning(
                        "Worker %s failed notification job %s (attempt %d), retrying at %s",
                        self.worker_id,
                        job.id,
                        job.attempts,
                        job.available_at,
                        exc_info=True,
                    )
            else:
                job.status = NotificationJobStatus.DELIVERED
                job.delivered_at = now
                job.last_error = None
                logger.info("Worker %s delivered notification job %s (%s)", self.worker_id, job.id, job.type)

            await session.commit()
            return True

    async def run_forever(self) -> None:
        """Poll indefinitely until stopped, respecting poll_interval when idle."""
        while not self._stop_event.is_set():
            processed = await self.run_once()
            if processed:
                continue

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                continue


async def _run(args: argparse.Namespace) -> None:
    runner = NotificationJobRunner(worker_id=args.worker_id, poll_interval=args.poll_interval)
    if args.once:
        processed = 0
        while await runner.run_once():
            processed += 1
        logger.info("Drained %d notification job(s)", processed)
        return
    await runner.run_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Deliver queued notifications")
    parser.add_argument("--once", action="store_true", help="Drain due jobs and exit")
    parser.add_argument("--worker-id", default=None)
    parser.add_argument("--poll-interval", type=float, default=None)
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
