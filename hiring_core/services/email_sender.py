"""
Outbound email seam.

Delivery internals are out of scope here; production deployments plug a
provider-backed sender into the notification worker.
"""

import logging

logger = logging.getLogger(__name__)


class EmailSender:
    """Interface used by the notification worker."""

    async def send(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError


class LoggingEmailSender(EmailSender):
    """Default sender: records the email in the log instead of sending it."""

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Email to %s: %s", to, subject)
