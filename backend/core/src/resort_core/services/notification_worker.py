"""Outbox drain: sends queued notifications through Amazon SES.

Runs on a schedule (EventBridge -> Lambda ``handler``) or from tests via
``NotificationWorker.drain``.
"""

import datetime as dt
import os
import re
from collections.abc import Callable
from typing import Any, TypedDict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from resort_core.config import get_settings
from resort_core.models import DownstreamFailure, ErrorCode, Notification
from resort_core.utils.logging import get_logger, set_correlation_id

from .dynamodb import get_dynamodb_service
from .notification_service import NotificationService

logger = get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


def html_to_text(body: str) -> str:
    """Plain-text alternative of a simple HTML body."""
    text = body.replace("</p>", "\n")
    return _TAG_RE.sub("", text).strip()


class SESEmailSender:
    """Sends email with the SES ``send_email`` API."""

    def __init__(self, sender: str, client: Any | None = None, region: str | None = None) -> None:
        """Initialize sender.

        Args:
            sender: Verified SES source address
            client: Preconfigured SES client (tests)
            region: SES region if different from the default
        """
        self.sender = sender
        self._client = client or boto3.client("ses", region_name=region)

    def send(self, recipient: str, subject: str, html_body: str) -> str:
        """Send one email.

        Returns:
            SES message ID

        Raises:
            DownstreamFailure: If SES rejects the message
        """
        try:
            response = self._client.send_email(
                Source=self.sender,
                Destination={"ToAddresses": [recipient]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {
                        "Text": {"Data": html_to_text(html_body), "Charset": "UTF-8"},
                        "Html": {"Data": html_body, "Charset": "UTF-8"},
                    },
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise DownstreamFailure(
                ErrorCode.NOTIFICATION_FAILED, details={"reason": str(e)}
            ) from e

        message_id: str = response["MessageId"]
        return message_id


class DrainResult(TypedDict):
    sent: int
    retrying: int
    failed: int


class NotificationWorker:
    """Delivers pending outbox notifications."""

    def __init__(
        self,
        notifications: NotificationService,
        sender: SESEmailSender,
        max_attempts: int = 5,
        now_fn: Callable[[], dt.datetime] | None = None,
    ) -> None:
        self.notifications = notifications
        self.sender = sender
        self.max_attempts = max_attempts
        self._now = now_fn or (lambda: dt.datetime.now(dt.timezone.utc))

    def deliver(self, notification: Notification) -> bool:
        """Send one notification and record the outcome.

        Returns:
            True if it was sent
        """
        try:
            self.sender.send(notification.recipient, notification.subject, notification.html)
        except DownstreamFailure as e:
            reason = (e.details or {}).get("reason", e.message)
            gave_up = self.notifications.record_failure(notification, reason, self.max_attempts)
            log = logger.error if gave_up else logger.warning
            log(
                "Notification delivery failed",
                extra={
                    "notification_id": notification.notification_id,
                    "booking_id": notification.booking_id,
                    "attempts": notification.attempts + 1,
                    "gave_up": gave_up,
                },
            )
            return False

        self.notifications.mark_sent(notification, self._now())
        logger.info(
            "Notification sent",
            extra={
                "notification_id": notification.notification_id,
                "booking_id": notification.booking_id,
            },
        )
        return True

    def drain(self, limit: int = 25) -> DrainResult:
        """Deliver up to ``limit`` pending notifications.

        Returns:
            Counts of sent, retrying and permanently failed items
        """
        result = DrainResult(sent=0, retrying=0, failed=0)
        for notification in self.notifications.get_pending(limit=limit):
            if self.deliver(notification):
                result["sent"] += 1
            elif notification.attempts + 1 >= self.max_attempts:
                result["failed"] += 1
            else:
                result["retrying"] += 1
        return result


def handler(event: dict[str, Any], context: Any) -> DrainResult:
    """Scheduled Lambda entry point."""
    set_correlation_id(getattr(context, "aws_request_id", None))
    settings = get_settings()
    worker = NotificationWorker(
        notifications=NotificationService(get_dynamodb_service()),
        sender=SESEmailSender(settings.notification_sender, region=os.environ.get("SES_REGION")),
        max_attempts=settings.notification_max_attempts,
    )
    result = worker.drain(limit=int(event.get("limit", 25)))
    logger.info("Outbox drained: %s", result)
    return result
