"""Fire-and-forget donor notifications.

Thank-you messages are handed to a small thread pool and posted to the push
notification endpoint. Delivery failures are logged and dropped: a webhook
response never retries or fails because of a notification.

AWS Lambda freezes the execution environment as soon as the handler
returns, so queued work would stall until the next invocation. When
AWS_LAMBDA_FUNCTION_NAME is set, dispatch waits a bounded time
(GIVING_NOTIFICATION_WAIT_SECONDS, default 3) for the post to finish.
"""

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, wait
from decimal import Decimal

import httpx

from giving.models.donation import ThankYouNotification
from giving.utils.currency import format_currency

logger = logging.getLogger(__name__)

THANK_YOU_TITLE = "Thank You for Your Donation!"


def _default_wait_timeout() -> float:
    if not os.environ.get("AWS_LAMBDA_FUNCTION_NAME"):
        return 0.0
    return float(os.environ.get("GIVING_NOTIFICATION_WAIT_SECONDS", "3"))


def build_thank_you(amount: Decimal, user_id: str | None) -> ThankYouNotification:
    """Build the thank-you message for a completed donation."""
    return ThankYouNotification(
        title=THANK_YOU_TITLE,
        body=f"Your donation of {format_currency(amount)} has been received. God bless you!",
        user_ids=[user_id] if user_id else None,
        category="giving",
    )


class NotificationService:
    """Dispatch notifications on a background thread pool.

    Usage:
        notifier = NotificationService(endpoint="https://.../send-notification")
        notifier.dispatch(build_thank_you(Decimal("100.00"), "user-42"))
    """

    def __init__(
        self,
        endpoint: str | None = None,
        *,
        auth_token: str | None = None,
        max_workers: int = 4,
        timeout: float = 10.0,
        wait_timeout: float | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            endpoint: Push notification endpoint. Defaults to GIVING_NOTIFICATION_URL;
                when unset, notifications are only logged.
            auth_token: Bearer token for the endpoint. Defaults to
                GIVING_NOTIFICATION_TOKEN.
            max_workers: Thread pool size
            timeout: HTTP timeout in seconds
            wait_timeout: Seconds dispatch blocks for the delivery to finish;
                0 returns at once. Defaults to 3 on Lambda and 0 elsewhere.
        """
        self.endpoint = endpoint or os.environ.get("GIVING_NOTIFICATION_URL") or None
        self._auth_token = auth_token or os.environ.get("GIVING_NOTIFICATION_TOKEN")
        self._timeout = timeout
        self._wait_timeout = (
            _default_wait_timeout() if wait_timeout is None else wait_timeout
        )
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="giving-notify"
        )

    def dispatch(self, notification: ThankYouNotification) -> Future | None:
        """Queue a notification, waiting at most wait_timeout for delivery.

        Returns:
            The queued Future, or None if the pool no longer accepts work.
        """
        try:
            future = self._executor.submit(self._deliver, notification)
        except RuntimeError as e:
            # Pool already shut down
            logger.error("Notification not queued: %s", e)
            return None
        if self._wait_timeout > 0:
            wait([future], timeout=self._wait_timeout)
        return future

    def _deliver(self, notification: ThankYouNotification) -> None:
        try:
            self.send(notification)
        except Exception:
            logger.exception(
                "Failed to send notification '%s' to %s",
                notification.title,
                notification.user_ids,
            )

    def send(self, notification: ThankYouNotification) -> None:
        """Deliver a notification synchronously.

        Raises:
            httpx.HTTPError: If the endpoint is unreachable or returns an error.
        """
        if not self.endpoint:
            logger.info(
                "No notification endpoint configured, skipping '%s' for %s",
                notification.title,
                notification.user_ids,
            )
            return
        if not notification.user_ids:
            logger.info("No recipients for '%s', not sent", notification.title)
            return

        headers = {"Content-Type": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"

        payload = notification.model_dump(mode="json")
        payload["userIds"] = payload.pop("user_ids")
        response = httpx.post(
            self.endpoint, json=payload, headers=headers, timeout=self._timeout
        )
        response.raise_for_status()
        logger.info(
            "Notification '%s' sent to %s", notification.title, notification.user_ids
        )

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting notifications and optionally wait for queued ones."""
        self._executor.shutdown(wait=wait)
