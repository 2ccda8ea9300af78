"""Errors raised while delivering notifications to Slack."""

from __future__ import annotations

# Response text preview length for error messages
_BODY_PREVIEW_LIMIT = 100


class WebhookDeliveryError(RuntimeError):
    """Raised when the webhook does not accept a notification.

    Delivery is a single best-effort attempt: callers log this error and
    acknowledge the message rather than retrying.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, body: str) -> WebhookDeliveryError:
        """Return an error for non-2xx webhook responses."""
        preview = body[:_BODY_PREVIEW_LIMIT]
        return cls(
            f"Slack webhook HTTP {status_code}: {preview!r}",
            status_code=status_code,
        )

    @classmethod
    def timeout(cls) -> WebhookDeliveryError:
        """Return an error for a delivery that exceeded its deadline."""
        return cls("Slack webhook request timed out")

    @classmethod
    def network_error(cls, detail: str) -> WebhookDeliveryError:
        """Return an error for DNS, connection or TLS failures."""
        return cls(f"Slack webhook network error: {detail}")


class WebhookConfigError(RuntimeError):
    """Raised when the webhook sink is configured without an endpoint."""

    @classmethod
    def empty_url(cls) -> WebhookConfigError:
        """Return an error when the webhook URL is empty."""
        return cls("Slack webhook URL must be non-empty")
