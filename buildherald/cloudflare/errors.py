"""Errors raised by the Cloudflare Builds API client."""

from __future__ import annotations

# Response text preview length for error messages
_BODY_PREVIEW_LIMIT = 100


class CloudflareError(RuntimeError):
    """Base class for every Cloudflare client failure.

    Enrichment catches this single type at each call site and degrades to
    "no data".
    """


class CloudflareAPIError(CloudflareError):
    """Raised when a Cloudflare API call fails or reports failure."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> CloudflareAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"Cloudflare API HTTP {status_code}", status_code=status_code)

    @classmethod
    def timeout(cls, path: str) -> CloudflareAPIError:
        """Return an error for a call that exceeded its deadline."""
        return cls(f"Cloudflare API request timed out: {path}")

    @classmethod
    def network_error(cls, detail: str) -> CloudflareAPIError:
        """Return an error for DNS, connection or TLS failures."""
        return cls(f"Cloudflare API network error: {detail}")

    @classmethod
    def unsuccessful(cls, errors: object) -> CloudflareAPIError:
        """Return an error for envelopes with ``success: false``."""
        return cls(f"Cloudflare API reported failure: {errors}")


class CloudflareResponseShapeError(CloudflareError):
    """Raised when a response body is not the JSON shape we expect."""

    @classmethod
    def invalid_json(cls, body: bytes) -> CloudflareResponseShapeError:
        """Return an error for bodies that are not JSON."""
        preview = body[:_BODY_PREVIEW_LIMIT].decode("utf-8", errors="replace")
        return cls(f"Cloudflare API returned a non-JSON body: {preview!r}")

    @classmethod
    def missing(cls, field: str) -> CloudflareResponseShapeError:
        """Return an error for a missing response field."""
        return cls(f"Cloudflare API response missing expected field: {field}")

    @classmethod
    def invalid(cls, field: str, detail: str) -> CloudflareResponseShapeError:
        """Return an error for a field with the wrong type."""
        return cls(f"Cloudflare API response field {field} is invalid: {detail}")


class CloudflareConfigError(CloudflareError):
    """Raised when the client is configured without usable credentials."""

    @classmethod
    def empty_token(cls) -> CloudflareConfigError:
        """Return an error when the API token is empty."""
        return cls("Cloudflare API token must be non-empty")
