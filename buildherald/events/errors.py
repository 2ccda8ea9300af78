"""Errors raised while decoding inbound build events."""

from __future__ import annotations


class InvalidBuildEventError(ValueError):
    """Raised when a queue message body is not a usable build event.

    Invalid events are terminal: redelivering the same body cannot fix it, so
    the pipeline drops the message and acknowledges it.
    """

    @classmethod
    def not_an_object(cls, body: object) -> InvalidBuildEventError:
        """Return an error for bodies that are not JSON objects."""
        return cls(f"build event body must be an object, got {type(body).__name__}")

    @classmethod
    def missing(cls, field: str) -> InvalidBuildEventError:
        """Return an error for a missing required top-level field."""
        return cls(f"build event missing required field: {field}")

    @classmethod
    def schema(cls, detail: str) -> InvalidBuildEventError:
        """Return an error for bodies that do not match the event shape."""
        return cls(f"build event failed schema validation: {detail}")

    @classmethod
    def invalid_json(cls, detail: str) -> InvalidBuildEventError:
        """Return an error for raw bodies that are not valid JSON."""
        return cls(f"build event body is not valid JSON: {detail}")
