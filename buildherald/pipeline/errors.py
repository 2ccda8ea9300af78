"""Custom exceptions for notifier configuration."""

from __future__ import annotations


class NotifierConfigError(ValueError):
    """Raised when ``BUILDHERALD_*`` environment variables are invalid.

    This is the only error that escapes the queue actor: a misconfigured
    process should fail loudly rather than silently drop notifications.
    """

    @classmethod
    def invalid_integer(cls, env_var: str, raw: str) -> NotifierConfigError:
        """Create error for a value that is not a positive integer.

        Parameters
        ----------
        env_var
            Name of the offending environment variable.
        raw
            The raw value read from the environment.

        Returns
        -------
        NotifierConfigError
            Error naming the variable and value.

        """
        return cls(f"{env_var} must be a positive integer, got: {raw!r}")

    @classmethod
    def invalid_number(cls, env_var: str, raw: str) -> NotifierConfigError:
        """Create error for a value that is not a positive number."""
        return cls(f"{env_var} must be a positive number, got: {raw!r}")

    @classmethod
    def invalid_boolean(cls, env_var: str, raw: str) -> NotifierConfigError:
        """Create error for a value that is not a recognised boolean."""
        return cls(
            f"{env_var} must be one of true/false, yes/no, on/off or 1/0, got: {raw!r}"
        )

    @classmethod
    def empty_branch_list(cls, env_var: str) -> NotifierConfigError:
        """Create error for a branch list with no usable entries."""
        return cls(f"{env_var} must name at least one branch")
