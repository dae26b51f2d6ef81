"""
Error types - Azure Board Reference Check

Every failure the check can hit ends up here so the entry point can surface it
at the invocation boundary with one message. Nothing below is retried
internally; a failed run is healed by re-running the workflow.

    ReferenceCheckError
    ├── ConfigurationError       bad action input (token, skip-drafts value)
    ├── InvocationContextError   not a pull_request event / no head sha
    ├── CheckRunStoreError       raw GitHub API failure (transport, HTTP, JSON)
    ├── ExternalQueryError       looking up the existing check run failed
    └── ExternalWriteError       creating/updating the check run failed

A missing reference (verdict `Missing`) is NOT an exception. It is a normal
verdict that turns into a failed exit after the check run has been written.
"""

from typing import Optional


class ReferenceCheckError(Exception):
    """Base class for all errors raised by the reference check."""


class ConfigurationError(ReferenceCheckError):
    """An action input is missing or malformed."""


class InvocationContextError(ReferenceCheckError):
    """The action was triggered by something other than a pull request."""


class CheckRunStoreError(ReferenceCheckError):
    """
    A call to the GitHub Checks API failed.

    `status_code` is the HTTP status when GitHub answered at all (None for
    connection errors and timeouts).
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ExternalQueryError(ReferenceCheckError):
    """Looking up the existing check run failed; nothing was written."""


class ExternalWriteError(ReferenceCheckError):
    """Creating or updating the check run failed after a successful lookup."""
