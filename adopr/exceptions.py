# exceptions.py
from typing import Optional


class AdoprError(Exception):
    """Base exception for adopr."""


class PreconditionError(AdoprError):
    """Raised when inputs or the local checkout are not usable, before any network call."""


class PullRequestCreationError(AdoprError):
    """Raised when the pull request could not be created.

    status_code is None when the request never got a response (transport
    failure) or when the CLI strategy failed; in the latter case it carries
    the process return code instead.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
