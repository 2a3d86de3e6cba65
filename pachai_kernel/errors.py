"""
Error taxonomy for the Pachai kernel.

Authorization and validation errors propagate directly to the caller; the
HTTP layer maps them to status codes. Audit-write failures never surface
here: they are logged and swallowed where they happen.
"""

from typing import List, Optional


class PachaiError(Exception):
    """Base class for every error raised by the kernel."""
    pass


class Unauthorized(PachaiError):
    """No authenticated actor."""
    pass


class Forbidden(PachaiError):
    """The actor lacks rights over the target conversation or product."""
    pass


class NotFound(PachaiError):
    """A referenced conversation, product, veredict or context is absent."""
    pass


class ValidationError(PachaiError):
    """A required field is missing, empty or oversized. Raised before any mutation."""
    pass


class UpstreamFailure(PachaiError):
    """The model call failed or produced no completion."""
    pass


class GovernanceBlocked(PachaiError):
    """
    A blocking violation left nothing usable to continue with.

    Ordinary blocks are not failures: the engine returns a remediated input
    and the turn proceeds. This is raised only when remediation is impossible.
    """

    def __init__(self, message: str, violations: Optional[List] = None, modified_input=None):
        super().__init__(message)
        self.violations = violations or []
        self.modified_input = modified_input
