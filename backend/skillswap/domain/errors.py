"""
Domain error taxonomy. Each error carries a stable code the API maps to an HTTP status.
"""


class SwapDomainError(Exception):
    """Base class for expected domain failures."""

    code = "domain_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidInput(SwapDomainError):
    """Malformed or missing required fields (e.g. skill without a category)."""

    code = "invalid_input"


class Unauthorized(SwapDomainError):
    """Actor is not permitted to perform the attempted transition."""

    code = "unauthorized"


class InvalidTransition(SwapDomainError):
    """Transition attempted from a state that does not allow it."""

    code = "invalid_transition"


class InsufficientAnswers(SwapDomainError):
    """Assessment submitted without any answers."""

    code = "insufficient_answers"


class NotFound(SwapDomainError):
    """Referenced skill, user or request could not be resolved."""

    code = "not_found"
