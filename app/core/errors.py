"""
Reconciliation error taxonomy.

Every failure raised while applying a provider notification maps to exactly
one HTTP status. The webhook router turns these into responses; nothing here
knows about FastAPI.
"""


class ReconciliationError(Exception):
    """Base class for webhook handling failures"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationFailure(ReconciliationError):
    """Missing or invalid signature; payload was never trusted"""

    status_code = 400


class MalformedEvent(ReconciliationError):
    """Signed payload that is not the JSON shape the provider documents"""

    status_code = 400


class NotFound(ReconciliationError):
    """An entity the event implies must exist is missing"""

    status_code = 404


class DownstreamFailure(ReconciliationError):
    """Store write or provider lookup failed; safe for the sender to retry"""

    status_code = 500
