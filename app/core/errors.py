"""
Domain error taxonomy.

Services raise these; the HTTP layer maps them to status codes in one place
(see app.main). All of them are ValueError subclasses so callers that only
care about "the request was refused" can keep catching ValueError.
"""


class DomainError(ValueError):
    status_code = 400


class ValidationError(DomainError):
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


class PermissionDeniedError(DomainError):
    status_code = 403
