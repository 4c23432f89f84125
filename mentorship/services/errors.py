"""Workflow error taxonomy.

Services raise these; the API layer maps each to its HTTP status
(see mentorship.api.dependencies.to_http_error).
"""

from __future__ import annotations


class WorkflowError(Exception):
    status_code = 500


class InvalidInputError(WorkflowError, ValueError):
    """Missing or blank required field, or malformed evidence."""

    status_code = 400


class ForbiddenError(WorkflowError):
    """Role or ownership mismatch."""

    status_code = 403


class NotFoundError(WorkflowError):
    status_code = 404


class ConflictError(WorkflowError):
    """Transition not allowed from the doubt's current state."""

    status_code = 409
