import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================

class KinbookError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(KinbookError):
    """A referenced entity id does not resolve."""

    status_code = 404

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class ValidationFailure(KinbookError):
    status_code = 400


class LineageCycleError(ValidationFailure):
    """Linking would make a person their own ancestor."""

    def __init__(self, parent_id: str, child_id: str):
        super().__init__(
            f"Linking {parent_id} as parent of {child_id} would create a lineage cycle"
        )
        self.parent_id = parent_id
        self.child_id = child_id


class BackendUnavailable(KinbookError):
    """Database or blob store failure."""

    status_code = 503


class PartialLinkFailure(KinbookError):
    """
    One side of a bidirectional relation is present and the other is not.

    Only produced while importing denormalized documents; relations written
    through the API are stored as a single row and cannot diverge.
    """

    status_code = 409

    def __init__(self, relation: str, source_id: str, target_id: str):
        super().__init__(
            f"{relation} link {source_id} -> {target_id} has no mirror entry"
        )
        self.relation = relation
        self.source_id = source_id
        self.target_id = target_id


# ============================================================
# HTTP MAPPING
# ============================================================

GENERIC_BACKEND_MESSAGE = "Something went wrong. Please try again later."


def _kinbook_error_handler(request: Request, exc: KinbookError):
    if isinstance(exc, BackendUnavailable):
        # Details stay in the log; the client gets a generic message
        logger.error(
            "Backend unavailable on %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.__cause__ or exc,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": GENERIC_BACKEND_MESSAGE},
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(KinbookError, _kinbook_error_handler)
