"""
Error taxonomy and the error-to-response mapping for the quote routes.

Handlers raise ``BadRequestError``, ``NotFoundError`` or
``UnauthorizedError`` for expected failures.  Anything else is an
internal error.  ``error_response`` is the only place where failures
are turned into JSON envelopes; ``QuoteRoute`` applies it to every
route of the quote router so the handlers themselves carry no
try/except blocks.
"""

import logging
from typing import Any, Callable, Coroutine, Dict, Optional

from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


# Message prefixes for unexpected failures, keyed by route name.
INTERNAL_ERROR_PREFIXES: Dict[str, str] = {
    "create_quote": "Erreur lors de la création du devis : ",
    "read_quote": "Une erreur est survenue lors de la lecture du devis : ",
    "update_quote": "Une erreur est survenue lors de la mise à jour du devis : ",
    "delete_quote": "Une erreur est survenue lors de la suppression du devis : ",
    "get_all_quotes": "Une erreur est survenue lors de la récupération des devis : ",
}
DEFAULT_INTERNAL_ERROR_PREFIX = "Une erreur est survenue : "

INVALID_REQUEST_MESSAGE = "Requête invalide."


class QuoteAPIError(Exception):
    """Base class for failures that map to a known HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, body: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.body = body

    def to_body(self) -> Dict[str, Any]:
        if self.body is not None:
            return self.body
        return {"error": True, "message": self.message}


class BadRequestError(QuoteAPIError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(QuoteAPIError):
    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedError(QuoteAPIError):
    """Raised when the token verifier rejects a request.

    ``body`` holds the JSON produced by the verifier and is returned
    unchanged to the client.
    """

    status_code = status.HTTP_401_UNAUTHORIZED


def error_response(exc: Exception, operation: Optional[str] = None) -> JSONResponse:
    """Map an exception raised while serving ``operation`` to a JSON response."""
    if isinstance(exc, QuoteAPIError):
        headers = None
        if isinstance(exc, UnauthorizedError):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)
    if isinstance(exc, RequestValidationError):
        logger.info("Rejected malformed request for %s: %s", operation, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": True, "message": INVALID_REQUEST_MESSAGE},
        )
    if isinstance(exc, HTTPException):
        # Raised by FastAPI itself, e.g. when the form body cannot be parsed.
        logger.info("Rejected request for %s: %s", operation, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": True, "message": INVALID_REQUEST_MESSAGE},
            headers=exc.headers,
        )
    logger.exception("Unexpected error in %s", operation or "request")
    prefix = INTERNAL_ERROR_PREFIXES.get(operation or "", DEFAULT_INTERNAL_ERROR_PREFIX)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": True, "message": f"{prefix}{exc}"},
    )


class QuoteRoute(APIRoute):
    """APIRoute that funnels every failure of its endpoint through ``error_response``.

    Dependency resolution (including the token check) runs inside the
    wrapped handler, so authentication failures are mapped here too.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()
        operation = self.name

        async def custom_route_handler(request: Request) -> Response:
            try:
                return await original_route_handler(request)
            except Exception as exc:
                return error_response(exc, operation)

        return custom_route_handler
