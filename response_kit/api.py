"""FastAPI integration: middleware, route class and exception handlers."""

import logging
from typing import Awaitable, Callable, Mapping

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .classifier import ResponseClassifier
from .config import Settings, get_settings
from .exceptions import ValidationFailed
from .formatters import FormatterRegistry
from .kit import ResponseKit
from .models import OutgoingResponse, ResponseKind

logger = logging.getLogger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]

# Headers that belong to the original body and must not be copied onto an envelope
_BODY_HEADERS = {b"content-length", b"content-type"}


def install_response_kit(
    app: FastAPI,
    settings: Settings | None = None,
    formatters: FormatterRegistry | Mapping[ResponseKind | str, type | None] | None = None,
) -> FastAPI:
    """
    Attach response formatting to a FastAPI application.

    Args:
        app: The application to configure
        settings: Configuration snapshot (defaults to the environment snapshot)
        formatters: Formatter registry, or a mapping of per-kind formatter overrides
            (defaults to the overrides in ``settings.formatters``)
    """

    settings = settings or get_settings()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if formatters is None:
        formatters = FormatterRegistry(settings.formatters)
    elif not isinstance(formatters, FormatterRegistry):
        formatters = FormatterRegistry(formatters)

    app.state.response_kit_settings = settings
    app.state.response_kit_formatters = formatters

    if not settings.middleware.enabled:
        logger.info("Response formatting is disabled")
        return app

    if settings.middleware.is_global:
        app.add_middleware(ResponseKitMiddleware)
        for exc_class in (HTTPException, RequestValidationError, ValidationFailed):
            app.add_exception_handler(exc_class, envelope_exception_handler)
        logger.info(
            "Formatting all responses (excluded routes: %s)",
            ", ".join(settings.middleware.exclude) or "none",
        )

    return app


def get_response_kit(request: Request) -> ResponseKit:
    """
    Return the ``ResponseKit`` of the current request, creating it on first use.

    Usable as a FastAPI dependency: ``kit: ResponseKit = Depends(get_response_kit)``.
    """
    kit = getattr(request.state, "response_kit", None)
    if kit is not None:
        return kit

    settings = getattr(request.app.state, "response_kit_settings", None) or get_settings()
    formatters = getattr(request.app.state, "response_kit_formatters", None)
    kit = ResponseKit(settings, formatters)

    if settings.accept_request_id_header and settings.request_id_header:
        inbound = request.headers.get(settings.request_id_header)
        if inbound:
            kit.set_request_id(inbound)

    request.state.response_kit = kit
    return kit


class ResponseKitMiddleware(BaseHTTPMiddleware):
    """Formats every response of the application into the standard envelope."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        return await envelope_response(request, call_next)


class EnvelopeRoute(APIRoute):
    """
    Route class that formats responses of a single router.

    Usage:
        router = APIRouter(route_class=EnvelopeRoute)
    """

    def get_route_handler(self) -> Callable[[Request], Awaitable[Response]]:
        route_handler = super().get_route_handler()

        async def envelope_route_handler(request: Request) -> Response:
            return await envelope_response(request, route_handler)

        return envelope_route_handler


async def envelope_response(request: Request, call_next: CallNext) -> Response:
    """Run the downstream handler and envelope its response or error."""
    kit = get_response_kit(request)
    classifier = ResponseClassifier(kit)

    if classifier.should_bypass(request.url.path):
        return await call_next(request)

    try:
        response = await call_next(request)
    except Exception as exc:
        return _with_request_id(classifier.format_exception(exc), kit)

    return _with_request_id(await _classify(classifier, response), kit)


async def envelope_exception_handler(request: Request, exc: Exception) -> Response:
    """Render framework and validation errors as envelopes, except on excluded routes."""
    classifier = ResponseClassifier(get_response_kit(request))
    if not classifier.should_bypass(request.url.path):
        return classifier.format_exception(exc)

    if isinstance(exc, RequestValidationError):
        return await request_validation_exception_handler(request, exc)
    if isinstance(exc, HTTPException):
        return await http_exception_handler(request, exc)
    return JSONResponse({"message": str(exc), "errors": getattr(exc, "errors", {})}, status_code=422)


async def _classify(classifier: ResponseClassifier, response: Response) -> Response:
    content_type = response.headers.get("content-type", "")
    # Non-JSON responses (HTML, files, event streams) are never buffered
    if "application/json" not in content_type.lower():
        return response

    body = await _read_body(response)
    formatted = classifier.classify(OutgoingResponse(response.status_code, body, content_type))

    if formatted is None:
        if not hasattr(response, "body_iterator"):
            return response
        passthrough = Response(content=body, status_code=response.status_code, background=response.background)
        passthrough.raw_headers = list(response.raw_headers)
        return passthrough

    for key, value in response.raw_headers:
        if key.lower() not in _BODY_HEADERS:
            formatted.raw_headers.append((key, value))
    formatted.background = response.background
    return formatted


async def _read_body(response: Response) -> bytes:
    if not hasattr(response, "body_iterator"):
        return bytes(response.body)
    chunks = []
    async for chunk in response.body_iterator:
        chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode(response.charset))
    return b"".join(chunks)


def _with_request_id(response: Response, kit: ResponseKit) -> Response:
    header = kit.settings.request_id_header
    if header:
        response.headers[header] = kit.get_request_id()
    return response
