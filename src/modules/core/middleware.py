import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

OPERATOR_HEADER = "HTTP_X_OPERATOR"

logger = structlog.get_logger()


class CorrelationIdMiddleware:
    """Bind a correlation ID (and the caller's operator, if any) to every log line.

    Reads ``X-Request-ID`` from the incoming request or generates a UUID4.
    The ID lives in a ContextVar and in structlog's contextvars, and is
    echoed back through the ``X-Request-ID`` response header.  When the
    upstream gateway sends ``X-Operator`` it is bound too, so audit writes
    and their log lines can be matched up.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        context = {"correlation_id": cid}
        operator = request.META.get(OPERATOR_HEADER)
        if operator:
            context["operator"] = operator
        structlog.contextvars.bind_contextvars(**context)

        logger.info(
            "request_started",
            method=request.method,
            path=request.get_full_path(),
        )

        response = self.get_response(request)

        logger.info(
            "request_finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
        )

        response["X-Request-ID"] = cid
        return response
