"""Catch-all REST blueprint.

Every path not claimed by another blueprint is handed to the Dispatcher
stored in ``app.config["DISPATCHER"]``. This view only translates between
Flask and the framework-neutral IncomingRequest / DispatchResult shapes.
"""
from __future__ import annotations

import logging
import uuid

from flask import Blueprint, Response, current_app, request

from arena_api.core.dispatcher import IncomingRequest

bp = Blueprint("rest", __name__)

logger = logging.getLogger(__name__)

METHODS = ["GET", "POST", "PUT", "DELETE"]


def incoming_request() -> IncomingRequest:
    """Snapshot the current flask.request for the dispatcher.

    Repeated query keys are joined with commas, the list form the
    dispatcher already accepts for list parameters.
    """
    return IncomingRequest(
        method=request.method,
        path=request.path,
        query={key: ",".join(values) for key, values in request.args.lists()},
        headers=request.headers,
        body=request.stream,
        content_type=request.content_type,
    )


@bp.route("/", defaults={"path": ""}, methods=METHODS)
@bp.route("/<path:path>", methods=METHODS)
def dispatch(path: str):
    result = current_app.config["DISPATCHER"].dispatch(incoming_request())
    return Response(result.body, status=result.status, content_type=result.content_type)


@bp.before_request
def assign_correlation_id():
    """Reuse the caller's X-Correlation-Id or mint one."""
    request.environ["arena_api.correlation_id"] = request.headers.get("X-Correlation-Id") or uuid.uuid4().hex


@bp.after_request
def add_correlation_id(response):
    """Add correlation ID to response headers for tracing."""
    correlation_id = request.environ.get("arena_api.correlation_id")
    if correlation_id:
        response.headers["X-Correlation-Id"] = correlation_id
    return response
