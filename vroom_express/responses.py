"""
vroom-express - Response Mapping
================================
Maps solver outcomes to HTTP responses and delivers webhook callbacks.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict

import httpx
from fastapi import status

from .config import VroomErrorCodes
from .models import ErrorResponse
from .runner import SolverResult

logger = logging.getLogger(__name__)


STATUS_HEADER = "X-Vroom-Status"


@dataclass(frozen=True)
class ResponseEnvelope:
    """HTTP status plus JSON body for one solver run."""
    status_code: int
    body: Any


def status_table(codes: VroomErrorCodes) -> Dict[int, int]:
    """Exit code -> HTTP status for every exit code vroom documents."""
    return {
        codes.ok: status.HTTP_200_OK,
        codes.internal: status.HTTP_500_INTERNAL_SERVER_ERROR,
        codes.input: status.HTTP_400_BAD_REQUEST,
        codes.routing: status.HTTP_500_INTERNAL_SERVER_ERROR,
    }


def error_envelope(status_code: int, code: int, message: str) -> ResponseEnvelope:
    return ResponseEnvelope(status_code, ErrorResponse(code=code, error=message).model_dump())


def map_result(result: SolverResult, codes: VroomErrorCodes) -> ResponseEnvelope:
    """
    Translate a ``SolverResult`` into a ``ResponseEnvelope``.

    - Spawn failure: 500 with an internal error body.
    - Unknown exit code (crash, signal): 500 internal error, stdout discarded.
    - Known exit code: stdout is passed through as JSON.
    """
    if not result.spawned:
        return error_envelope(
            status.HTTP_500_INTERNAL_SERVER_ERROR, codes.internal, f"Unknown internal error: {result.spawn_error}"
        )

    status_code = status_table(codes).get(result.exit_status)
    if status_code is None:
        logger.error(f"vroom exited with unexpected status {result.exit_status}")
        return error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, codes.internal, "Internal error")

    try:
        body = json.loads(result.stdout)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Unparsable vroom output (exit status {result.exit_status}): {e}")
        return error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, codes.internal, "Internal error")

    return ResponseEnvelope(status_code, body)


def merge_identifiers(envelope: ResponseEnvelope, identifiers: Dict[str, Any]) -> ResponseEnvelope:
    """Echo ``routeId``/``batchId`` into object bodies."""
    if not identifiers or not isinstance(envelope.body, dict):
        return envelope
    return ResponseEnvelope(envelope.status_code, {**envelope.body, **identifiers})


async def post_callback(url: str, envelope: ResponseEnvelope, timeout: float) -> bool:
    """
    POST the final body to a caller's webhook.

    The mapped HTTP status travels in the ``X-Vroom-Status`` header.
    Delivery failures are logged and reported through the return value;
    they are not retried.
    """
    headers = {STATUS_HEADER: str(envelope.status_code)}
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=envelope.body, headers=headers)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Callback to {url} failed: {e}")
        return False

    logger.info(f"Delivered solution to {url} (status {envelope.status_code})")
    return True
