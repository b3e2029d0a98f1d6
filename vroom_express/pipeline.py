"""
vroom-express - Solve Pipeline
==============================
One request end to end: temp file, solver run, response mapping, cleanup.

Used by both response strategies:
- direct: the envelope becomes the HTTP response
- callback: the envelope is POSTed to the caller's webhook
"""

import asyncio
import logging
import time
from typing import Any, Dict

from fastapi import status

from .config import AppConfig
from .options import SolverInvocation
from .responses import (
    ResponseEnvelope, error_envelope, map_result, merge_identifiers, post_callback
)
from .runner import RequestFileError, reap_request_file, run_solver, write_request_file

logger = logging.getLogger(__name__)


async def solve_problem(
    config: AppConfig,
    invocation: SolverInvocation,
    payload: Dict[str, Any],
    identifiers: Dict[str, Any],
) -> ResponseEnvelope:
    """
    Run vroom on ``payload`` and build the response envelope.

    The request file is always removed once the solver has exited.
    """
    codes = config.error_codes

    try:
        request_file = await asyncio.to_thread(
            write_request_file, config.server.log_dir, payload
        )
    except RequestFileError:
        return error_envelope(
            status.HTTP_500_INTERNAL_SERVER_ERROR, codes.internal, "Internal error"
        )

    start_time = time.time()
    try:
        result = await run_solver(
            config.solver.command, invocation.with_input(str(request_file))
        )
        envelope = map_result(result, codes)
    finally:
        await asyncio.to_thread(reap_request_file, request_file)

    elapsed_ms = int((time.time() - start_time) * 1000)
    logger.info(
        f"vroom finished: exit={result.exit_status}, "
        f"status={envelope.status_code}, "
        f"threads={invocation.threads}, explore={invocation.explore}, "
        f"time={elapsed_ms}ms"
    )

    return merge_identifiers(envelope, identifiers)


async def solve_to_callback(
    config: AppConfig,
    invocation: SolverInvocation,
    payload: Dict[str, Any],
    identifiers: Dict[str, Any],
    callback_url: str,
) -> None:
    """
    Background variant: deliver the envelope to ``callback_url``.

    The caller already holds a 202, so the webhook gets a body even when the
    run itself fails.
    """
    try:
        envelope = await solve_problem(config, invocation, payload, identifiers)
    except Exception as e:
        logger.exception(f"Solve for callback {callback_url} failed: {e}")
        envelope = merge_identifiers(
            error_envelope(
                status.HTTP_500_INTERNAL_SERVER_ERROR, config.error_codes.internal, "Internal error"
            ),
            identifiers,
        )

    await post_callback(callback_url, envelope, config.server.callback_timeout)
