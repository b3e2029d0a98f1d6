"""
vroom-express - FastAPI Application
===================================
HTTP gateway in front of the vroom vehicle routing solver.

This service provides:
- ``POST <base_url>``: solve a vroom problem, synchronously or via webhook
- ``GET <base_url>health``: run the solver on a bundled problem
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import AppConfig, load_config
from .health import check_solver_health
from .models import GATEWAY_KEYS, CallbackAccepted, ErrorResponse
from .options import build_invocation, static_solver_flags
from .pipeline import solve_problem, solve_to_callback
from .validation import (
    RoutingRequestError, check_content_length, parse_body, validate_request
)

# ============================================
# LOGGING SETUP
# ============================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


# ============================================
# LIFESPAN (Startup/Shutdown)
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager."""
    config: AppConfig = app.state.config

    config.server.log_dir.mkdir(parents=True, exist_ok=True)

    logger.info("=" * 60)
    logger.info("VROOM-EXPRESS - Starting")
    logger.info(f"Solver command: {config.solver.command}")
    logger.info(f"Router: {config.solver.router}")
    logger.info(f"Static flags: {' '.join(app.state.static_flags)}")
    logger.info(f"Overrides allowed: {config.solver.override}")
    logger.info(f"Request files: {config.server.log_dir}")
    logger.info("=" * 60)

    yield

    logger.info("vroom-express shutting down...")


# ============================================
# ENDPOINTS
# ============================================

async def solve(request: Request, background_tasks: BackgroundTasks):
    """
    Solve a vroom problem.

    Without ``callbackUrl`` the solution is the HTTP response. With it, the
    request is acknowledged with 202 and the solution is POSTed to the
    webhook once vroom is done.
    """
    config: AppConfig = request.app.state.config

    check_content_length(request.headers.get("content-length"), config)
    payload = parse_body(await request.body(), config)
    routing_request = validate_request(payload, config)

    invocation = build_invocation(
        config.solver, routing_request.options, request.app.state.static_flags
    )
    solver_payload = {k: v for k, v in payload.items() if k not in GATEWAY_KEYS}
    identifiers = routing_request.identifiers()

    logger.info(
        f"Solving: {len(routing_request.vehicles)} vehicles, "
        f"{routing_request.location_count} locations, "
        f"callback={'yes' if routing_request.callback_url else 'no'}"
    )

    if routing_request.callback_url:
        background_tasks.add_task(
            solve_to_callback,
            config, invocation, solver_payload, identifiers, routing_request.callback_url
        )
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=CallbackAccepted(**identifiers).model_dump(exclude_none=True),
        )

    envelope = await solve_problem(config, invocation, solver_payload, identifiers)
    return JSONResponse(status_code=envelope.status_code, content=envelope.body)


async def health(request: Request):
    """Health check: 200 "OK" when vroom runs cleanly, 500 otherwise."""
    health_status = await check_solver_health(request.app.state.config)
    if health_status.healthy:
        return PlainTextResponse("OK", status_code=status.HTTP_200_OK)
    return PlainTextResponse(health_status.message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


# ============================================
# APP FACTORY
# ============================================

def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the gateway around an immutable configuration."""
    config = config or load_config()

    app = FastAPI(
        title="vroom-express",
        description="HTTP gateway for the vroom vehicle routing solver",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.static_flags = static_solver_flags(config.solver)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RoutingRequestError)
    async def routing_request_exception_handler(request: Request, exc: RoutingRequestError):
        """Render rejected requests as vroom-style error bodies."""
        logger.warning(f"Rejected request: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(code=exc.code, error=exc.message).model_dump(),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors."""
        logger.exception(f"Unexpected error: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(code=config.error_codes.internal, error="Internal error").model_dump(),
        )

    base_url = config.server.base_url
    app.add_api_route(base_url.rstrip("/") or "/", solve, methods=["POST"], tags=["Solver"])
    if base_url != "/":
        app.add_api_route(base_url, solve, methods=["POST"], include_in_schema=False)
    app.add_api_route(f"{base_url}health", health, methods=["GET"], tags=["Health"])

    return app


app = create_app()


# ============================================
# MAIN ENTRY POINT
# ============================================

def main():
    """Run the server with Uvicorn."""
    import uvicorn

    server = app.state.config.server
    uvicorn.run(
        app,
        host=server.host,
        port=server.port,
        timeout_keep_alive=server.timeout,
        log_level="info"
    )


if __name__ == "__main__":
    main()
