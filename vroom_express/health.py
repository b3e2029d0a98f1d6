"""Solver health check: solve a tiny bundled problem once."""

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import AppConfig
from .runner import run_solver

logger = logging.getLogger(__name__)

HEALTHCHECK_FIXTURE = Path(__file__).parent / "healthchecks" / "vroom_custom_matrix.json"

MISSING_BINARY_MESSAGE = "vroom is not in $PATH, check VROOM_PATH"


@dataclass(frozen=True)
class HealthStatus:
    healthy: bool
    message: str = "healthy"


async def check_solver_health(config: AppConfig) -> HealthStatus:
    """Spawn failure or any stderr output means unhealthy."""
    result = await run_solver(config.solver.command, ["-i", str(HEALTHCHECK_FIXTURE)])

    if not result.spawned:
        status = HealthStatus(False, MISSING_BINARY_MESSAGE)
    elif result.stderr:
        status = HealthStatus(False, result.stderr.strip())
    else:
        status = HealthStatus(True)

    if result.exit_status != config.error_codes.ok:
        logger.error(f"Health check failed: {status.message}")

    return status
