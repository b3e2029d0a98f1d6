"""
vroom-express - Option Translation
==================================
Turns server configuration and per-request overrides into vroom flags.

The static part is computed from the immutable ``SolverConfig``; every
request derives its own ``SolverInvocation`` from it instead of mutating a
shared flag list.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .config import SolverConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolverInvocation:
    """
    Command line for one solver run (input file excluded).

    Attributes:
        args: Ordered vroom arguments.
        threads: Resolved ``-t`` value.
        explore: Resolved ``-x`` value.
    """
    args: Tuple[str, ...]
    threads: int
    explore: int

    def with_input(self, input_file: str) -> Tuple[str, ...]:
        """Full argument list reading the problem from ``input_file``."""
        return self.args + ("-i", input_file)


def static_solver_flags(config: SolverConfig) -> Tuple[str, ...]:
    """Flags shared by every request: router, routing servers and defaults."""
    flags: List[str] = ["-r", config.router]

    if config.router != "libosrm":
        profiles = config.routing_servers.get(config.router, {})
        for profile_name, profile in profiles.items():
            if profile.is_complete():
                flags.extend(["-a", f"{profile_name}:{profile.host}"])
                flags.extend(["-p", f"{profile_name}:{profile.port}"])
            else:
                logger.error(
                    f"Incomplete configuration: profile '{profile_name}' requires 'host' and 'port'."
                )

    if config.geometry:
        flags.append("-g")

    if config.planmode:
        flags.append("-c")

    return tuple(flags)


def _as_int(value: Any) -> Optional[int]:
    # JSON true/false arrive as bool, which is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value)


def build_invocation(
    config: SolverConfig,
    options: Any = None,
    static_flags: Optional[Tuple[str, ...]] = None,
) -> SolverInvocation:
    """
    Merge static flags with the overrides a request is allowed to make.

    Args:
        config: Solver configuration.
        options: The request's ``options`` object (anything else is ignored).
        static_flags: Precomputed ``static_solver_flags(config)``.

    Returns:
        The request's ``SolverInvocation``.
    """
    args = list(static_flags if static_flags is not None else static_solver_flags(config))
    threads = config.threads
    explore = config.explore

    if config.override and isinstance(options, dict):
        if not config.geometry and options.get("g"):
            args.append("-g")

        if not config.planmode and options.get("c"):
            args.append("-c")

        requested_threads = _as_int(options.get("t"))
        if requested_threads is not None:
            threads = requested_threads

        requested_explore = _as_int(options.get("x"))
        if requested_explore is not None:
            explore = requested_explore

        limit = _as_int(options.get("l"))
        if limit is not None:
            args.extend(["-l", str(limit)])

    args.extend(["-t", str(threads)])
    args.extend(["-x", str(explore)])

    return SolverInvocation(args=tuple(args), threads=threads, explore=explore)
