"""
vroom-express - Configuration
=============================
Centralizes configuration for the vroom HTTP gateway.

Values are resolved in three layers:
1. Built-in defaults (mirroring the stock ``config.yml``)
2. An optional YAML file with ``cliArgs`` and ``routingServers`` sections
3. ``VROOM_*`` environment variables (a ``.env`` file is honoured)

The resulting ``AppConfig`` is immutable and is injected into the FastAPI
application; request handlers only ever read it.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


# ============================================
# ERROR CODES
# ============================================

@dataclass(frozen=True)
class VroomErrorCodes:
    """
    Exit codes of the vroom binary, reused as ``code`` in error bodies.

    Attributes:
        ok: Solving succeeded.
        internal: Internal solver error (also used for gateway failures).
        input: The problem description was rejected.
        routing: The routing backend failed.
        too_large: The request exceeded a configured size limit.
    """
    ok: int = 0
    internal: int = 1
    input: int = 2
    routing: int = 3
    too_large: int = 4


ERROR_CODES = VroomErrorCodes()


# ============================================
# ROUTING SERVERS
# ============================================

@dataclass(frozen=True)
class RoutingProfile:
    """Host/port pair of one routing profile (e.g. ``car``)."""
    host: Optional[str] = None
    port: Optional[str] = None

    def is_complete(self) -> bool:
        return bool(self.host) and bool(self.port)


def _default_routing_servers() -> Dict[str, Dict[str, RoutingProfile]]:
    return {
        "osrm": {
            "car": RoutingProfile("0.0.0.0", "5000"),
            "bike": RoutingProfile("0.0.0.0", "5001"),
            "foot": RoutingProfile("0.0.0.0", "5002"),
        },
        "ors": {
            "driving-car": RoutingProfile("localhost/ors/v2", "8080"),
            "driving-hgv": RoutingProfile("localhost/ors/v2", "8080"),
            "cycling-regular": RoutingProfile("localhost/ors/v2", "8080"),
            "foot-walking": RoutingProfile("localhost/ors/v2", "8080"),
        },
        "valhalla": {
            "auto": RoutingProfile("0.0.0.0", "8002"),
            "bicycle": RoutingProfile("0.0.0.0", "8002"),
            "pedestrian": RoutingProfile("0.0.0.0", "8002"),
            "motorcycle": RoutingProfile("0.0.0.0", "8002"),
            "truck": RoutingProfile("0.0.0.0", "8002"),
        },
    }


# ============================================
# CONFIG DATACLASSES
# ============================================

@dataclass(frozen=True)
class SolverConfig:
    """
    Configuration of the vroom subprocess.

    Attributes:
        path: Directory holding the ``vroom`` binary (empty means ``$PATH``).
        router: Routing backend passed with ``-r`` (osrm, libosrm, ors, valhalla).
        geometry: Always request route geometry (``-g``).
        planmode: Always run in plan mode (``-c``).
        threads: Default thread count (``-t``).
        explore: Default exploration level (``-x``).
        override: Allow requests to override the flags above.
        max_locations: Largest accepted ``jobs + 2 * shipments`` count.
        max_vehicles: Largest accepted vehicle count.
        routing_servers: Per router, per profile host/port pairs.
    """
    path: str = ""
    router: str = "osrm"
    geometry: bool = False
    planmode: bool = False
    threads: int = 4
    explore: int = 5
    override: bool = True
    max_locations: int = 1000
    max_vehicles: int = 200
    routing_servers: Mapping[str, Mapping[str, RoutingProfile]] = field(
        default_factory=_default_routing_servers
    )

    @property
    def command(self) -> str:
        """Full command used to spawn the solver."""
        if not self.path:
            return "vroom"
        return str(Path(self.path) / "vroom")


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the HTTP server.

    Attributes:
        host: Interface uvicorn binds to.
        port: Listening port.
        base_url: Path the routing endpoint is mounted on.
        timeout: Socket keep-alive timeout in seconds.
        log_dir: Directory for temporary request files.
        max_body_bytes: Largest accepted request body.
        callback_timeout: Timeout in seconds for webhook deliveries.
    """
    host: str = "0.0.0.0"
    port: int = 3000
    base_url: str = "/"
    timeout: int = 300
    log_dir: Path = Path("logs")
    max_body_bytes: int = 1024 * 1024
    callback_timeout: float = 30.0


@dataclass(frozen=True)
class AppConfig:
    """Everything the gateway needs, read-only after startup."""
    solver: SolverConfig = field(default_factory=SolverConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    error_codes: VroomErrorCodes = ERROR_CODES


# ============================================
# LOADING
# ============================================

def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _parse_routing_servers(raw: Mapping[str, Any]) -> Dict[str, Dict[str, RoutingProfile]]:
    servers: Dict[str, Dict[str, RoutingProfile]] = {}
    for router, profiles in (raw or {}).items():
        servers[router] = {}
        for name, profile in (profiles or {}).items():
            profile = profile or {}
            host = profile.get("host")
            port = profile.get("port")
            servers[router][name] = RoutingProfile(
                host=str(host) if host is not None else None,
                port=str(port) if port is not None else None,
            )
    return servers


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


# cliArgs key in config.yml -> (dataclass, field, converter)
_FILE_KEYS = {
    "path": ("solver", "path", str),
    "router": ("solver", "router", str),
    "geometry": ("solver", "geometry", _as_bool),
    "planmode": ("solver", "planmode", _as_bool),
    "threads": ("solver", "threads", int),
    "explore": ("solver", "explore", int),
    "override": ("solver", "override", _as_bool),
    "maxlocations": ("solver", "max_locations", int),
    "maxvehicles": ("solver", "max_vehicles", int),
    "baseurl": ("server", "base_url", str),
    "port": ("server", "port", int),
    "timeout": ("server", "timeout", int),
    "logdir": ("server", "log_dir", Path),
    "maxbodybytes": ("server", "max_body_bytes", int),
    "callbacktimeout": ("server", "callback_timeout", float),
}

_ENV_KEYS = {
    "VROOM_PATH": "path",
    "VROOM_ROUTER": "router",
    "VROOM_GEOMETRY": "geometry",
    "VROOM_PLANMODE": "planmode",
    "VROOM_THREADS": "threads",
    "VROOM_EXPLORE": "explore",
    "VROOM_OVERRIDE": "override",
    "VROOM_MAX_LOCATIONS": "maxlocations",
    "VROOM_MAX_VEHICLES": "maxvehicles",
    "VROOM_BASEURL": "baseurl",
    "VROOM_PORT": "port",
    "VROOM_TIMEOUT": "timeout",
    "VROOM_LOGDIR": "logdir",
    "VROOM_MAX_BODY_BYTES": "maxbodybytes",
    "VROOM_CALLBACK_TIMEOUT": "callbacktimeout",
}


def _normalize_base_url(base_url: str) -> str:
    base_url = "/" + base_url.strip("/")
    return base_url if base_url == "/" else base_url + "/"


def load_config(
    config_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """
    Build the application configuration.

    Args:
        config_file: YAML file to read. Defaults to ``$VROOM_CONFIG_FILE`` or
            ``config.yml`` in the working directory; a missing default file
            is not an error.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        The frozen ``AppConfig``.
    """
    environ = os.environ if environ is None else environ

    explicit = config_file is not None or "VROOM_CONFIG_FILE" in environ
    path = Path(config_file or environ.get("VROOM_CONFIG_FILE", "config.yml"))

    file_data: Dict[str, Any] = {}
    if path.is_file():
        file_data = _read_yaml(path)
        logger.info(f"Loaded configuration from {path}")
    elif explicit:
        raise FileNotFoundError(f"Configuration file not found: {path}")

    values: Dict[str, Any] = dict(file_data.get("cliArgs") or {})
    for env_name, key in _ENV_KEYS.items():
        if env_name in environ:
            values[key] = environ[env_name]

    solver_kwargs: Dict[str, Any] = {}
    server_kwargs: Dict[str, Any] = {"host": environ.get("VROOM_HOST", ServerConfig.host)}
    for key, raw_value in values.items():
        target = _FILE_KEYS.get(key)
        if target is None:
            logger.debug(f"Ignoring unknown configuration key: {key}")
            continue
        section, name, convert = target
        kwargs = solver_kwargs if section == "solver" else server_kwargs
        kwargs[name] = convert(raw_value)

    if "routingServers" in file_data:
        solver_kwargs["routing_servers"] = _parse_routing_servers(file_data["routingServers"])

    server = ServerConfig(**server_kwargs)
    server = replace(server, base_url=_normalize_base_url(server.base_url))

    return AppConfig(solver=SolverConfig(**solver_kwargs), server=server)
