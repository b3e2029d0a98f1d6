"""
vroom-express - Subprocess Runner
=================================
Writes the problem to disk, runs vroom on it and collects the outcome.

Each run yields a single ``SolverResult`` instead of scattered event
callbacks: stderr is streamed to the log while stdout is accumulated, and
the caller awaits both together with the exit status.
"""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

STDERR_CHUNK_SIZE = 64 * 1024


class RequestFileError(Exception):
    """The temporary problem file could not be written."""


@dataclass(frozen=True)
class SolverResult:
    """
    Outcome of one solver run.

    Attributes:
        exit_status: Process return code, ``None`` if it never started.
        stdout: Everything written to standard output.
        stderr: Everything written to standard error.
        spawn_error: Reason the process could not be started.
    """
    exit_status: Optional[int]
    stdout: bytes = b""
    stderr: str = ""
    spawn_error: Optional[str] = None

    @property
    def spawned(self) -> bool:
        return self.spawn_error is None


def request_file_name(log_dir: Path) -> Path:
    """Collision-free file name: millisecond timestamp plus a random suffix."""
    timestamp = int(time.time() * 1000)
    return Path(log_dir) / f"{timestamp}_{uuid.uuid4().hex}.json"


def write_request_file(log_dir: Path, payload: Any) -> Path:
    """
    Serialize ``payload`` to a fresh JSON file under ``log_dir``.

    Raises:
        RequestFileError: If the directory or the file cannot be written.
    """
    path = request_file_name(log_dir)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to write request file {path}: {e}")
        raise RequestFileError(str(e)) from e
    return path


def reap_request_file(path: Optional[Path]) -> None:
    """Delete a request file if it still exists. Never raises."""
    if path is None:
        return
    try:
        if path.is_file():
            path.unlink()
    except OSError as e:
        logger.warning(f"Could not remove request file {path}: {e}")


async def _log_stderr(stream: asyncio.StreamReader, sink: list) -> None:
    # Chunked reads: a single stderr line may exceed the StreamReader line limit
    while True:
        chunk = await stream.read(STDERR_CHUNK_SIZE)
        if not chunk:
            break
        text = chunk.decode("utf-8", errors="replace")
        sink.append(text)
        for line in text.splitlines():
            if line.strip():
                logger.error(f"[Vroom] {line}")


async def run_solver(command: str, args: Sequence[str]) -> SolverResult:
    """
    Run ``command`` with ``args`` and wait for it to exit.

    Spawn failures (missing or non-executable binary) are reported through
    ``SolverResult.spawn_error`` rather than raised.
    """
    logger.debug(f"Running: {command} {' '.join(args)}")

    try:
        process = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error(f"Unknown internal error: {e}")
        return SolverResult(exit_status=None, spawn_error=str(e))

    stderr_lines: list = []
    stdout, _, exit_status = await asyncio.gather(
        process.stdout.read(),
        _log_stderr(process.stderr, stderr_lines),
        process.wait(),
    )

    return SolverResult(
        exit_status=exit_status,
        stdout=stdout,
        stderr="".join(stderr_lines),
    )
