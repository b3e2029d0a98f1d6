import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from vroom_express.config import AppConfig, ServerConfig, SolverConfig
from vroom_express.main import create_app

SOLUTION = {
    "code": 0,
    "summary": {"cost": 3603, "routes": 1, "unassigned": 0},
    "unassigned": [],
    "routes": [{"vehicle": 0, "cost": 3603, "steps": []}],
}

STUB_SCRIPT = """#!/bin/sh
printf '%s\\n' "$@" > "{root}/args.txt"
while [ $# -gt 0 ]; do
  if [ "$1" = "-i" ]; then
    cp "$2" "{root}/input.json"
    printf '%s' "$2" > "{root}/input_path.txt"
  fi
  shift
done
cat "{root}/stdout.txt"
if [ -s "{root}/stderr.txt" ]; then
  cat "{root}/stderr.txt" >&2
fi
exit {exit_code}
"""


@dataclass
class StubSolver:
    """A fake ``vroom`` binary that records how it was called."""
    root: Path

    @property
    def was_called(self) -> bool:
        return (self.root / "args.txt").exists()

    @property
    def args(self) -> List[str]:
        return (self.root / "args.txt").read_text().splitlines()

    @property
    def input_path(self) -> Path:
        return Path((self.root / "input_path.txt").read_text())

    def received(self) -> dict:
        return json.loads((self.root / "input.json").read_text())


@pytest.fixture
def make_solver(tmp_path: Path):
    def _make(stdout: str = json.dumps(SOLUTION), exit_code: int = 0, stderr: str = "") -> StubSolver:
        root = tmp_path / "bin"
        root.mkdir(exist_ok=True)
        (root / "stdout.txt").write_text(stdout)
        (root / "stderr.txt").write_text(stderr)
        script = root / "vroom"
        script.write_text(STUB_SCRIPT.format(root=root, exit_code=exit_code))
        os.chmod(script, 0o755)
        return StubSolver(root=root)

    return _make


@pytest.fixture
def make_config(tmp_path: Path):
    def _make(solver: Optional[StubSolver] = None, server: Optional[dict] = None, **solver_fields) -> AppConfig:
        path = str(solver.root) if solver else str(tmp_path / "missing")
        return AppConfig(
            solver=SolverConfig(path=path, **solver_fields),
            server=ServerConfig(**{"log_dir": tmp_path / "logs", **(server or {})}),
        )

    return _make


@pytest.fixture
def make_client(make_config):
    def _make(solver: Optional[StubSolver] = None, **kwargs) -> TestClient:
        return TestClient(create_app(make_config(solver, **kwargs)))

    return _make


@pytest.fixture
def problem() -> dict:
    return {
        "vehicles": [{"id": 0, "start_index": 0, "end_index": 3}],
        "jobs": [{"id": 1414, "location_index": 1}, {"id": 1515, "location_index": 2}],
        "matrix": [
            [0, 2104, 197, 1299],
            [2103, 0, 2255, 3152],
            [197, 2256, 0, 1102],
            [1299, 3153, 1102, 0],
        ],
    }


@pytest.fixture
def solution() -> dict:
    return SOLUTION
