import asyncio
import json
from pathlib import Path

import pytest

from vroom_express.runner import (
    RequestFileError, reap_request_file, run_solver, write_request_file
)


def test_request_files_are_unique(tmp_path: Path):
    first = write_request_file(tmp_path / "logs", {"vehicles": []})
    second = write_request_file(tmp_path / "logs", {"vehicles": []})

    assert first != second
    assert first.suffix == ".json"
    assert json.loads(first.read_text()) == {"vehicles": []}


def test_unwritable_request_file_raises(tmp_path: Path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    with pytest.raises(RequestFileError):
        write_request_file(blocker, {"vehicles": []})


def test_reap_removes_file_and_tolerates_missing(tmp_path: Path):
    path = write_request_file(tmp_path, {})

    reap_request_file(path)
    assert not path.exists()

    reap_request_file(path)
    reap_request_file(None)


def test_run_solver_collects_output(make_solver, caplog):
    solver = make_solver(stdout='{"code": 0}', stderr="warning: slow\n", exit_code=0)

    result = asyncio.run(run_solver(str(solver.root / "vroom"), ["-t", "2", "-i", "/dev/null"]))

    assert result.spawned
    assert result.exit_status == 0
    assert json.loads(result.stdout) == {"code": 0}
    assert result.stderr == "warning: slow\n"
    assert solver.args == ["-t", "2", "-i", "/dev/null"]
    assert "[Vroom] warning: slow" in caplog.text


def test_run_solver_reports_exit_status(make_solver):
    solver = make_solver(stdout="partial", exit_code=3)

    result = asyncio.run(run_solver(str(solver.root / "vroom"), []))

    assert result.exit_status == 3
    assert result.stdout == b"partial"


def test_run_solver_reports_spawn_failure(tmp_path: Path):
    result = asyncio.run(run_solver(str(tmp_path / "no-such-vroom"), ["-i", "x.json"]))

    assert not result.spawned
    assert result.exit_status is None
    assert result.spawn_error


def test_run_solver_survives_stderr_line_over_stream_limit(make_solver):
    solver = make_solver(stdout='{"code": 0}', stderr="E" * 70000 + "\n", exit_code=0)

    result = asyncio.run(run_solver(str(solver.root / "vroom"), []))

    assert result.exit_status == 0
    assert json.loads(result.stdout) == {"code": 0}
    assert result.stderr == "E" * 70000 + "\n"
