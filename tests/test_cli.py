import json

import pytest
from typer.testing import CliRunner

from netcontrol.cli import app

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setenv("NETCONTROL_LOGGING__LEVEL", "error")
    database = str(tmp_path / "cli.db")

    edges = tmp_path / "edges.txt"
    edges.write_text("A;B\nB;C\nD;C\nA;E\nE;F\nD;F\nB;G\nG;H\nD;H\n")
    targets = tmp_path / "targets.txt"
    targets.write_text("C\nF\nH\n")
    preferred = tmp_path / "preferred.txt"
    preferred.write_text("D\n")
    parameters = tmp_path / "parameters.json"
    parameters.write_text(json.dumps({
        "MaximumIterations": 4,
        "MaximumPathLength": 2,
        "PopulationSize": 10,
        "RandomGenesPerChromosome": 1,
    }))

    return {
        "database": database,
        "edges": str(edges),
        "targets": str(targets),
        "preferred": str(preferred),
        "parameters": str(parameters),
    }


def _invoke(env, *args):
    return runner.invoke(app, ["--database", env["database"], *args])


def _submit(env, name="demo"):
    result = _invoke(
        env, "submit", env["edges"], env["targets"],
        "--preferred", env["preferred"], "--parameters", env["parameters"],
        "--name", name, "--seed", "3",
    )
    assert result.exit_code == 0, result.output
    return result


def _runs(env):
    result = _invoke(env, "runs", "list", "--format", "json")
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_submit_queues_a_run(cli_env):
    result = _submit(cli_env)

    assert "Submitted run" in result.output
    [run] = _runs(cli_env)
    assert run["name"] == "demo"
    assert run["status"] == "Scheduled"


def test_submit_reports_infeasible_targets(cli_env, tmp_path):
    targets = tmp_path / "sources.txt"
    targets.write_text("A\n")

    result = _invoke(cli_env, "submit", cli_env["edges"], str(targets))

    assert result.exit_code == 1
    assert "cannot be reached" in result.output
    assert _runs(cli_env) == []


def test_submit_reports_missing_files(cli_env, tmp_path):
    result = _invoke(cli_env, "submit", str(tmp_path / "absent.txt"), cli_env["targets"])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_worker_once_then_show(cli_env):
    _submit(cli_env)
    [queued] = _runs(cli_env)

    result = _invoke(cli_env, "worker", "--once")
    assert result.exit_code == 0, result.output

    [finished] = _runs(cli_env)
    assert finished["status"] == "Completed"
    assert finished["current_iteration"] == 4

    result = _invoke(cli_env, "runs", "show", queued["id"], "--format", "json", "--solutions", "2")
    assert result.exit_code == 0, result.output
    details = json.loads(result.output)
    assert details["status"] == "Completed"
    assert details["parameters"]["random_seed"] == 3
    assert 1 <= len(details["solutions"]) <= 2
    assert set(details["solutions"][0]["controls"]) == {"C", "F", "H"}

    table = _invoke(cli_env, "runs", "show", queued["id"])
    assert table.exit_code == 0, table.output
    assert "Completed" in table.output


def test_worker_once_with_empty_queue(cli_env):
    result = _invoke(cli_env, "worker", "--once")

    assert result.exit_code == 0
    assert "No scheduled run" in result.output


def test_stop_scheduled_run(cli_env):
    _submit(cli_env)
    [queued] = _runs(cli_env)

    result = _invoke(cli_env, "runs", "stop", queued["id"])

    assert result.exit_code == 0, result.output
    assert "Stopped" in result.output
    assert _runs(cli_env)[0]["status"] == "Stopped"

    again = _invoke(cli_env, "runs", "stop", queued["id"])
    assert again.exit_code == 1


def test_show_and_stop_unknown_run(cli_env):
    assert _invoke(cli_env, "runs", "show", "missing").exit_code == 1
    assert _invoke(cli_env, "runs", "stop", "missing").exit_code == 1


def test_delete_run(cli_env):
    _submit(cli_env)
    [queued] = _runs(cli_env)

    result = _invoke(cli_env, "runs", "delete", queued["id"])

    assert result.exit_code == 0, result.output
    assert _runs(cli_env) == []


def test_runs_list_table(cli_env):
    _submit(cli_env, name="tabled")

    result = _invoke(cli_env, "runs", "list")

    assert result.exit_code == 0, result.output
    assert "Runs" in result.output


def test_config_show_and_save(cli_env, tmp_path):
    result = runner.invoke(app, ["config", "show", "scheduler", "--format", "json"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["idle_delay"] == 30.0

    path = tmp_path / "out" / "netcontrol.yaml"
    result = runner.invoke(app, ["config", "save", str(path)])
    assert result.exit_code == 0, result.output
    assert path.exists()

    assert runner.invoke(app, ["config", "show", "nothing"]).exit_code == 1
