"""
Tests for the command line entry point and the graph coordinator.
"""

import json

import pytest

from nodeflow.config import ConfigLoader
from nodeflow.runtime import GraphCoordinator
from nodeflow.runtime import main as cli


@pytest.fixture
def offline_registry(monkeypatch, registry):
    monkeypatch.setattr(cli, "setup_node_registry", lambda settings: registry)
    return registry


def test_parse_inputs():
    assert cli.parse_inputs(['gen={"prompt": "hi"}', "name=plain text", "n=3"]) == {
        "gen": {"prompt": "hi"},
        "name": "plain text",
        "n": 3,
    }

    with pytest.raises(ValueError):
        cli.parse_inputs(["no-separator"])


def test_list(graph_dir, capsys):
    assert cli.main(["--graph-dir", str(graph_dir), "list"]) == cli.EXIT_OK
    assert capsys.readouterr().out.split() == ["cyclic", "greet", "hello"]


def test_run_hello(graph_dir, offline_registry, capsys):
    code = cli.main(["--graph-dir", str(graph_dir), "run", "hello"])

    assert code == cli.EXIT_OK
    output = json.loads(capsys.readouterr().out)
    assert output["sinks"] == {"helloWorld": {"output": "Hello, world!"}}
    assert "report" not in output


def test_run_greet_with_inputs(graph_dir, offline_registry, capsys):
    code = cli.main([
        "--graph-dir", str(graph_dir),
        "run", "greet", "-i", 'gen={"prompt": "hi"}', "-s", "echo", "--report",
    ])

    assert code == cli.EXIT_OK
    output = json.loads(capsys.readouterr().out)
    assert output["sinks"]["echo"]["output"] == "mocked completion"
    assert output["report"]["gen"]["status"] == "succeeded"


def test_failed_run_exit_code(graph_dir, offline_registry, capsys):
    code = cli.main(["--graph-dir", str(graph_dir), "run", "greet", "-i", 'gen={"prompt": 1}'])

    assert code == cli.EXIT_RUN_FAILED
    assert json.loads(capsys.readouterr().out)["ok"] is False


def test_order(graph_dir, offline_registry, capsys):
    assert cli.main(["--graph-dir", str(graph_dir), "order", "greet"]) == cli.EXIT_OK
    assert capsys.readouterr().out.splitlines() == ["0: gen", "1: echo"]


def test_show(graph_dir, capsys):
    assert cli.main(["--graph-dir", str(graph_dir), "show", "greet"]) == cli.EXIT_OK
    assert "name: greet" in capsys.readouterr().out


def test_invalid_graphs_exit_code(graph_dir, offline_registry, capsys):
    assert cli.main(["--graph-dir", str(graph_dir), "run", "missing"]) == cli.EXIT_INVALID_GRAPH
    capsys.readouterr()

    assert cli.main(["--graph-dir", str(graph_dir), "run", "cyclic"]) == cli.EXIT_INVALID_GRAPH
    error = json.loads(capsys.readouterr().out)["error"]
    assert error["type"] == "CycleError"


def test_unknown_sink_exit_code(graph_dir, offline_registry, capsys):
    code = cli.main(["--graph-dir", str(graph_dir), "run", "hello", "-s", "nope"])

    assert code == cli.EXIT_INVALID_GRAPH
    assert "nope" in json.loads(capsys.readouterr().out)["error"]["message"]


@pytest.mark.asyncio
async def test_coordinator_metrics(graph_dir, registry):
    coordinator = GraphCoordinator.from_loader("greet", ConfigLoader(graph_dir), registry)

    await coordinator.run({"gen": {"prompt": "hi"}})
    await coordinator.run({"gen": {"prompt": 5}})

    metrics = coordinator.get_metrics()
    assert metrics["runs"] == 2
    assert metrics["failed_runs"] == 1
    assert metrics["topological_order"] == ["gen", "echo"]
    assert metrics["connections"] == 1
