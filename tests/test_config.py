"""
Tests for graph documents, the config loader and settings.
"""

import pytest

from nodeflow.config import ConfigLoader, GraphConfig, Settings
from nodeflow.dag import NodeKind
from nodeflow.errors import GraphConfigError

from .conftest import GREET_YAML


def test_parse_graph_document():
    config = GraphConfig.from_yaml(GREET_YAML)

    assert config.name == "greet"
    assert [n.name for n in config.nodes] == ["gen", "echo"]
    assert config.nodes[0].kind is NodeKind.IO
    conn = config.connections[0]
    assert (conn.from_node, conn.from_output, conn.to_node, conn.to_input) == ("gen", "completion", "echo", "text")


def test_build_graph_from_document(registry):
    graph = GraphConfig.from_yaml(GREET_YAML).build(registry)

    assert graph.name == "greet"
    assert graph.nodes["gen"].kind is NodeKind.IO
    assert graph.nodes["gen"].node_type == "textCompletion"
    assert graph.upstream("echo") == {"gen"}


def test_round_trip_preserves_topology(registry):
    original = GraphConfig.from_yaml(GREET_YAML)
    graph = original.build(registry)

    text = GraphConfig.from_graph(graph).to_yaml()
    restored = GraphConfig.from_yaml(text)

    assert restored.name == original.name
    assert restored.nodes == original.nodes
    assert restored.connections == original.connections
    assert restored.build(registry).connections == graph.connections


def test_to_yaml_uses_document_field_names():
    text = GraphConfig.from_yaml(GREET_YAML).to_yaml()

    assert "from: gen" in text
    assert "to_input: text" in text
    assert "from_node" not in text


def test_unnamed_channels_omitted_from_yaml():
    config = GraphConfig.from_yaml(
        "name: g\nnodes:\n  - {name: a, type: helloWorld}\n  - {name: b, type: echo}\n"
        "connections:\n  - {from: a, to: b}\n"
    )

    text = config.to_yaml()

    assert "from_output" not in text
    assert GraphConfig.from_yaml(text).connections[0].to_input is None


def test_invalid_yaml_rejected():
    with pytest.raises(GraphConfigError):
        GraphConfig.from_yaml("name: [unclosed")


def test_document_shape_checked():
    with pytest.raises(GraphConfigError):
        GraphConfig.from_yaml("name: g\nnodes:\n  - {name: a}\n")


def test_duplicate_node_names_rejected():
    with pytest.raises(GraphConfigError, match="Duplicate node name"):
        GraphConfig.from_yaml("name: g\nnodes:\n  - {name: a, type: echo}\n  - {name: a, type: echo}\n")


def test_declared_kind_must_match(registry):
    config = GraphConfig.from_yaml("name: g\nnodes:\n  - {name: e, type: echo, kind: io}\n")

    with pytest.raises(GraphConfigError, match="declared as io"):
        config.build(registry)


def test_unknown_node_type(registry):
    config = GraphConfig.from_yaml("name: g\nnodes:\n  - {name: e, type: nope}\n")

    with pytest.raises(GraphConfigError, match="Unknown node type"):
        config.build(registry)


def test_dangling_connection(registry):
    config = GraphConfig.from_yaml(
        "name: g\nnodes:\n  - {name: e, type: echo}\nconnections:\n  - {from: ghost, to: e, to_input: text}\n"
    )

    with pytest.raises(GraphConfigError, match="unknown node"):
        config.build(registry)


def test_node_params_reach_factory(registry):
    config = GraphConfig.from_yaml(
        "name: g\nnodes:\n  - {name: hi, type: helloWorld, params: {greeting: Howdy}}\n"
    )

    graph = config.build(registry)

    assert graph.nodes["hi"].execute(None) == "Howdy"


# ---- Loader ----
def test_loader_lists_and_loads(graph_dir):
    loader = ConfigLoader(graph_dir)

    assert loader.list_graphs() == ["cyclic", "greet", "hello"]
    assert loader.load("hello").nodes[0].name == "helloWorld"


def test_loader_missing_graph(graph_dir):
    with pytest.raises(GraphConfigError, match="No graph document"):
        ConfigLoader(graph_dir).load("missing")


def test_loader_missing_directory(tmp_path):
    assert ConfigLoader(tmp_path / "nope").list_graphs() == []


def test_loader_save(tmp_path):
    loader = ConfigLoader(tmp_path / "graphs")
    config = GraphConfig.from_yaml(GREET_YAML)

    path = loader.save(config)

    assert path.name == "greet.yaml"
    assert loader.load("greet").connections == config.connections


# ---- Settings ----
def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("NODEFLOW_GRAPH_DIR", str(tmp_path))
    monkeypatch.setenv("NODEFLOW_LOG_LEVEL", "debug")
    monkeypatch.setenv("NODEFLOW_MAX_CONCURRENCY", "4")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    settings = Settings.from_env()

    assert settings.graph_dir == tmp_path
    assert settings.log_level == "DEBUG"
    assert settings.max_concurrency == 4
    assert settings.provider_api_key == "sk-test"


def test_settings_defaults(monkeypatch):
    for name in ("NODEFLOW_GRAPH_DIR", "NODEFLOW_MAX_CONCURRENCY", "NODEFLOW_PROVIDER_MODEL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert str(settings.graph_dir) == "graphs"
    assert settings.max_concurrency is None
    assert settings.provider_model == "gpt-4o-mini"
