"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from nodeflow.adapters import InMemoryRecordStore, StaticIdentityProvider, StaticTextProvider
from nodeflow.dag import NodeRegistry
from nodes import register_builtin_nodes

HELLO_YAML = """\
name: hello
nodes:
  - name: helloWorld
    type: helloWorld
    kind: pure
"""

GREET_YAML = """\
name: greet
description: Completes a prompt and echoes the completion
nodes:
  - name: gen
    type: textCompletion
    kind: io
  - name: echo
    type: echo
    kind: pure
connections:
  - from: gen
    from_output: completion
    to: echo
    to_input: text
"""

CYCLIC_YAML = """\
name: cyclic
nodes:
  - name: a
    type: echo
  - name: b
    type: echo
connections:
  - from: a
    to: b
    to_input: text
  - from: b
    to: a
    to_input: text
"""


@pytest.fixture
def provider():
    """Text provider returning a fixed completion."""
    return StaticTextProvider("mocked completion")


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def registry(provider, store):
    """Registry with the built-in nodes bound to test collaborators."""
    return register_builtin_nodes(
        NodeRegistry(),
        provider=provider,
        store=store,
        identity=StaticIdentityProvider("user-1"),
    )


@pytest.fixture
def graph_dir(tmp_path) -> Path:
    """Directory with sample graph documents."""
    (tmp_path / "hello.yaml").write_text(HELLO_YAML)
    (tmp_path / "greet.yaml").write_text(GREET_YAML)
    (tmp_path / "cyclic.yaml").write_text(CYCLIC_YAML)
    return tmp_path
