"""
Echo Node

Pure node passing its text input through unchanged.
"""

from typing import Any, Dict

from nodeflow.contracts import record, string
from nodeflow.dag import Node, NodeKind, NodeSpec

ECHO_INPUT = record({"text": string()}, name="EchoInput")


def echo(value: Dict[str, Any]) -> str:
    return value["text"]


def create_echo_node(spec: NodeSpec) -> Node:
    return Node(
        name=spec.name,
        kind=NodeKind.PURE,
        input_schema=ECHO_INPUT,
        output_schema=string(),
        execute=echo,
        description="Returns the text input unchanged",
    )


echo_node = create_echo_node(NodeSpec(name="echo", type="echo"))
