"""
Hello World Node

Pure source node producing a fixed greeting.
"""

from nodeflow.contracts import string, void
from nodeflow.dag import Node, NodeKind, NodeSpec

GREETING = "Hello, world!"


def create_hello_world_node(spec: NodeSpec) -> Node:
    """
    Factory for the registry.

    Params:
        greeting: Overrides the default greeting text
    """
    greeting = spec.params.get("greeting", GREETING)
    return Node(
        name=spec.name,
        kind=NodeKind.PURE,
        input_schema=void(),
        output_schema=string(),
        execute=lambda _value: greeting,
        description="Outputs a greeting",
    )


hello_world_node = create_hello_world_node(NodeSpec(name="helloWorld", type="helloWorld"))
