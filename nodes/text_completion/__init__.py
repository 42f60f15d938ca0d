"""
Text Completion Node

Prompt in, completion out, via an external provider.
"""

from .node import (
    COMPLETION_INPUT,
    COMPLETION_OUTPUT,
    DEFAULT_TEMPERATURE,
    TextCompletion,
    create_text_completion_node,
)

__all__ = [
    "COMPLETION_INPUT",
    "COMPLETION_OUTPUT",
    "DEFAULT_TEMPERATURE",
    "TextCompletion",
    "create_text_completion_node",
]
