"""
Text Completion Node

IO node sending a prompt to a text-generation provider and returning the
completion.

Node contract:
    - Input: {prompt: string, temperature: number = 0.7,
              systemPrompt: string = "You are a helpful assistant."}
    - Output: {completion: string}
    - Failure: ProviderError from the provider, unchanged
"""

from typing import Any, Dict, Optional
import logging

from nodeflow.adapters import DEFAULT_SYSTEM_PROMPT, CompletionOptions, TextProvider
from nodeflow.contracts import field, number, record, string
from nodeflow.dag import Node, NodeKind, NodeSpec

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7

COMPLETION_INPUT = record(
    {
        "prompt": field(string(), description="The prompt to send to the model"),
        "temperature": field(number(), default=DEFAULT_TEMPERATURE,
                             description="Sampling temperature (typically between 0 and 1)"),
        "systemPrompt": field(string(), default=DEFAULT_SYSTEM_PROMPT,
                              description="System prompt for the model"),
    },
    name="TextCompletionInput",
)

COMPLETION_OUTPUT = record(
    {"completion": field(string(), description="The generated completion text")},
    name="TextCompletionOutput",
)


class TextCompletion:
    """
    Callable execute function bound to a provider.

    Node Protocol:
        - Inputs: validated COMPLETION_INPUT record (defaults applied)
        - Outputs: {"completion": str}
    """

    def __init__(self, provider: TextProvider, model: Optional[str] = None):
        self.provider = provider
        self.model = model

    async def __call__(self, value: Dict[str, Any]) -> Dict[str, str]:
        options = CompletionOptions(
            temperature=value["temperature"],
            system_prompt=value["systemPrompt"],
            model=self.model,
        )
        text = await self.provider.complete(value["prompt"], options)
        logger.debug(f"Completion received ({len(text)} characters)")
        return {"completion": text}


async def _not_configured(value: Dict[str, Any]) -> Dict[str, str]:
    raise RuntimeError("No text provider configured for textCompletion")


def create_text_completion_node(spec: NodeSpec, provider: Optional[TextProvider] = None) -> Node:
    """
    Factory for the registry; bind provider with functools.partial.

    Params:
        model: Overrides the provider's default model
    """
    if provider is None:
        execute = _not_configured
    else:
        execute = TextCompletion(provider, spec.params.get("model"))
    return Node(
        name=spec.name,
        kind=NodeKind.IO,
        input_schema=COMPLETION_INPUT,
        output_schema=COMPLETION_OUTPUT,
        execute=execute,
        description="Sends a prompt to the text-generation provider",
    )
