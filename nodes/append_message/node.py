"""
Append Message Node

IO node storing a message record in a thread through the record store.
The current user id is stamped on the record when an identity provider is
configured.
"""

import time
from typing import Any, Dict, Optional
import logging

from nodeflow.adapters import IdentityProvider, RecordStore
from nodeflow.contracts import record, string
from nodeflow.dag import Node, NodeKind, NodeSpec

logger = logging.getLogger(__name__)

MESSAGE_INPUT = record({"threadId": string(), "content": string()}, name="AppendMessageInput")
MESSAGE_OUTPUT = record({"messageId": string()}, name="AppendMessageOutput")


class AppendMessage:
    """Execute function bound to a record store and optional identity provider"""

    def __init__(self, store: RecordStore, identity: Optional[IdentityProvider] = None):
        self.store = store
        self.identity = identity

    def __call__(self, value: Dict[str, Any]) -> Dict[str, str]:
        message = {
            "kind": "message",
            "threadId": value["threadId"],
            "content": value["content"],
            "createdAt": int(time.time() * 1000),
        }
        if self.identity is not None:
            message["userId"] = self.identity.current_user_id()

        message_id = self.store.append(message)
        logger.debug(f"Appended message {message_id} to thread {value['threadId']}")
        return {"messageId": message_id}


def create_append_message_node(
    spec: NodeSpec,
    store: RecordStore,
    identity: Optional[IdentityProvider] = None,
) -> Node:
    """Factory for the registry; bind store/identity with functools.partial"""
    return Node(
        name=spec.name,
        kind=NodeKind.IO,
        input_schema=MESSAGE_INPUT,
        output_schema=MESSAGE_OUTPUT,
        execute=AppendMessage(store, identity),
        description="Stores a message in a thread",
    )
