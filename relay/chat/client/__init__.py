"""Client-side decoding of the relay's line-delimited event stream."""
from relay.chat.client.consumer import ChatStreamConsumer, FinishedMessage, ToolActivity
from relay.chat.client.http_client import AuthenticationRequired, Conversation, RelayClient
from relay.chat.client.splitter import LineSplitter

__all__ = [
    "AuthenticationRequired",
    "ChatStreamConsumer",
    "Conversation",
    "FinishedMessage",
    "LineSplitter",
    "RelayClient",
    "ToolActivity",
]
