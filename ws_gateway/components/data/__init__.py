"""
Data access components.

Async persistence facade used by the presence core.
"""

from ws_gateway.components.data.chat_store import ChatStore

__all__ = ["ChatStore"]
