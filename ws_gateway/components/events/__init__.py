"""
Event handling components.

Event names, outbound frame construction and inbound payload validation.
"""

from ws_gateway.components.events.types import (
    InboundEvent,
    OutboundEvent,
    InboundFrame,
    InvalidFrame,
    frame,
    parse_frame,
)

__all__ = [
    "InboundEvent",
    "OutboundEvent",
    "InboundFrame",
    "InvalidFrame",
    "frame",
    "parse_frame",
]
