"""
WebRTC signaling relay.
"""

from ws_gateway.components.signaling.relay import SignalKind, SignalingRelay

__all__ = ["SignalKind", "SignalingRelay"]
