"""
Presence components: text room membership and voice presence.
"""

from ws_gateway.components.presence.rooms import RoomMembershipTracker
from ws_gateway.components.presence.voice import VoicePresence, VoicePresenceTracker

__all__ = [
    "RoomMembershipTracker",
    "VoicePresence",
    "VoicePresenceTracker",
]
