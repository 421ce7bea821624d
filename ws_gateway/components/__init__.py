"""
WebSocket Gateway Components.

Organized into domain-specific modules:
- core/       - Foundational components (constants, context, errors)
- connection/ - Connection bookkeeping (registry, heartbeat, rate limiting)
- presence/   - Room membership and voice presence trackers
- signaling/  - WebRTC signaling relay
- broadcast/  - Presence snapshots and room-scoped notifications
- events/     - Event names and inbound payload validation
- data/       - Persistence facade (ChatStore)
- endpoints/  - WebSocket endpoints (base, mixins, handlers)

Import from the specific submodules, e.g.:
    from ws_gateway.components.presence.voice import VoicePresenceTracker
"""
