"""
Relay Module - same-origin forwarding endpoint for storage downloads.
"""

from ogdrive.relay.app import Relay, RelayConfig, create_relay_app

__all__ = ["Relay", "RelayConfig", "create_relay_app"]
