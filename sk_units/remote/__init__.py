"""Server access: metadata fetch and the live update channel."""

from sk_units.remote.channel import LiveUpdateChannel, fetch_metadata, ws_url

__all__ = ["LiveUpdateChannel", "fetch_metadata", "ws_url"]
