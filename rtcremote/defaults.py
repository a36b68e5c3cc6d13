"""Default labels, ports and environment-derived settings."""

from __future__ import annotations

import os
import socket

AUDIO_LABEL = "audio_label"
VIDEO_LABEL = "video_label"
STREAM_ID = "stream_id"
DEFAULT_SERVER_PORT = 8888
DEFAULT_STUN_SERVER = "stun:stun.l.google.com:19302"


def get_env_var_or_default(name: str, default: str) -> str:
    """Return the environment variable ``name``, or ``default`` if unset or empty."""
    return os.environ.get(name) or default


def get_peer_connection_string() -> str:
    """ICE server URI, taken from WEBRTC_CONNECT when set."""
    return get_env_var_or_default("WEBRTC_CONNECT", DEFAULT_STUN_SERVER)


def get_default_server_name() -> str:
    """Signaling server host, taken from WEBRTC_SERVER when set."""
    return get_env_var_or_default("WEBRTC_SERVER", "localhost")


def get_peer_name() -> str:
    """Name announced to the signaling server, in the form user@host."""
    user = get_env_var_or_default("USERNAME", "user")
    try:
        host = socket.gethostname()
    except OSError:
        host = "host"
    return f"{user}@{host}"