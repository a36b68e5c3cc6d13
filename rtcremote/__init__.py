"""Signaling server client, peer message parsing and remote-control message codec."""

__version__ = "0.1.0"