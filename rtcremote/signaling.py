"""Signaling session state: peer selection, message queueing and control input."""

from __future__ import annotations

import logging
from collections import deque
from enum import IntEnum
from typing import Any, Callable

from .controlmsg import ControlMsg, iter_control_msgs
from .messages import LoopbackOffer, PeerMessage, SignalingError, parse_peer_message
from .peer_connection_client import PeerConnectionClientObserver

log = logging.getLogger(__name__)


class CallbackId(IntEnum):
    MEDIA_CHANNELS_INITIALIZED = 1
    PEER_CONNECTION_CLOSED = 2
    SEND_MESSAGE_TO_PEER = 3
    NEW_TRACK_ADDED = 4
    TRACK_REMOVED = 5


class SignalingSession(PeerConnectionClientObserver):
    """Keeps one call with one peer and relays signaling through ``client``.

    The session registers itself as the client's observer. Messages decoded
    from the peer are returned and, when ``on_remote_message`` is set,
    passed to it as well.
    """

    def __init__(self, client: Any) -> None:
        self._client = client
        self._peer_id = -1
        self._active = False
        self._loopback = False
        self._offer = False
        self._pending: deque[str] = deque()
        self._control_buf = bytearray()
        self.server = ""
        self.on_remote_message: Callable[[PeerMessage], None] | None = None
        client.register_observer(self)

    @property
    def peer_id(self) -> int:
        """Id of the peer in the current call, or -1."""
        return self._peer_id

    @property
    def loopback(self) -> bool:
        return self._loopback

    @property
    def offer(self) -> bool:
        """True when this side started the call."""
        return self._offer

    def connection_active(self) -> bool:
        return self._active

    def reset(self) -> None:
        """Tear down the current call."""
        self._active = False
        self._peer_id = -1
        self._loopback = False

    def _initialize(self) -> None:
        self._active = True

    def _disconnect_from_server(self) -> None:
        if self._client.is_connected():
            self._client.sign_out()

    def _ui_callback(self, msg_id: CallbackId, data: str | None = None) -> None:
        if msg_id is CallbackId.PEER_CONNECTION_CLOSED:
            log.info("PEER_CONNECTION_CLOSED")
            self.reset()
        elif msg_id is CallbackId.SEND_MESSAGE_TO_PEER:
            log.info("SEND_MESSAGE_TO_PEER")
            if data is not None:
                self._pending.append(data)
            if self._pending and not self._client.is_sending_message():
                msg = self._pending.popleft()
                if not self._client.send_to_peer(self._peer_id, msg) and self._peer_id != -1:
                    log.error("SendToPeer failed")
                    self._disconnect_from_server()
            if not self._active:
                self._peer_id = -1
        else:
            raise ValueError(f"unexpected callback {msg_id!r}")

    def on_message_from_peer(self, peer_id: int, message: str) -> PeerMessage | None:
        """Handle a signaling message; returns the decoded message or None."""
        if not self._active:
            self._peer_id = peer_id
            self._initialize()
        elif peer_id != self._peer_id:
            log.warning("Received a message from unknown peer while already in a "
                        "conversation with a different peer.")
            return None
        try:
            parsed = parse_peer_message(message)
        except SignalingError as exc:
            log.warning("%s", exc)
            return None
        if isinstance(parsed, LoopbackOffer):
            self._loopback = True
        log.info("Received %s", type(parsed).__name__)
        if self.on_remote_message is not None:
            self.on_remote_message(parsed)
        return parsed

    def send_message(self, message: str) -> None:
        """Queue ``message`` for the peer; messages leave in order, one at a time."""
        self._ui_callback(CallbackId.SEND_MESSAGE_TO_PEER, message)

    def on_message_sent(self, err: int) -> None:
        self._ui_callback(CallbackId.SEND_MESSAGE_TO_PEER)

    def on_peer_disconnected(self, peer_id: int) -> bool:
        """Returns True when the peer that left was the one in the current call."""
        if peer_id == self._peer_id:
            log.info("Our peer disconnected")
            self._ui_callback(CallbackId.PEER_CONNECTION_CLOSED)
            return True
        return False

    def connect_to_peer(self, peer_id: int) -> None:
        """Start a call with ``peer_id`` as the offering side."""
        if self._active:
            raise RuntimeError("We only support connecting to one peer at a time")
        if peer_id == -1:
            raise ValueError("invalid peer id")
        self._initialize()
        self._peer_id = peer_id
        self._offer = True

    def disconnect_from_current_peer(self) -> None:
        """Hang up the current call, if any."""
        self._offer = False
        if self._active:
            self._client.send_hang_up(self._peer_id)
            self.reset()

    def on_data_channel_message(self, data: bytes) -> list[ControlMsg]:
        """Collect control bytes and return the complete messages received."""
        if self._offer:
            return []
        self._control_buf.extend(data)
        return list(iter_control_msgs(self._control_buf))

    def on_signed_in(self) -> None:
        log.info("Signed in; peers: %s", self._client.peers())

    def on_disconnected(self) -> None:
        log.info("Disconnected")
        self.reset()

    def on_peer_connected(self, peer_id: int, name: str) -> None:
        log.info("Peer connected: %s (%d)", name, peer_id)

    def on_server_connection_failure(self) -> None:
        log.error("Failed to connect to %s", self.server)