"""Client for the peer-connection signaling server's HTTP long-poll protocol."""

from __future__ import annotations

import errno
import logging
import socket
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable

from .defaults import DEFAULT_SERVER_PORT
from .transport import SocketState

log = logging.getLogger(__name__)

BYE_MESSAGE = "BYE"
RECONNECT_DELAY = 2.0
_CONN_REFUSED = {errno.ECONNREFUSED, 10061}


class State(Enum):
    NOT_CONNECTED = auto()
    RESOLVING = auto()
    SIGNING_IN = auto()
    CONNECTED = auto()
    SIGNING_OUT_WAITING = auto()
    SIGNING_OUT = auto()


class PeerConnectionClientObserver:
    """Receives client events; every method does nothing by default."""

    def on_signed_in(self) -> None: ...

    def on_disconnected(self) -> None: ...

    def on_peer_connected(self, peer_id: int, name: str) -> None: ...

    def on_peer_disconnected(self, peer_id: int) -> None: ...

    def on_message_from_peer(self, peer_id: int, message: str) -> None: ...

    def on_message_sent(self, err: int) -> None: ...

    def on_server_connection_failure(self) -> None: ...


@dataclass(frozen=True)
class PeerEntry:
    name: str
    id: int
    connected: bool


def _atoi(text: str) -> int:
    text = text.lstrip(" \t\n\r\v\f")
    end = 1 if text[:1] in ("+", "-") else 0
    while end < len(text) and text[end].isdigit() and text[end].isascii():
        end += 1
    try:
        return int(text[:end])
    except ValueError:
        return 0


def parse_entry(entry: str) -> PeerEntry | None:
    """Parse ``name,id,connected``; None when no name can be read."""
    first = entry.find(",")
    if first < 0:
        return None
    name = entry[:first]
    peer_id = _atoi(entry[first + 1:])
    second = entry.find(",", first + 1)
    connected = second >= 0 and _atoi(entry[second + 1:]) != 0
    return PeerEntry(name, peer_id, connected) if name else None


def get_response_status(response: str) -> int:
    """Status code following the first space, or -1 if there is none."""
    pos = response.find(" ")
    return -1 if pos < 0 else _atoi(response[pos + 1:])


def get_header_value(data: str, eoh: int, pattern: str) -> str | None:
    """Text after ``pattern`` up to the line end, if found before ``eoh``."""
    found = data.find(pattern)
    if found < 0 or found >= eoh:
        return None
    begin = found + len(pattern)
    end = data.find("\r\n", begin)
    if end < 0:
        end = eoh
    return data[begin:end]


def get_header_int(data: str, eoh: int, pattern: str) -> int | None:
    """Integer value after ``pattern``, if found before ``eoh``."""
    found = data.find(pattern)
    if found < 0 or found >= eoh:
        return None
    return _atoi(data[found + len(pattern):])


def _text(raw: bytes | bytearray) -> str:
    return bytes(raw).decode("latin-1")


def _utf8(text: str) -> str:
    return text.encode("latin-1").decode("utf-8", "replace")


class PeerConnectionClient:
    """Signs in to the server, tracks peers and relays messages.

    ``socket_factory(family)`` returns sockets with ``connect``, ``send``,
    ``recv``, ``close``, a ``state`` and assignable ``on_connect``,
    ``on_read`` and ``on_close`` callbacks. ``scheduler(delay, callback)``
    runs a callback later.
    """

    def __init__(self, socket_factory: Callable[[int], Any],
                 scheduler: Callable[[float, Callable[[], None]], Any]) -> None:
        self._socket_factory = socket_factory
        self._scheduler = scheduler
        self._observer: PeerConnectionClientObserver | None = None
        self._address: tuple | None = None
        self._family = socket.AF_INET
        self._control = None
        self._hanging = None
        self._onconnect_data = b""
        self._control_data = bytearray()
        self._notification_data = bytearray()
        self._client_name = ""
        self._peers: dict[int, str] = {}
        self.state = State.NOT_CONNECTED
        self._my_id = -1

    def id(self) -> int:
        return self._my_id

    def is_connected(self) -> bool:
        return self._my_id != -1

    def peers(self) -> dict[int, str]:
        return dict(self._peers)

    def register_observer(self, observer: PeerConnectionClientObserver) -> None:
        if self._observer is not None:
            raise RuntimeError("an observer is already registered")
        self._observer = observer

    @property
    def _cb(self) -> PeerConnectionClientObserver:
        if self._observer is None:
            self._observer = PeerConnectionClientObserver()
        return self._observer

    def connect(self, server: str, port: int, client_name: str) -> None:
        """Resolve ``server`` and start signing in as ``client_name``."""
        if self.state is not State.NOT_CONNECTED:
            log.warning("The client must not be connected before you can call connect()")
            self._cb.on_server_connection_failure()
            return
        if not server or not client_name:
            self._cb.on_server_connection_failure()
            return
        if port <= 0:
            port = DEFAULT_SERVER_PORT
        self._client_name = client_name
        self.state = State.RESOLVING
        try:
            family, _, _, _, sockaddr = socket.getaddrinfo(
                server, port, type=socket.SOCK_STREAM)[0]
        except (OSError, IndexError):
            self.state = State.NOT_CONNECTED
            self._cb.on_server_connection_failure()
            return
        self._family = family
        self._address = sockaddr
        self._do_connect()

    def _do_connect(self) -> None:
        self._control = self._socket_factory(self._family)
        self._hanging = self._socket_factory(self._family)
        self._control.on_connect = self.on_connect
        self._control.on_read = self.on_read
        self._control.on_close = self.on_close
        self._hanging.on_connect = self.on_hanging_get_connect
        self._hanging.on_read = self.on_hanging_get_read
        self._hanging.on_close = self.on_close
        self._onconnect_data = f"GET /sign_in?{self._client_name} HTTP/1.0\r\n\r\n".encode()
        if self._connect_control_socket():
            self.state = State.SIGNING_IN
        else:
            self._cb.on_server_connection_failure()

    def send_to_peer(self, peer_id: int, message: str) -> bool:
        """Post ``message`` to ``peer_id``; False if it cannot be sent now."""
        if self.state is not State.CONNECTED:
            return False
        if not self.is_connected() or peer_id == -1:
            return False
        body = message.encode("utf-8")
        headers = (
            f"POST /message?peer_id={self._my_id}&to={peer_id} HTTP/1.0\r\n"
            f"Content-Length: {len(body)}\r\n"
            "Content-Type: text/plain\r\n"
            "\r\n"
        )
        self._onconnect_data = headers.encode() + body
        return self._connect_control_socket()

    def send_hang_up(self, peer_id: int) -> bool:
        return self.send_to_peer(peer_id, BYE_MESSAGE)

    def is_sending_message(self) -> bool:
        return (self.state is State.CONNECTED
                and self._control.state is not SocketState.CLOSED)

    def sign_out(self) -> bool:
        """Begin signing out; False only if the sign-out request cannot start."""
        if self.state in (State.NOT_CONNECTED, State.SIGNING_OUT):
            return True
        if self._hanging is not None and self._hanging.state is not SocketState.CLOSED:
            self._hanging.close()
        if self._control is None or self._control.state is SocketState.CLOSED:
            self.state = State.SIGNING_OUT
            if self._my_id != -1:
                self._onconnect_data = (
                    f"GET /sign_out?peer_id={self._my_id} HTTP/1.0\r\n\r\n".encode())
                return self._connect_control_socket()
            return True
        self.state = State.SIGNING_OUT_WAITING
        return True

    def close(self) -> None:
        """Drop both connections and forget the session."""
        for sock in (self._control, self._hanging):
            if sock is not None:
                sock.close()
        self._onconnect_data = b""
        self._peers.clear()
        self._my_id = -1
        self.state = State.NOT_CONNECTED

    def _connect_control_socket(self) -> bool:
        try:
            self._control.connect(self._address)
        except OSError:
            self.close()
            return False
        return True

    def on_connect(self, sock) -> None:
        sock.send(self._onconnect_data)
        self._onconnect_data = b""

    def on_hanging_get_connect(self, sock) -> None:
        sock.send(f"GET /wait?peer_id={self._my_id} HTTP/1.0\r\n\r\n".encode())

    def _deliver(self, peer_id: int, message: str) -> None:
        if message == BYE_MESSAGE:
            self._cb.on_peer_disconnected(peer_id)
        else:
            self._cb.on_message_from_peer(peer_id, message)

    def _read_into_buffer(self, sock, buffer: bytearray) -> int | None:
        while chunk := sock.recv(0xFFFF):
            buffer.extend(chunk)
        data = _text(buffer)
        eoh = data.find("\r\n\r\n")
        if eoh < 0:
            return None
        length = get_header_int(data, eoh, "\r\nContent-Length: ")
        if length is None:
            log.error("No content length field specified by the server.")
            return None
        if len(buffer) < eoh + 4 + length:
            return None
        if get_header_value(data, eoh, "\r\nConnection: ") == "close":
            sock.close()
            self.on_close(sock, 0)
        return length

    def _parse_server_response(self, data: str) -> tuple[int, int] | None:
        if get_response_status(data) != 200:
            log.error("Received error from server")
            self.close()
            self._cb.on_disconnected()
            return None
        eoh = data.find("\r\n\r\n")
        if eoh < 0:
            return None
        peer_id = get_header_int(data, eoh, "\r\nPragma: ")
        return (-1 if peer_id is None else peer_id), eoh

    def on_read(self, sock) -> None:
        length = self._read_into_buffer(sock, self._control_data)
        if length is None:
            return
        data = _text(self._control_data)
        parsed = self._parse_server_response(data)
        if parsed is not None:
            peer_id, eoh = parsed
            if self._my_id == -1:
                self._my_id = peer_id
                if length:
                    pos = eoh + 4
                    while pos < len(data):
                        eol = data.find("\n", pos)
                        if eol < 0:
                            break
                        entry = parse_entry(_utf8(data[pos:eol]))
                        if entry is not None and entry.id != self._my_id:
                            self._peers[entry.id] = entry.name
                            self._cb.on_peer_connected(entry.id, entry.name)
                        pos = eol + 1
                self._cb.on_signed_in()
            elif self.state is State.SIGNING_OUT:
                self.close()
                self._cb.on_disconnected()
            elif self.state is State.SIGNING_OUT_WAITING:
                self.sign_out()
        self._control_data.clear()
        if self.state is State.SIGNING_IN:
            self.state = State.CONNECTED
            self._reconnect_hanging()

    def _reconnect_hanging(self) -> None:
        try:
            self._hanging.connect(self._address)
        except OSError as exc:
            log.warning("hanging get connect failed: %s", exc)

    def on_hanging_get_read(self, sock) -> None:
        length = self._read_into_buffer(sock, self._notification_data)
        if length is not None:
            data = _text(self._notification_data)
            parsed = self._parse_server_response(data)
            if parsed is not None:
                peer_id, eoh = parsed
                body = _utf8(data[eoh + 4:])
                if self._my_id == peer_id:
                    entry = parse_entry(body)
                    if entry is not None:
                        if entry.connected:
                            self._peers[entry.id] = entry.name
                            self._cb.on_peer_connected(entry.id, entry.name)
                        else:
                            self._peers.pop(entry.id, None)
                            self._cb.on_peer_disconnected(entry.id)
                else:
                    self._deliver(peer_id, body)
            self._notification_data.clear()
        if (self._hanging is not None and self._hanging.state is SocketState.CLOSED
                and self.state is State.CONNECTED):
            self._reconnect_hanging()

    def on_close(self, sock, err: int) -> None:
        sock.close()
        if err not in _CONN_REFUSED:
            if sock is self._hanging:
                if self.state is State.CONNECTED:
                    self._hanging.close()
                    self._reconnect_hanging()
            else:
                self._cb.on_message_sent(err)
        elif sock is self._control:
            log.warning("Connection refused; retrying in 2 seconds")
            self._scheduler(RECONNECT_DELAY, self._do_connect)
        else:
            self.close()
            self._cb.on_disconnected()