"""A small single-threaded event loop with non-blocking TCP sockets."""

from __future__ import annotations

import errno
import heapq
import itertools
import selectors
import socket
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

_IN_PROGRESS = {0, errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN, 10035}


class SocketState(Enum):
    CLOSED = "closed"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(order=True)
class _Timer:
    when: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class EventLoop:
    """Dispatches socket readiness and delayed callbacks on one thread."""

    def __init__(self) -> None:
        self._selector = selectors.DefaultSelector()
        self._timers: list[_Timer] = []
        self._seq = itertools.count()
        self._stopped = False

    def call_later(self, delay: float, callback: Callable[[], None]) -> _Timer:
        """Run ``callback`` after ``delay`` seconds; the result can be cancelled."""
        timer = _Timer(time.monotonic() + max(0.0, delay), next(self._seq), callback)
        heapq.heappush(self._timers, timer)
        return timer

    def _watch(self, sock: socket.socket, events: int, handler: Callable[[int], None]) -> None:
        try:
            self._selector.modify(sock, events, handler)
        except KeyError:
            self._selector.register(sock, events, handler)

    def _unwatch(self, sock: socket.socket) -> None:
        try:
            self._selector.unregister(sock)
        except (KeyError, ValueError):
            pass

    def run_once(self, timeout: float | None) -> None:
        """Wait up to ``timeout`` seconds (None: until something is due) and dispatch."""
        while self._timers and self._timers[0].cancelled:
            heapq.heappop(self._timers)
        wait = timeout
        if self._timers:
            until = max(0.0, self._timers[0].when - time.monotonic())
            wait = until if wait is None else min(wait, until)
        if self._selector.get_map():
            for key, mask in self._selector.select(wait):
                key.data(mask)
        elif wait is not None and wait > 0:
            time.sleep(wait)
        now = time.monotonic()
        while self._timers and self._timers[0].when <= now:
            timer = heapq.heappop(self._timers)
            if not timer.cancelled:
                timer.callback()

    def run(self) -> None:
        """Dispatch events until :meth:`stop` is called."""
        self._stopped = False
        while not self._stopped:
            self.run_once(0.1)

    def stop(self) -> None:
        self._stopped = True


class AsyncTcpSocket:
    """Non-blocking TCP client socket reporting events through callbacks.

    ``on_connect(sock)``, ``on_read(sock)`` and ``on_close(sock, err)`` may be
    assigned by the owner. The socket may be connected again after closing.
    """

    def __init__(self, loop: EventLoop, family: int = socket.AF_INET) -> None:
        self._loop = loop
        self._family = family
        self._sock: socket.socket | None = None
        self._eof = False
        self.state = SocketState.CLOSED
        self.on_connect: Callable[["AsyncTcpSocket"], None] | None = None
        self.on_read: Callable[["AsyncTcpSocket"], None] | None = None
        self.on_close: Callable[["AsyncTcpSocket", int], None] | None = None

    def connect(self, address: tuple) -> None:
        """Start connecting; raises OSError if the attempt fails at once."""
        self.close()
        sock = socket.socket(self._family, socket.SOCK_STREAM)
        sock.setblocking(False)
        err = sock.connect_ex(address)
        if err not in _IN_PROGRESS:
            sock.close()
            raise OSError(err, f"connect to {address!r} failed")
        self._sock = sock
        self._eof = False
        self.state = SocketState.CONNECTING
        self._loop._watch(sock, selectors.EVENT_WRITE, self._on_event)

    def _on_event(self, mask: int) -> None:
        if self._sock is None:
            return
        if self.state is SocketState.CONNECTING:
            if not mask & selectors.EVENT_WRITE:
                return
            err = self._sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
            if err:
                self.close()
                if self.on_close:
                    self.on_close(self, err)
                return
            self.state = SocketState.CONNECTED
            self._loop._watch(self._sock, selectors.EVENT_READ, self._on_event)
            if self.on_connect:
                self.on_connect(self)
        elif mask & selectors.EVENT_READ:
            if self.on_read:
                self.on_read(self)
            else:
                self.recv(0xFFFF)
            if self._eof and self.state is not SocketState.CLOSED:
                self.close()
                if self.on_close:
                    self.on_close(self, 0)

    def send(self, data: bytes) -> int:
        """Send what the socket accepts now and return the byte count."""
        if self._sock is None or self.state is not SocketState.CONNECTED:
            return 0
        try:
            return self._sock.send(data)
        except BlockingIOError:
            return 0

    def recv(self, size: int) -> bytes:
        """Return available bytes, or b"" when none are waiting or the peer closed."""
        if self._sock is None or self.state is not SocketState.CONNECTED:
            return b""
        try:
            chunk = self._sock.recv(size)
        except BlockingIOError:
            return b""
        except OSError:
            self._eof = True
            return b""
        if not chunk:
            self._eof = True
        return chunk

    def close(self) -> None:
        """Close the socket without reporting it through ``on_close``."""
        if self._sock is not None:
            self._loop._unwatch(self._sock)
            self._sock.close()
            self._sock = None
        self.state = SocketState.CLOSED