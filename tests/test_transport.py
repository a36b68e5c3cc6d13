import socket
import time

from rtcremote.transport import AsyncTcpSocket, EventLoop, SocketState


def _spin(loop, cond, limit=3.0):
    deadline = time.monotonic() + limit
    while not cond() and time.monotonic() < deadline:
        loop.run_once(0.05)
    return cond()


def test_call_later_runs_in_order():
    loop = EventLoop()
    seen = []
    loop.call_later(0.02, lambda: seen.append("b"))
    loop.call_later(0.0, lambda: seen.append("a"))
    assert _spin(loop, lambda: len(seen) == 2)
    assert seen == ["a", "b"]


def test_cancelled_timer_does_not_fire():
    loop = EventLoop()
    seen = []
    handle = loop.call_later(0.0, lambda: seen.append(1))
    handle.cancel()
    loop.call_later(0.01, lambda: seen.append(2))
    assert _spin(loop, lambda: 2 in seen)
    assert seen == [2]


def test_run_stops():
    loop = EventLoop()
    seen = []

    def stop():
        seen.append("stop")
        loop.stop()

    loop.call_later(0.01, stop)
    loop.call_later(5.0, lambda: seen.append("late"))
    start = time.monotonic()
    loop.run()
    assert seen == ["stop"]
    assert time.monotonic() - start < 2.0


def test_connect_send_and_receive():
    server = socket.socket()
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    loop = EventLoop()
    client = AsyncTcpSocket(loop, socket.AF_INET)
    received = bytearray()
    closed = []
    client.on_connect = lambda s: s.send(b"ping")
    client.on_read = lambda s: received.extend(s.recv(100))
    client.on_close = lambda s, err: closed.append(err)
    client.connect(server.getsockname())
    assert client.state is SocketState.CONNECTING
    server.settimeout(3)
    conn, _ = server.accept()
    assert _spin(loop, lambda: client.state is SocketState.CONNECTED)
    conn.settimeout(3)
    assert conn.recv(10) == b"ping"
    conn.sendall(b"pong")
    assert _spin(loop, lambda: bytes(received) == b"pong")
    conn.close()
    assert _spin(loop, lambda: closed == [0])
    assert client.state is SocketState.CLOSED
    server.close()


def test_refused_connection_reports_error():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    address = probe.getsockname()
    probe.close()
    loop = EventLoop()
    client = AsyncTcpSocket(loop)
    errors = []
    client.on_close = lambda s, err: errors.append(err)
    try:
        client.connect(address)
    except OSError as exc:
        errors.append(exc.errno)
    assert _spin(loop, lambda: bool(errors))
    assert errors[0] != 0
    assert client.state is SocketState.CLOSED


def test_recv_on_closed_socket_is_empty():
    client = AsyncTcpSocket(EventLoop())
    assert client.recv(10) == b""
    assert client.send(b"x") == 0