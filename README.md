# rtcremote

`rtcremote` is the signaling side of a peer-to-peer remote desktop session.
It signs in to a simple HTTP signaling server, keeps track of the other
peers signed in there, relays signaling messages between two peers, parses
session descriptions and ICE candidates received from a peer, and encodes
and decodes the small binary control messages (mouse events) that a viewer
sends to the machine it is watching.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Running the client

```
rtcremote --server localhost --port 8888
```

The client signs in to the server under the name `user@host` (see
`USERNAME` below), prints its own peer id and the peers already signed in,
and then prints each peer that connects. It runs until the server drops the
session or it is interrupted with Ctrl-C, after which it hangs up any call
and signs out. The exit status is 1 if the server could not be reached.

Options:

| Option                | Meaning                                                     |
|-----------------------|-------------------------------------------------------------|
| `--server`            | signaling server host (default `localhost`)                 |
| `--port`              | signaling server port (default 8888)                        |
| `--autoconnect`       | accepted for compatibility; the client always signs in at once |
| `--autocall`          | after signing in, start a call with the peer that has the lowest id; set it on only one of the two clients |
| `--force_fieldtrials` | accepted and logged; it has no other effect                 |

Environment variables read by the package:

| Variable         | Read by                                                        |
|------------------|----------------------------------------------------------------|
| `USERNAME`       | `defaults.get_peer_name()`, the `user` half of `user@host` (default `user`) |
| `WEBRTC_SERVER`  | `defaults.get_default_server_name()` (default `localhost`); the command does not use it |
| `WEBRTC_CONNECT` | `defaults.get_peer_connection_string()`, the ICE server URI (default a public STUN server) |

## Using it as a library

### Control messages

Mouse events travel over the data channel as 17-byte records: a type byte,
a big-endian 32-bit action and button, and the position as two
single-precision floats in the range 0 to 1 relative to the remote video.

```python
from rtcremote.controlmsg import (
    ControlMsg, MouseAction, MouseButton, iter_control_msgs,
)

msg = ControlMsg.inject_mouse(MouseAction.MOUSE_MOVE, MouseButton.LEFT, 0.25, 0.75)
payload = msg.serialize()

buffer = bytearray(payload)
for received in iter_control_msgs(buffer):
    print(received)
```

`iter_control_msgs` consumes complete records from the front of the buffer
and leaves any partial record in place, so data arriving in pieces can be
appended and read again later. `take_control_msg` takes a single record,
returning `None` when the buffer holds no complete one.

The byte packing helpers live in `rtcremote.bufferutil`: `pack_u16`,
`pack_u32`, `pack_float` and the sequential `ByteReader`, which raises
`EOFError` when asked for more bytes than remain.

### Peer messages

```python
from rtcremote.messages import (
    parse_peer_message, IceCandidate, SessionDescription, LoopbackOffer,
    SignalingError,
)

try:
    parsed = parse_peer_message(text)
except SignalingError as exc:
    print("ignored:", exc)
else:
    if isinstance(parsed, SessionDescription):
        ...
    elif isinstance(parsed, IceCandidate):
        ...
    elif isinstance(parsed, LoopbackOffer):
        ...
```

`IceCandidate` and `SessionDescription` both have `to_json()` for the reply
direction. `SdpType` lists the accepted description types (`offer`,
`pranswer`, `answer`).

### Signaling server client

`PeerConnectionClient` in `rtcremote.peer_connection_client` implements the
sign-in, long-poll ("hanging get"), message, hang-up and sign-out requests of
the signaling protocol. It takes a socket factory and a scheduler; the
`EventLoop` and `AsyncTcpSocket` in `rtcremote.transport` provide both:

```python
from rtcremote.peer_connection_client import PeerConnectionClient
from rtcremote.transport import AsyncTcpSocket, EventLoop

loop = EventLoop()
client = PeerConnectionClient(lambda family: AsyncTcpSocket(loop, family),
                              loop.call_later)
```

Events are reported to a `PeerConnectionClientObserver`, whose methods do
nothing unless overridden. A refused control connection is retried after two
seconds.

`SignalingSession` in `rtcremote.signaling` is such an observer. It keeps one
call with one peer, sends queued messages to the peer in order and one at a
time, decodes incoming peer messages (returning them and passing them to
`on_remote_message` when set), hangs up with `disconnect_from_current_peer()`,
and collects control messages with `on_data_channel_message()`.

The helpers `parse_entry`, `get_response_status`, `get_header_value` and
`get_header_int` parse the server's plain-text responses and can be used on
their own.

## What the package does not do

`rtcremote` carries signaling only. It does not create peer connections,
negotiate or send audio and video, open data channels, display the remote
screen, capture the local desktop, or inject mouse input into the operating
system. A call started by `SignalingSession.connect_to_peer()` or by
`--autocall` only marks the session as being in a call with that peer; no
offer is generated. Received session descriptions and candidates are handed
back to the caller, and decoded control messages are returned, for other
software to act on.