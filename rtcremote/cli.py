"""Command line entry point: sign in to a signaling server and follow peers."""

from __future__ import annotations

import argparse
import logging
import sys

from .defaults import DEFAULT_SERVER_PORT, get_peer_name
from .peer_connection_client import PeerConnectionClient
from .signaling import SignalingSession
from .transport import AsyncTcpSocket, EventLoop

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtcremote", description="Peer connection signaling client.")
    parser.add_argument("--autoconnect", action="store_true",
                        help="Connect to the server without user intervention.")
    parser.add_argument("--server", default="localhost",
                        help="The server to connect to.")
    parser.add_argument("--port", type=int, default=DEFAULT_SERVER_PORT,
                        help="The port on which the server is listening.")
    parser.add_argument("--autocall", action="store_true",
                        help="Call the first available other client on the server "
                             "without user intervention. Set this on only one of "
                             "the two clients.")
    parser.add_argument("--force_fieldtrials", default="",
                        help="Field trials in effect, separated by \"/\".")
    return parser


class _CliSession(SignalingSession):
    def __init__(self, client: PeerConnectionClient, loop: EventLoop, autocall: bool) -> None:
        super().__init__(client)
        self._loop = loop
        self._autocall = autocall
        self.failed = False

    def on_signed_in(self) -> None:
        peers = self._client.peers()
        print(f"Signed in as peer {self._client.id()}")
        for peer_id, name in sorted(peers.items()):
            print(f"  {peer_id}: {name}")
        if self._autocall and peers and not self.connection_active():
            self.connect_to_peer(min(peers))

    def on_peer_connected(self, peer_id: int, name: str) -> None:
        print(f"Peer connected: {peer_id}: {name}")

    def on_disconnected(self) -> None:
        super().on_disconnected()
        self._loop.stop()

    def on_server_connection_failure(self) -> None:
        print(f"Failed to connect to {self.server}", file=sys.stderr)
        self.failed = True
        self._loop.stop()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.force_fieldtrials:
        log.info("Field trials: %s", args.force_fieldtrials)
    loop = EventLoop()
    client = PeerConnectionClient(lambda family: AsyncTcpSocket(loop, family),
                                  loop.call_later)
    session = _CliSession(client, loop, args.autocall)
    session.server = args.server
    client.connect(args.server, args.port, get_peer_name())
    if session.failed:
        return 1
    try:
        loop.run()
    except KeyboardInterrupt:
        pass
    finally:
        session.disconnect_from_current_peer()
        if client.is_connected():
            client.sign_out()
    return 1 if session.failed else 0