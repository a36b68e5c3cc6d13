import pytest

from rtcremote.controlmsg import ControlMsg, MouseAction, MouseButton
from rtcremote.messages import IceCandidate, LoopbackOffer, SdpType, SessionDescription
from rtcremote.signaling import SignalingSession


class FakeClient:
    def __init__(self):
        self.observer = None
        self.sent = []
        self.hangups = []
        self.sending = False
        self.connected = True
        self.send_result = True
        self.sign_outs = 0

    def register_observer(self, observer):
        self.observer = observer

    def send_to_peer(self, peer_id, message):
        self.sent.append((peer_id, message))
        return self.send_result

    def send_hang_up(self, peer_id):
        self.hangups.append(peer_id)
        return True

    def is_sending_message(self):
        return self.sending

    def is_connected(self):
        return self.connected

    def sign_out(self):
        self.sign_outs += 1
        return True

    def peers(self):
        return {}

    def id(self):
        return 1


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def session(client):
    return SignalingSession(client)


CANDIDATE = IceCandidate("audio", 0, "candidate:1 1 udp 1 10.0.0.1 5000 typ host")


def test_registers_as_observer(client, session):
    assert client.observer is session


def test_initially_inactive(session):
    assert session.connection_active() is False
    assert session.peer_id == -1


def test_first_message_starts_call(session):
    result = session.on_message_from_peer(7, CANDIDATE.to_json())
    assert result == CANDIDATE
    assert session.connection_active() is True
    assert session.peer_id == 7


def test_message_from_other_peer_ignored(session):
    session.on_message_from_peer(7, CANDIDATE.to_json())
    assert session.on_message_from_peer(8, CANDIDATE.to_json()) is None
    assert session.peer_id == 7


def test_invalid_message_still_starts_call(session):
    assert session.on_message_from_peer(3, "not json") is None
    assert session.peer_id == 3
    assert session.connection_active() is True


def test_loopback_offer_sets_loopback(session):
    result = session.on_message_from_peer(2, '{"type": "offer-loopback"}')
    assert result == LoopbackOffer()
    assert session.loopback is True


def test_session_description_passed_to_handler(session):
    seen = []
    session.on_remote_message = seen.append
    desc = SessionDescription(SdpType.OFFER, "v=0\r\n")
    result = session.on_message_from_peer(4, desc.to_json())
    assert result == desc
    assert seen == [desc]


def test_send_message_goes_out_when_idle(client, session):
    session.connect_to_peer(5)
    session.send_message("hello")
    assert session.peer_id == 5
    assert session.connection_active() is True
    assert client.sent == [(5, "hello")]


def test_send_message_queued_while_sending(client, session):
    session.connect_to_peer(5)
    client.sending = True
    session.send_message("first")
    session.send_message("second")
    assert client.sent == []
    client.sending = False
    session.on_message_sent(0)
    session.on_message_sent(0)
    assert session.peer_id == 5
    assert client.sent == [(5, "first"), (5, "second")]


def test_send_failure_signs_out(client, session):
    session.connect_to_peer(5)
    client.send_result = False
    session.send_message("x")
    assert session.peer_id == 5
    assert client.sign_outs == 1


def test_send_without_call_resets_peer(client, session):
    client.send_result = False
    session.send_message("x")
    assert client.sent == [(-1, "x")]
    assert client.sign_outs == 0
    assert session.peer_id == -1


def test_our_peer_disconnect_resets(session):
    session.on_message_from_peer(9, CANDIDATE.to_json())
    assert session.on_peer_disconnected(9) is True
    assert session.connection_active() is False
    assert session.peer_id == -1


def test_other_peer_disconnect_keeps_call(session):
    session.on_message_from_peer(9, CANDIDATE.to_json())
    assert session.on_peer_disconnected(10) is False
    assert session.peer_id == 9


def test_connect_twice_raises(session):
    session.connect_to_peer(1)
    with pytest.raises(RuntimeError):
        session.connect_to_peer(2)


def test_disconnect_sends_hang_up(client, session):
    session.connect_to_peer(6)
    session.disconnect_from_current_peer()
    assert client.hangups == [6]
    assert session.connection_active() is False
    assert session.offer is False


def test_disconnect_without_call_sends_nothing(client, session):
    session.disconnect_from_current_peer()
    assert session.connection_active() is False
    assert session.peer_id == -1
    assert session.offer is False
    assert client.hangups == []


def test_data_channel_messages_decoded(session):
    msg = ControlMsg.inject_mouse(MouseAction.MOUSE_MOVE, MouseButton.LEFT, 0.5, 0.25)
    wire = msg.serialize()
    assert session.on_data_channel_message(wire[:5]) == []
    assert session.on_data_channel_message(wire[5:] + wire) == [msg, msg]


def test_offerer_ignores_data_channel(session):
    session.connect_to_peer(2)
    msg = ControlMsg.inject_mouse(MouseAction.MOUSE_MOVE, MouseButton.LEFT, 0.5, 0.5)
    assert session.on_data_channel_message(msg.serialize()) == []


def test_on_disconnected_resets(session):
    session.connect_to_peer(3)
    session.on_disconnected()
    assert session.connection_active() is False
    assert session.peer_id == -1