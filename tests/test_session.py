import socket
from datetime import timedelta

import pytest

from gpsd_client.config import SessionConfig
from gpsd_client.errors import (
    ConnectionClosedError,
    DeserializationFailedError,
    GpsdConnectionError,
    MalformedJSONError,
    ReadTimeoutError,
    UnknownClassError,
)
from gpsd_client.protocol.messages import ErrorResponse, NoFix, RawResponse, TpvResponse, VersionResponse
from gpsd_client.session import GpsdSession
from gpsd_client.transport.tcp import TcpLineStream

NMEA = b"$GPGGA,123519,4807.038,N*47\n"
VERSION = b'{"class":"VERSION","release":"3.17","rev":"x","proto_major":3,"proto_minor":11}\n'


def recv_line(sock):
    data = b""
    while not data.endswith(b"\n"):
        chunk = sock.recv(4096)
        if not chunk:
            break
        data += chunk
    return data


@pytest.fixture
def pair():
    client, daemon = socket.socketpair()
    session = GpsdSession(TcpLineStream(client, peer="test"))
    yield session, daemon
    session.close()
    daemon.close()


@pytest.fixture
def listener():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    yield server
    server.close()


def test_watch_writes_json_watch_command(pair):
    session, daemon = pair

    session.watch(True)

    assert recv_line(daemon) == b'?WATCH={"class":"WATCH","enable":true,"json":true,"raw":0}\n'
    assert session.raw_mode is False


def test_watch_raw_switches_raw_mode(pair):
    session, daemon = pair

    session.watch_raw(True, False, 1)

    assert recv_line(daemon) == b'?WATCH={"class":"WATCH","enable":true,"json":false,"raw":1}\n'
    assert session.raw_mode is True

    session.watch_raw(False, True, 0)

    assert recv_line(daemon) == b'?WATCH={"class":"WATCH","enable":false,"json":true,"raw":0}\n'
    assert session.raw_mode is False


@pytest.mark.parametrize(
    "method, expected",
    [("poll", b"?POLL;\n"), ("version", b"?VERSION;\n"), ("devices", b"?DEVICES;\n")],
)
def test_query_commands(pair, method, expected):
    session, daemon = pair

    getattr(session, method)()

    assert recv_line(daemon) == expected


def test_failed_watch_write_keeps_raw_mode(pair):
    session, _ = pair
    session.close()

    with pytest.raises(GpsdConnectionError):
        session.watch_raw(True, True, 2)

    assert session.raw_mode is False


def test_get_response_classifies_line(pair):
    session, daemon = pair
    daemon.sendall(VERSION)

    response = session.get_response()

    assert response == VersionResponse(release="3.17", rev="x", proto_major=3, proto_minor=11)


def test_get_response_reassembles_split_lines(pair):
    session, daemon = pair
    daemon.sendall(b'{"class":"TPV","mode":1,')
    daemon.sendall(b'"time":"2018-06-09T12:30:45Z"}\n{"class":"ERROR","message":"x"}\n')

    first = session.get_response()
    second = session.get_response()

    assert isinstance(first, TpvResponse)
    assert isinstance(first.report, NoFix)
    assert second == ErrorResponse(message="x")


def test_blank_lines_are_skipped(pair):
    session, daemon = pair
    daemon.sendall(b"\n   \n\r\n" + VERSION)

    assert isinstance(session.get_response(), VersionResponse)


def test_blank_lines_never_return(pair):
    session, daemon = pair
    session.set_read_timeout(0.1)
    daemon.sendall(b"\n\n\n")

    with pytest.raises(ReadTimeoutError):
        session.get_response()


def test_closed_connection_after_blank_lines(pair):
    session, daemon = pair
    daemon.sendall(b"\n\n")
    daemon.close()

    with pytest.raises(ConnectionClosedError):
        session.get_response()


def test_unterminated_tail_is_returned_before_close(pair):
    session, daemon = pair
    daemon.sendall(b'{"class":"ERROR","message":"bye"}')
    daemon.close()

    assert session.get_response() == ErrorResponse(message="bye")
    with pytest.raises(ConnectionClosedError):
        session.get_response()


def test_unparseable_line_without_raw_mode_fails(pair):
    session, daemon = pair
    daemon.sendall(NMEA)

    with pytest.raises(DeserializationFailedError) as excinfo:
        session.get_response()

    assert excinfo.value.text == NMEA.decode()
    assert isinstance(excinfo.value.cause, MalformedJSONError)


def test_unknown_class_without_raw_mode_fails(pair):
    session, daemon = pair
    daemon.sendall(b'{"class":"TOFF"}\n')

    with pytest.raises(DeserializationFailedError) as excinfo:
        session.get_response()

    assert isinstance(excinfo.value.cause, UnknownClassError)


def test_raw_mode_passes_unparseable_lines_through(pair):
    session, daemon = pair
    session.watch_raw(True, False, 1)
    recv_line(daemon)
    daemon.sendall(NMEA + VERSION)

    assert session.get_response() == RawResponse(text="$GPGGA,123519,4807.038,N*47\n")
    assert isinstance(session.get_response(), VersionResponse)


def test_read_timeout_keeps_partial_line(pair):
    session, daemon = pair
    session.set_read_timeout(timedelta(milliseconds=100))
    daemon.sendall(b'{"class":"ERROR",')

    with pytest.raises(ReadTimeoutError):
        session.get_response()

    daemon.sendall(b'"message":"late"}\n')
    assert session.get_response() == ErrorResponse(message="late")


@pytest.mark.parametrize("timeout", [0, -1.0, timedelta(0)])
def test_non_positive_timeout_is_rejected(pair, timeout):
    session, _ = pair

    with pytest.raises(ValueError):
        session.set_read_timeout(timeout)


def test_connect_and_query_version(listener):
    port = listener.getsockname()[1]

    with GpsdSession.connect(f"127.0.0.1:{port}", timeout=2.0) as session:
        conn, _ = listener.accept()
        with conn:
            session.version()
            assert recv_line(conn) == b"?VERSION;\n"
            conn.sendall(VERSION)
            assert isinstance(session.get_response(), VersionResponse)


def test_from_config_applies_read_timeout(listener):
    port = listener.getsockname()[1]
    config = SessionConfig(host="127.0.0.1", port=port, read_timeout_s=0.1)

    with GpsdSession.from_config(config) as session:
        conn, _ = listener.accept()
        with conn:
            with pytest.raises(ReadTimeoutError):
                session.get_response()


def test_connect_failure_raises_connection_error():
    spare = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    spare.bind(("127.0.0.1", 0))
    port = spare.getsockname()[1]
    spare.close()

    with pytest.raises(GpsdConnectionError):
        GpsdSession.connect(("127.0.0.1", port), timeout=2.0)


def test_raw_mode_passes_deeply_nested_line_through(pair):
    session, daemon = pair
    session.watch_raw(True, False, 1)
    recv_line(daemon)
    nested = b"[" * 100000 + b"\n"
    daemon.sendall(nested)

    assert session.get_response() == RawResponse(text=nested.decode())


def test_deeply_nested_line_without_raw_mode_fails(pair):
    session, daemon = pair
    daemon.sendall(b"[" * 100000 + b"\n")

    with pytest.raises(DeserializationFailedError) as excinfo:
        session.get_response()

    assert isinstance(excinfo.value.cause, MalformedJSONError)


def test_raw_mode_keeps_binary_bytes(pair):
    session, daemon = pair
    session.watch_raw(True, False, 2)
    recv_line(daemon)
    packet = b"\xa0\xa2\x00\x09\xff\xfe\n"
    daemon.sendall(packet)

    response = session.get_response()

    assert isinstance(response, RawResponse)
    assert response.data == packet
    assert "�" in response.text
