import pytest

from gpsd_client.protocol.codec import LineCodec
from gpsd_client.protocol.messages import (
    Command,
    CommandType,
    VersionResponse,
    WatchConfig,
    devices_command,
    poll_command,
    version_command,
    watch_command,
)


@pytest.mark.parametrize("enable", [True, False])
@pytest.mark.parametrize("json_reports", [True, False])
@pytest.mark.parametrize("raw", [0, 1, 2])
def test_watch_command_line(enable, json_reports, raw):
    encoded = LineCodec.encode(watch_command(enable, json=json_reports, raw=raw))

    expected = '?WATCH={"class":"WATCH","enable":%s,"json":%s,"raw":%d}\n' % (
        "true" if enable else "false",
        "true" if json_reports else "false",
        raw,
    )
    assert encoded == expected.encode("utf-8")


@pytest.mark.parametrize(
    "command, expected",
    [
        (poll_command(), b"?POLL;\n"),
        (version_command(), b"?VERSION;\n"),
        (devices_command(), b"?DEVICES;\n"),
    ],
)
def test_fixed_command_lines(command, expected):
    assert LineCodec.encode(command) == expected


def test_watch_command_keeps_other_defaults():
    command = watch_command(True)

    assert command.type is CommandType.WATCH
    assert command.watch == WatchConfig(enable=True, json=True, raw=0)


def test_watch_config_only_serialises_non_default_options():
    config = WatchConfig(nmea=True, device="/dev/ttyUSB0", pps=True)

    assert config.to_dict() == {
        "class": "WATCH",
        "enable": True,
        "json": False,
        "nmea": True,
        "pps": True,
        "device": "/dev/ttyUSB0",
    }


def test_watch_without_config_is_rejected():
    with pytest.raises(ValueError):
        LineCodec.encode(Command(type=CommandType.WATCH))


def test_decode_delegates_to_classifier():
    response = LineCodec.decode('{"class":"VERSION","release":"3.25","rev":"3.25","proto_major":3,"proto_minor":15}\n')

    assert isinstance(response, VersionResponse)
    assert response.proto_minor == 15
