import pytest

from gpsd_client.config import DEFAULT_PORT, SessionConfig, parse_address


@pytest.mark.parametrize(
    "address, expected",
    [
        ("127.0.0.1:2947", ("127.0.0.1", 2947)),
        ("gps.local:3000", ("gps.local", 3000)),
        ("gps.local", ("gps.local", DEFAULT_PORT)),
        ("[::1]:2948", ("::1", 2948)),
        ("[::1]", ("::1", DEFAULT_PORT)),
        (("localhost", "2947"), ("localhost", 2947)),
    ],
)
def test_parse_address(address, expected):
    assert parse_address(address) == expected


def test_parse_address_rejects_missing_host():
    with pytest.raises(ValueError):
        parse_address(":2947")


def test_defaults():
    config = SessionConfig()

    assert config.address == "127.0.0.1:2947"
    assert config.read_timeout_s is None
    assert config.raw == 0


def test_ipv6_address_is_bracketed():
    assert SessionConfig(host="::1", port=2947).address == "[::1]:2947"


def test_from_env(monkeypatch):
    monkeypatch.setenv("GPSD_HOST", "gps.local")
    monkeypatch.setenv("GPSD_PORT", "3000")
    monkeypatch.setenv("GPSD_READ_TIMEOUT", "2.5")
    monkeypatch.setenv("GPSD_CONNECT_TIMEOUT", "")
    monkeypatch.setenv("GPSD_RAW", "2")
    monkeypatch.setenv("GPSD_LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("GPSD_LOG_FILE", raising=False)

    config = SessionConfig.from_env()

    assert config.address == "gps.local:3000"
    assert config.read_timeout_s == 2.5
    assert config.connect_timeout_s is None
    assert config.raw == 2
    assert config.log_level == "DEBUG"
    assert config.log_file is None
