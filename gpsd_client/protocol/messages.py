"""Commands sent to gpsd and the typed responses it answers with."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntFlag
import sys
from typing import Any, ClassVar, Dict, Optional, Tuple, Union


class CommandType(str, Enum):
    WATCH = "WATCH"
    POLL = "POLL"
    VERSION = "VERSION"
    DEVICES = "DEVICES"


class ResponseClass(str, Enum):
    TPV = "TPV"  # time-position-velocity report
    SKY = "SKY"  # satellite skyview
    POLL = "POLL"  # last-seen fixes of every active device
    DEVICE = "DEVICE"
    DEVICES = "DEVICES"
    WATCH = "WATCH"
    VERSION = "VERSION"
    ERROR = "ERROR"


class PacketFlags(IntFlag):
    """Packet types gpsd has seen from a device (``flags`` of DEVICE)."""

    GPS = 0x01
    RTCM2 = 0x02
    RTCM3 = 0x04
    AIS = 0x08


# ``slots`` support for ``dataclasses`` arrived in Python 3.10. Prefer slots
# when available but remain compatible with Python 3.9.
_DATACLASS_KWARGS = {"slots": True} if sys.version_info >= (3, 10) else {}


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class WatchConfig:
    """Watcher mode parameters, as sent with ``?WATCH`` and echoed back.

    * ``enable``: enable (true) or disable (false) watcher mode.
    * ``json``: dump JSON reports.
    * ``nmea``: dump binary packets as pseudo-NMEA.
    * ``raw``: 1 reports the unprocessed NMEA/AIVDM stream (binary packets
      hex-dumped), 2 reports binary data verbatim.
    * ``scaled``: apply scaling divisors before dumping.
    * ``split24``: aggregate AIS type24 sentence parts.
    * ``pps``: emit TOFF and PPS messages.
    * ``device``: only watch the named device.
    * ``remote``: URL of the remote daemon reporting the watch set.
    """

    enable: bool = True
    json: bool = False
    nmea: bool = False
    raw: Optional[int] = None
    scaled: bool = False
    split24: bool = False
    pps: bool = False
    device: Optional[str] = None
    remote: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "class": ResponseClass.WATCH.value,
            "enable": self.enable,
            "json": self.json,
        }
        if self.nmea:
            payload["nmea"] = True
        if self.raw is not None:
            payload["raw"] = self.raw
        if self.scaled:
            payload["scaled"] = True
        if self.split24:
            payload["split24"] = True
        if self.pps:
            payload["pps"] = True
        if self.device is not None:
            payload["device"] = self.device
        if self.remote is not None:
            payload["remote"] = self.remote
        return payload


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class Command:
    type: CommandType
    watch: Optional[WatchConfig] = None


def watch_command(enable: bool, *, json: bool = True, raw: int = 0) -> Command:
    """Build a ``?WATCH`` command; fields not given keep their defaults."""

    return Command(
        type=CommandType.WATCH,
        watch=WatchConfig(enable=enable, json=json, raw=raw),
    )


def poll_command() -> Command:
    return Command(type=CommandType.POLL)


def version_command() -> Command:
    return Command(type=CommandType.VERSION)


def devices_command() -> Command:
    return Command(type=CommandType.DEVICES)


# TPV variants --------------------------------------------------------------
#
# gpsd marks every TPV field optional. The variants below sort reports by
# which fields are actually present so callers do not have to. Fields ending
# in ``_err`` are 95% confidence error estimates in the unit of the field
# they qualify (``ept``, ``epy``, ``epx``, ``epv``, ``epd``, ``eps``, ``epc``
# on the wire).


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class Fix3D:
    """3D fix with speed and climb."""

    time: datetime
    mode: int
    time_err: float
    lat: float
    lon: float
    alt: float
    speed: float
    climb: float
    device: Optional[str] = None
    lat_err: Optional[float] = None
    lon_err: Optional[float] = None
    alt_err: Optional[float] = None
    track: Optional[float] = None
    track_err: Optional[float] = None
    speed_err: Optional[float] = None
    climb_err: Optional[float] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class Fix2D:
    """2D fix with speed."""

    time: datetime
    mode: int
    time_err: float
    lat: float
    lon: float
    speed: float
    device: Optional[str] = None
    lat_err: Optional[float] = None
    lon_err: Optional[float] = None
    track: Optional[float] = None
    track_err: Optional[float] = None
    speed_err: Optional[float] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class LatLonOnly:
    """A fix with latitude/longitude that fits neither Fix3D nor Fix2D."""

    time: datetime
    mode: int
    time_err: float
    lat: float
    lon: float
    device: Optional[str] = None
    lat_err: Optional[float] = None
    lon_err: Optional[float] = None
    alt: Optional[float] = None
    alt_err: Optional[float] = None
    track: Optional[float] = None
    track_err: Optional[float] = None
    speed: Optional[float] = None
    speed_err: Optional[float] = None
    climb: Optional[float] = None
    climb_err: Optional[float] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class NoFix:
    time: datetime
    mode: int
    device: Optional[str] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class Nothing:
    """Possibly no useful data whatsoever."""

    device: Optional[str] = None
    time: Optional[datetime] = None
    mode: Optional[int] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class Dustbin:
    """Any other TPV report.

    ``extra`` holds undocumented keys and documented keys whose value had an
    unexpected type.
    """

    device: Optional[str] = None
    time: Optional[datetime] = None
    mode: Optional[int] = None
    time_err: Optional[float] = None
    lat: Optional[float] = None
    lat_err: Optional[float] = None
    lon: Optional[float] = None
    lon_err: Optional[float] = None
    alt: Optional[float] = None
    alt_err: Optional[float] = None
    track: Optional[float] = None
    track_err: Optional[float] = None
    speed: Optional[float] = None
    speed_err: Optional[float] = None
    climb: Optional[float] = None
    climb_err: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict, hash=False)


TpvReport = Union[Fix3D, Fix2D, LatLonOnly, NoFix, Nothing, Dustbin]


# SKY -----------------------------------------------------------------------


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class Satellite:
    """One satellite of a skyview.

    ``prn`` 1-63 are GNSS satellites, 64-96 GLONASS, 100-164 SBAS.
    """

    prn: int
    used: bool
    azimuth: Optional[float] = None
    elevation: Optional[float] = None
    signal_strength: Optional[float] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class SkyReport:
    """Satellite positions and dilutions of precision.

    DOPs are dimensionless factors to multiply with a base UERE; devices
    often report only some of them.
    """

    device: Optional[str] = None
    time: Optional[datetime] = None
    xdop: Optional[float] = None
    ydop: Optional[float] = None
    vdop: Optional[float] = None
    tdop: Optional[float] = None
    hdop: Optional[float] = None
    pdop: Optional[float] = None
    gdop: Optional[float] = None
    satellites: Tuple[Satellite, ...] = ()


# DEVICE variants -----------------------------------------------------------


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class ActiveSeenPackets:
    """Active device from which gpsd has identified packets.

    ``mincycle`` is also read from the ``minicycle`` spelling.
    """

    activated: datetime
    driver: str
    flags: PacketFlags
    path: Optional[str] = None
    subtype: Optional[str] = None
    bps: Optional[int] = None
    parity: Optional[str] = None
    stopbits: Optional[int] = None
    native: Optional[int] = None
    cycle: Optional[float] = None
    mincycle: Optional[float] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class ActiveDevice:
    """Active device that has not produced identifiable packets yet."""

    activated: datetime
    path: Optional[str] = None
    subtype: Optional[str] = None
    bps: Optional[int] = None
    parity: Optional[str] = None
    stopbits: Optional[int] = None
    native: Optional[int] = None
    cycle: Optional[float] = None
    mincycle: Optional[float] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class InactiveDevice:
    path: Optional[str] = None


DeviceInfo = Union[ActiveSeenPackets, ActiveDevice, InactiveDevice]


# Responses -----------------------------------------------------------------


class Response:
    """Base class of every value returned by ``GpsdSession.get_response``."""

    __slots__ = ()

    response_class: ClassVar[Optional[ResponseClass]] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class TpvResponse(Response):
    response_class: ClassVar[Optional[ResponseClass]] = ResponseClass.TPV

    report: TpvReport


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class SkyResponse(Response):
    response_class: ClassVar[Optional[ResponseClass]] = ResponseClass.SKY

    report: SkyReport


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class PollResponse(Response):
    response_class: ClassVar[Optional[ResponseClass]] = ResponseClass.POLL

    time: datetime
    active: int
    tpv: Tuple[TpvReport, ...] = ()
    sky: Tuple[SkyReport, ...] = ()


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class DeviceResponse(Response):
    response_class: ClassVar[Optional[ResponseClass]] = ResponseClass.DEVICE

    device: DeviceInfo


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class DevicesResponse(Response):
    response_class: ClassVar[Optional[ResponseClass]] = ResponseClass.DEVICES

    devices: Tuple[DeviceInfo, ...] = ()
    remote: Optional[str] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class WatchResponse(Response):
    response_class: ClassVar[Optional[ResponseClass]] = ResponseClass.WATCH

    config: WatchConfig


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class VersionResponse(Response):
    response_class: ClassVar[Optional[ResponseClass]] = ResponseClass.VERSION

    release: str
    rev: str
    proto_major: int
    proto_minor: int
    remote: Optional[str] = None


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class ErrorResponse(Response):
    response_class: ClassVar[Optional[ResponseClass]] = ResponseClass.ERROR

    message: str


@dataclass(frozen=True, **_DATACLASS_KWARGS)
class RawResponse(Response):
    """A line passed through while raw mode is active.

    ``text`` is the line decoded as UTF-8, with undecodable bytes replaced by
    U+FFFD. ``data`` keeps the bytes exactly as received, which matters for
    binary payloads relayed at raw level 2.
    """

    text: str
    data: bytes = field(default=b"", compare=False)


__all__ = [
    "CommandType",
    "ResponseClass",
    "PacketFlags",
    "WatchConfig",
    "Command",
    "watch_command",
    "poll_command",
    "version_command",
    "devices_command",
    "Fix3D",
    "Fix2D",
    "LatLonOnly",
    "NoFix",
    "Nothing",
    "Dustbin",
    "TpvReport",
    "Satellite",
    "SkyReport",
    "ActiveSeenPackets",
    "ActiveDevice",
    "InactiveDevice",
    "DeviceInfo",
    "Response",
    "TpvResponse",
    "SkyResponse",
    "PollResponse",
    "DeviceResponse",
    "DevicesResponse",
    "WatchResponse",
    "VersionResponse",
    "ErrorResponse",
    "RawResponse",
]
