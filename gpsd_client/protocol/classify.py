"""Classify gpsd JSON lines into typed responses.

gpsd reports are loosely typed: almost every field is optional and several
report kinds share most of their keys. Instead of trusting a JSON library to
pick a type by trial and error, each candidate shape is described
explicitly and candidates are tried in a fixed order:

* a shape lists its required keys, its optional keys and a converter per
  key;
* a *strict* shape rejects payloads carrying keys it does not declare, so
  evaluation falls through to the next, more permissive candidate;
* a *lenient* shape always matches and keeps whatever it could not
  interpret.

Value conversion follows one policy for every shape:

* float fields accept JSON integers and floats and store ``float``;
* integer fields accept JSON integers and integral floats (``3.0``);
* booleans are never numbers and numbers are never booleans;
* timestamps are ISO-8601 strings, normalised to UTC;
* ``null`` counts as absent.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple

from dateutil import parser as date_parser

from ..errors import MalformedJSONError, ShapeMismatchError, UnknownClassError
from .messages import (
    ActiveDevice,
    ActiveSeenPackets,
    DeviceResponse,
    DevicesResponse,
    Dustbin,
    ErrorResponse,
    Fix2D,
    Fix3D,
    InactiveDevice,
    LatLonOnly,
    NoFix,
    Nothing,
    PacketFlags,
    PollResponse,
    Response,
    ResponseClass,
    Satellite,
    SkyReport,
    SkyResponse,
    TpvResponse,
    VersionResponse,
    WatchConfig,
    WatchResponse,
)

LOGGER = logging.getLogger(__name__)

CLASS_KEY = "class"


class _Incompatible(ValueError):
    """A JSON value does not have the type a field expects."""


# Converters ----------------------------------------------------------------


def _as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise _Incompatible(f"expected string, got {value!r}")
    return value


def _as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise _Incompatible(f"expected boolean, got {value!r}")
    return value


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise _Incompatible(f"expected integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise _Incompatible(f"expected integer, got {value!r}")


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _Incompatible(f"expected number, got {value!r}")
    return float(value)


def _as_time(value: Any) -> datetime:
    if not isinstance(value, str):
        raise _Incompatible(f"expected ISO-8601 timestamp, got {value!r}")
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError) as exc:
        raise _Incompatible(f"invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _as_flags(value: Any) -> PacketFlags:
    return PacketFlags(_as_int(value))


Converter = Callable[[Any], Any]


# Shapes --------------------------------------------------------------------


@dataclass(frozen=True)
class Shape:
    """One candidate interpretation of a payload.

    ``fields`` maps wire keys to ``(attribute, converter)``; ``required``
    names the wire keys that must be present.
    """

    name: str
    build: Callable[..., Any]
    fields: Mapping[str, Tuple[str, Converter]]
    required: FrozenSet[str] = frozenset()
    strict: bool = False
    lenient: bool = False

    def match(self, payload: Mapping[str, Any]) -> Optional[Any]:
        """Return the built value, or ``None`` when the payload does not fit."""

        if self.lenient:
            return self._match_lenient(payload)

        present = {key: value for key, value in payload.items() if key != CLASS_KEY and value is not None}
        if not self.required.issubset(present):
            return None
        if self.strict and not set(present).issubset(self.fields):
            return None

        kwargs: Dict[str, Any] = {}
        for key, value in present.items():
            entry = self.fields.get(key)
            if entry is None:
                continue
            attribute, convert = entry
            try:
                kwargs[attribute] = convert(value)
            except _Incompatible:
                return None
        return self.build(**kwargs)

    def _match_lenient(self, payload: Mapping[str, Any]) -> Any:
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in payload.items():
            if key == CLASS_KEY or value is None:
                continue
            entry = self.fields.get(key)
            if entry is None:
                extra[key] = value
                continue
            attribute, convert = entry
            try:
                kwargs[attribute] = convert(value)
            except _Incompatible:
                extra[key] = value
        return self.build(extra=extra, **kwargs)


def _fields(*names: str) -> Dict[str, Tuple[str, Converter]]:
    """Pick TPV fields by wire key from the shared table."""

    return {name: _TPV_FIELDS[name] for name in names}


_TPV_FIELDS: Dict[str, Tuple[str, Converter]] = {
    "device": ("device", _as_str),
    "time": ("time", _as_time),
    "mode": ("mode", _as_int),
    "ept": ("time_err", _as_float),
    "lat": ("lat", _as_float),
    "epy": ("lat_err", _as_float),
    "lon": ("lon", _as_float),
    "epx": ("lon_err", _as_float),
    "alt": ("alt", _as_float),
    "epv": ("alt_err", _as_float),
    "track": ("track", _as_float),
    "epd": ("track_err", _as_float),
    "speed": ("speed", _as_float),
    "eps": ("speed_err", _as_float),
    "climb": ("climb", _as_float),
    "epc": ("climb_err", _as_float),
}

# Most specific first. Only the last candidate is lenient.
TPV_SHAPES: Sequence[Shape] = (
    Shape(
        name="Fix3D",
        build=Fix3D,
        fields=dict(_TPV_FIELDS),
        required=frozenset({"mode", "time", "lat", "lon", "alt", "speed", "climb", "ept"}),
        strict=True,
    ),
    Shape(
        name="Fix2D",
        build=Fix2D,
        fields=_fields(
            "device", "time", "mode", "ept", "lat", "epy", "lon", "epx",
            "track", "epd", "speed", "eps",
        ),
        required=frozenset({"mode", "time", "lat", "lon", "speed", "ept"}),
        strict=True,
    ),
    Shape(
        name="LatLonOnly",
        build=LatLonOnly,
        fields=dict(_TPV_FIELDS),
        required=frozenset({"mode", "time", "lat", "lon", "ept"}),
        strict=True,
    ),
    Shape(
        name="NoFix",
        build=NoFix,
        fields=_fields("device", "time", "mode"),
        required=frozenset({"mode", "time"}),
        strict=True,
    ),
    Shape(
        name="Nothing",
        build=Nothing,
        fields=_fields("device", "time", "mode"),
        strict=True,
    ),
    Shape(name="Dustbin", build=Dustbin, fields=dict(_TPV_FIELDS), lenient=True),
)

_DEVICE_SECONDARY_FIELDS: Dict[str, Tuple[str, Converter]] = {
    "path": ("path", _as_str),
    "activated": ("activated", _as_time),
    "subtype": ("subtype", _as_str),
    "bps": ("bps", _as_int),
    "parity": ("parity", _as_str),
    "stopbits": ("stopbits", _as_int),
    "native": ("native", _as_int),
    "cycle": ("cycle", _as_float),
    "mincycle": ("mincycle", _as_float),
    "minicycle": ("mincycle", _as_float),
}

# gpsd keeps adding DEVICE keys, so none of these shapes is strict.
DEVICE_SHAPES: Sequence[Shape] = (
    Shape(
        name="ActiveSeenPackets",
        build=ActiveSeenPackets,
        fields={
            **_DEVICE_SECONDARY_FIELDS,
            "driver": ("driver", _as_str),
            "flags": ("flags", _as_flags),
        },
        required=frozenset({"activated", "driver", "flags"}),
    ),
    Shape(
        name="Active",
        build=ActiveDevice,
        fields=dict(_DEVICE_SECONDARY_FIELDS),
        required=frozenset({"activated"}),
    ),
    Shape(
        name="Inactive",
        build=InactiveDevice,
        fields={"path": ("path", _as_str)},
    ),
)

SATELLITE_SHAPE = Shape(
    name="Satellite",
    build=Satellite,
    fields={
        "PRN": ("prn", _as_int),
        "az": ("azimuth", _as_float),
        "el": ("elevation", _as_float),
        "ss": ("signal_strength", _as_float),
        "used": ("used", _as_bool),
    },
    required=frozenset({"PRN", "used"}),
)

WATCH_SHAPE = Shape(
    name="Watch",
    build=WatchConfig,
    fields={
        "enable": ("enable", _as_bool),
        "json": ("json", _as_bool),
        "nmea": ("nmea", _as_bool),
        "raw": ("raw", _as_int),
        "scaled": ("scaled", _as_bool),
        "split24": ("split24", _as_bool),
        "pps": ("pps", _as_bool),
        "device": ("device", _as_str),
        "remote": ("remote", _as_str),
    },
)

VERSION_SHAPE = Shape(
    name="Version",
    build=VersionResponse,
    fields={
        "release": ("release", _as_str),
        "rev": ("rev", _as_str),
        "proto_major": ("proto_major", _as_int),
        "proto_minor": ("proto_minor", _as_int),
        "remote": ("remote", _as_str),
    },
    required=frozenset({"release", "rev", "proto_major", "proto_minor"}),
)

ERROR_SHAPE = Shape(
    name="Error",
    build=ErrorResponse,
    fields={"message": ("message", _as_str)},
    required=frozenset({"message"}),
)


# Resolution ----------------------------------------------------------------


def _resolve(shapes: Iterable[Shape], payload: Mapping[str, Any]) -> Optional[Any]:
    for shape in shapes:
        value = shape.match(payload)
        if value is not None:
            LOGGER.debug("payload classified as %s", shape.name)
            return value
    return None


def _require(shape: Shape, payload: Any, response_class: ResponseClass) -> Any:
    if not isinstance(payload, dict):
        raise ShapeMismatchError(f"{response_class.value}: expected object, got {payload!r}")
    value = shape.match(payload)
    if value is None:
        raise ShapeMismatchError(f"{response_class.value}: payload does not match {shape.name} shape")
    return value


def _objects(payload: Mapping[str, Any], key: str, response_class: ResponseClass) -> Sequence[Any]:
    items = payload.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ShapeMismatchError(f"{response_class.value}: {key!r} must be a list")
    for item in items:
        if not isinstance(item, dict):
            raise ShapeMismatchError(f"{response_class.value}: {key!r} entries must be objects")
    return items


def resolve_tpv(payload: Mapping[str, Any]) -> Any:
    """Resolve a TPV object; always succeeds thanks to the Dustbin shape."""

    return _resolve(TPV_SHAPES, payload)


def resolve_device(payload: Mapping[str, Any]) -> Any:
    """Resolve a DEVICE object; always succeeds thanks to the Inactive shape."""

    return _resolve(DEVICE_SHAPES, payload)


_SKY_HEADER_SHAPE = Shape(
    name="Sky",
    build=dict,
    fields={
        "device": ("device", _as_str),
        "time": ("time", _as_time),
        **{name: (name, _as_float) for name in ("xdop", "ydop", "vdop", "tdop", "hdop", "pdop", "gdop")},
    },
)


def _decode_sky_report(payload: Mapping[str, Any], response_class: ResponseClass) -> SkyReport:
    satellites = tuple(
        _require(SATELLITE_SHAPE, item, response_class)
        for item in _objects(payload, "satellites", response_class)
    )
    header = {key: value for key, value in payload.items() if key != "satellites"}
    return SkyReport(satellites=satellites, **_require(_SKY_HEADER_SHAPE, header, response_class))


_POLL_HEADER_SHAPE = Shape(
    name="Poll",
    build=dict,
    fields={"time": ("time", _as_time), "active": ("active", _as_int)},
    required=frozenset({"time", "active"}),
)


def _decode_tpv(payload: Dict[str, Any]) -> Response:
    return TpvResponse(report=resolve_tpv(payload))


def _decode_sky(payload: Dict[str, Any]) -> Response:
    return SkyResponse(report=_decode_sky_report(payload, ResponseClass.SKY))


def _decode_poll(payload: Dict[str, Any]) -> Response:
    header = _require(_POLL_HEADER_SHAPE, payload, ResponseClass.POLL)
    tpv = tuple(resolve_tpv(item) for item in _objects(payload, "tpv", ResponseClass.POLL))
    sky = tuple(
        _decode_sky_report(item, ResponseClass.POLL)
        for item in _objects(payload, "sky", ResponseClass.POLL)
    )
    return PollResponse(time=header["time"], active=header["active"], tpv=tpv, sky=sky)


def _decode_device(payload: Dict[str, Any]) -> Response:
    return DeviceResponse(device=resolve_device(payload))


def _decode_devices(payload: Dict[str, Any]) -> Response:
    devices = tuple(
        resolve_device(item) for item in _objects(payload, "devices", ResponseClass.DEVICES)
    )
    remote = payload.get("remote")
    if remote is not None and not isinstance(remote, str):
        raise ShapeMismatchError(f"DEVICES: 'remote' must be a string, got {remote!r}")
    return DevicesResponse(devices=devices, remote=remote)


def _decode_watch(payload: Dict[str, Any]) -> Response:
    return WatchResponse(config=_require(WATCH_SHAPE, payload, ResponseClass.WATCH))


def _decode_version(payload: Dict[str, Any]) -> Response:
    return _require(VERSION_SHAPE, payload, ResponseClass.VERSION)


def _decode_error(payload: Dict[str, Any]) -> Response:
    return _require(ERROR_SHAPE, payload, ResponseClass.ERROR)


_DECODERS: Dict[ResponseClass, Callable[[Dict[str, Any]], Response]] = {
    ResponseClass.TPV: _decode_tpv,
    ResponseClass.SKY: _decode_sky,
    ResponseClass.POLL: _decode_poll,
    ResponseClass.DEVICE: _decode_device,
    ResponseClass.DEVICES: _decode_devices,
    ResponseClass.WATCH: _decode_watch,
    ResponseClass.VERSION: _decode_version,
    ResponseClass.ERROR: _decode_error,
}


def decode(line: str) -> Response:
    """Classify one line of gpsd output.

    Raises :class:`MalformedJSONError`, :class:`UnknownClassError` or
    :class:`ShapeMismatchError`.
    """

    try:
        data = json.loads(line)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError, over-long integer literals and runaway nesting
        raise MalformedJSONError(str(exc)) from exc
    if not isinstance(data, dict):
        raise UnknownClassError(f"expected JSON object, got {type(data).__name__}")

    class_name = data.get(CLASS_KEY)
    try:
        response_class = ResponseClass(class_name)
    except (TypeError, ValueError) as exc:
        raise UnknownClassError(f"unknown class: {class_name!r}") from exc

    return _DECODERS[response_class](data)


__all__ = [
    "Shape",
    "TPV_SHAPES",
    "DEVICE_SHAPES",
    "decode",
    "resolve_tpv",
    "resolve_device",
]
