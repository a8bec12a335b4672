# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Port identifier parsing, building and classification.

Ports are persisted as plain strings. Three shapes carry structure:

* fiber strand ``{cable_id}-fiber-{index}`` (0-based)
* DIO port ``{dio_id}-p-{index}`` (0-based)
* OLT port ``{olt_id}-s{slot}-p{port}`` (1-based slot and port)

Anything else (splitter ports, hand-edited ids) is kept as an opaque
``UnknownPort``. Parsing happens once per id and yields a tagged value that
the graph and reachability code switch on instead of sniffing substrings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Union

FIBER_RE = re.compile(r"^(?P<owner>.+)-fiber-(?P<index>\d+)$")
OLT_RE = re.compile(r"^(?P<owner>.+)-s(?P<slot>\d+)-p(?P<port>\d+)$")
DIO_RE = re.compile(r"^(?P<owner>.+)-p-(?P<index>\d+)$")
OLT_LABEL_RE = re.compile(r"-s(\d+)-p(\d+)$")

PORTS_PER_TRAY = 12


class PortKind(str, Enum):
    FIBER = "fiber"
    DIO_PORT = "dio_port"
    OLT_PORT = "olt_port"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FiberPort:
    cable_id: str
    index: int | None

    kind = PortKind.FIBER

    @property
    def device_id(self) -> str:
        return self.cable_id

    @property
    def id(self) -> str:
        if self.index is None:
            return self.cable_id
        return fiber_port_id(self.cable_id, self.index)


@dataclass(frozen=True)
class DioPort:
    dio_id: str
    index: int

    kind = PortKind.DIO_PORT

    @property
    def device_id(self) -> str:
        return self.dio_id

    @property
    def id(self) -> str:
        return dio_port_id(self.dio_id, self.index)


@dataclass(frozen=True)
class OltPort:
    olt_id: str
    slot: int | None
    port: int | None

    kind = PortKind.OLT_PORT

    @property
    def device_id(self) -> str:
        return self.olt_id

    @property
    def id(self) -> str:
        if self.slot is None or self.port is None:
            return self.olt_id
        return olt_port_id(self.olt_id, self.slot, self.port)


@dataclass(frozen=True)
class UnknownPort:
    raw: str

    kind = PortKind.UNKNOWN

    @property
    def device_id(self) -> None:
        return None

    @property
    def id(self) -> str:
        return self.raw


PortRef = Union[FiberPort, DioPort, OltPort, UnknownPort]


@dataclass(frozen=True)
class OltLabel:
    olt_id: str
    slot: int
    port: int


def fiber_port_id(cable_id: str, index: int) -> str:
    return f"{cable_id}-fiber-{index}"


def dio_port_id(dio_id: str, index: int) -> str:
    return f"{dio_id}-p-{index}"


def olt_port_id(olt_id: str, slot: int, port: int) -> str:
    return f"{olt_id}-s{slot}-p{port}"


@lru_cache(maxsize=8192)
def parse_port(port_id: str) -> PortRef:
    """Parse a persisted port id into its tagged form.

    Structured shapes win. Legacy ids written before the shapes were fixed
    are still recognised by the ``fiber`` / ``olt`` markers, with an unknown
    index, so that old documents keep their splice/patch semantics.
    """
    match = FIBER_RE.match(port_id)
    if match:
        return FiberPort(match.group("owner"), int(match.group("index")))
    match = OLT_RE.match(port_id)
    if match:
        return OltPort(match.group("owner"), int(match.group("slot")), int(match.group("port")))
    match = DIO_RE.match(port_id)
    if match:
        return DioPort(match.group("owner"), int(match.group("index")))
    lowered = port_id.lower()
    if "fiber" in lowered:
        return FiberPort(port_id, None)
    if "olt" in lowered:
        return OltPort(port_id, None, None)
    return UnknownPort(port_id)


def classify(port_id: str) -> PortKind:
    return parse_port(port_id).kind


def is_fiber(port_id: str) -> bool:
    return classify(port_id) is PortKind.FIBER


def is_olt_port(port_id: str) -> bool:
    return classify(port_id) is PortKind.OLT_PORT


def is_dio_port(port_id: str) -> bool:
    return classify(port_id) is PortKind.DIO_PORT


def parse_olt_label(port_id: str) -> OltLabel | None:
    """Return slot/port numbers of an OLT port, or None for unstructured ids."""
    match = OLT_LABEL_RE.search(port_id)
    if not match:
        return None
    return OltLabel(port_id[: match.start()], int(match.group(1)), int(match.group(2)))


def owner_id(port_id: str, device_id: str) -> bool:
    """True if ``port_id`` belongs to the device ``device_id``.

    Structured ids compare the parsed owner exactly so that ``dio-1`` does
    not claim ``dio-12-p-0``. Opaque ids fall back to a prefix test.
    """
    ref = parse_port(port_id)
    structured = (
        isinstance(ref, DioPort)
        or (isinstance(ref, OltPort) and ref.slot is not None)
        or (isinstance(ref, FiberPort) and ref.index is not None)
    )
    if structured and ref.id == port_id:
        return ref.device_id == device_id
    return port_id.startswith(device_id)


def tray_index(port_id: str, ports_per_tray: int = PORTS_PER_TRAY) -> int:
    """Tray (group of ``ports_per_tray`` ports) a DIO port sits in; 0 otherwise."""
    ref = parse_port(port_id)
    if isinstance(ref, DioPort):
        return ref.index // ports_per_tray
    return 0
