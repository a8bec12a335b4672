# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Project fault-locator and OTDR annotations onto the connection graph.

Nothing here changes the graph: lit ports come from the visual fault locator
and are only read, OTDR distances are validated and handed to a recorder.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from models import Connection
from services.ports import owner_id

logger = logging.getLogger(__name__)

OtdrRecorder = Callable[[str, float], Any]


@dataclass(frozen=True)
class HighlightState:
    lit_ports: frozenset[str] = field(default_factory=frozenset)
    vfl_source: str | None = None

    @classmethod
    def from_iterable(
        cls, lit_ports: Iterable[str], vfl_source: str | None = None
    ) -> "HighlightState":
        return cls(frozenset(lit_ports), vfl_source)


def lit_connections(connections: Iterable[Connection], lit_ports: Iterable[str]) -> set[str]:
    """Ids of connections with at least one lit endpoint."""
    lit = set(lit_ports)
    return {c.id for c in connections if c.source_id in lit or c.target_id in lit}


def lit_ports_on_device(lit_ports: Iterable[str], device_id: str) -> set[str]:
    return {p for p in lit_ports if owner_id(p, device_id)}


def parse_distance(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        meters = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(meters):
        return None
    return meters


def forward_otdr(port_id: str, distance: Any, recorder: OtdrRecorder) -> bool:
    """Hand a (port, meters) annotation to ``recorder``; drop it if the distance is not a number."""
    meters = parse_distance(distance)
    if meters is None:
        logger.info("Dropping OTDR trace on %s: distance %r is not a number", port_id, distance)
        return False
    recorder(port_id, meters)
    return True
