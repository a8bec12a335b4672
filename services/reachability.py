# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Signal reachability derived from the connection graph.

A DIO port is *active* when a patch cord connects it to an OLT port. The
index is rebuilt from scratch on every read; POP graphs are small enough
that an incremental structure is not worth keeping in sync.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from models import Connection, Olt, PopDocument
from services.ports import PortKind, classify, owner_id, parse_olt_label

FALLBACK_OLT_NAME = "OLT"


def olt_display_name(olts: Iterable[Olt], olt_port: str) -> str:
    olt = next((o for o in olts if owner_id(olt_port, o.id)), None)
    return olt.name if olt else FALLBACK_OLT_NAME


def olt_port_label(olts: Iterable[Olt], olt_port: str) -> str:
    """``"{OLT name}: S{slot} / P{port}"``, or the bare OLT name."""
    name = olt_display_name(olts, olt_port)
    label = parse_olt_label(olt_port)
    if label is None:
        return name
    return f"{name}: S{label.slot} / P{label.port}"


@dataclass
class ReachabilityIndex:
    active_olt_info: dict[str, str] = field(default_factory=dict)
    fiber_fusions: dict[str, Connection] = field(default_factory=dict)
    dio_ports_with_splice: set[str] = field(default_factory=set)

    def is_active(self, port_id: str) -> bool:
        return port_id in self.active_olt_info

    def has_splice(self, port_id: str) -> bool:
        return port_id in self.dio_ports_with_splice

    def fiber_olt_info(self, fiber_port: str) -> str | None:
        """OLT label upstream of a spliced fiber, through its DIO port."""
        conn = self.fiber_fusions.get(fiber_port)
        if conn is None:
            return None
        dio_port = conn.partner(fiber_port)
        return self.active_olt_info.get(dio_port) if dio_port else None


def build_index(connections: Iterable[Connection], olts: Iterable[Olt]) -> ReachabilityIndex:
    olts = list(olts)
    index = ReachabilityIndex()
    for conn in connections:
        kinds = (classify(conn.source_id), classify(conn.target_id))
        for port, other, (own_kind, other_kind) in (
            (conn.source_id, conn.target_id, kinds),
            (conn.target_id, conn.source_id, kinds[::-1]),
        ):
            if own_kind is PortKind.DIO_PORT and other_kind is PortKind.OLT_PORT:
                index.active_olt_info[port] = olt_port_label(olts, other)
            elif own_kind is PortKind.FIBER:
                index.fiber_fusions[port] = conn
                if other_kind is PortKind.DIO_PORT:
                    index.dio_ports_with_splice.add(other)
    return index


def build_pop_index(pop: PopDocument) -> ReachabilityIndex:
    return build_index(pop.connections, pop.olts)
