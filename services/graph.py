# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Connection graph of a POP: splices (fiber to port) and patch cords (OLT to port).

Every function takes the current connection list and returns a new one; the
input list and its connections are never modified. Conflicting requests are
resolved by moving or overwriting edges, never by holding two edges on a
port that may only carry one:

* a fiber strand carries at most one edge;
* an OLT port carries at most one edge;
* a DIO port carries at most one non-OLT edge (its splice) and, independently,
  at most one OLT edge (its patch cord).

Requests that cannot be honoured (self connections, wrong port kinds) leave
the list unchanged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable

from models import Connection
from services.palette import SPLICE_COLOR, ColorStandard, fiber_color
from services.ports import PORTS_PER_TRAY, PortKind, classify, owner_id, tray_index

logger = logging.getLogger(__name__)

SPLICE_PREFIX = "fusion"
PATCH_PREFIX = "patch"


def _now_ms() -> int:
    return int(time.time() * 1000)


def new_connection_id(prefix: str, connections: Iterable[Connection]) -> str:
    """``{prefix}-{epoch ms}``, suffixed with ``-n`` if already taken."""
    base = f"{prefix}-{_now_ms()}"
    taken = {c.id for c in connections}
    if base not in taken:
        return base
    n = 1
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def edges_on(connections: Iterable[Connection], port_id: str) -> list[Connection]:
    return [c for c in connections if c.touches(port_id)]


def partner_of(
    connections: Iterable[Connection], port_id: str, kind: PortKind | None = None
) -> str | None:
    """First port connected to ``port_id``, optionally restricted to a partner kind."""
    for conn in connections:
        partner = conn.partner(port_id)
        if partner is None:
            continue
        if kind is None or classify(partner) is kind:
            return partner
    return None


def splice_partner(connections: Iterable[Connection], port_id: str) -> str | None:
    return partner_of(connections, port_id, PortKind.FIBER)


def patch_partner(connections: Iterable[Connection], port_id: str) -> str | None:
    return partner_of(connections, port_id, PortKind.OLT_PORT)


def _partner_is(conn: Connection, port_id: str, kind: PortKind) -> bool:
    partner = conn.partner(port_id)
    return partner is not None and classify(partner) is kind


def _is_panel_port(port_id: str) -> bool:
    """Splices and patch cords land on DIO ports or opaque (splitter) ports only."""
    return classify(port_id) in (PortKind.DIO_PORT, PortKind.UNKNOWN)


def _drop_partner_edges(
    connections: list[Connection], port_id: str, kind: PortKind
) -> list[Connection]:
    return [c for c in connections if not _partner_is(c, port_id, kind)]


def connect_fiber_to_port(
    connections: list[Connection],
    fiber_port: str,
    target_port: str,
    color: str = SPLICE_COLOR,
) -> list[Connection]:
    """Splice a fiber strand onto a DIO or splitter port.

    The fiber is moved if it was spliced elsewhere and a fiber already spliced
    on ``target_port`` is displaced. An OLT patch on ``target_port`` survives.
    """
    if (
        fiber_port == target_port
        or classify(fiber_port) is not PortKind.FIBER
        or not _is_panel_port(target_port)
    ):
        logger.debug("Ignoring splice %s -> %s", fiber_port, target_port)
        return list(connections)

    next_conns = [c for c in connections if not c.touches(fiber_port)]
    next_conns = _drop_partner_edges(next_conns, target_port, PortKind.FIBER)
    conn = Connection(
        id=new_connection_id(SPLICE_PREFIX, next_conns),
        source_id=fiber_port,
        target_id=target_port,
        color=color,
    )
    logger.debug("Spliced %s -> %s as %s", fiber_port, target_port, conn.id)
    return [*next_conns, conn]


def disconnect_port(connections: list[Connection], port_id: str) -> list[Connection]:
    return [c for c in connections if not c.touches(port_id)]


def connect_olt_to_port(
    connections: list[Connection],
    olt_port: str,
    target_port: str,
    color_standard: ColorStandard = "ABNT",
    ports_per_tray: int = PORTS_PER_TRAY,
) -> list[Connection]:
    """Patch an OLT port onto a DIO or splitter port.

    The OLT port loses any previous patch and a patch already on
    ``target_port`` is replaced. A splice on ``target_port`` survives. The
    cord takes the color of the DIO tray it lands in.
    """
    if (
        olt_port == target_port
        or classify(olt_port) is not PortKind.OLT_PORT
        or not _is_panel_port(target_port)
    ):
        logger.debug("Ignoring patch %s -> %s", olt_port, target_port)
        return list(connections)

    next_conns = [c for c in connections if not c.touches(olt_port)]
    next_conns = _drop_partner_edges(next_conns, target_port, PortKind.OLT_PORT)
    conn = Connection(
        id=new_connection_id(PATCH_PREFIX, next_conns),
        source_id=olt_port,
        target_id=target_port,
        color=fiber_color(tray_index(target_port, ports_per_tray), color_standard),
    )
    logger.debug("Patched %s -> %s as %s", olt_port, target_port, conn.id)
    return [*next_conns, conn]


def _occupies_splice_slot(conn: Connection, port_id: str) -> bool:
    partner = conn.partner(port_id)
    if partner is None:
        return False
    if classify(port_id) is PortKind.FIBER:
        return True
    return classify(partner) is not PortKind.OLT_PORT


def connect_across_devices(
    connections: list[Connection],
    port_a: str,
    port_b: str,
    active_dio_id: str,
    color_standard: ColorStandard = "ABNT",
) -> list[Connection]:
    """Connect two ports dropped onto each other in a DIO editor.

    Exactly one of the ports must belong to ``active_dio_id``. An OLT port on
    either side makes the edge a patch cord; anything else is a splice that
    replaces the splice held by each endpoint while keeping their patches.
    """
    if port_a == port_b or owner_id(port_a, active_dio_id) == owner_id(port_b, active_dio_id):
        logger.debug("Ignoring same-device connect %s <-> %s", port_a, port_b)
        return list(connections)

    kind_a, kind_b = classify(port_a), classify(port_b)
    if kind_a is PortKind.OLT_PORT and kind_b is not PortKind.OLT_PORT:
        return connect_olt_to_port(connections, port_a, port_b, color_standard)
    if kind_b is PortKind.OLT_PORT and kind_a is not PortKind.OLT_PORT:
        return connect_olt_to_port(connections, port_b, port_a, color_standard)
    if kind_a is PortKind.OLT_PORT:
        logger.debug("Ignoring OLT-to-OLT connect %s <-> %s", port_a, port_b)
        return list(connections)

    next_conns = [
        c
        for c in connections
        if not (_occupies_splice_slot(c, port_a) or _occupies_splice_slot(c, port_b))
    ]
    conn = Connection(
        id=new_connection_id(SPLICE_PREFIX, next_conns),
        source_id=port_a,
        target_id=port_b,
    )
    logger.debug("Connected %s <-> %s as %s", port_a, port_b, conn.id)
    return [*next_conns, conn]


def release_connection(
    connections: list[Connection],
    connection_id: str,
    drop_port: str | None,
    active_dio_id: str,
    moving_port: str | None = None,
) -> list[Connection]:
    """Finish dragging one end of an existing edge.

    The edge is always detached. Dropped on a port, the end that stayed put is
    reconnected to it; dropped on nothing, the edge is simply gone. There is
    no rollback when the reconnect is rejected.
    """
    conn = next((c for c in connections if c.id == connection_id), None)
    if conn is None:
        return list(connections)
    if moving_port is None:
        moving_port = conn.source_id if owner_id(conn.source_id, active_dio_id) else conn.target_id
    fixed_port = conn.partner(moving_port)
    remaining = [c for c in connections if c.id != connection_id]
    if drop_port is None or fixed_port is None:
        logger.debug("Released %s onto nothing; edge removed", connection_id)
        return remaining
    return connect_across_devices(remaining, fixed_port, drop_port, active_dio_id)


def prune_ports(
    connections: list[Connection], removed_port_ids: Iterable[str]
) -> list[Connection]:
    removed = set(removed_port_ids)
    if not removed:
        return list(connections)
    return [c for c in connections if c.source_id not in removed and c.target_id not in removed]


def prune_to_port_set(
    connections: list[Connection], device_id: str, surviving_port_ids: Iterable[str]
) -> list[Connection]:
    """Drop edges on ports of ``device_id`` that are no longer in ``surviving_port_ids``."""
    surviving = set(surviving_port_ids)

    def _stale(port_id: str) -> bool:
        return owner_id(port_id, device_id) and port_id not in surviving

    return [c for c in connections if not (_stale(c.source_id) or _stale(c.target_id))]


def remove_device(connections: list[Connection], device_id: str) -> list[Connection]:
    return [
        c
        for c in connections
        if not (owner_id(c.source_id, device_id) or owner_id(c.target_id, device_id))
    ]


def clear_connections() -> list[Connection]:
    return []


def dangling_connections(
    connections: Iterable[Connection], known_port_ids: set[str]
) -> list[Connection]:
    """Edges with an endpoint that no device in the document exposes."""
    return [
        c
        for c in connections
        if c.source_id not in known_port_ids or c.target_id not in known_port_ids
    ]
