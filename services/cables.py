# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Cable-to-DIO assignment and loose-tube layout of incoming cables."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from math import ceil

from models import Cable, Dio, PopDocument
from services.palette import fiber_color, is_light
from services.ports import fiber_port_id

logger = logging.getLogger(__name__)


class LinkStatus(str, Enum):
    LINKED = "linked"
    UNLINKED = "unlinked"
    ALREADY_LINKED_ELSEWHERE = "already_linked_elsewhere"
    UNKNOWN_DIO = "unknown_dio"
    UNKNOWN_CABLE = "unknown_cable"


@dataclass(frozen=True)
class LinkResult:
    status: LinkStatus
    other_dio_id: str | None = None

    @property
    def changed(self) -> bool:
        return self.status in (LinkStatus.LINKED, LinkStatus.UNLINKED)


def owner_of_cable(dios: list[Dio], cable_id: str) -> str | None:
    return next((d.id for d in dios if cable_id in d.input_cable_ids), None)


def link_cable(dio: Dio, cable_id: str, all_dios: list[Dio]) -> tuple[Dio, LinkResult]:
    """Toggle ``cable_id`` on ``dio``.

    A cable may be routed to a single DIO in the POP: linking one that another
    DIO already holds leaves everything unchanged and reports the holder.
    """
    if cable_id in dio.input_cable_ids:
        updated = dio.model_copy(
            update={"input_cable_ids": [c for c in dio.input_cable_ids if c != cable_id]}
        )
        return updated, LinkResult(LinkStatus.UNLINKED)

    holder = owner_of_cable([d for d in all_dios if d.id != dio.id], cable_id)
    if holder is not None:
        logger.info("Cable %s already linked to %s; not linking to %s", cable_id, holder, dio.id)
        return dio, LinkResult(LinkStatus.ALREADY_LINKED_ELSEWHERE, holder)

    updated = dio.model_copy(update={"input_cable_ids": [*dio.input_cable_ids, cable_id]})
    return updated, LinkResult(LinkStatus.LINKED)


def link_cable_in_pop(
    pop: PopDocument, dio_id: str, cable_id: str
) -> tuple[PopDocument, LinkResult]:
    dio = pop.find_dio(dio_id)
    if dio is None:
        return pop, LinkResult(LinkStatus.UNKNOWN_DIO)
    if pop.cables and pop.find_cable(cable_id) is None and cable_id not in dio.input_cable_ids:
        logger.info("Refusing to link unknown cable %s to %s", cable_id, dio_id)
        return pop, LinkResult(LinkStatus.UNKNOWN_CABLE)
    updated, result = link_cable(dio, cable_id, pop.dios)
    if not result.changed:
        return pop, result
    dios = [updated if d.id == dio_id else d for d in pop.dios]
    return pop.model_copy(update={"dios": dios}), result


def linked_cables(pop: PopDocument, dio_id: str) -> list[Cable]:
    dio = pop.find_dio(dio_id)
    if dio is None:
        return []
    return [c for c in pop.cables if c.id in dio.input_cable_ids]


@dataclass(frozen=True)
class FiberSlot:
    port_id: str
    index: int
    color: str


@dataclass(frozen=True)
class Tube:
    index: int
    color: str
    dark_text: bool
    fibers: list[FiberSlot]


def fibers_per_tube(cable: Cable) -> int:
    return ceil(cable.fiber_count / cable.loose_tube_count)


def tube_position(cable: Cable, fiber_index: int) -> tuple[int, int]:
    """(tube index, offset within the tube) of a 0-based fiber index."""
    per_tube = fibers_per_tube(cable)
    return fiber_index // per_tube, fiber_index % per_tube


def tube_layout(cable: Cable) -> list[Tube]:
    per_tube = fibers_per_tube(cable)
    tubes: list[Tube] = []
    for tube_idx in range(cable.loose_tube_count):
        start = tube_idx * per_tube
        end = min(start + per_tube, cable.fiber_count)
        fibers = [
            FiberSlot(
                port_id=fiber_port_id(cable.id, idx),
                index=idx,
                color=fiber_color(idx - start, cable.color_standard),
            )
            for idx in range(start, end)
        ]
        tubes.append(
            Tube(
                index=tube_idx,
                color=fiber_color(tube_idx, cable.color_standard),
                dark_text=is_light(tube_idx, cable.color_standard),
                fibers=fibers,
            )
        )
    return tubes
