# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Add, resize, rename and delete OLTs and DIOs inside a POP document.

Port ids are always derived from the device structure. Whenever a device
loses ports, edges on the lost ports are pruned from the connection graph in
the same step, so the document never references a port that does not exist.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable

from models import Connection, Dio, EquipmentStatus, Olt, OltStructure, PopDocument, SlotConfig
from services.graph import prune_ports, prune_to_port_set, remove_device
from services.ports import dio_port_id, olt_port_id

logger = logging.getLogger(__name__)


def _new_device_id(prefix: str, taken: Iterable[str]) -> str:
    base = f"{prefix}-{int(time.time() * 1000)}"
    taken = set(taken)
    if base not in taken:
        return base
    n = 1
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def _device_ids(pop: PopDocument) -> list[str]:
    return [o.id for o in pop.olts] + [d.id for d in pop.dios]


def derive_olt_ports(olt_id: str, structure: OltStructure) -> list[str]:
    """Port ids of the active slots, slot and port numbered from 1."""
    configs = structure.slots_config or [
        SlotConfig(active=True, port_count=structure.ports_per_slot)
        for _ in range(structure.slots)
    ]
    return [
        olt_port_id(olt_id, slot, port)
        for slot, config in enumerate(configs, start=1)
        if config.active
        for port in range(1, config.port_count + 1)
    ]


def derive_dio_ports(dio_id: str, port_count: int) -> list[str]:
    return [dio_port_id(dio_id, i) for i in range(port_count)]


def removed_ports(old_port_ids: Iterable[str], new_port_ids: Iterable[str]) -> list[str]:
    new = set(new_port_ids)
    return [p for p in old_port_ids if p not in new]


def _reshape(
    pop: PopDocument, device_id: str, old: list[str], new: list[str]
) -> list[Connection]:
    gone = removed_ports(old, new)
    if gone:
        logger.debug("Device %s drops ports %s", device_id, gone)
    connections = prune_ports(pop.connections, gone)
    # edges on ports the device never listed (stale documents) go too
    return prune_to_port_set(connections, device_id, new)


def create_olt(
    pop: PopDocument, slots: int, ports_per_slot: int, name: str | None = None
) -> tuple[PopDocument, Olt]:
    structure = OltStructure.uniform(slots, ports_per_slot)
    olt_id = _new_device_id("olt", _device_ids(pop))
    olt = Olt(
        id=olt_id,
        name=name or f"OLT {len(pop.olts) + 1}",
        port_ids=derive_olt_ports(olt_id, structure),
        structure=structure,
    )
    logger.debug("Created %s with %d ports", olt_id, len(olt.port_ids))
    return pop.model_copy(update={"olts": [*pop.olts, olt]}), olt


def resize_olt(
    pop: PopDocument, olt_id: str, structure: OltStructure, name: str | None = None
) -> PopDocument:
    olt = pop.find_olt(olt_id)
    if olt is None:
        logger.debug("resize_olt: unknown OLT %s", olt_id)
        return pop
    new_ports = derive_olt_ports(olt_id, structure)
    updated = olt.model_copy(
        update={"port_ids": new_ports, "structure": structure, "name": name or olt.name}
    )
    return pop.model_copy(
        update={
            "olts": [updated if o.id == olt_id else o for o in pop.olts],
            "connections": _reshape(pop, olt_id, olt.port_ids, new_ports),
        }
    )


def delete_olt(pop: PopDocument, olt_id: str) -> PopDocument:
    olt = pop.find_olt(olt_id)
    if olt is None:
        return pop
    connections = remove_device(prune_ports(pop.connections, olt.port_ids), olt_id)
    logger.debug("Deleted %s", olt_id)
    return pop.model_copy(
        update={"olts": [o for o in pop.olts if o.id != olt_id], "connections": connections}
    )


def create_dio(
    pop: PopDocument, port_count: int, name: str | None = None
) -> tuple[PopDocument, Dio]:
    if port_count <= 0:
        raise ValueError("port_count must be positive")
    dio_id = _new_device_id("dio", _device_ids(pop))
    dio = Dio(
        id=dio_id,
        name=name or f"DIO {len(pop.dios) + 1}",
        port_ids=derive_dio_ports(dio_id, port_count),
    )
    logger.debug("Created %s with %d ports", dio_id, port_count)
    return pop.model_copy(update={"dios": [*pop.dios, dio]}), dio


def resize_dio(
    pop: PopDocument, dio_id: str, port_count: int, name: str | None = None
) -> PopDocument:
    if port_count <= 0:
        raise ValueError("port_count must be positive")
    dio = pop.find_dio(dio_id)
    if dio is None:
        logger.debug("resize_dio: unknown DIO %s", dio_id)
        return pop
    new_ports = derive_dio_ports(dio_id, port_count)
    updated = dio.model_copy(update={"port_ids": new_ports, "name": name or dio.name})
    return pop.model_copy(
        update={
            "dios": [updated if d.id == dio_id else d for d in pop.dios],
            "connections": _reshape(pop, dio_id, dio.port_ids, new_ports),
        }
    )


def delete_dio(pop: PopDocument, dio_id: str) -> PopDocument:
    dio = pop.find_dio(dio_id)
    if dio is None:
        return pop
    connections = remove_device(prune_ports(pop.connections, dio.port_ids), dio_id)
    logger.debug("Deleted %s", dio_id)
    return pop.model_copy(
        update={"dios": [d for d in pop.dios if d.id != dio_id], "connections": connections}
    )


def set_status(pop: PopDocument, device_id: str, status: EquipmentStatus) -> PopDocument:
    return pop.model_copy(
        update={
            "olts": [
                o.model_copy(update={"status": status}) if o.id == device_id else o
                for o in pop.olts
            ],
            "dios": [
                d.model_copy(update={"status": status}) if d.id == device_id else d
                for d in pop.dios
            ],
        }
    )
