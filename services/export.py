# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Export helpers for the DIO port map CSV, BOM CSV, and document JSON."""

from __future__ import annotations

import csv
import io
import json
from collections import Counter
from collections.abc import Iterable
from typing import Any

from models import PopDocument
from services.cables import tube_position
from services.palette import fiber_color
from services.ports import DioPort, FiberPort, is_fiber, is_olt_port, parse_port
from services.reachability import build_pop_index

PORT_MAP_COLUMNS = [
    "pop_id",
    "revision_id",
    "dio_id",
    "dio_name",
    "port",
    "tray",
    "fiber_port_id",
    "cable_id",
    "cable_name",
    "tube",
    "fiber",
    "fiber_color",
    "olt",
    "lit",
]

BOM_COLUMNS = [
    "item_type",
    "description",
    "quantity",
]


def port_map_rows(pop: PopDocument, lit_ports: Iterable[str] = ()) -> list[dict[str, Any]]:
    """One row per DIO port: its splice on the back and its patch on the front."""
    index = build_pop_index(pop)
    lit = set(lit_ports)
    ports_per_tray = pop.settings.ports_per_tray
    spliced_fiber = {
        conn.partner(fiber): fiber for fiber, conn in index.fiber_fusions.items()
    }

    rows: list[dict[str, Any]] = []
    for dio in pop.dios:
        for port_id in dio.port_ids:
            ref = parse_port(port_id)
            number = ref.index if isinstance(ref, DioPort) else dio.port_ids.index(port_id)
            row: dict[str, Any] = {
                "pop_id": pop.id,
                "dio_id": dio.id,
                "dio_name": dio.name,
                "port": number + 1,
                "tray": number // ports_per_tray + 1,
                "olt": index.active_olt_info.get(port_id, ""),
                "lit": "yes" if port_id in lit else "",
            }
            fiber_id = spliced_fiber.get(port_id)
            fiber = parse_port(fiber_id) if fiber_id else None
            if isinstance(fiber, FiberPort):
                row["fiber_port_id"] = fiber_id
                row["cable_id"] = fiber.cable_id
                cable = pop.find_cable(fiber.cable_id)
                if cable is not None and fiber.index is not None:
                    tube, offset = tube_position(cable, fiber.index)
                    row["cable_name"] = cable.name
                    row["tube"] = tube + 1
                    row["fiber"] = fiber.index + 1
                    row["fiber_color"] = fiber_color(offset, cable.color_standard)
            rows.append(row)
    return rows


def port_map_csv(
    pop: PopDocument, revision_id: str | None = None, lit_ports: Iterable[str] = ()
) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=PORT_MAP_COLUMNS)
    writer.writeheader()
    for row in port_map_rows(pop, lit_ports):
        row = {**row, "revision_id": revision_id or ""}
        writer.writerow({k: row.get(k, "") for k in PORT_MAP_COLUMNS})
    return buf.getvalue()


def bom_rows(pop: PopDocument) -> list[dict[str, Any]]:
    """Build Bill of Materials rows for the equipment room."""
    rows: list[dict[str, Any]] = []

    olt_counts: Counter[str] = Counter()
    for olt in pop.olts:
        olt_counts[f"OLT ({len(olt.port_ids)} PON ports)"] += 1
    for desc, qty in sorted(olt_counts.items()):
        rows.append({"item_type": "olt", "description": desc, "quantity": qty})

    dio_counts: Counter[str] = Counter()
    for dio in pop.dios:
        dio_counts[f"DIO ({len(dio.port_ids)} ports)"] += 1
    for desc, qty in sorted(dio_counts.items()):
        rows.append({"item_type": "dio", "description": desc, "quantity": qty})

    # one splice per edge, even when both ends are fibers
    splices = sum(
        1 for c in pop.connections if is_fiber(c.source_id) or is_fiber(c.target_id)
    )
    if splices:
        rows.append({"item_type": "splice", "description": "fusion splice", "quantity": splices})

    cords = sum(
        1 for c in pop.connections if is_olt_port(c.source_id) or is_olt_port(c.target_id)
    )
    if cords:
        rows.append({"item_type": "patch_cord", "description": "patch cord", "quantity": cords})

    return rows


def bom_csv(pop: PopDocument) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=BOM_COLUMNS)
    writer.writeheader()
    writer.writerows(bom_rows(pop))
    return buf.getvalue()


def document_json(pop: PopDocument) -> str:
    return json.dumps(pop.to_document(), ensure_ascii=False, indent=2, default=str)
