# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).

from __future__ import annotations

from typing import Any

import pytest

from models import Connection, OltStructure, PopDocument
from services.equipment import derive_dio_ports, derive_olt_ports
from services.graph import edges_on


def pop_payload() -> dict[str, Any]:
    """A small POP: one 2x8 OLT, a 24-port and a 12-port DIO, two cables."""
    return {
        "id": "pop1",
        "name": "POP Centro",
        "olts": [
            {
                "id": "olt1",
                "name": "OLT1",
                "portIds": derive_olt_ports("olt1", OltStructure.uniform(2, 8)),
                "structure": {"slots": 2, "portsPerSlot": 8},
            }
        ],
        "dios": [
            {
                "id": "dioA",
                "name": "DIO A",
                "portIds": derive_dio_ports("dioA", 24),
                "inputCableIds": ["cbl1"],
            },
            {
                "id": "dioB",
                "name": "DIO B",
                "portIds": derive_dio_ports("dioB", 12),
                "inputCableIds": [],
            },
        ],
        "cables": [
            {"id": "cbl1", "name": "CB-01", "fiberCount": 12},
            {"id": "cblX", "name": "CB-X", "fiberCount": 24, "looseTubeCount": 2},
        ],
        "connections": [],
    }


@pytest.fixture
def pop() -> PopDocument:
    return PopDocument.model_validate(pop_payload())


def edge(conn_id: str, source: str, target: str) -> Connection:
    return Connection(id=conn_id, source_id=source, target_id=target)


def edges_touching(connections: list[Connection], port_id: str) -> list[Connection]:
    return edges_on(connections, port_id)
