# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Document models and validation for a POP (equipment room) document."""

from __future__ import annotations

import json
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from services.palette import SPLICE_COLOR
from services.ports import fiber_port_id

SUPPORTED_COLOR_STANDARDS = {"ABNT", "EIA598"}
EquipmentStatus = Literal["PLANNED", "NOT_DEPLOYED", "DEPLOYED", "CERTIFIED"]

# Persisted documents use the camelCase keys of the editor front end.
RECORD_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Point(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    x: float
    y: float


class Connection(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True
    )

    id: str
    source_id: str
    target_id: str
    color: str = SPLICE_COLOR
    points: tuple[Point, ...] = ()

    def touches(self, port_id: str) -> bool:
        return self.source_id == port_id or self.target_id == port_id

    def partner(self, port_id: str) -> str | None:
        if self.source_id == port_id:
            return self.target_id
        if self.target_id == port_id:
            return self.source_id
        return None


class Cable(BaseModel):
    model_config = RECORD_CONFIG

    id: str
    name: str = ""
    fiber_count: int = Field(gt=0)
    loose_tube_count: int = Field(default=1, ge=1)
    color_standard: Literal["ABNT", "EIA598"] = "ABNT"

    @model_validator(mode="after")
    def validate_tubes(self) -> "Cable":
        if self.loose_tube_count > self.fiber_count:
            raise ValueError(
                f"cable {self.id}: loose_tube_count ({self.loose_tube_count}) "
                f"exceeds fiber_count ({self.fiber_count})"
            )
        return self


class SlotConfig(BaseModel):
    model_config = RECORD_CONFIG

    active: bool = True
    port_count: int = Field(ge=0)


class OltStructure(BaseModel):
    model_config = RECORD_CONFIG

    slots: int = Field(gt=0)
    ports_per_slot: int = Field(gt=0)
    slots_config: list[SlotConfig] | None = None

    @model_validator(mode="after")
    def validate_slots_config(self) -> "OltStructure":
        if self.slots_config is not None and len(self.slots_config) != self.slots:
            raise ValueError(
                f"slots_config lists {len(self.slots_config)} entries for {self.slots} slots"
            )
        return self

    @classmethod
    def uniform(cls, slots: int, ports_per_slot: int) -> "OltStructure":
        return cls(
            slots=slots,
            ports_per_slot=ports_per_slot,
            slots_config=[SlotConfig(active=True, port_count=ports_per_slot) for _ in range(slots)],
        )


class Olt(BaseModel):
    model_config = RECORD_CONFIG

    id: str
    name: str
    port_ids: list[str] = Field(default_factory=list)
    structure: OltStructure | None = None
    status: EquipmentStatus = "PLANNED"


class Dio(BaseModel):
    model_config = RECORD_CONFIG

    id: str
    name: str
    port_ids: list[str] = Field(default_factory=list)
    input_cable_ids: list[str] = Field(default_factory=list)
    status: EquipmentStatus = "PLANNED"


class PopSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    color_standard: str = "ABNT"
    ports_per_tray: int = Field(default=12, gt=0)
    default_olt_slots: int = Field(default=1, gt=0)
    default_olt_ports_per_slot: int = Field(default=8, gt=0)
    default_dio_ports: int = Field(default=24, gt=0)

    @model_validator(mode="after")
    def validate_color_standard(self) -> "PopSettings":
        if self.color_standard not in SUPPORTED_COLOR_STANDARDS:
            raise ValueError(
                f"unsupported color_standard: {self.color_standard!r}; "
                f"allowed: {sorted(SUPPORTED_COLOR_STANDARDS)}"
            )
        return self


class PopDocument(BaseModel):
    model_config = RECORD_CONFIG

    id: str
    name: str
    olts: list[Olt] = Field(default_factory=list)
    dios: list[Dio] = Field(default_factory=list)
    cables: list[Cable] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    layout: dict[str, Any] = Field(default_factory=dict)
    settings: PopSettings = Field(default_factory=PopSettings)

    @model_validator(mode="after")
    def validate_references(self) -> "PopDocument":
        device_ids = [o.id for o in self.olts] + [d.id for d in self.dios]
        if len(set(device_ids)) != len(device_ids):
            raise ValueError("equipment ids must be unique")
        cable_ids = [c.id for c in self.cables]
        if len(set(cable_ids)) != len(cable_ids):
            raise ValueError("cable ids must be unique")
        connection_ids = [c.id for c in self.connections]
        if len(set(connection_ids)) != len(connection_ids):
            raise ValueError("connection ids must be unique")

        owners: dict[str, str] = {}
        known_cables = set(cable_ids)
        for dio in self.dios:
            for cable_id in dio.input_cable_ids:
                if cable_id in owners and owners[cable_id] != dio.id:
                    raise ValueError(
                        f"cable {cable_id} is linked to both {owners[cable_id]} and {dio.id}"
                    )
                owners[cable_id] = dio.id
                if known_cables and cable_id not in known_cables:
                    raise ValueError(f"dio {dio.id} references unknown cable {cable_id}")
        return self

    @classmethod
    def from_yaml(cls, raw: str) -> "PopDocument":
        return cls.model_validate(yaml.safe_load(raw))

    @classmethod
    def from_json(cls, raw: str) -> "PopDocument":
        return cls.model_validate(json.loads(raw))

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def find_olt(self, olt_id: str) -> Olt | None:
        return next((o for o in self.olts if o.id == olt_id), None)

    def find_dio(self, dio_id: str) -> Dio | None:
        return next((d for d in self.dios if d.id == dio_id), None)

    def find_cable(self, cable_id: str) -> Cable | None:
        return next((c for c in self.cables if c.id == cable_id), None)

    def known_port_ids(self) -> set[str]:
        ports: set[str] = set()
        for olt in self.olts:
            ports.update(olt.port_ids)
        for dio in self.dios:
            ports.update(dio.port_ids)
        for cable in self.cables:
            ports.update(fiber_port_id(cable.id, i) for i in range(cable.fiber_count))
        return ports
