# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Flask JSON API behind the POP / DIO editors.

Each editor action maps to one endpoint operating on a draft: the draft is
loaded, transformed by the connection-graph services, stored back and
returned whole so the client can re-render.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any
from uuid import uuid4

import yaml
from flask import Flask, Response, abort, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
from yaml import YAMLError

from db import Database
from models import OltStructure, PopDocument
from services.cables import LinkStatus, link_cable_in_pop
from services.equipment import (
    create_dio,
    create_olt,
    delete_dio,
    delete_olt,
    resize_dio,
    resize_olt,
    set_status,
)
from services.export import bom_csv, document_json, port_map_csv
from services.graph import (
    clear_connections,
    connect_across_devices,
    connect_fiber_to_port,
    connect_olt_to_port,
    disconnect_port,
    release_connection,
)
from services.highlight import HighlightState, forward_otdr, lit_connections
from services.reachability import build_pop_index

logger = logging.getLogger(__name__)

EQUIPMENT_STATUSES = {"PLANNED", "NOT_DEPLOYED", "DEPLOYED", "CERTIFIED"}


def _validation_message(exc: ValidationError) -> str:
    return f"Validation error: {exc.error_count()} error(s): {exc.errors()[0]['msg']}"


def create_app() -> Flask:
    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "dev-secret")
    app.config["MAX_CONTENT_LENGTH"] = 1024 * 1024

    db = Database(os.environ.get("FIBERROOM_DB", "fiberroom.db"))
    db.init_db()

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException) -> tuple[Response, int]:
        return jsonify({"error": exc.description}), exc.code or 500

    @app.errorhandler(ValidationError)
    def validation_error(exc: ValidationError) -> tuple[Response, int]:
        return jsonify({"error": _validation_message(exc)}), 400

    def _payload() -> dict[str, Any]:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    def _field(payload: dict[str, Any], key: str) -> Any:
        value = payload.get(key)
        if value is None or value == "":
            abort(400, description=f"missing field: {key}")
        return value

    def _int_field(payload: dict[str, Any], key: str) -> int:
        value = _field(payload, key)
        try:
            return int(value)
        except (TypeError, ValueError):
            abort(400, description=f"{key} must be an integer")

    def _load(draft_id: str) -> PopDocument:
        row = db.get_draft(draft_id)
        if not row:
            abort(404, description="draft not found")
        return PopDocument.model_validate(json.loads(row["document_json"]))

    def _store(draft_id: str, pop: PopDocument, status: int = 200, **extra: Any):
        # edits go through model_copy, so re-run the cross-reference checks
        document = PopDocument.model_validate(pop.to_document()).to_document()
        db.save_draft(draft_id, pop.id, document)
        return jsonify({"draft_id": draft_id, "document": document, **extra}), status

    def _revision_document(revision_id: str) -> tuple[Any, PopDocument]:
        rev = db.get_revision(revision_id)
        if not rev:
            abort(404, description="revision not found")
        return rev, PopDocument.model_validate(json.loads(rev["document_json"]))

    @app.get("/pops")
    def list_pops() -> Response:
        return jsonify([dict(row) for row in db.list_pops()])

    @app.post("/pops/upload")
    def upload():
        file = request.files.get("pop_document")
        if file is not None and file.filename:
            raw = file.read().decode("utf-8")
        else:
            raw = request.get_data(as_text=True)
        if not raw.strip():
            abort(400, description="Please send a POP document")
        try:
            data = yaml.safe_load(raw)
        except YAMLError as exc:
            abort(400, description=f"YAML parse error: {exc}")
        pop = PopDocument.model_validate(data)
        draft_id = str(uuid4())
        logger.info("Opened draft %s for POP %s", draft_id, pop.id)
        return _store(draft_id, pop, status=201)

    @app.get("/drafts/<draft_id>")
    def get_draft(draft_id: str):
        pop = _load(draft_id)
        return jsonify({"draft_id": draft_id, "document": pop.to_document()})

    @app.post("/drafts/<draft_id>/splice")
    def splice(draft_id: str):
        pop = _load(draft_id)
        payload = _payload()
        connections = connect_fiber_to_port(
            pop.connections, _field(payload, "fiber_port"), _field(payload, "target_port")
        )
        return _store(draft_id, pop.model_copy(update={"connections": connections}))

    @app.post("/drafts/<draft_id>/patch")
    def patch(draft_id: str):
        pop = _load(draft_id)
        payload = _payload()
        connections = connect_olt_to_port(
            pop.connections,
            _field(payload, "olt_port"),
            _field(payload, "target_port"),
            pop.settings.color_standard,
            pop.settings.ports_per_tray,
        )
        return _store(draft_id, pop.model_copy(update={"connections": connections}))

    @app.post("/drafts/<draft_id>/connect")
    def connect(draft_id: str):
        pop = _load(draft_id)
        payload = _payload()
        connections = connect_across_devices(
            pop.connections,
            _field(payload, "port_a"),
            _field(payload, "port_b"),
            _field(payload, "dio_id"),
            pop.settings.color_standard,
        )
        return _store(draft_id, pop.model_copy(update={"connections": connections}))

    @app.post("/drafts/<draft_id>/disconnect")
    def disconnect(draft_id: str):
        pop = _load(draft_id)
        connections = disconnect_port(pop.connections, _field(_payload(), "port"))
        return _store(draft_id, pop.model_copy(update={"connections": connections}))

    @app.post("/drafts/<draft_id>/release")
    def release(draft_id: str):
        pop = _load(draft_id)
        payload = _payload()
        connections = release_connection(
            pop.connections,
            _field(payload, "connection_id"),
            payload.get("drop_port") or None,
            _field(payload, "dio_id"),
            payload.get("moving_port") or None,
        )
        return _store(draft_id, pop.model_copy(update={"connections": connections}))

    @app.post("/drafts/<draft_id>/clear")
    def clear(draft_id: str):
        pop = _load(draft_id)
        return _store(draft_id, pop.model_copy(update={"connections": clear_connections()}))

    @app.post("/drafts/<draft_id>/dios/<dio_id>/cables")
    def toggle_cable(draft_id: str, dio_id: str):
        pop = _load(draft_id)
        pop, result = link_cable_in_pop(pop, dio_id, _field(_payload(), "cable_id"))
        if result.status is LinkStatus.UNKNOWN_DIO:
            abort(404, description="dio not found")
        if result.status is LinkStatus.UNKNOWN_CABLE:
            abort(404, description="cable not found")
        status = 409 if result.status is LinkStatus.ALREADY_LINKED_ELSEWHERE else 200
        return _store(
            draft_id,
            pop,
            status=status,
            link={"status": result.status.value, "other_dio_id": result.other_dio_id},
        )

    @app.post("/drafts/<draft_id>/olts")
    def add_olt(draft_id: str):
        pop = _load(draft_id)
        payload = _payload()
        try:
            slots = int(payload.get("slots", pop.settings.default_olt_slots))
            ports = int(payload.get("ports_per_slot", pop.settings.default_olt_ports_per_slot))
        except (TypeError, ValueError):
            abort(400, description="slots and ports_per_slot must be integers")
        pop, olt = create_olt(pop, slots, ports, payload.get("name"))
        return _store(draft_id, pop, status=201, device_id=olt.id)

    @app.put("/drafts/<draft_id>/olts/<olt_id>")
    def edit_olt(draft_id: str, olt_id: str):
        pop = _load(draft_id)
        if pop.find_olt(olt_id) is None:
            abort(404, description="olt not found")
        payload = _payload()
        structure = OltStructure.model_validate(
            {k: payload[k] for k in ("slots", "ports_per_slot", "slots_config") if k in payload}
        )
        return _store(draft_id, resize_olt(pop, olt_id, structure, payload.get("name")))

    @app.delete("/drafts/<draft_id>/olts/<olt_id>")
    def remove_olt(draft_id: str, olt_id: str):
        pop = _load(draft_id)
        if pop.find_olt(olt_id) is None:
            abort(404, description="olt not found")
        return _store(draft_id, delete_olt(pop, olt_id))

    @app.post("/drafts/<draft_id>/dios")
    def add_dio(draft_id: str):
        pop = _load(draft_id)
        payload = _payload()
        ports = payload.get("ports", pop.settings.default_dio_ports)
        try:
            pop, dio = create_dio(pop, int(ports), payload.get("name"))
        except (TypeError, ValueError) as exc:
            abort(400, description=str(exc))
        return _store(draft_id, pop, status=201, device_id=dio.id)

    @app.put("/drafts/<draft_id>/dios/<dio_id>")
    def edit_dio(draft_id: str, dio_id: str):
        pop = _load(draft_id)
        if pop.find_dio(dio_id) is None:
            abort(404, description="dio not found")
        payload = _payload()
        try:
            pop = resize_dio(pop, dio_id, _int_field(payload, "ports"), payload.get("name"))
        except ValueError as exc:
            abort(400, description=str(exc))
        return _store(draft_id, pop)

    @app.delete("/drafts/<draft_id>/dios/<dio_id>")
    def remove_dio(draft_id: str, dio_id: str):
        pop = _load(draft_id)
        if pop.find_dio(dio_id) is None:
            abort(404, description="dio not found")
        return _store(draft_id, delete_dio(pop, dio_id))

    @app.put("/drafts/<draft_id>/equipment/<device_id>/status")
    def equipment_status(draft_id: str, device_id: str):
        pop = _load(draft_id)
        status = _field(_payload(), "status")
        if status not in EQUIPMENT_STATUSES:
            abort(400, description=f"unsupported status: {status!r}")
        if pop.find_olt(device_id) is None and pop.find_dio(device_id) is None:
            abort(404, description="equipment not found")
        return _store(draft_id, set_status(pop, device_id, status))

    @app.get("/drafts/<draft_id>/reachability")
    def reachability(draft_id: str) -> Response:
        pop = _load(draft_id)
        index = build_pop_index(pop)
        return jsonify(
            {
                "active": index.active_olt_info,
                "spliced_ports": sorted(index.dio_ports_with_splice),
                "fiber_fusions": {f: c.id for f, c in index.fiber_fusions.items()},
            }
        )

    @app.post("/drafts/<draft_id>/highlight")
    def highlight(draft_id: str) -> Response:
        pop = _load(draft_id)
        payload = _payload()
        lit = payload.get("lit_ports") or []
        if not isinstance(lit, list):
            abort(400, description="lit_ports must be a list")
        state = HighlightState.from_iterable(lit, payload.get("vfl_source"))
        return jsonify(
            {
                "lit_connections": sorted(lit_connections(pop.connections, state.lit_ports)),
                "vfl_source": state.vfl_source,
            }
        )

    @app.post("/drafts/<draft_id>/otdr")
    def otdr(draft_id: str) -> Response:
        _load(draft_id)
        payload = _payload()
        recorded = forward_otdr(
            _field(payload, "port"),
            payload.get("distance"),
            lambda port, meters: db.record_otdr(draft_id, port, meters),
        )
        return jsonify({"recorded": recorded})

    @app.get("/drafts/<draft_id>/otdr")
    def otdr_traces(draft_id: str) -> Response:
        _load(draft_id)
        return jsonify([dict(row) for row in db.list_otdr(draft_id)])

    @app.post("/drafts/<draft_id>/save")
    def save(draft_id: str):
        pop = _load(draft_id)
        revision_id = db.save_revision(pop.id, pop.name, _payload().get("note"), pop.to_document())
        logger.info("Saved revision %s of POP %s", revision_id, pop.id)
        return jsonify({"pop_id": pop.id, "revision_id": revision_id}), 201

    @app.get("/pops/<pop_id>/revisions")
    def revisions(pop_id: str) -> Response:
        rows = db.list_revisions(pop_id)
        return jsonify([{k: row[k] for k in row.keys() if k != "document_json"} for row in rows])

    @app.get("/revisions/<revision_id>/export/ports.csv")
    def export_ports(revision_id: str) -> Response:
        _, pop = _revision_document(revision_id)
        # ?lit_ports=a,b or repeated ?lit_ports=a&lit_ports=b
        lit = [p for value in request.args.getlist("lit_ports") for p in value.split(",") if p]
        return Response(
            port_map_csv(pop, revision_id, lit),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={revision_id}_ports.csv"},
        )

    @app.get("/revisions/<revision_id>/export/bom.csv")
    def export_bom(revision_id: str) -> Response:
        _, pop = _revision_document(revision_id)
        return Response(
            bom_csv(pop),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={revision_id}_bom.csv"},
        )

    @app.get("/revisions/<revision_id>/export/document.json")
    def export_document(revision_id: str) -> Response:
        _, pop = _revision_document(revision_id)
        return Response(document_json(pop), mimetype="application/json")

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(host="0.0.0.0", port=5000, debug=True)
