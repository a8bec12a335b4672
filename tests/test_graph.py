# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""Connection graph mutations: splice/patch exclusivity, moves, pruning."""

from __future__ import annotations

from conftest import edge, edges_touching

from services import graph
from services.graph import (
    connect_across_devices,
    connect_fiber_to_port,
    connect_olt_to_port,
    dangling_connections,
    disconnect_port,
    new_connection_id,
    patch_partner,
    prune_ports,
    prune_to_port_set,
    release_connection,
    remove_device,
    splice_partner,
)
from services.palette import ABNT_COLORS, EIA598_COLORS
from services.ports import PortKind, classify, is_olt_port


def test_splice_creates_fusion_edge() -> None:
    conns = connect_fiber_to_port([], "cbl1-fiber-0", "dioA-p-0")
    assert len(conns) == 1
    assert conns[0].id.startswith("fusion-")
    assert (conns[0].source_id, conns[0].target_id) == ("cbl1-fiber-0", "dioA-p-0")


def test_splice_does_not_mutate_input() -> None:
    original = [edge("fusion-1", "cbl1-fiber-0", "dioA-p-0")]
    connect_fiber_to_port(original, "cbl1-fiber-0", "dioA-p-5")
    assert [c.target_id for c in original] == ["dioA-p-0"]


def test_fiber_moves_instead_of_multi_connecting() -> None:
    conns: list = []
    for port in ("dioA-p-0", "dioA-p-1", "dioA-p-2"):
        conns = connect_fiber_to_port(conns, "cbl1-fiber-0", port)
    fiber_edges = edges_touching(conns, "cbl1-fiber-0")
    assert len(fiber_edges) == 1
    assert fiber_edges[0].target_id == "dioA-p-2"


def test_second_fiber_displaces_first_but_keeps_patch() -> None:
    conns = connect_fiber_to_port([], "cbl1-fiber-0", "dioA-p-0")
    conns = connect_olt_to_port(conns, "olt1-s1-p1", "dioA-p-0")
    patch = next(c for c in conns if c.source_id == "olt1-s1-p1")

    conns = connect_fiber_to_port(conns, "cbl1-fiber-1", "dioA-p-0")

    assert edges_touching(conns, "cbl1-fiber-0") == []
    assert splice_partner(conns, "dioA-p-0") == "cbl1-fiber-1"
    assert patch in conns


def test_patch_keeps_splice_and_replaces_previous_patch() -> None:
    conns = connect_fiber_to_port([], "cbl1-fiber-0", "dioA-p-0")
    conns = connect_olt_to_port(conns, "olt1-s1-p1", "dioA-p-0")
    conns = connect_olt_to_port(conns, "olt1-s1-p2", "dioA-p-0")

    assert splice_partner(conns, "dioA-p-0") == "cbl1-fiber-0"
    assert patch_partner(conns, "dioA-p-0") == "olt1-s1-p2"
    assert edges_touching(conns, "olt1-s1-p1") == []
    assert len(edges_touching(conns, "dioA-p-0")) == 2


def test_olt_port_moves_to_new_dio_port() -> None:
    conns = connect_olt_to_port([], "olt1-s1-p1", "dioA-p-0")
    conns = connect_olt_to_port(conns, "olt1-s1-p1", "dioA-p-5")
    assert len(edges_touching(conns, "olt1-s1-p1")) == 1
    assert patch_partner(conns, "dioA-p-0") is None
    assert patch_partner(conns, "dioA-p-5") == "olt1-s1-p1"


def test_patch_color_follows_dio_tray() -> None:
    conns = connect_olt_to_port([], "olt1-s1-p1", "dioA-p-0")
    conns = connect_olt_to_port(conns, "olt1-s1-p2", "dioA-p-13")
    conns = connect_olt_to_port(conns, "olt1-s1-p3", "dioA-p-25", color_standard="EIA598")
    colors = {c.target_id: c.color for c in conns}
    assert colors["dioA-p-0"] == ABNT_COLORS[0]
    assert colors["dioA-p-13"] == ABNT_COLORS[1]
    assert colors["dioA-p-25"] == EIA598_COLORS[2]
    assert all(c.id.startswith("patch-") for c in conns)


def test_self_connections_are_ignored() -> None:
    base = [edge("fusion-1", "cbl1-fiber-0", "dioA-p-0")]
    assert connect_fiber_to_port(base, "cbl1-fiber-0", "cbl1-fiber-0") == base
    assert connect_olt_to_port(base, "olt1-s1-p1", "olt1-s1-p1") == base
    assert connect_across_devices(base, "dioA-p-1", "dioA-p-1", "dioA") == base


def test_wrong_port_kinds_are_ignored() -> None:
    base = [edge("fusion-1", "cbl1-fiber-0", "dioA-p-0")]
    assert connect_fiber_to_port(base, "dioA-p-3", "dioA-p-4") == base
    assert connect_olt_to_port(base, "dioA-p-3", "dioA-p-4") == base


def _assert_port_capacities(conns: list) -> None:
    """Fiber and OLT ports hold one edge; DIO ports one splice plus one patch."""
    ports = {p for c in conns for p in (c.source_id, c.target_id)}
    for port in ports:
        touching = edges_touching(conns, port)
        kind = classify(port)
        if kind in (PortKind.FIBER, PortKind.OLT_PORT):
            assert len(touching) <= 1, port
        elif kind is PortKind.DIO_PORT:
            patches = [c for c in touching if is_olt_port(c.partner(port))]
            assert len(patches) <= 1, port
            assert len(touching) - len(patches) <= 1, port


def test_patch_onto_another_olt_port_is_ignored() -> None:
    base = connect_olt_to_port([], "olt1-s1-p2", "dioA-p-0")
    conns = connect_olt_to_port(base, "olt1-s1-p1", "olt1-s1-p2")
    assert conns == base
    assert len(edges_touching(conns, "olt1-s1-p2")) == 1


def test_patch_onto_fiber_is_ignored() -> None:
    base = connect_fiber_to_port([], "cbl1-fiber-0", "dioA-p-0")
    conns = connect_olt_to_port(base, "olt1-s1-p1", "cbl1-fiber-0")
    assert conns == base
    assert len(edges_touching(conns, "cbl1-fiber-0")) == 1


def test_splice_onto_olt_port_is_ignored() -> None:
    base = connect_olt_to_port([], "olt1-s1-p1", "dioA-p-0")
    conns = connect_fiber_to_port(base, "cbl1-fiber-0", "olt1-s1-p1")
    assert conns == base
    assert len(edges_touching(conns, "olt1-s1-p1")) == 1


def test_splice_and_patch_onto_splitter_port() -> None:
    conns = connect_fiber_to_port([], "cbl1-fiber-0", "spl-1-in")
    conns = connect_olt_to_port(conns, "olt1-s1-p1", "spl-1-in")
    assert splice_partner(conns, "spl-1-in") == "cbl1-fiber-0"
    assert patch_partner(conns, "spl-1-in") == "olt1-s1-p1"


def test_mixed_edit_sequence_keeps_port_capacities(monkeypatch) -> None:
    monkeypatch.setattr(graph, "_now_ms", lambda: 7)
    conns: list = []
    steps = [
        lambda c: connect_fiber_to_port(c, "cbl1-fiber-0", "dioA-p-0"),
        lambda c: connect_olt_to_port(c, "olt1-s1-p1", "dioA-p-0"),
        lambda c: connect_fiber_to_port(c, "cbl1-fiber-1", "dioA-p-0"),
        lambda c: connect_olt_to_port(c, "olt1-s1-p1", "dioA-p-1"),
        lambda c: connect_across_devices(c, "dioA-p-1", "cbl1-fiber-1", "dioA"),
        lambda c: connect_across_devices(c, "dioA-p-2", "olt1-s1-p2", "dioA"),
        lambda c: connect_olt_to_port(c, "olt1-s1-p2", "cbl1-fiber-1"),
        lambda c: connect_fiber_to_port(c, "cbl1-fiber-2", "olt1-s1-p2"),
        lambda c: connect_olt_to_port(c, "olt1-s1-p3", "olt1-s1-p1"),
        lambda c: connect_across_devices(c, "cbl1-fiber-2", "dioA-p-2", "dioA"),
        lambda c: connect_fiber_to_port(c, "cbl1-fiber-2", "dioA-p-1"),
        lambda c: connect_olt_to_port(c, "olt1-s1-p2", "dioA-p-1"),
    ]
    for step in steps:
        conns = step(conns)
        _assert_port_capacities(conns)

    assert splice_partner(conns, "dioA-p-1") == "cbl1-fiber-2"
    assert patch_partner(conns, "dioA-p-1") == "olt1-s1-p2"
    assert patch_partner(conns, "dioA-p-0") is None
    assert len({c.id for c in conns}) == len(conns)


def test_disconnect_port_removes_every_edge() -> None:
    conns = connect_fiber_to_port([], "cbl1-fiber-0", "dioA-p-0")
    conns = connect_olt_to_port(conns, "olt1-s1-p1", "dioA-p-0")
    conns = connect_fiber_to_port(conns, "cbl1-fiber-1", "dioA-p-1")
    conns = disconnect_port(conns, "dioA-p-0")
    assert edges_touching(conns, "dioA-p-0") == []
    assert len(conns) == 1


def test_across_devices_requires_exactly_one_active_dio_port() -> None:
    base = [edge("fusion-1", "cbl1-fiber-0", "dioA-p-0")]
    assert connect_across_devices(base, "dioA-p-1", "dioA-p-2", "dioA") == base
    assert connect_across_devices(base, "cbl1-fiber-3", "dioB-p-2", "dioA") == base


def test_across_devices_splices_and_keeps_patch() -> None:
    conns = connect_fiber_to_port([], "cbl1-fiber-0", "dioA-p-0")
    conns = connect_olt_to_port(conns, "olt1-s1-p1", "dioA-p-0")
    conns = connect_across_devices(conns, "dioA-p-0", "cbl1-fiber-5", "dioA")

    assert splice_partner(conns, "dioA-p-0") == "cbl1-fiber-5"
    assert patch_partner(conns, "dioA-p-0") == "olt1-s1-p1"
    assert edges_touching(conns, "cbl1-fiber-0") == []


def test_across_devices_moves_an_already_spliced_fiber() -> None:
    conns = connect_fiber_to_port([], "cbl1-fiber-0", "dioA-p-0")
    conns = connect_across_devices(conns, "dioA-p-7", "cbl1-fiber-0", "dioA")
    fiber_edges = edges_touching(conns, "cbl1-fiber-0")
    assert len(fiber_edges) == 1
    assert fiber_edges[0].partner("cbl1-fiber-0") == "dioA-p-7"
    assert edges_touching(conns, "dioA-p-0") == []


def test_across_devices_with_olt_port_becomes_patch() -> None:
    conns = connect_fiber_to_port([], "cbl1-fiber-0", "dioA-p-0")
    conns = connect_across_devices(conns, "dioA-p-0", "olt1-s2-p3", "dioA")
    assert patch_partner(conns, "dioA-p-0") == "olt1-s2-p3"
    assert splice_partner(conns, "dioA-p-0") == "cbl1-fiber-0"
    assert next(c for c in conns if c.touches("olt1-s2-p3")).id.startswith("patch-")


def test_release_onto_nothing_deletes_edge() -> None:
    base = [
        edge("fusion-1", "cbl1-fiber-0", "dioA-p-0"),
        edge("patch-1", "olt1-s1-p1", "dioA-p-0"),
    ]
    conns = release_connection(base, "fusion-1", None, "dioA")
    assert [c.id for c in conns] == ["patch-1"]


def test_release_onto_port_reattaches_fixed_end() -> None:
    base = [edge("fusion-1", "cbl1-fiber-0", "dioA-p-0")]
    conns = release_connection(base, "fusion-1", "dioA-p-9", "dioA")
    assert len(conns) == 1
    assert conns[0].touches("cbl1-fiber-0")
    assert conns[0].touches("dioA-p-9")


def test_release_rejected_drop_does_not_roll_back() -> None:
    base = [edge("fusion-1", "cbl1-fiber-0", "dioA-p-0")]
    conns = release_connection(base, "fusion-1", "cbl1-fiber-4", "dioA")
    assert conns == []


def test_release_unknown_connection_is_noop() -> None:
    base = [edge("fusion-1", "cbl1-fiber-0", "dioA-p-0")]
    assert release_connection(base, "nope", None, "dioA") == base


def test_prune_to_port_set_keeps_surviving_and_foreign_edges() -> None:
    base = [
        edge("fusion-1", "cbl1-fiber-0", "dioA-p-0"),
        edge("fusion-2", "cbl1-fiber-1", "dioA-p-15"),
        edge("fusion-3", "cbl1-fiber-2", "dioB-p-15"),
    ]
    survivors = {f"dioA-p-{i}" for i in range(12)}
    conns = prune_to_port_set(base, "dioA", survivors)
    assert [c.id for c in conns] == ["fusion-1", "fusion-3"]


def test_prune_ports_by_diff() -> None:
    base = [
        edge("fusion-1", "cbl1-fiber-0", "dioA-p-0"),
        edge("patch-1", "olt1-s2-p1", "dioA-p-1"),
    ]
    assert [c.id for c in prune_ports(base, ["olt1-s2-p1"])] == ["fusion-1"]
    assert prune_ports(base, []) == base


def test_remove_device_does_not_touch_prefix_sibling() -> None:
    base = [
        edge("fusion-1", "cbl1-fiber-0", "dio-1-p-0"),
        edge("fusion-2", "cbl1-fiber-1", "dio-12-p-0"),
    ]
    assert [c.id for c in remove_device(base, "dio-1")] == ["fusion-2"]


def test_dangling_connections() -> None:
    base = [
        edge("fusion-1", "cbl1-fiber-0", "dioA-p-0"),
        edge("fusion-2", "cbl1-fiber-1", "dioA-p-99"),
    ]
    known = {"cbl1-fiber-0", "cbl1-fiber-1", "dioA-p-0"}
    assert [c.id for c in dangling_connections(base, known)] == ["fusion-2"]


def test_new_connection_id_avoids_collisions(monkeypatch) -> None:
    monkeypatch.setattr(graph, "_now_ms", lambda: 1700000000000)
    taken = [edge("fusion-1700000000000", "a-fiber-0", "b-p-0")]
    assert new_connection_id("fusion", []) == "fusion-1700000000000"
    assert new_connection_id("fusion", taken) == "fusion-1700000000000-1"


def test_fast_successive_splices_get_distinct_ids(monkeypatch) -> None:
    monkeypatch.setattr(graph, "_now_ms", lambda: 42)
    conns = connect_fiber_to_port([], "cbl1-fiber-0", "dioA-p-0")
    conns = connect_fiber_to_port(conns, "cbl1-fiber-1", "dioA-p-1")
    assert len({c.id for c in conns}) == 2
