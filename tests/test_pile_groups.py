"""
Group store tests: CRUD, ordering, totals, observers and record loading.
"""

import logging

import pytest

from pile_calculations import metrics_for_group
from pile_groups import GROUP_FIELDS, PileGroupStore


def _without_id(record):
    return {k: v for k, v in record.items() if k != "id"}


# ============================================================
# Add / get
# ============================================================

def test_add_then_get_round_trip(sample_group):
    store = PileGroupStore()
    group_id = store.add(sample_group)
    record = store.get(group_id)
    assert record["id"] == group_id
    assert _without_id(record) == sample_group


def test_add_generates_unique_ids(sample_group):
    store = PileGroupStore()
    ids = {store.add(sample_group) for _ in range(50)}
    assert len(ids) == 50
    assert len(store) == 50


def test_add_ignores_caller_supplied_id(sample_group):
    store = PileGroupStore()
    group_id = store.add({**sample_group, "id": "mine"})
    assert group_id != "mine"
    assert "mine" not in store


def test_add_coerces_numeric_types():
    store = PileGroupStore()
    group_id = store.add({
        "group_name": "P1",
        "pile_count": 3.0,
        "outer_diameter": 508,
        "wall_thickness": 12,
        "pile_length": 15,
        "paint_length": 0,
    })
    record = store.get(group_id)
    assert isinstance(record["pile_count"], int)
    assert isinstance(record["outer_diameter"], float)


def test_get_returns_copy(store):
    group_id = store.groups[0]["id"]
    store.get(group_id)["group_name"] = "changed"
    assert store.get(group_id)["group_name"] == "Berth piles"


def test_get_unknown_id_returns_none(store):
    assert store.get("missing") is None


def test_groups_keep_insertion_order(store):
    assert [g["group_name"] for g in store.groups] == ["Berth piles", "Fender piles"]
    assert [g["group_name"] for g in store] == ["Berth piles", "Fender piles"]


# ============================================================
# Update
# ============================================================

def test_update_keeps_id_and_position(store, sample_group):
    first, second = store.groups
    changed = {**sample_group, "group_name": "Renamed", "pile_count": 7, "paint_length": 0.0}
    assert store.update(second["id"], changed) is True

    groups = store.groups
    assert [g["id"] for g in groups] == [first["id"], second["id"]]
    assert _without_id(groups[1]) == changed
    assert groups[0] == first


def test_update_replaces_every_field(store, unpainted_group):
    group_id = store.groups[0]["id"]
    store.update(group_id, unpainted_group)
    assert _without_id(store.get(group_id)) == unpainted_group


def test_update_unknown_id_is_noop(store, sample_group, caplog):
    before = store.groups
    with caplog.at_level(logging.WARNING, logger="pile_groups"):
        assert store.update("missing", sample_group) is False
    assert store.groups == before
    assert "missing" in caplog.text


# ============================================================
# Remove / clear
# ============================================================

def test_remove_deletes_record(store):
    first, second = store.groups
    assert store.remove(first["id"]) is True
    assert store.groups == [second]
    assert first["id"] not in store


def test_remove_unknown_id_is_noop(store):
    before = store.groups
    assert store.remove("missing") is False
    assert store.groups == before


def test_clear_empties_store(store):
    store.clear()
    assert len(store) == 0
    assert store.totals() == {"total_weight": 0, "total_paint_area": 0}


# ============================================================
# Totals / summary
# ============================================================

def test_totals_of_empty_store_are_zero():
    assert PileGroupStore().totals() == {"total_weight": 0, "total_paint_area": 0}


def test_totals_sum_every_group(store, sample_group, unpainted_group):
    a = metrics_for_group(sample_group)
    b = metrics_for_group(unpainted_group)
    totals = store.totals()
    assert totals["total_weight"] == pytest.approx(a["total_weight"] + b["total_weight"])
    assert totals["total_paint_area"] == pytest.approx(a["total_paint_area"])


def test_totals_invariant_under_insertion_order(sample_group, unpainted_group):
    forward = PileGroupStore()
    forward.add(sample_group)
    forward.add(unpainted_group)
    backward = PileGroupStore()
    backward.add(unpainted_group)
    backward.add(sample_group)
    assert forward.totals()["total_weight"] == pytest.approx(backward.totals()["total_weight"])
    assert forward.totals()["total_paint_area"] == pytest.approx(backward.totals()["total_paint_area"])


def test_summary_merges_metrics(store):
    rows = store.summary()
    assert len(rows) == 2
    for row, group in zip(rows, store.groups):
        assert row["id"] == group["id"]
        assert row["total_weight"] == metrics_for_group(group)["total_weight"]
        assert set(GROUP_FIELDS) <= set(row)


# ============================================================
# Observers
# ============================================================

def test_observers_receive_each_change(sample_group):
    store = PileGroupStore()
    events = []
    store.subscribe(lambda event, group: events.append((event, group)))

    group_id = store.add(sample_group)
    store.update(group_id, {**sample_group, "group_name": "B"})
    store.remove(group_id)
    store.remove(group_id)  # unknown now, no event
    store.clear()

    assert [e for e, _ in events] == ["added", "updated", "removed", "cleared"]
    assert events[0][1]["id"] == group_id
    assert events[1][1]["group_name"] == "B"
    assert events[3][1] is None


def test_unsubscribe_stops_notifications(sample_group):
    store = PileGroupStore()
    events = []
    unsubscribe = store.subscribe(lambda event, group: events.append(event))
    store.add(sample_group)
    unsubscribe()
    store.add(sample_group)
    assert events == ["added"]


# ============================================================
# Records
# ============================================================

def test_records_load_into_new_store(store):
    copy = PileGroupStore(store.to_records())
    assert copy.groups == store.groups
    assert copy.totals() == store.totals()


def test_load_records_generates_missing_ids(sample_group):
    store = PileGroupStore()
    store.load_records([sample_group, {**sample_group, "id": "keep-me"}])
    ids = [g["id"] for g in store.groups]
    assert ids[0]
    assert ids[1] == "keep-me"


def test_load_records_replaces_contents(store, sample_group):
    store.load_records([sample_group])
    assert len(store) == 1


def test_load_records_rounds_fractional_pile_count(sample_group):
    store = PileGroupStore([{**sample_group, "pile_count": 2.7}, {**sample_group, "pile_count": "4"}])
    assert [g["pile_count"] for g in store.groups] == [3, 4]


def test_load_records_rejects_missing_field(sample_group):
    broken = dict(sample_group)
    del broken["wall_thickness"]
    with pytest.raises(KeyError):
        PileGroupStore([broken])
