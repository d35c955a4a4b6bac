# tests/test_json_repo.py

from __future__ import annotations

import json
from pathlib import Path

from weekplan.storage.json_repo import JsonTaskRepository, task_from_dict, task_to_dict
from weekplan.tasks.task_models import Category
from weekplan.tasks.task_store import TaskStore

from fakes import make_task


def test_missing_file_loads_empty(tmp_path: Path) -> None:
    assert JsonTaskRepository(tmp_path / "nope.json").load() == []


def test_corrupt_or_foreign_payload_loads_empty(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_text("{not json", "utf-8")
    assert JsonTaskRepository(path).load() == []

    path.write_text(json.dumps({"tasks": []}), "utf-8")
    assert JsonTaskRepository(path).load() == []


def test_undecodable_records_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    good = task_to_dict(make_task("a"))
    path.write_text(json.dumps([good, {"id": "x"}, "junk", {**good, "id": "b", "category": "OTHER"}]), "utf-8")

    tasks = JsonTaskRepository(path).load()
    assert [t.id for t in tasks] == ["a"]


def test_save_then_load(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "tasks.json"
    repo = JsonTaskRepository(path)
    tasks = [
        make_task("a", project="Site", billed=True),
        make_task("b", start=12.0, end=13.5, category=Category.NON_BILLABLE, type="Admin", description="notes"),
    ]
    repo.save(tasks)

    assert path.exists()
    assert not path.with_suffix(".json.tmp").exists()
    assert repo.load() == tasks


def test_dict_encoding_omits_absent_fields() -> None:
    raw = task_to_dict(make_task("b", category=Category.NON_BILLABLE, type="Admin"))
    assert "client" not in raw
    assert "billed" not in raw
    assert task_from_dict({**raw, "billed": True}).billed is False


def test_store_survives_restart(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    store = TaskStore(JsonTaskRepository(path))
    store.upsert(make_task("a"))
    store.upsert(make_task("b", start=10.0, end=11.0))
    store.delete("a")

    reopened = TaskStore(JsonTaskRepository(path))
    assert [t.id for t in reopened.all_tasks()] == ["b"]
