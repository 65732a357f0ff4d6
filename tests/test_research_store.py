import json
from pathlib import Path

import pytest

from sirin.research_store import (
    ResearchStatus,
    ResearchStep,
    ResearchStore,
    ResearchTask,
    research_log_path,
)


def make_task(task_id, status):
    return ResearchTask(
        id=task_id,
        topic=f"test topic {task_id}",
        status=status,
        started_at="2024-05-01T10:00:00+00:00",
        url=None,
        steps=[ResearchStep(phase="overview", output="Test output")],
        final_report="Test report",
        finished_at="2024-05-01T10:05:00+00:00",
    )


@pytest.fixture
def store(tmp_path):
    return ResearchStore(tmp_path / "tracking" / "research.jsonl")


def test_persistence_save_and_get(store):
    store.save(make_task("unit-1", ResearchStatus.DONE))
    found = store.get("unit-1")
    assert found is not None
    assert found.id == "unit-1"
    assert found.final_report == "Test report"


def test_persistence_update_overwrites(store):
    task = make_task("upd-1", ResearchStatus.RUNNING)
    task.final_report = None
    store.save(task)

    task.status = ResearchStatus.DONE
    task.final_report = "Updated"
    store.save(task)

    matches = [t for t in store.list_tasks() if t.id == "upd-1"]
    assert len(matches) == 1
    assert matches[0].status == ResearchStatus.DONE
    assert matches[0].final_report == "Updated"


def test_persistence_list_contains_saved(store):
    store.save(make_task("lst-1", ResearchStatus.DONE))
    assert any(t.id == "lst-1" for t in store.list_tasks())


def test_list_preserves_insertion_order(store):
    for task_id in ("a", "b", "c"):
        store.save(make_task(task_id, ResearchStatus.DONE))
    store.save(make_task("b", ResearchStatus.FAILED))
    assert [t.id for t in store.list_tasks()] == ["a", "b", "c"]
    assert store.get("b").status == ResearchStatus.FAILED


def test_missing_file_lists_nothing(store):
    assert store.list_tasks() == []
    assert store.get("anything") is None


def test_malformed_lines_skipped_and_kept(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("not json\n\n", encoding="utf-8")
    store.save(make_task("x", ResearchStatus.DONE))
    assert [t.id for t in store.list_tasks()] == ["x"]
    lines = store.path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "not json"
    assert len(lines) == 2


def test_written_line_format(store):
    store.save(make_task("fmt", ResearchStatus.DONE))
    line = store.path.read_text(encoding="utf-8").splitlines()[0]
    assert '"status":"done"' in line
    assert '"url":null' in line
    assert json.loads(line)["steps"] == [{"phase": "overview", "output": "Test output"}]
    assert not store.path.with_suffix(".jsonl.tmp").exists()


def test_round_trip_dict_with_unicode():
    task = make_task("rt", ResearchStatus.FAILED)
    task.url = "https://example.com/"
    task.final_report = "調研失敗：timeout"
    again = ResearchTask.from_dict(task.to_dict())
    assert again == task


def test_from_dict_allows_missing_optionals():
    task = ResearchTask.from_dict(
        {
            "id": "m",
            "topic": "t",
            "status": "running",
            "steps": [],
            "started_at": "2024-01-01T00:00:00+00:00",
        }
    )
    assert task.url is None
    assert task.final_report is None
    assert task.finished_at is None
    assert task.status == ResearchStatus.RUNNING


def test_from_dict_rejects_bad_status():
    data = make_task("s", ResearchStatus.DONE).to_dict()
    data["status"] = "Done"
    with pytest.raises(ValueError):
        ResearchTask.from_dict(data)


def test_from_dict_rejects_missing_steps():
    data = make_task("s", ResearchStatus.DONE).to_dict()
    del data["steps"]
    with pytest.raises(ValueError):
        ResearchTask.from_dict(data)


def test_research_log_path_with_localappdata():
    path = research_log_path({"LOCALAPPDATA": "/tmp/appdata"})
    assert path == Path("/tmp/appdata") / "Sirin" / "tracking" / "research.jsonl"


def test_research_log_path_default():
    assert research_log_path({}) == Path("data") / "tracking" / "research.jsonl"