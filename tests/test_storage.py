"""Tests for the task repositories and record migration."""

import json

import httpx
import pytest

from taskmaster.models.task import TaskDraft, TaskStatus
from taskmaster.storage.base import RepositoryError
from taskmaster.storage.local import JsonFileTaskRepository
from taskmaster.storage.memory import InMemoryTaskRepository
from taskmaster.storage.migrations import (
    load_records,
    migrate_record,
    migrate_status,
    partition_records,
)
from taskmaster.storage.remote import RemoteTaskRepository

REMOTE_URL = "http://tasks.test"


class TestInMemoryRepository:
    """Test the in-memory repository."""

    def test_create_assigns_identity(self, repository):
        task = repository.create(TaskDraft(title="New", due_date="2024-06-10"))

        assert task.id
        assert task.created_at is not None
        assert task.updated_at == task.created_at
        assert repository.get(task.id) == task

    def test_ids_are_unique(self, repository):
        ids = {repository.create(TaskDraft(title=f"t{i}")).id for i in range(10)}
        assert len(ids) == 10

    def test_list_preserves_insertion_order(self, repository):
        first = repository.create(TaskDraft(title="first"))
        second = repository.create(TaskDraft(title="second"))

        assert repository.list() == [first, second]

    def test_list_is_a_snapshot(self, repository):
        repository.create(TaskDraft(title="only"))
        snapshot = repository.list()
        snapshot.clear()

        assert len(repository.list()) == 1

    def test_update_replaces_contents(self, repository):
        task = repository.create(TaskDraft(title="old", comments="keep?"))

        updated = repository.update(task.id, TaskDraft(title="new"))

        assert updated.id == task.id
        assert updated.created_at == task.created_at
        assert updated.comments is None
        assert repository.get(task.id).title == "new"

    def test_missing_task(self, repository):
        assert repository.get("missing") is None
        assert repository.update("missing", TaskDraft(title="x")) is None
        assert repository.delete("missing") is False

    def test_delete(self, repository):
        task = repository.create(TaskDraft(title="a"))
        other = repository.create(TaskDraft(title="b"))

        assert repository.delete(task.id) is True
        assert repository.list() == [other]

    def test_seeded(self, make_task):
        task = make_task("Seeded")
        assert InMemoryTaskRepository([task]).list() == [task]


class TestMigrations:
    """Test legacy record migration."""

    def test_legacy_record(self):
        record = {
            "id": 42,
            "title": "Legacy",
            "status": "done",
            "completionDate": "2024-05-01T12:00:00.000Z",
            "due_date": "2024-05-02",
            "assignees": "Alice, Bob",
        }

        migrated = migrate_record(record)

        assert migrated["_id"] == "42"
        assert migrated["status"] == "Completed"
        assert migrated["actualCompletionDate"] == "2024-05-01T12:00:00.000Z"
        assert migrated["dueDate"] == "2024-05-02"
        assert "id" not in migrated
        assert record["id"] == 42

    def test_completion_date_dropped_for_open_task(self):
        migrated = migrate_record({"_id": "1", "title": "Open", "status": "todo", "actualCompletionDate": "2024-05-01"})

        assert migrated["status"] == "To Do"
        assert "actualCompletionDate" not in migrated

    def test_current_names_win(self):
        migrated = migrate_record({"_id": "new", "id": "old", "title": "t"})
        assert migrated["_id"] == "new"

    @pytest.mark.parametrize("value,expected", [
        (None, TaskStatus.TODO),
        ("", TaskStatus.TODO),
        ("In Progress", TaskStatus.IN_PROGRESS),
        ("in_progress", TaskStatus.IN_PROGRESS),
        ("DONE", TaskStatus.COMPLETED),
        (TaskStatus.COMPLETED, TaskStatus.COMPLETED),
    ])
    def test_migrate_status(self, value, expected):
        assert migrate_status(value) == expected.value

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            migrate_status("archived")

    def test_load_records_skips_unreadable(self):
        tasks = load_records([
            {"_id": "1", "title": "Good", "assignees": "Alice, Bob", "startDate": "2024-06-01T00:00:00Z"},
            {"_id": "2", "title": "Bad status", "status": "archived"},
            {"_id": "3", "title": "Bad date", "dueDate": "June 1st"},
            "not a record",
            {"_id": "4"},
        ])

        assert [task.id for task in tasks] == ["1"]
        assert tasks[0].assignees == ["Alice", "Bob"]
        assert tasks[0].start_date == "2024-06-01"

    def test_partition_keeps_unreadable_records(self):
        bad = {"_id": "2", "title": "Bad status", "status": "archived"}

        tasks, unreadable = partition_records([{"_id": "1", "title": "Good"}, bad])

        assert [task.id for task in tasks] == ["1"]
        assert unreadable == [bad]


class TestJsonFileRepository:
    """Test the JSON file repository."""

    def test_missing_file_is_empty(self, tmp_path):
        repository = JsonFileTaskRepository(tmp_path / "tasks.json")

        assert repository.list() == []
        assert not (tmp_path / "tasks.json").exists()

    def test_changes_are_persisted(self, tmp_path):
        path = tmp_path / "data" / "tasks.json"
        repository = JsonFileTaskRepository(path)

        kept = repository.create(TaskDraft(title="Kept", start_date="2024-06-01", due_date="2024-06-03"))
        dropped = repository.create(TaskDraft(title="Dropped"))
        repository.update(kept.id, TaskDraft(title="Kept (edited)", due_date="2024-06-04"))
        repository.delete(dropped.id)

        records = json.loads(path.read_text(encoding="utf-8"))
        assert len(records) == 1
        assert records[0]["_id"] == kept.id
        assert records[0]["dueDate"] == "2024-06-04"
        assert "startDate" not in records[0]

        reloaded = JsonFileTaskRepository(path)
        assert [task.title for task in reloaded.list()] == ["Kept (edited)"]
        assert reloaded.get(kept.id).created_at == kept.created_at

    def test_legacy_file_is_migrated(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps([
            {"id": "a1", "title": "Old task", "status": "in_progress", "start_date": "2024-06-01"},
        ]), encoding="utf-8")

        task = JsonFileTaskRepository(path).get("a1")

        assert task.status == TaskStatus.IN_PROGRESS
        assert task.start_date == "2024-06-01"

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(RepositoryError):
            JsonFileTaskRepository(path)

    def test_file_must_hold_array(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"tasks": []}), encoding="utf-8")

        with pytest.raises(RepositoryError, match="JSON array"):
            JsonFileTaskRepository(path)

    def test_unreadable_records_survive_writes(self, tmp_path):
        path = tmp_path / "tasks.json"
        too_long = {"_id": "b", "title": "x" * 250, "status": "To Do"}
        path.write_text(json.dumps([
            {"_id": "a", "title": "Readable", "status": "To Do"},
            too_long,
        ]), encoding="utf-8")

        repository = JsonFileTaskRepository(path)
        assert [task.id for task in repository.list()] == ["a"]

        created = repository.create(TaskDraft(title="New"))
        repository.delete("a")

        records = json.loads(path.read_text(encoding="utf-8"))
        assert [record["_id"] for record in records] == [created.id, "b"]
        assert records[1] == too_long

    def test_failed_save_keeps_previous_state(self, tmp_path, monkeypatch):
        path = tmp_path / "tasks.json"
        repository = JsonFileTaskRepository(path)
        task = repository.create(TaskDraft(title="Saved"))
        on_disk = path.read_text(encoding="utf-8")

        def fail(tasks):
            raise RepositoryError("disk full")

        monkeypatch.setattr(repository, "_save", fail)

        with pytest.raises(RepositoryError):
            repository.create(TaskDraft(title="Lost"))
        with pytest.raises(RepositoryError):
            repository.update(task.id, TaskDraft(title="Renamed"))
        with pytest.raises(RepositoryError):
            repository.delete(task.id)

        assert repository.list() == [task]
        assert path.read_text(encoding="utf-8") == on_disk

    def test_unwritable_path(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        repository = JsonFileTaskRepository(blocker / "tasks.json")

        with pytest.raises(RepositoryError, match="Could not write"):
            repository.create(TaskDraft(title="Nowhere"))
        assert repository.list() == []


def remote_repository(handler) -> RemoteTaskRepository:
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url=REMOTE_URL)
    return RemoteTaskRepository(REMOTE_URL, client=client)


def stored(task_id="r1", **fields):
    record = {
        "_id": task_id,
        "title": "Remote task",
        "status": "To Do",
        "createdAt": "2024-06-01T09:00:00.000Z",
        "updatedAt": "2024-06-01T09:00:00.000Z",
    }
    record.update(fields)
    return record


class TestRemoteRepository:
    """Test the HTTP repository against a mocked task store."""

    def test_requires_url(self):
        with pytest.raises(ValueError):
            RemoteTaskRepository("")

    def test_list_plain_array(self):
        repository = remote_repository(
            lambda request: httpx.Response(200, json=[stored("r1"), stored("r2", dueDate="2024-06-10T00:00:00.000Z")])
        )

        tasks = repository.list()

        assert [task.id for task in tasks] == ["r1", "r2"]
        assert tasks[1].due_date == "2024-06-10"

    def test_list_wrapped(self):
        repository = remote_repository(lambda request: httpx.Response(200, json={"tasks": [stored()], "total": 1}))
        assert len(repository.list()) == 1

    def test_create_sends_wire_format(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=stored("new", **seen["body"]))

        task = remote_repository(handler).create(
            TaskDraft(title="Remote task", due_date="2024-06-10", assignees=["Alice"])
        )

        assert seen["method"] == "POST"
        assert seen["path"] == "/tasks/"
        assert seen["body"] == {"title": "Remote task", "status": "To Do", "dueDate": "2024-06-10",
                                "assignees": ["Alice"]}
        assert task.id == "new"

    def test_get_update_delete(self):
        def handler(request):
            if request.method == "GET":
                return httpx.Response(200, json=stored("r1"))
            if request.method == "PUT":
                return httpx.Response(200, json=stored("r1", **json.loads(request.content)))
            return httpx.Response(204)

        repository = remote_repository(handler)

        assert repository.get("r1").title == "Remote task"
        assert repository.update("r1", TaskDraft(title="Renamed")).title == "Renamed"
        assert repository.delete("r1") is True

    def test_not_found(self):
        repository = remote_repository(lambda request: httpx.Response(404, json={"error": "Task not found"}))

        assert repository.get("missing") is None
        assert repository.update("missing", TaskDraft(title="x")) is None
        assert repository.delete("missing") is False

    @pytest.mark.parametrize("body,expected", [
        ({"error": "Database unavailable"}, "Database unavailable"),
        ({"message": "Title is required"}, "Title is required"),
        ({"detail": "Bad gateway"}, "Bad gateway"),
        ({"unrelated": True}, "HTTP error! status: 500"),
    ])
    def test_error_message_from_body(self, body, expected):
        repository = remote_repository(lambda request: httpx.Response(500, json=body))

        with pytest.raises(RepositoryError, match=expected):
            repository.list()

    def test_error_without_json_body(self):
        repository = remote_repository(lambda request: httpx.Response(503, text="Service Unavailable"))

        with pytest.raises(RepositoryError, match="status: 503"):
            repository.create(TaskDraft(title="x"))

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(RepositoryError, match="Could not reach the task store"):
            remote_repository(handler).list()

    def test_invalid_task_payload(self):
        repository = remote_repository(lambda request: httpx.Response(200, json={"title": "no id"}))

        with pytest.raises(RepositoryError, match="invalid task"):
            repository.get("r1")

    @pytest.mark.parametrize("call", [
        lambda repository: repository.list(),
        lambda repository: repository.get("r1"),
        lambda repository: repository.create(TaskDraft(title="x")),
        lambda repository: repository.update("r1", TaskDraft(title="x")),
    ])
    def test_non_json_success_body(self, call):
        repository = remote_repository(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

        with pytest.raises(RepositoryError, match="not JSON"):
            call(repository)
