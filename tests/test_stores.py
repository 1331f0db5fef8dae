import pytest

from task_api.db import SQLiteStore
from task_api.stores import ConditionalCheckFailedError, InMemoryStore, UpdatePlan


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "sqlite":
        return SQLiteStore(str(tmp_path / "nested" / "tasks.db"))
    return InMemoryStore()


def make_item(task_id="1", **extra):
    item = {"pk": f"TASK#{task_id}", "id": task_id, "title": "t", "isComplete": False}
    item.update(extra)
    return item


class TestUpdatePlan:
    def test_apply_sets_and_removes(self):
        plan = UpdatePlan(set_fields={"title": "new"}, remove_fields=("detail", "dueAt"))
        original = make_item(detail="d")
        updated = plan.apply(original)
        assert updated["title"] == "new"
        assert "detail" not in updated
        # input is left untouched
        assert original["detail"] == "d"


class TestKeyValueStoreContract:
    def test_empty_scan(self, store):
        assert store.scan() == []

    def test_put_then_get(self, store):
        store.put_item(make_item(detail="d"))
        assert store.get_item("TASK#1") == make_item(detail="d")

    def test_get_missing(self, store):
        assert store.get_item("TASK#missing") is None

    def test_put_replaces_existing(self, store):
        store.put_item(make_item(detail="d"))
        store.put_item(make_item(title="other"))
        assert store.get_item("TASK#1") == make_item(title="other")

    def test_scan_returns_all(self, store):
        for i in range(4):
            store.put_item(make_item(str(i)))
        assert sorted(item["id"] for item in store.scan()) == ["0", "1", "2", "3"]

    def test_update_existing(self, store):
        store.put_item(make_item(detail="d"))
        plan = UpdatePlan(
            set_fields={"title": "changed", "isComplete": True},
            remove_fields=("detail", "dueAt"),
        )
        updated = store.update_item("TASK#1", plan)
        assert updated == {"pk": "TASK#1", "id": "1", "title": "changed", "isComplete": True}
        assert store.get_item("TASK#1") == updated

    def test_update_missing_raises_and_writes_nothing(self, store):
        with pytest.raises(ConditionalCheckFailedError) as exc_info:
            store.update_item("TASK#missing", UpdatePlan(set_fields={"title": "x"}))
        assert exc_info.value.key == "TASK#missing"
        assert store.scan() == []

    def test_delete_existing(self, store):
        store.put_item(make_item())
        store.delete_item("TASK#1")
        assert store.get_item("TASK#1") is None

    def test_delete_missing_raises(self, store):
        store.put_item(make_item())
        with pytest.raises(ConditionalCheckFailedError):
            store.delete_item("TASK#2")
        assert len(store.scan()) == 1

    def test_returned_items_are_copies(self, store):
        store.put_item(make_item())
        fetched = store.get_item("TASK#1")
        fetched["title"] = "mutated"
        assert store.get_item("TASK#1")["title"] == "t"


class TestSQLitePersistence:
    def test_data_survives_new_instance(self, tmp_path):
        path = str(tmp_path / "tasks.db")
        SQLiteStore(path).put_item(make_item(detail="persisted"))
        assert SQLiteStore(path).get_item("TASK#1")["detail"] == "persisted"
