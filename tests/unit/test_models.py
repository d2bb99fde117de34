"""Unit tests for records, models and recordsets without a database."""

from unittest.mock import Mock

import pandas as pd
import pytest

from querystone.common.exceptions import ErrorCode, QuerystoneError
from querystone.models import Model, RecordItem, Recordset, field_getter, field_setter, snake_case


class Person(RecordItem):

    @field_getter("full_name")
    def _full_name(self):
        return f"{self.get('first')} {self.get('last')}"

    @field_setter("email")
    def _email(self, value):
        self.store("email", value.strip().lower())


class Employee(Person):

    @field_getter("badge")
    def _badge(self):
        return f"E-{self.get('id')}"


class UserAccount(Model):
    pass


class AuditEntry(Model):
    table_name = "audit_log"
    primary_key = "entry_id"


class _StaticRows(Recordset):

    def get_query(self):
        return "SELECT * FROM t"


class TestRecordItem:

    def test_plain_fields(self):
        record = RecordItem({"a": 1})
        record["b"] = 2
        assert record.get("a") == 1
        assert record["b"] == 2
        assert record.get("missing", "x") == "x"
        assert record.to_dict() == {"a": 1, "b": 2}
        assert len(record) == 2
        assert list(record) == ["a", "b"]

    def test_field_getter_and_setter(self):
        person = Person({"first": "Ada", "last": "Lovelace", "email": "  ADA@Example.org "})
        assert person["full_name"] == "Ada Lovelace"
        assert person["email"] == "ada@example.org"
        assert "full_name" in person
        assert "full_name" not in person.to_dict()

    def test_accessors_are_inherited_per_class(self):
        employee = Employee({"id": 7, "first": "Grace", "last": "Hopper"})
        assert employee["badge"] == "E-7"
        assert employee["full_name"] == "Grace Hopper"
        assert "badge" not in Person._field_getters
        assert RecordItem._field_getters == {}

    def test_store_bypasses_setter(self):
        person = Person()
        person.store("email", " RAW ")
        assert person["email"] == " RAW "

    def test_flush_and_equality(self):
        assert Person({"a": 1}) == Person({"a": 1})
        assert Person({"a": 1}) != Employee({"a": 1})
        person = Person({"a": 1})
        person.flush()
        assert len(person) == 0


class TestModel:

    @pytest.mark.parametrize(
        "name, expected",
        [("UserAccount", "user_account"), ("Order", "order"), ("HTTPLog", "httplog"), ("OrderItemV2", "order_item_v2")],
    )
    def test_snake_case(self, name, expected):
        assert snake_case(name) == expected

    def test_table_name(self):
        assert UserAccount.get_table_name() == "user_account"
        assert AuditEntry.get_table_name() == "audit_log"

    def test_unbound_model(self):
        with pytest.raises(QuerystoneError) as exc_info:
            UserAccount().find(1)
        assert exc_info.value.error_code is ErrorCode.CONFIG_MISSING

    def test_load_veto(self):
        class Guarded(Model):
            def before_load(self, data):
                return "id" in data

        model = Guarded()
        assert model.load({"name": "x"}) is False
        assert len(model) == 0
        assert model.load({"id": 1}) is True
        assert model.id == 1

    def test_custom_primary_key(self):
        entry = AuditEntry(data={"entry_id": 4})
        assert entry.id == 4
        assert not entry.is_existing()

    def test_delete_without_id_is_skipped(self):
        db = Mock()
        assert UserAccount(db).delete() is None
        db.get_query_builder.assert_not_called()

    def test_insert_veto(self):
        class ReadOnly(Model):
            def before_insert(self):
                return False

        db = Mock()
        assert ReadOnly(db, {"name": "x"}).insert() is None
        db.get_query_builder.assert_not_called()


class TestRecordset:

    def test_paging_validation(self):
        with pytest.raises(QuerystoneError) as exc_info:
            _StaticRows(page_size=0)
        assert exc_info.value.error_code is ErrorCode.VALIDATION_ERROR
        with pytest.raises(QuerystoneError):
            _StaticRows(page_index=0)

    def test_offset(self):
        assert _StaticRows(page_size=20, page_index=3).offset == 40

    def test_fetch_rows_uses_params(self):
        db = Mock()
        db.load_sql.return_value.fetch_all.return_value = [{"id": 1}]
        rows = _StaticRows(db, params={"a": 1}).fetch_rows()

        db.load_sql.assert_called_once_with("SELECT * FROM t", {"a": 1})
        db.load_sql.return_value.fetch_all.assert_called_once_with(None)
        assert rows.rows == [{"id": 1}]

    def test_cursor_access(self):
        rows = _StaticRows().set_rows([{"id": 1}, {"id": 2}])
        assert rows.fetch_row() == {"id": 1}
        assert rows.fetch_row() == {"id": 2}
        assert rows.fetch_row() is None
        rows.rewind()
        assert rows.fetch_row() == {"id": 1}
        assert rows.fetch_row(1) == {"id": 2}
        assert rows.fetch_row(5) is None

    def test_column_filter_applies_to_records(self):
        original = Person({"id": 1, "first": "Ada", "last": "L"})
        rows = _StaticRows(columns=["id"]).set_rows([original, {"id": 2, "first": "Bo"}])

        assert rows[0].to_dict() == {"id": 1}
        assert isinstance(rows[0], Person)
        assert original.to_dict() == {"id": 1, "first": "Ada", "last": "L"}
        assert rows[1] == {"id": 2}

    def test_get_column_and_empty_set(self):
        rows = _StaticRows()
        assert rows.first() is None
        assert rows.get_column("id") is None
        rows.set_rows([{"id": 1}, {"id": 2}])
        assert rows.get_column("id") == 1
        assert rows.get_column("id", rows.last()) == 2

    def test_to_dataframe(self):
        rows = _StaticRows().set_rows([{"id": 1, "name": "a"}, Person({"id": 2, "name": "b"})])
        frame = rows.to_dataframe()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame["id"]) == [1, 2]
