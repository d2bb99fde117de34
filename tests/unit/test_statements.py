"""Tests for INSERT, UPDATE, DELETE and TRUNCATE rendering."""

import pytest

from querystone.common.exceptions import ErrorCode, QuerystoneError


class _Record:
    def __init__(self, **values):
        self._values = values

    def to_dict(self):
        return dict(self._values)


class TestInsert:

    def test_single_row(self, qb):
        sql = qb.prepare().insert("users", {"name": "ann", "age": 30})
        assert sql == "INSERT INTO `users` (`name`, `age`) VALUES ('ann', '30')"

    def test_set_then_insert(self, qb):
        sql = qb.prepare().set("name", "ann").set("created_at", "NOW()", quote=False).insert("users")
        assert sql == "INSERT INTO `users` (`name`, `created_at`) VALUES ('ann', NOW())"

    def test_record_object_values(self, qb):
        sql = qb.prepare().insert("users", _Record(name="ann"))
        assert sql == "INSERT INTO `users` (`name`) VALUES ('ann')"

    def test_none_renders_null(self, qb):
        sql = qb.prepare().insert("users", {"name": None})
        assert sql.endswith("VALUES (NULL)")

    def test_replace(self, qb):
        sql = qb.prepare().replace("users", {"id": 1})
        assert sql == "REPLACE INTO `users` (`id`) VALUES ('1')"

    def test_table_falls_back_to_from(self, qb):
        sql = qb.prepare().from_("users").insert(values={"id": 1})
        assert sql.startswith("INSERT INTO `users`")

    def test_batch_rows(self, qb):
        sql = qb.prepare().insert("t", [{"a": 1, "b": 2}, {"b": 4, "a": 3}])
        assert sql == "INSERT INTO `t` (`a`, `b`) VALUES ('1', '2'), ('3', '4')"

    def test_batch_rows_must_share_columns(self, qb):
        with pytest.raises(QuerystoneError) as exc_info:
            qb.prepare().insert("t", [{"a": 1}, {"a": 2, "b": 3}])
        assert exc_info.value.error_code is ErrorCode.VALIDATION_ERROR
        assert not qb.is_prepared

    def test_nothing_to_insert(self, qb):
        assert qb.prepare().insert("t") is False
        assert not qb.is_prepared

    def test_missing_table(self, qb):
        with pytest.raises(QuerystoneError) as exc_info:
            qb.prepare().insert(values={"a": 1})
        assert exc_info.value.error_code is ErrorCode.CONFIG_MISSING


class TestUpdate:

    def test_update_with_where(self, qb):
        sql = qb.prepare().where("id", 7).update("users", {"name": "bo"})
        assert sql == "UPDATE `users` SET `name` = 'bo' WHERE `id` = '7'"

    def test_update_arguments(self, qb):
        sql = qb.prepare().update("users", {"name": "bo"}, where={"id": 7}, limit=1)
        assert sql == "UPDATE `users` SET `name` = 'bo' WHERE `id` = '7' LIMIT 1"

    def test_update_with_order(self, qb):
        sql = qb.prepare().order_by("id", "desc").limit(2).update("users", {"flag": 1})
        assert sql == "UPDATE `users` SET `flag` = '1' ORDER BY `id` DESC LIMIT 2"

    def test_batch_update(self, qb):
        sql = qb.prepare().update(
            "users",
            [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}],
            where_key="id",
        )
        assert sql == (
            "UPDATE `users` SET `name` = CASE \n"
            "WHEN `id` = '1' THEN 'a'\n"
            "WHEN `id` = '2' THEN 'b'\n"
            "ELSE `name` END WHERE `id` IN ('1','2')"
        )

    def test_batch_update_keeps_extra_conditions(self, qb):
        sql = qb.prepare().where("active", 1).update("users", [{"id": 1, "name": "a"}], where_key="id")
        assert sql.endswith(" WHERE `active` = '1' AND `id` IN ('1')")

    def test_batch_update_requires_key(self, qb):
        with pytest.raises(QuerystoneError) as exc_info:
            qb.prepare().update("users", [{"id": 1, "name": "a"}])
        assert exc_info.value.error_code is ErrorCode.VALIDATION_ERROR

    def test_batch_update_rows_need_key_column(self, qb):
        with pytest.raises(QuerystoneError) as exc_info:
            qb.prepare().update("users", [{"name": "a"}], where_key="id")
        assert exc_info.value.error_code is ErrorCode.VALIDATION_ERROR

    def test_nothing_to_update(self, qb):
        assert qb.prepare().where("id", 1).update("users") is False

    def test_skipped_update_leaves_no_state_behind(self, qb):
        assert qb.prepare().update("users", where={"id": 1}) is False
        assert not qb.is_prepared
        assert qb.select("*").from_("t").compose_select() == "SELECT *\nFROM (`t`)"


class TestDelete:

    def test_delete_requires_condition(self, qb):
        with pytest.raises(QuerystoneError) as exc_info:
            qb.prepare().delete("t")
        assert exc_info.value.error_code is ErrorCode.CONFIG_ERROR
        assert "must use where condition" in exc_info.value.message

    def test_delete_with_condition(self, qb):
        assert qb.prepare().delete("t", {"id": 3}) == "DELETE FROM `t`\nWHERE `id` = '3'"

    def test_delete_with_limit(self, qb):
        assert qb.prepare().delete("t", {"id": 3}, limit=1) == "DELETE FROM `t`\nWHERE `id` = '3' LIMIT 1"

    def test_like_condition_is_enough(self, qb):
        sql = qb.prepare().like("name", "tmp", "after").delete("t")
        assert sql == "DELETE FROM `t`\nWHERE `name` LIKE 'tmp%'"

    def test_delete_from_several_tables(self, qb):
        sql = qb.prepare().where("id", 3).delete(["a", "b"])
        assert sql == "DELETE FROM `a`\nWHERE `id` = '3';\nDELETE FROM `b`\nWHERE `id` = '3';"


class TestTruncate:

    def test_truncate(self, qb):
        assert qb.prepare().truncate("t") == "TRUNCATE `t`"

    def test_truncate_requires_table(self, qb):
        with pytest.raises(QuerystoneError) as exc_info:
            qb.prepare().truncate()
        assert exc_info.value.error_code is ErrorCode.CONFIG_MISSING
        assert not qb.is_prepared
