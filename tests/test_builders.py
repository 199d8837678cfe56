"""Unit tests for the SELECT / INSERT / UPDATE / DELETE builders (SQL only)."""

from __future__ import annotations

import pytest

from chainsql import Query, query_for
from chainsql.errors import ConfigurationError, ShapeMismatchError
from chainsql.raw import Raw


# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------


class TestSelect:
    def test_end_to_end_mysql(self, mysql: Query):
        sql, bindings = (
            mysql.select("id", "name")
            .from_("users")
            .where("status = ?", "active")
            .order_by("id")
            .limit(5)
            .build()
        )
        assert sql == "SELECT `id`, `name` FROM `users` WHERE status = ? ORDER BY `id` ASC LIMIT 5"
        assert bindings == ["active"]

    def test_dialect_switch_changes_only_quoting(self, mysql: Query, postgres: Query):
        def chain(q: Query) -> str:
            return (
                q.select("u.id", "u.name")
                .from_("users u")
                .join("orders o", "o.user_id = u.id")
                .where("u.status = ?", "active")
                .order_by("u.name", "desc")
                .to_sql()
            )

        my_sql = chain(mysql)
        pg_sql = chain(postgres)
        assert "`" in my_sql and '"' not in my_sql
        assert pg_sql == my_sql.replace("`", '"')

    def test_default_columns_star(self, mysql: Query):
        assert mysql.from_("users").to_sql() == "SELECT * FROM `users`"

    def test_add_select_appends(self, mysql: Query):
        sql = mysql.from_("users").select("id").add_select("name", "{COUNT(*) AS n}").to_sql()
        assert sql == "SELECT `id`, `name`, COUNT(*) AS n FROM `users`"

    def test_add_select_replaces_star(self, mysql: Query):
        assert mysql.from_("users").add_select("id").to_sql() == "SELECT `id` FROM `users`"

    def test_distinct(self, mysql: Query):
        sql = mysql.select("status").from_("users").distinct().to_sql()
        assert sql == "SELECT DISTINCT `status` FROM `users`"

    def test_table_alias(self, postgres: Query):
        assert postgres.from_("users AS u").to_sql() == 'SELECT * FROM "users" AS "u"'

    def test_empty_table_is_fatal(self, mysql: Query):
        with pytest.raises(ConfigurationError, match="Table name cannot be empty"):
            mysql.select("id").build()
        with pytest.raises(ConfigurationError):
            mysql.from_("   ").build()

    def test_build_is_deterministic(self, mysql: Query):
        builder = mysql.from_("users").where("a = ?", 1).where_in("id", [1, 2]).limit(3)
        assert builder.build() == builder.build()

    def test_build_recomputes_after_mutation(self, mysql: Query):
        builder = mysql.from_("users").where("a = ?", 1)
        first = builder.build()
        builder.where("b = ?", 2)
        second = builder.build()
        assert first.sql != second.sql
        assert second.bindings == [1, 2]


class TestWhere:
    def test_or_and_glue(self, mysql: Query):
        sql, bindings = (
            mysql.from_("users").where("a = ?", 1).or_where("b = ?", 2).and_where("c = ?", 3).build()
        )
        assert sql == "SELECT * FROM `users` WHERE a = ? OR b = ? AND c = ?"
        assert bindings == [1, 2, 3]

    def test_nested_group(self, mysql: Query):
        sql, bindings = (
            mysql.from_("users")
            .where("status = ?", "active")
            .where(lambda c: c.where("age > ?", 18).or_where("vip = ?", 1))
            .build()
        )
        assert sql == "SELECT * FROM `users` WHERE status = ? AND (age > ? OR vip = ?)"
        assert bindings == ["active", 18, 1]

    def test_where_in_variants(self, mysql: Query):
        sql, bindings = (
            mysql.from_("users")
            .where_in("id", [1, 2, 3])
            .or_where_in("email", ["a@x"])
            .where_not_in("status", ["banned"])
            .build()
        )
        assert sql == (
            "SELECT * FROM `users` WHERE id IN (?, ?, ?) OR email IN (?) AND status NOT IN (?)"
        )
        assert bindings == [1, 2, 3, "a@x", "banned"]

    def test_empty_in_list_is_noop(self, mysql: Query):
        builder = mysql.from_("users").where_in("id", []).or_where_in("id", []).where_not_in("id", [])
        assert builder.build() == ("SELECT * FROM `users`", [])

    def test_null_and_between(self, postgres: Query):
        sql, bindings = (
            postgres.from_("users")
            .where_null("u.deleted_at")
            .where_not_null("email")
            .where_between("age", 18, 65)
            .build()
        )
        assert sql == (
            'SELECT * FROM "users" WHERE "u"."deleted_at" IS NULL '
            "AND email IS NOT NULL AND age BETWEEN ? AND ?"
        )
        assert bindings == [18, 65]

    def test_empty_group_omits_where_keyword(self, mysql: Query):
        assert mysql.from_("users").where(lambda c: None).to_sql() == "SELECT * FROM `users`"

    def test_raw_condition(self, mysql: Query):
        sql = mysql.from_("users").where(Raw("created_at > NOW() - INTERVAL 1 DAY")).to_sql()
        assert sql == "SELECT * FROM `users` WHERE created_at > NOW() - INTERVAL 1 DAY"


class TestJoins:
    def test_join_variants(self, mysql: Query):
        sql = (
            mysql.from_("users u")
            .join("orders o", "o.user_id = u.id")
            .left_join("profiles p", "p.user_id = u.id")
            .right_join("teams t", "t.id = u.team_id")
            .full_join("badges b", "b.user_id = u.id AND b.kind = ?", "gold")
            .to_sql()
        )
        assert sql == (
            "SELECT * FROM `users` AS `u` "
            "INNER JOIN `orders` AS `o` ON `o`.`user_id` = `u`.`id` "
            "LEFT JOIN `profiles` AS `p` ON `p`.`user_id` = `u`.`id` "
            "RIGHT JOIN `teams` AS `t` ON `t`.`id` = `u`.`team_id` "
            "FULL OUTER JOIN `badges` AS `b` ON `b`.`user_id` = `u`.`id` AND `b`.`kind` = ?"
        )

    def test_join_sub_bindings_precede_join_bindings(self, mysql: Query):
        sql, bindings = (
            mysql.from_("users u")
            .join_sub(
                lambda s: s.from_("orders")
                .select("user_id", "{SUM(total) AS total}")
                .where("status = ?", "paid")
                .group_by("user_id"),
                "t",
                "t.user_id = u.id AND t.total > ?",
                100,
            )
            .where("u.active = ?", 1)
            .build()
        )
        assert sql == (
            "SELECT * FROM `users` AS `u` INNER JOIN "
            "(SELECT `user_id`, SUM(total) AS total FROM `orders` "
            "WHERE status = ? GROUP BY `user_id`) AS `t` "
            "ON `t`.`user_id` = `u`.`id` AND `t`.`total` > ? "
            "WHERE `u`.`active` = ?"
        )
        assert bindings == ["paid", 100, 1]

    def test_left_join_sub(self, postgres: Query):
        sql = (
            postgres.from_("users u")
            .left_join_sub(lambda s: s.from_("orders").select("user_id"), "o", "o.user_id = u.id")
            .to_sql()
        )
        assert 'LEFT JOIN (SELECT "user_id" FROM "orders") AS "o" ON "o"."user_id" = "u"."id"' in sql

    def test_join_sub_without_table_is_fatal(self, mysql: Query):
        with pytest.raises(ConfigurationError):
            mysql.from_("users").join_sub(lambda s: s.select("id"), "x", "x.id = users.id")

    def test_join_bindings_come_before_where(self, mysql: Query):
        # WHERE registered first, JOIN second: priority order decides.
        _, bindings = (
            mysql.from_("users u").where("u.id = ?", 1).join("orders o", "o.status = ?", "paid").build()
        )
        assert bindings == ["paid", 1]


class TestGroupingOrderingLimit:
    def test_group_by_and_having(self, mysql: Query):
        sql, bindings = (
            mysql.select("status", "{COUNT(*) AS n}")
            .from_("users")
            .group_by("status")
            .having("COUNT(*) > ?", 5)
            .or_having_in("status", ["vip"])
            .build()
        )
        assert sql == (
            "SELECT `status`, COUNT(*) AS n FROM `users` "
            "GROUP BY `status` HAVING COUNT(*) > ? OR status IN (?)"
        )
        assert bindings == [5, "vip"]

    def test_group_by_appends(self, mysql: Query):
        sql = mysql.from_("users").group_by("a").group_by("b", "c").to_sql()
        assert sql == "SELECT * FROM `users` GROUP BY `a`, `b`, `c`"

    def test_having_in_empty_is_noop(self, mysql: Query):
        assert mysql.from_("users").having_in("x", []).to_sql() == "SELECT * FROM `users`"

    def test_order_by_twice_keeps_second(self, mysql: Query):
        sql = mysql.from_("users").order_by("name").order_by("id", "desc").to_sql()
        assert sql == "SELECT * FROM `users` ORDER BY `id` DESC"

    def test_add_order_by_appends(self, mysql: Query):
        sql = mysql.from_("users").order_by("name").add_order_by("id", "DESC").to_sql()
        assert sql == "SELECT * FROM `users` ORDER BY `name` ASC, `id` DESC"

    def test_invalid_direction_defaults_to_asc(self, mysql: Query):
        assert mysql.from_("users").order_by("id", "up").to_sql().endswith("ORDER BY `id` ASC")

    def test_limit_replaces_previous(self, mysql: Query):
        assert mysql.from_("users").limit(5).limit(10, 20).to_sql() == (
            "SELECT * FROM `users` LIMIT 10 OFFSET 20"
        )

    def test_paginate(self, mysql: Query):
        assert mysql.from_("users").paginate(20, 3).to_sql().endswith("LIMIT 20 OFFSET 40")
        assert mysql.from_("users").paginate(20).to_sql().endswith("LIMIT 20 OFFSET 0")

    def test_paginate_rejects_page_zero(self, mysql: Query):
        with pytest.raises(ConfigurationError):
            mysql.from_("users").paginate(10, 0)

    def test_clause_order_independent_of_call_order(self, mysql: Query):
        sql = (
            mysql.from_("users")
            .limit(1)
            .order_by("id")
            .having("COUNT(*) > 1")
            .group_by("status")
            .where("age > 1")
            .join("orders", "orders.user_id = users.id")
            .to_sql()
        )
        assert sql == (
            "SELECT * FROM `users` INNER JOIN `orders` ON `orders`.`user_id` = `users`.`id` "
            "WHERE age > 1 GROUP BY `status` HAVING COUNT(*) > 1 ORDER BY `id` ASC LIMIT 1"
        )


class TestBuildCount:
    def test_strips_order_and_limit(self, mysql: Query):
        builder = mysql.from_("users").where("active = ?", 1).order_by("id").limit(10)
        assert builder.build_count() == (
            "SELECT COUNT(*) AS total_count FROM `users` WHERE active = ?",
            [1],
        )

    def test_distinct_column(self, postgres: Query):
        sql, _ = postgres.from_("users").build_count("email", distinct=True)
        assert sql == 'SELECT COUNT(DISTINCT "email") AS total_count FROM "users"'

    def test_keeps_join_and_group(self, mysql: Query):
        sql, bindings = (
            mysql.from_("users u")
            .join("orders o", "o.user_id = u.id AND o.total > ?", 10)
            .group_by("u.id")
            .build_count("o.id")
        )
        assert sql == (
            "SELECT COUNT(`o`.`id`) AS total_count FROM `users` AS `u` "
            "INNER JOIN `orders` AS `o` ON `o`.`user_id` = `u`.`id` AND `o`.`total` > ? "
            "GROUP BY `u`.`id`"
        )
        assert bindings == [10]

    def test_does_not_mutate_builder(self, mysql: Query):
        builder = mysql.from_("users").order_by("id").limit(3)
        before = builder.build()
        builder.build_count()
        assert builder.build() == before


class TestWhen:
    def test_true_applies_callback(self, mysql: Query):
        sql = mysql.from_("users").when(True, lambda q: q.where("a = ?", 1)).to_sql()
        assert sql.endswith("WHERE a = ?")

    def test_false_applies_default(self, mysql: Query):
        sql = (
            mysql.from_("users")
            .when(False, lambda q: q.where("a = ?", 1), lambda q: q.where("b = ?", 2))
            .to_sql()
        )
        assert sql.endswith("WHERE b = ?")

    def test_false_without_default_returns_builder(self, mysql: Query):
        builder = mysql.from_("users")
        assert builder.when(0, lambda q: q.limit(1)) is builder

    def test_callback_returning_none_keeps_chain(self, mysql: Query):
        def add_limit(q):
            q.limit(2)

        builder = mysql.from_("users")
        assert builder.when(True, add_limit) is builder
        assert builder.to_sql().endswith("LIMIT 2")


# ---------------------------------------------------------------------------
# INSERT
# ---------------------------------------------------------------------------


class TestInsert:
    def test_multi_row_end_to_end(self, mysql: Query):
        sql, bindings = (
            mysql.insert("logs")
            .values([{"user_id": 1, "action": "login"}, {"user_id": 2, "action": "logout"}])
            .build()
        )
        assert sql == "INSERT INTO `logs` (`user_id`, `action`) VALUES (?, ?), (?, ?)"
        assert bindings == [1, "login", 2, "logout"]

    def test_values_called_repeatedly(self, postgres: Query):
        sql, bindings = (
            postgres.insert("logs")
            .values({"user_id": 1, "action": "a"})
            .values({"user_id": 2, "action": "b"})
            .build()
        )
        assert sql == 'INSERT INTO "logs" ("user_id", "action") VALUES (?, ?), (?, ?)'
        assert bindings == [1, "a", 2, "b"]

    def test_raw_value(self, mysql: Query):
        sql, bindings = mysql.insert("logs").values({"action": "x", "created_at": "{NOW()}"}).build()
        assert sql == "INSERT INTO `logs` (`action`, `created_at`) VALUES (?, NOW())"
        assert bindings == ["x"]

    def test_different_key_order_is_shape_mismatch(self, mysql: Query):
        with pytest.raises(ShapeMismatchError) as exc_info:
            mysql.insert("logs").values(
                [{"user_id": 1, "action": "a"}, {"action": "b", "user_id": 2}]
            )
        assert exc_info.value.expected == ["user_id", "action"]
        assert exc_info.value.actual == ["action", "user_id"]

    def test_mismatch_across_calls(self, mysql: Query):
        builder = mysql.insert("logs").values({"user_id": 1, "action": "a"})
        with pytest.raises(ShapeMismatchError):
            builder.values({"user_id": 2})
        # the failed call left the builder untouched
        assert builder.get_bindings() == [1, "a"]

    def test_failed_first_call_adds_no_rows(self, mysql: Query):
        builder = mysql.insert("logs")
        with pytest.raises(ShapeMismatchError):
            builder.values([{"a": 1}, {"b": 2}])
        with pytest.raises(ConfigurationError, match="No values"):
            builder.build()

    def test_no_values_is_fatal(self, mysql: Query):
        with pytest.raises(ConfigurationError):
            mysql.insert("logs").build()


# ---------------------------------------------------------------------------
# UPDATE
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_set_bindings_precede_where(self, mysql: Query):
        sql, bindings = mysql.update("users").where("id = ?", 5).set("name", "Bob").build()
        assert sql == "UPDATE `users` SET `name` = ? WHERE id = ?"
        assert bindings == ["Bob", 5]

    def test_raw_set_contributes_no_binding(self, mysql: Query):
        sql, bindings = (
            mysql.update("users").set("updated_at", "{NOW()}").set("name", "Bob").build()
        )
        assert sql == "UPDATE `users` SET `updated_at` = NOW(), `name` = ?"
        assert bindings == ["Bob"]

    def test_last_write_wins(self, mysql: Query):
        sql, bindings = mysql.update("users").set("name", "a").set("name", "b").build()
        assert sql == "UPDATE `users` SET `name` = ?"
        assert bindings == ["b"]

    def test_set_mapping(self, postgres: Query):
        sql, bindings = (
            postgres.update("users").set({"name": "x", "hits": Raw("hits + 1")}).build()
        )
        assert sql == 'UPDATE "users" SET "name" = ?, "hits" = hits + 1'
        assert bindings == ["x"]

    def test_join(self, mysql: Query):
        sql, bindings = (
            mysql.update("users u")
            .join("orders o", "o.user_id = u.id")
            .set("u.status", "buyer")
            .where("o.total > ?", 100)
            .build()
        )
        assert sql == (
            "UPDATE `users` AS `u` INNER JOIN `orders` AS `o` ON `o`.`user_id` = `u`.`id` "
            "SET `u`.`status` = ? WHERE `o`.`total` > ?"
        )
        assert bindings == ["buyer", 100]

    def test_join_sub_uses_select(self, mysql: Query):
        sql = (
            mysql.update("users u")
            .join_sub(lambda s: s.from_("orders").select("user_id"), "o", "o.user_id = u.id")
            .set("status", "buyer")
            .to_sql()
        )
        assert "INNER JOIN (SELECT `user_id` FROM `orders`) AS `o`" in sql

    def test_no_set_is_fatal(self, mysql: Query):
        with pytest.raises(ConfigurationError, match="No data to update"):
            mysql.update("users").where("id = ?", 1).build()


# ---------------------------------------------------------------------------
# DELETE
# ---------------------------------------------------------------------------


class TestDelete:
    def test_with_where(self, mysql: Query):
        assert mysql.delete("users").where("id = ?", 3).build() == (
            "DELETE FROM `users` WHERE id = ?",
            [3],
        )

    def test_without_where(self, postgres: Query):
        assert postgres.delete("logs").to_sql() == 'DELETE FROM "logs"'

    def test_empty_where_group_omits_keyword(self, mysql: Query):
        assert mysql.delete("logs").where(lambda c: None).to_sql() == "DELETE FROM `logs`"

    def test_join(self, mysql: Query):
        sql = mysql.delete("users u").join("bans b", "b.user_id = u.id").to_sql()
        assert sql == "DELETE FROM `users` AS `u` INNER JOIN `bans` AS `b` ON `b`.`user_id` = `u`.`id`"


def test_builders_do_not_share_state():
    q = query_for("sqlite")
    first = q.from_("users").where("a = ?", 1).group_by("x").order_by("y")
    second = q.from_("users")
    assert first.to_sql() != second.to_sql()
    assert second.to_sql() == 'SELECT * FROM "users"'
