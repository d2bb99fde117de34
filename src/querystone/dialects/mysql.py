"""MySQL dialect adapter, the reference dialect."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from querystone.common.exceptions import ErrorCode, configuration_error
from querystone.constants.schema import ColumnPlacement, ColumnType, IndexType
from querystone.dialects.base import SQLDialect

if TYPE_CHECKING:
    from querystone.schema.column import ColumnDefinition
    from querystone.schema.index import IndexDefinition


# type -> (template, default constraint)
_COLUMN_TYPES: Dict[ColumnType, Tuple[str, Any]] = {
    ColumnType.PRIMARY_KEY: ("int({constraint}){unsigned} NOT NULL AUTO_INCREMENT PRIMARY KEY", 11),
    ColumnType.BIG_PRIMARY_KEY: ("bigint({constraint}){unsigned} NOT NULL AUTO_INCREMENT PRIMARY KEY", 20),
    ColumnType.STRING: ("varchar({constraint})", 255),
    ColumnType.TEXT: ("text", None),
    ColumnType.MEDIUM_TEXT: ("mediumtext", None),
    ColumnType.LONG_TEXT: ("longtext", None),
    ColumnType.TINY_INTEGER: ("tinyint({constraint}){unsigned}", 3),
    ColumnType.SMALL_INTEGER: ("smallint({constraint}){unsigned}", 6),
    ColumnType.INTEGER: ("int({constraint}){unsigned}", 11),
    ColumnType.BIG_INTEGER: ("bigint({constraint}){unsigned}", 20),
    ColumnType.FLOAT: ("float({constraint}){unsigned}", (10, 0)),
    ColumnType.DOUBLE: ("double({constraint}){unsigned}", (10, 0)),
    ColumnType.DECIMAL: ("decimal({constraint}){unsigned}", (10, 0)),
    ColumnType.DATETIME: ("datetime", None),
    ColumnType.TIMESTAMP: ("timestamp", None),
    ColumnType.TIME: ("time", None),
    ColumnType.DATE: ("date", None),
    ColumnType.BINARY: ("blob", None),
    ColumnType.BOOLEAN: ("tinyint({constraint}){unsigned}", 1),
    ColumnType.MONEY: ("decimal({constraint}){unsigned}", (19, 4)),
    ColumnType.JSON: ("json", None),
}


class MySQLDialect(SQLDialect):
    """Renders MySQL/MariaDB statements with backtick identifiers."""

    name = "mysql"
    identifier_delimiter = "`"
    random_function = "RAND()"

    def compose_limit(self, limit: int, offset: Optional[int] = None) -> str:
        if offset:
            return f"LIMIT {offset}, {limit}"
        return f"LIMIT {limit}"

    def render_column(self, column: "ColumnDefinition") -> str:
        if not column.name:
            raise configuration_error("Column name is required.", error_code=ErrorCode.CONFIG_MISSING)

        template, default_constraint = _COLUMN_TYPES[column.type]
        constraint = column.constraint if column.constraint is not None else default_constraint

        sql = self.quoter.protect_identifiers(column.name) + " " + template.format(
            constraint=self._render_constraint(constraint),
            unsigned=" UNSIGNED" if column.unsigned else "",
        )

        # AUTO_INCREMENT PRIMARY KEY already implies NOT NULL
        if not column.type.is_primary_key:
            sql += " NOT NULL" if column.not_null else " NULL"

        if column.unique:
            sql += " UNIQUE"

        sql += self._render_default(column)

        if column.comment:
            sql += f" COMMENT '{self.quoter.quote_str(column.comment)}'"

        if column.placement == ColumnPlacement.FIRST:
            sql += " FIRST"
        elif column.placement == ColumnPlacement.AFTER and column.after_column:
            sql += f" AFTER {self.quoter.protect_identifiers(column.after_column)}"

        return sql

    @staticmethod
    def _render_constraint(constraint: Any) -> str:
        if constraint is None:
            return ""
        if isinstance(constraint, (list, tuple)):
            return ",".join(str(part) for part in constraint[:2])
        if isinstance(constraint, float):
            return str(constraint).replace(".", ",")
        return str(constraint)

    def _render_default(self, column: "ColumnDefinition") -> str:
        if not column.has_default:
            return ""

        value = column.default
        if value is None:
            return " DEFAULT NULL"
        if isinstance(value, bool):
            return " DEFAULT TRUE" if value else " DEFAULT FALSE"
        if isinstance(value, (int, float)):
            return f" DEFAULT {value}"

        if column.default_quoted:
            return f" DEFAULT '{self.quoter.quote_str(value)}'"
        return f" DEFAULT {value}"

    def render_index(self, index: "IndexDefinition") -> str:
        if not index.columns:
            raise configuration_error("Column information is required.", error_code=ErrorCode.CONFIG_MISSING)

        columns = ",".join(self.quoter.protect_identifiers(column) for column in index.columns)
        if index.type == IndexType.PRIMARY:
            return f"PRIMARY KEY ({columns})"

        return f"{index.type.value} {self.quoter.quote_identifier(index.get_name())} ({columns})"

    def compose_create_table(
        self,
        table: str,
        columns: List[str],
        keys: List[str],
        if_not_exists: bool = True,
    ) -> str:
        if not columns:
            raise configuration_error("Field information is required.", config_key=table, error_code=ErrorCode.CONFIG_MISSING)

        definitions = ",\n\t".join(list(columns) + list(keys))
        guard = "IF NOT EXISTS " if if_not_exists else ""
        return f"CREATE TABLE {guard}{self.quoter.quote_identifier(table)} (\n\t{definitions}\n);"

    def compose_alter_table(self, table: str, action: str, definitions: List[str]) -> str:
        action = action.upper()
        specs = ", ".join(f"{action} {definition}" for definition in definitions)
        return f"ALTER TABLE {self.quoter.protect_identifiers(table)} {specs};"

    def compose_rename_table(self, old_name: str, new_name: str) -> str:
        return (
            f"ALTER TABLE {self.quoter.protect_identifiers(old_name)} "
            f"RENAME TO {self.quoter.protect_identifiers(new_name)};"
        )

    def compose_drop_table(self, table: str, if_exists: bool = True) -> str:
        guard = "IF EXISTS " if if_exists else ""
        return f"DROP TABLE {guard}{self.quoter.quote_identifier(table)};"

    def compose_drop_index(self, table: str, index_name: str) -> str:
        return f"DROP INDEX {self.quoter.quote_identifier(index_name)} ON {self.quoter.protect_identifiers(table)}"

    def compose_drop_primary_key(self, table: str) -> str:
        return f"ALTER TABLE {self.quoter.protect_identifiers(table)} DROP PRIMARY KEY"

    def compose_create_database(
        self,
        name: str,
        if_not_exists: bool = True,
        charset: Optional[str] = None,
        collation: Optional[str] = None,
    ) -> str:
        sql = "CREATE DATABASE "
        if if_not_exists:
            sql += "IF NOT EXISTS "
        sql += self.quoter.quote_identifier(name)
        if charset:
            sql += f" CHARACTER SET {charset}"
        if collation:
            sql += f" COLLATE {collation}"
        return sql + ";"

    def compose_drop_database(self, name: str, if_exists: bool = True) -> str:
        guard = "IF EXISTS " if if_exists else ""
        return f"DROP DATABASE {guard}{self.quoter.quote_identifier(name)};"

    def compose_exists_table(self, table: str) -> str:
        return f"SHOW TABLES LIKE {self.quoter.quote(table)}"

    def compose_describe_table(self, table: str) -> str:
        return f"DESCRIBE {self.quoter.protect_identifiers(table)}"

    def compose_show_databases(self) -> str:
        return "SHOW DATABASES"

    def compose_show_index(self, table: str, database: Optional[str] = None) -> str:
        sql = f"SHOW INDEX FROM {self.quoter.protect_identifiers(table)}"
        if database:
            sql += f" FROM {self.quoter.quote_identifier(database)}"
        return sql

    def compose_show_tables(self, database: Optional[str] = None) -> str:
        sql = "SHOW TABLES"
        if database:
            sql += f" FROM {self.quoter.quote_identifier(database)}"
        return sql
