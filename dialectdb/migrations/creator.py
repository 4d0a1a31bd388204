"""
Migration file generator.

    MigrationCreator("database/migrations").create("create_users_table", table="users", create=True)

writes ``database/migrations/<YYYY_MM_DD_HHMMSS>_create_users_table.py``
holding a ``CreateUsersTable`` class from one of three stubs: blank, create
(new table) or update (alter an existing table).
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
import re
from string import Template
from typing import Optional, Union

from ..exceptions import MigrationError


BLANK_STUB = Template('''from dialectdb.migrations import Migration


class $class_name(Migration):
    def up(self):
        pass

    def down(self):
        pass
''')

CREATE_STUB = Template('''from dialectdb.migrations import Migration


class $class_name(Migration):
    def up(self):
        def columns(table):
            table.id()
            table.timestamps()

        self.schema.create("$table", columns)

    def down(self):
        self.schema.drop_if_exists("$table")
''')

UPDATE_STUB = Template('''from dialectdb.migrations import Migration


class $class_name(Migration):
    def up(self):
        def columns(table):
            pass

        self.schema.table("$table", columns)

    def down(self):
        pass
''')


def snake_name(name: str) -> str:
    return re.sub(r"[^0-9a-z]+", "_", name.strip().lower()).strip("_")


def class_name(name: str) -> str:
    """create_users_table -> CreateUsersTable"""
    return "".join(part.capitalize() for part in snake_name(name).split("_") if part)


class MigrationCreator:
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def stub(self, table: Optional[str], create: bool) -> Template:
        if table is None:
            return BLANK_STUB
        return CREATE_STUB if create else UPDATE_STUB

    def create(
        self,
        name: str,
        table: Optional[str] = None,
        create: bool = False,
        now: Optional[datetime] = None,
    ) -> Path:
        """
        Write a new migration file and return its path.

        Raises MigrationError if a file with the same name already exists.
        """
        snake = snake_name(name)
        if not snake:
            raise MigrationError(f"Invalid migration name {name!r}", operation="create")

        self.path.mkdir(parents=True, exist_ok=True)

        stamp = (now or datetime.now()).strftime("%Y_%m_%d_%H%M%S")
        path = self.path / f"{stamp}_{snake}.py"
        if path.exists():
            raise MigrationError(f"Migration file already exists: {path}", migration=path.stem, operation="create")

        content = self.stub(table, create).substitute(class_name=class_name(snake), table=table or "")
        path.write_text(content, encoding="utf-8")
        return path


__all__ = ["MigrationCreator", "class_name", "snake_name"]
