from datetime import datetime

import pytest

from dialectdb.exceptions import MigrationError
from dialectdb.migrations import MigrationCreator, MigrationLoader
from dialectdb.migrations.creator import class_name, snake_name

NOW = datetime(2025, 6, 3, 6, 42, 16)


def test_names():
    assert snake_name("Create Users Table") == "create_users_table"
    assert class_name("create_users_table") == "CreateUsersTable"


def test_create_stub_file(tmp_path):
    path = MigrationCreator(tmp_path / "migrations").create("create_tasks_table", table="tasks", create=True, now=NOW)

    assert path.name == "2025_06_03_064216_create_tasks_table.py"
    content = path.read_text()
    assert "class CreateTasksTable(Migration):" in content
    assert 'self.schema.create("tasks", columns)' in content
    assert 'self.schema.drop_if_exists("tasks")' in content


def test_update_and_blank_stubs(tmp_path):
    creator = MigrationCreator(tmp_path)

    update = creator.create("add_due_date_to_tasks", table="tasks", now=NOW).read_text()
    blank = creator.create("seed_things", now=datetime(2025, 6, 3, 6, 42, 17)).read_text()

    assert 'self.schema.table("tasks", columns)' in update
    assert "class SeedThings(Migration):" in blank
    assert "schema" not in blank


def test_generated_file_is_loadable(tmp_path):
    path = MigrationCreator(tmp_path).create("create_tasks_table", table="tasks", create=True, now=NOW)

    loader = MigrationLoader(tmp_path)

    assert loader.names() == [path.stem]
    assert loader.resolve(path.stem).__name__ == "CreateTasksTable"


def test_existing_file_is_not_overwritten(tmp_path):
    creator = MigrationCreator(tmp_path)
    creator.create("create_tasks_table", now=NOW)

    with pytest.raises(MigrationError):
        creator.create("create_tasks_table", now=NOW)


def test_invalid_name(tmp_path):
    with pytest.raises(MigrationError):
        MigrationCreator(tmp_path).create("  !!  ")
