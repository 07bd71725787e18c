"""
Tests for the ddl-erd command-line interface.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from ddl_erd import __version__
from ddl_erd.cli import cli


USERS_POSTS_SQL = """
CREATE TABLE users (id SERIAL PRIMARY KEY, email VARCHAR(100) UNIQUE);
CREATE TABLE posts (id SERIAL PRIMARY KEY, user_id INTEGER NOT NULL REFERENCES users (id));
"""

JUNCTION_SQL = """
CREATE TABLE a (id INT PRIMARY KEY);
CREATE TABLE b (id INT PRIMARY KEY);
CREATE TABLE a_b (a_id INT REFERENCES a (id), b_id INT REFERENCES b (id), PRIMARY KEY (a_id, b_id));
"""

CONVENTION_SQL = """
CREATE TABLE users (id INT PRIMARY KEY);
CREATE TABLE orders (id INT PRIMARY KEY, user_id INT);
"""


@pytest.fixture
def runner():
    return CliRunner()


def write(name, content):
    path = Path(name)
    path.write_text(content)
    return str(path)


class TestParseCommand:
    """Tests for `ddl-erd parse`."""

    def test_parse(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["parse", write("schema.sql", USERS_POSTS_SQL)])

        assert result.exit_code == 0, result.output
        assert "2 tables, 1 relationships" in result.output

    def test_parse_writes_output(self, runner):
        with runner.isolated_filesystem():
            sql_file = write("schema.sql", USERS_POSTS_SQL)
            result = runner.invoke(cli, ["parse", sql_file, "--output", "out/schema.json"])

            assert result.exit_code == 0, result.output
            data = json.loads(Path("out/schema.json").read_text())

        assert [t["name"] for t in data["tables"]] == ["users", "posts"]
        assert data["relationships"][0]["type"] == "MANY_TO_ONE"

    def test_parse_format_overrides_suffix(self, runner):
        with runner.isolated_filesystem():
            sql_file = write("schema.sql", USERS_POSTS_SQL)
            result = runner.invoke(cli, ["parse", sql_file, "--output", "schema.txt", "--format", "json"])

            assert result.exit_code == 0, result.output
            assert json.loads(Path("schema.txt").read_text())["junction_tables"] == []

    def test_many_to_many_option(self, runner):
        with runner.isolated_filesystem():
            sql_file = write("schema.sql", JUNCTION_SQL)
            single = runner.invoke(cli, ["parse", sql_file])
            both = runner.invoke(cli, ["parse", sql_file, "--many-to-many", "bidirectional"])

        assert "3 tables, 1 relationships" in single.output
        assert "3 tables, 2 relationships" in both.output

    def test_no_conventions(self, runner):
        with runner.isolated_filesystem():
            sql_file = write("schema.sql", CONVENTION_SQL)
            with_conventions = runner.invoke(cli, ["parse", sql_file])
            without = runner.invoke(cli, ["parse", sql_file, "--no-conventions"])

        assert "2 tables, 1 relationships" in with_conventions.output
        assert "2 tables, 0 relationships" in without.output
        assert "No relationships found" in without.output

    def test_config_file(self, runner):
        with runner.isolated_filesystem():
            sql_file = write("schema.sql", CONVENTION_SQL)
            config_file = write("inference.yaml", "convention:\n  enabled: false\n")
            result = runner.invoke(cli, ["parse", sql_file, "--config", config_file])

        assert result.exit_code == 0, result.output
        assert "2 tables, 0 relationships" in result.output

    def test_invalid_config_file(self, runner):
        with runner.isolated_filesystem():
            sql_file = write("schema.sql", CONVENTION_SQL)
            config_file = write("inference.yaml", "- not\n- a mapping\n")
            result = runner.invoke(cli, ["parse", sql_file, "--config", config_file])

        assert result.exit_code == 2
        assert "mapping" in result.output

    def test_partial_result_is_flagged(self, runner):
        with runner.isolated_filesystem():
            sql_file = write("schema.sql", "CREATE TABLE a (id INT); CREATE TABLE broken (id INT;")
            result = runner.invoke(cli, ["parse", sql_file])

        assert result.exit_code == 0, result.output
        assert "partial: see diagnostics" in result.output
        assert "Diagnostics" in result.output

    def test_missing_sql_file(self, runner):
        result = runner.invoke(cli, ["parse", "does-not-exist.sql"])
        assert result.exit_code == 2


class TestInfoCommand:
    """Tests for `ddl-erd info`."""

    def test_info_round_trip(self, runner):
        with runner.isolated_filesystem():
            sql_file = write("schema.sql", USERS_POSTS_SQL)
            runner.invoke(cli, ["parse", sql_file, "--output", "schema.yaml"])
            result = runner.invoke(cli, ["info", "schema.yaml"])

        assert result.exit_code == 0, result.output
        assert "Schema Information" in result.output
        assert "2 tables, 1 relationships" in result.output

    def test_info_rejects_other_files(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["info", write("notes.yaml", "title: not a schema\n")])

        assert result.exit_code == 2


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
