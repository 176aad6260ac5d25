"""
Unit tests for altibase_exporter.custom.loader
"""

import pytest

from altibase_exporter.custom import CustomQueryDef, QueriesFileError, load_queries


def write(tmp_path, content):
    path = tmp_path / "queries.yaml"
    path.write_text(content)
    return path


class TestLoadQueries:
    """Test load_queries function"""

    def test_empty_file(self, tmp_path):
        """Test an empty file yields no queries"""
        # Act & Assert
        assert load_queries(write(tmp_path, "")) == []

    def test_no_queries_key(self, tmp_path):
        """Test a document without queries yields no queries"""
        # Act & Assert
        assert load_queries(write(tmp_path, "other: value\n")) == []

    def test_valid(self, tmp_path):
        """Test a complete entry is loaded"""
        # Arrange
        path = write(tmp_path, """
queries:
  - name: test_metric
    help: "Test help"
    sql: "SELECT 1 AS value"
""")

        # Act
        result = load_queries(path)

        # Assert
        assert result == [CustomQueryDef("test_metric", "Test help", "SELECT 1 AS value", None)]

    def test_label_columns(self, tmp_path):
        """Test label_columns are read as a tuple"""
        # Arrange
        path = write(tmp_path, """
queries:
  - name: rep_items
    help: "Repl items"
    sql: "SELECT rep_name, COUNT(*) AS value FROM T GROUP BY rep_name"
    label_columns: [rep_name]
""")

        # Act
        result = load_queries(path)

        # Assert
        assert result[0].label_columns == ("rep_name",)

    def test_empty_label_columns_treated_as_absent(self, tmp_path):
        """Test an empty label_columns list means inferred labels"""
        # Arrange
        path = write(tmp_path, """
queries:
  - {name: q, help: h, sql: "SELECT 1", label_columns: []}
""")

        # Act & Assert
        assert load_queries(path)[0].label_columns is None

    def test_skips_entries_missing_fields(self, tmp_path):
        """Test entries missing name, help or sql are skipped"""
        # Arrange
        path = write(tmp_path, """
queries:
  - name: ok
    help: "Help"
    sql: "SELECT 1"
  - name: ""
    help: "H"
    sql: "SELECT 2"
  - other: junk
  - just a string
""")

        # Act
        result = load_queries(path)

        # Assert
        assert [query.name for query in result] == ["ok"]

    def test_skips_invalid_metric_name(self, tmp_path):
        """Test names that cannot form a metric name are skipped"""
        # Arrange
        path = write(tmp_path, """
queries:
  - {name: "bad name!", help: h, sql: "SELECT 1"}
  - {name: fine, help: h, sql: "SELECT 1"}
""")

        # Act & Assert
        assert [query.name for query in load_queries(path)] == ["fine"]

    def test_skips_duplicate_metric_name(self, tmp_path):
        """Test a later entry resolving to an already used metric name is skipped"""
        # Arrange
        path = write(tmp_path, """
queries:
  - {name: q1, help: first, sql: "SELECT 1 FROM DUAL"}
  - {name: altibase_custom_q1, help: second, sql: "SELECT 2 FROM DUAL"}
  - {name: q2, help: third, sql: "SELECT 3 FROM DUAL"}
""")

        # Act
        result = load_queries(path)

        # Assert
        assert [query.metric_name for query in result] == ["altibase_custom_q1", "altibase_custom_q2"]
        assert result[0].help == "first"

    def test_missing_file(self, tmp_path):
        """Test an unreadable file raises QueriesFileError"""
        # Act & Assert
        with pytest.raises(QueriesFileError, match="Cannot read"):
            load_queries(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises QueriesFileError"""
        # Act & Assert
        with pytest.raises(QueriesFileError, match="Invalid YAML"):
            load_queries(write(tmp_path, "queries: [\n  - {name: q\n"))


class TestCustomQueryDef:
    """Test CustomQueryDef.metric_name"""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("q1", "altibase_custom_q1"),
            ("altibase_custom_q1", "altibase_custom_q1"),
            ("", "altibase_custom_unnamed"),
        ],
    )
    def test_metric_name(self, name, expected):
        """Test the custom prefix is applied once"""
        # Act & Assert
        assert CustomQueryDef(name, "h", "SELECT 1").metric_name == expected
