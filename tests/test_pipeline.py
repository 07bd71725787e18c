"""
Tests for the schema inference pipeline.

Covers end-to-end behavior on whole scripts: ordering, determinism,
deferred ALTER TABLE handling and diagnostics for bad input.
"""

from pathlib import Path

import pytest

from ddl_erd import InferenceConfig, SchemaInferencePipeline, load_config, parse_schema
from ddl_erd.models import Cardinality, ColumnReference, Severity
from ddl_erd.parsing import RegexDDLMatcher


USERS_POSTS_SQL = (
    "CREATE TABLE users(id SERIAL PRIMARY KEY, name VARCHAR(100) NOT NULL, email VARCHAR(100) UNIQUE);"
    " CREATE TABLE posts(id SERIAL PRIMARY KEY, user_id INTEGER NOT NULL,"
    " FOREIGN KEY(user_id) REFERENCES users(id));"
)

JUNCTION_SQL = (
    "CREATE TABLE a(id INT PRIMARY KEY); CREATE TABLE b(id INT PRIMARY KEY);"
    " CREATE TABLE a_b(a_id INT, b_id INT, PRIMARY KEY(a_id,b_id),"
    " FOREIGN KEY(a_id) REFERENCES a(id), FOREIGN KEY(b_id) REFERENCES b(id));"
)

SHOP_SQL = """
-- Storefront schema
CREATE TABLE IF NOT EXISTS customers (
    id BIGSERIAL PRIMARY KEY,
    email VARCHAR(255) NOT NULL UNIQUE,
    created_at TIMESTAMP DEFAULT now()
);

CREATE TABLE products (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    price DECIMAL(10, 2) NOT NULL CHECK (price >= 0)
);

CREATE TABLE orders (
    id SERIAL PRIMARY KEY,
    customer_id BIGINT NOT NULL,
    status VARCHAR(20) DEFAULT 'new; pending'
);

CREATE TABLE order_items (
    order_id INT NOT NULL,
    product_id INT NOT NULL,
    quantity INT NOT NULL,
    PRIMARY KEY (order_id, product_id),
    FOREIGN KEY (order_id) REFERENCES orders (id),
    FOREIGN KEY (product_id) REFERENCES products (id)
);

ALTER TABLE orders ADD CONSTRAINT fk_orders_customer
    FOREIGN KEY (customer_id) REFERENCES customers (id);

CREATE INDEX idx_orders_customer ON orders (customer_id);
"""


@pytest.fixture
def pipeline():
    return SchemaInferencePipeline()


class TestBasicInference:
    """Core properties of parse results."""

    @pytest.mark.parametrize("sql", [
        "",
        "   ",
        "-- just a comment",
        "DROP TABLE users; INSERT INTO users VALUES (1); CREATE VIEW v AS SELECT 1;",
    ])
    def test_no_tables(self, pipeline, sql):
        result = pipeline.parse(sql)

        assert result.tables == []
        assert result.relationships == []
        assert result.diagnostics == []
        assert result.is_complete

    def test_users_and_posts(self, pipeline):
        result = pipeline.parse(USERS_POSTS_SQL)

        assert [t.name for t in result.tables] == ["users", "posts"]
        posts = result.schema.get_table("posts")
        assert posts.get_column("user_id").foreign_key == ColumnReference("users", "id")

        assert len(result.relationships) == 1
        rel = result.relationships[0]
        assert rel.source == ColumnReference("posts", "user_id")
        assert rel.target == ColumnReference("users", "id")
        assert rel.cardinality == Cardinality.MANY_TO_ONE

    def test_junction_table(self, pipeline):
        result = pipeline.parse(JUNCTION_SQL)

        assert result.junction_tables == ["a_b"]
        assert len(result.relationships) == 1
        rel = result.relationships[0]
        assert rel.cardinality == Cardinality.MANY_TO_MANY
        assert {rel.source.table, rel.target.table} == {"a", "b"}
        assert rel.junction_table == "a_b"
        assert all(r.source.table != "a_b" for r in result.relationships)

    def test_junction_bidirectional_config(self):
        config = InferenceConfig(many_to_many_mode="bidirectional")
        result = SchemaInferencePipeline(config).parse(JUNCTION_SQL)

        assert len(result.relationships) == 2
        assert all(r.cardinality == Cardinality.MANY_TO_MANY for r in result.relationships)

    def test_convention_relationship(self, pipeline):
        result = pipeline.parse(
            "CREATE TABLE categorias(id INT PRIMARY KEY, nome VARCHAR(50));"
            "CREATE TABLE produtos(id INT PRIMARY KEY, categoria_id INT);"
        )

        assert len(result.relationships) == 1
        rel = result.relationships[0]
        assert rel.source == ColumnReference("produtos", "categoria_id")
        assert rel.target == ColumnReference("categorias", "id")
        assert rel.cardinality == Cardinality.MANY_TO_ONE

    def test_convention_needs_target_id_column(self, pipeline):
        result = pipeline.parse(
            "CREATE TABLE categorias(codigo INT PRIMARY KEY, nome VARCHAR(50));"
            "CREATE TABLE produtos(id INT PRIMARY KEY, categoria_id INT);"
        )
        assert result.relationships == []

    def test_explicit_and_convention_collapse(self, pipeline):
        result = pipeline.parse(
            "CREATE TABLE users(id INT PRIMARY KEY);"
            "CREATE TABLE posts(id INT PRIMARY KEY, user_id INT, FOREIGN KEY (user_id) REFERENCES users(id));"
        )

        keys = [r.key for r in result.relationships]
        assert keys == [("posts", "user_id", "users", "id")]

    def test_dangling_reference_is_retained(self, pipeline):
        result = pipeline.parse("CREATE TABLE orders(id INT PRIMARY KEY, ghost_id INT REFERENCES ghosts(id));")

        assert len(result.relationships) == 1
        assert result.relationships[0].target == ColumnReference("ghosts", "id")
        assert result.is_complete

    def test_determinism(self, pipeline):
        first = pipeline.parse(SHOP_SQL)
        second = pipeline.parse(SHOP_SQL)

        assert first.to_dict() == second.to_dict()
        assert parse_schema(SHOP_SQL).to_dict() == first.to_dict()


class TestScriptFeatures:
    """Whole-script handling: deferred statements and ordering."""

    def test_shop_schema(self, pipeline):
        result = pipeline.parse(SHOP_SQL)

        assert [t.name for t in result.tables] == ["customers", "products", "orders", "order_items"]
        assert result.junction_tables == ["order_items"]
        assert result.diagnostics == []

        orders = result.schema.get_table("orders")
        assert orders.get_column("customer_id").foreign_key == ColumnReference("customers", "id")
        assert orders.get_column("status").data_type == "VARCHAR(20)"

        summary = [
            (r.source.qualified_name, r.target.qualified_name, r.cardinality)
            for r in result.relationships
        ]
        assert summary == [
            ("orders.customer_id", "customers.id", Cardinality.MANY_TO_ONE),
            ("orders.id", "products.id", Cardinality.MANY_TO_MANY),
        ]

    def test_alter_before_create(self, pipeline):
        result = pipeline.parse(
            "ALTER TABLE posts ADD CONSTRAINT fk_user FOREIGN KEY (user_id) REFERENCES users(id);"
            "CREATE TABLE users(id INT PRIMARY KEY);"
            "CREATE TABLE posts(id INT PRIMARY KEY, user_id INT);"
        )

        posts = result.schema.get_table("posts")
        assert posts.get_column("user_id").foreign_key == ColumnReference("users", "id")
        assert [r.origin for r in result.relationships] == ["direct"]

    def test_alter_unknown_table(self, pipeline):
        result = pipeline.parse("CREATE TABLE a(id INT); ALTER TABLE ghosts ADD PRIMARY KEY (id);")

        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.severity == Severity.WARNING
        assert diagnostic.statement_index == 1
        assert "ghosts" in diagnostic.message
        assert result.is_complete

    def test_alter_second_primary_key(self, pipeline):
        result = pipeline.parse("CREATE TABLE t(id INT PRIMARY KEY, code TEXT); ALTER TABLE t ADD PRIMARY KEY (code);")

        assert [d.severity for d in result.diagnostics] == [Severity.WARNING]
        assert "primary key" in result.diagnostics[0].message
        assert not result.schema.get_table("t").get_column("code").primary_key

    def test_index_on_unknown_table(self, pipeline):
        result = pipeline.parse("CREATE INDEX idx ON ghosts (id);")

        assert result.tables == []
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].severity == Severity.WARNING

    def test_duplicate_table_keeps_first(self, pipeline):
        result = pipeline.parse("CREATE TABLE t(id INT); CREATE TABLE T(id INT, extra TEXT);")

        assert len(result.tables) == 1
        assert result.tables[0].column_names == ["id"]
        assert "Duplicate table t" in result.diagnostics[0].message
        assert result.diagnostics[0].statement_index == 1


class TestDiagnostics:
    """Bad input is reported, never raised."""

    def test_broken_statement_among_valid(self, pipeline):
        result = pipeline.parse(
            "CREATE TABLE a(id INT); CREATE TABLE broken(id INT, name VARCHAR(10); CREATE TABLE c(id INT);"
        )

        assert [t.name for t in result.tables] == ["a", "c"]
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.severity == Severity.ERROR
        assert diagnostic.statement_index == 1
        assert diagnostic.statement.startswith("CREATE TABLE broken")
        assert not result.is_complete

    def test_long_statement_excerpt(self, pipeline):
        columns = ", ".join(f"column_{i} INT" for i in range(30))
        result = pipeline.parse(f"CREATE TABLE wide({columns}")

        excerpt = result.diagnostics[0].statement
        assert len(excerpt) == 80
        assert excerpt.endswith("...")

    def test_definition_warnings_surface(self, pipeline):
        result = pipeline.parse("CREATE TABLE d(a INT, a TEXT);")

        assert [d.severity for d in result.diagnostics] == [Severity.WARNING]
        assert result.tables[0].column_names == ["a"]

    def test_unexpected_failure_returns_partial_schema(self):
        class ExplodingMatcher(RegexDDLMatcher):
            def classify(self, statement):
                if "explode" in statement:
                    raise RuntimeError("boom")
                return super().classify(statement)

        pipeline = SchemaInferencePipeline(matcher=ExplodingMatcher())
        result = pipeline.parse("CREATE TABLE users(id INT PRIMARY KEY); SELECT explode; CREATE TABLE later(id INT);")

        assert [t.name for t in result.tables] == ["users"]
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.severity == Severity.ERROR
        assert diagnostic.statement_index is None
        assert "boom" in diagnostic.message
        assert not result.is_complete


class TestPipelineState:
    """Each parse call starts from scratch."""

    def test_reuse_does_not_leak_tables(self, pipeline):
        first = pipeline.parse(USERS_POSTS_SQL)
        second = pipeline.parse("CREATE TABLE other(id INT);")

        assert [t.name for t in second.tables] == ["other"]
        assert second.relationships == []
        assert len(first.tables) == 2

    def test_results_are_independent(self, pipeline):
        first = pipeline.parse(USERS_POSTS_SQL)
        first.tables[0].columns.clear()

        second = pipeline.parse(USERS_POSTS_SQL)
        assert second.tables[0].column_names == ["id", "name", "email"]


class TestSampleSchema:
    """The bundled sample script and config."""

    SAMPLES = Path(__file__).parent.parent / "samples"

    def test_library_with_config(self):
        config = load_config(self.SAMPLES / "inference.yaml")
        result = parse_schema((self.SAMPLES / "library.sql").read_text(), config)

        assert result.diagnostics == []
        assert result.junction_tables == ["book_authors"]
        assert [
            (r.source.qualified_name, r.target.qualified_name, r.cardinality)
            for r in result.relationships
        ] == [
            ("library_cards.member_id", "members.id", Cardinality.ONE_TO_ONE),
            ("books.category_id", "categories.id", Cardinality.MANY_TO_ONE),
            ("loans.book_id", "books.id", Cardinality.MANY_TO_ONE),
            ("loans.member_id", "members.id", Cardinality.MANY_TO_ONE),
            ("authors.id", "books.id", Cardinality.MANY_TO_MANY),
            ("books.id", "authors.id", Cardinality.MANY_TO_MANY),
        ]

    def test_library_with_defaults(self):
        result = parse_schema((self.SAMPLES / "library.sql").read_text())

        targets = [r.target.table for r in result.relationships]
        assert "categories" not in targets
        assert len([r for r in result.relationships if r.cardinality == Cardinality.MANY_TO_MANY]) == 1
