"""Tests for fluent-chain resolution and literal SQL extraction.

Snippets are parsed with the real tree-sitter grammars; extractors are
exercised on the call and string nodes found in the tree.
"""

import pytest

from dbsweep.analyzer.context import AnalysisContext, fixed_model_name
from dbsweep.analyzer.extractor import (
    OperationExtractor,
    ResolvedModelSelf,
    ResolvedTable,
    Unresolved,
    operation_from_query,
)
from dbsweep.analyzer.parser import LanguageParser
from dbsweep.analyzer.syntax import GRAMMARS, NodeShape, call_site, shape_of, traverse


def calls_in(source: str, language: str = 'javascript'):
    """Parse source and return its call sites in pre-order."""
    tree = LanguageParser(language).parse_source(source.encode('utf-8'))
    grammar = GRAMMARS[language]
    return [call_site(node, grammar) for node in traverse(tree.root_node)
            if shape_of(node, grammar) is NodeShape.CALL]


def literals_in(source: str, language: str = 'javascript'):
    tree = LanguageParser(language).parse_source(source.encode('utf-8'))
    grammar = GRAMMARS[language]
    return [node for node in traverse(tree.root_node)
            if shape_of(node, grammar) in (NodeShape.PLAIN_LITERAL, NodeShape.INTERPOLATED_LITERAL)]


def site_named(sites, name):
    return next(site for site in sites if site.name == name)


@pytest.fixture
def js_extractor():
    return OperationExtractor('javascript', AnalysisContext())


class TestChainResolution:
    """Walking a receiver chain to the node that names the table."""

    def test_root_call_names_table(self, js_extractor):
        """knex('users') at the chain root names the table."""
        sites = calls_in("knex('users').where('id', 1).update({ name: 'b' });")
        update = site_named(sites, 'update')

        assert js_extractor.resolve_table_chain(update.receiver) == ResolvedTable('users')

    def test_this_receiver_is_model_self(self, js_extractor):
        """A chain ending at `this` is an ORM model reference."""
        sites = calls_in("class Post { recent() { return this.findAll(); } }")
        find_all = site_named(sites, 'findAll')

        assert isinstance(js_extractor.resolve_table_chain(find_all.receiver), ResolvedModelSelf)

    def test_plain_identifier_receiver_is_unresolved(self, js_extractor):
        """A bare identifier receiver names no table."""
        sites = calls_in("db.insert({ id: 1 });")
        insert = site_named(sites, 'insert')

        assert isinstance(js_extractor.resolve_table_chain(insert.receiver), Unresolved)

    def test_depth_limit_stops_walk(self):
        """The walk gives up once max_chain_depth steps are used."""
        extractor = OperationExtractor('javascript', AnalysisContext(max_chain_depth=1))
        sites = calls_in("knex('users').where('id', 1).update({ name: 'b' });")
        update = site_named(sites, 'update')

        resolution = extractor.resolve_table_chain(update.receiver)
        assert isinstance(resolution, Unresolved)
        assert resolution.reason == "chain depth limit reached"


class TestFluentOperations:
    """Query-builder and ORM calls turned into operations."""

    def test_knex_update(self, js_extractor):
        """update() at the end of a knex chain targets the root table."""
        sites = calls_in("knex('users').where('id', 1).update({ name: 'b' });")
        operation = js_extractor.extract_fluent_operation(site_named(sites, 'update'), 'app.js')

        assert operation.kind == 'UPDATE'
        assert operation.table == 'users'
        assert operation.file_path == 'app.js'
        assert operation.line == 1

    def test_unrecognised_method_is_ignored(self, js_extractor):
        """where() is not a database call on its own."""
        sites = calls_in("knex('users').where('id', 1);")

        assert js_extractor.extract_fluent_operation(site_named(sites, 'where'), 'app.js') is None

    def test_from_names_its_own_table(self, js_extractor):
        """from('orders') takes the table from its own argument."""
        sites = calls_in("db.select().from('orders');")
        operation = js_extractor.extract_fluent_operation(site_named(sites, 'from'), 'app.js')

        assert (operation.kind, operation.table) == ('SELECT', 'orders')

    def test_intermediate_chain_call_is_suppressed(self, js_extractor):
        """select() feeding from() is covered by the outer call."""
        sites = calls_in("db.select().from('orders');")

        assert js_extractor.extract_fluent_operation(site_named(sites, 'select'), 'app.js') is None

    def test_intermediate_from_with_table_is_kept(self, js_extractor):
        """from('orders') stays reported when a join() wraps it."""
        sites = calls_in("db.select('*').from('orders').join('customers', 'a', 'b');")

        from_operation = js_extractor.extract_fluent_operation(site_named(sites, 'from'), 'app.js')
        join_operation = js_extractor.extract_fluent_operation(site_named(sites, 'join'), 'app.js')

        assert (from_operation.kind, from_operation.table) == ('SELECT', 'orders')
        assert (join_operation.kind, join_operation.table) == ('SELECT', 'customers')

    def test_method_name_is_case_insensitive(self, js_extractor):
        """DEL() maps like del()."""
        sites = calls_in("knex('users').DEL();")
        operation = js_extractor.extract_fluent_operation(site_named(sites, 'DEL'), 'app.js')

        assert (operation.kind, operation.table) == ('DELETE', 'users')

    def test_drop_reports_default_kind(self, js_extractor):
        """drop() is a database call reported as SELECT."""
        sites = calls_in("knex('users').drop();")
        operation = js_extractor.extract_fluent_operation(site_named(sites, 'drop'), 'app.js')

        assert (operation.kind, operation.table) == ('SELECT', 'users')

    def test_this_uses_enclosing_class_name(self, js_extractor):
        """this.findAll() inside class Post targets Post."""
        sites = calls_in("class Post { recent() { return this.findAll(); } }")
        operation = js_extractor.extract_fluent_operation(site_named(sites, 'findAll'), 'post.js')

        assert (operation.kind, operation.table) == ('SELECT', 'Post')

    def test_fixed_model_name_resolver(self):
        """A fixed resolver overrides the class name."""
        context = AnalysisContext(model_name_resolver=fixed_model_name('posts'))
        extractor = OperationExtractor('javascript', context)
        sites = calls_in("class Post { recent() { return this.findAll(); } }")

        operation = extractor.extract_fluent_operation(site_named(sites, 'findAll'), 'post.js')
        assert operation.table == 'posts'

    def test_direct_call_uses_first_argument(self, js_extractor):
        """query('users') falls back to its own argument."""
        sites = calls_in("query('users');")
        operation = js_extractor.extract_fluent_operation(site_named(sites, 'query'), 'app.js')

        assert (operation.kind, operation.table) == ('SELECT', 'users')

    def test_direct_call_with_statement_is_not_a_table(self, js_extractor):
        """A SQL statement argument is not taken as a table name."""
        sites = calls_in("execute('SELECT * FROM orders');")
        operation = js_extractor.extract_fluent_operation(site_named(sites, 'execute'), 'app.js')

        assert operation.table == 'unknown'

    def test_unresolved_method_chain_is_unknown(self, js_extractor):
        """An unresolved chain still yields an operation on 'unknown'."""
        sites = calls_in("db.insert({ id: 1 });")
        operation = js_extractor.extract_fluent_operation(site_named(sites, 'insert'), 'app.js')

        assert (operation.kind, operation.table) == ('INSERT', 'unknown')

    def test_python_self_receiver(self):
        """self.update() inside class User targets User."""
        source = "class User(Model):\n    def deactivate(self):\n        self.update(active=False)\n"
        extractor = OperationExtractor('python', AnalysisContext())
        sites = calls_in(source, 'python')

        operation = extractor.extract_fluent_operation(site_named(sites, 'update'), 'models.py')
        assert (operation.kind, operation.table, operation.line) == ('UPDATE', 'User', 3)


class TestSqlLiterals:
    """Raw SQL in .raw()/.query() calls and string literals."""

    def test_raw_call(self, js_extractor):
        """knex.raw() classifies its SQL argument."""
        sites = calls_in("knex.raw('DELETE FROM sessions');")
        query = js_extractor.extract_raw_sql(site_named(sites, 'raw'), 'app.js')

        assert query.kind == 'DELETE'
        assert query.tables == ['sessions']
        assert query.views == []

    def test_raw_call_without_literal(self, js_extractor):
        """A variable argument carries no SQL text."""
        sites = calls_in("knex.raw(statement);")

        assert js_extractor.extract_raw_sql(site_named(sites, 'raw'), 'app.js') is None

    def test_template_literal_drops_substitutions(self, js_extractor):
        """${...} parts are removed from template SQL."""
        literal = literals_in("const q = `SELECT * FROM orders WHERE id = ${id}`;")[0]
        query = js_extractor.extract_literal_sql(literal, 'app.js')

        assert query.query == 'SELECT * FROM orders WHERE id = '
        assert (query.kind, query.tables) == ('SELECT', ['orders'])

    def test_non_sql_literal_is_ignored(self, js_extractor):
        """A plain name is not SQL."""
        literal = literals_in("const name = 'orders';")[0]

        assert js_extractor.extract_literal_sql(literal, 'app.js') is None

    def test_python_f_string(self):
        """f-string SQL is classified from its literal parts."""
        source = 'def load(cursor, order_id):\n    cursor.execute(f"SELECT * FROM orders WHERE id = {order_id}")\n'
        extractor = OperationExtractor('python', AnalysisContext())
        literal = literals_in(source, 'python')[0]

        query = extractor.extract_literal_sql(literal, 'repo.py')
        assert (query.kind, query.tables, query.line) == ('SELECT', ['orders'], 2)

    def test_query_projects_to_operation(self, js_extractor):
        """A query maps onto the operation it performs."""
        sites = calls_in("knex.raw('DELETE FROM sessions');")
        query = js_extractor.extract_raw_sql(site_named(sites, 'raw'), 'app.js')

        operation = operation_from_query(query)
        assert (operation.kind, operation.table, operation.line) == ('DELETE', 'sessions', 1)


class TestExtractorSetup:

    def test_unsupported_language(self):
        """Only tree-sitter grammars we ship are accepted."""
        with pytest.raises(ValueError):
            OperationExtractor('ruby')
