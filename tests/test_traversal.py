"""Tests for per-file traversal and database-file detection."""

import pytest

from dbsweep.analyzer.models import FileInfo
from dbsweep.analyzer.traversal import DatabaseFileTraversal, is_database_file


@pytest.fixture
def traversal(context):
    return DatabaseFileTraversal(context)


def kinds_and_tables(operations):
    return [(op.kind, op.table) for op in operations]


class TestIsDatabaseFile:
    """Path conventions and content keywords."""

    @pytest.mark.parametrize("path", [
        'app/models/user.py',
        'models.py',
        'src/db/index.js',
        'migrations/0001_initial.py',
        'schema.ts',
        'sql/report.SQL',
        'C:\\project\\database\\client.js',
    ])
    def test_database_paths(self, path):
        """Conventional database paths qualify regardless of content."""
        assert is_database_file(FileInfo(path=path, content='x = 1'))

    def test_plain_file_without_keywords(self):
        """Ordinary code without database hints is skipped."""
        assert not is_database_file(FileInfo(path='lib/helpers.js', content='const a = 1;'))

    def test_library_name_in_content(self):
        """Importing a database library qualifies the file."""
        assert is_database_file(FileInfo(path='lib/helpers.js', content="import Knex from 'knex';"))

    def test_keyword_match_ignores_case(self):
        """Library names match in any case."""
        assert is_database_file(FileInfo(path='lib/helpers.py', content='from SQLAlchemy import text'))

    def test_none_file(self):
        """A missing file record is never a database file."""
        assert not is_database_file(None)


class TestJavaScriptFiles:
    """Query builders and ORMs in JavaScript."""

    def test_knex_operations(self, traversal, knex_file):
        """Each knex chain yields one operation on its own line."""
        result = traversal.analyze_file(knex_file)

        assert kinds_and_tables(result.operations) == [
            ('SELECT', 'users'),
            ('INSERT', 'users'),
            ('UPDATE', 'users'),
            ('DELETE', 'posts'),
            ('SELECT', 'sessions'),
        ]
        assert [op.line for op in result.operations] == [4, 5, 6, 7, 8]

    def test_raw_sql_is_collected_once(self, traversal, knex_file):
        """The raw() call and its string literal give a single query."""
        result = traversal.analyze_file(knex_file)

        assert len(result.queries) == 1
        assert result.queries[0].query == 'SELECT * FROM sessions'
        assert result.queries[0].tables == ['sessions']

    def test_sequelize_model(self, traversal, sequelize_file):
        """this.findAll() in a model class targets the class."""
        result = traversal.analyze_file(sequelize_file)

        assert kinds_and_tables(result.operations) == [('SELECT', 'Post')]

    def test_select_from_chain_is_one_operation(self, traversal):
        """select().from('orders') is reported once."""
        result = traversal.analyze_file(FileInfo(path='db.js', content="db.select().from('orders');\n"))

        assert kinds_and_tables(result.operations) == [('SELECT', 'orders')]

    def test_from_join_chain_keeps_both_tables(self, traversal):
        """A join() after from() does not hide the from() table."""
        source = "db.select('*').from('orders').join('customers', 'a', 'b');\n"
        result = traversal.analyze_file(FileInfo(path='db.js', content=source))

        assert sorted(kinds_and_tables(result.operations)) == [('SELECT', 'customers'), ('SELECT', 'orders')]

    def test_drop_is_reported_as_select(self, traversal):
        """drop() keeps the default kind."""
        result = traversal.analyze_file(FileInfo(path='db.js', content="knex('users').drop();\n"))

        assert kinds_and_tables(result.operations) == [('SELECT', 'users')]

    def test_duplicates_on_one_line_collapse(self, traversal):
        """Same kind and table on one line count once."""
        source = "knex('users').select('id'); knex('users').select('name');\n"
        result = traversal.analyze_file(FileInfo(path='db.js', content=source))

        assert kinds_and_tables(result.operations) == [('SELECT', 'users')]

    def test_counter_tracks_emitted_operations(self, traversal, context, knex_file):
        """The context counter grows by one per kept operation."""
        traversal.analyze_file(knex_file)

        assert context.operation_counter == 5


class TestOtherLanguages:
    """Python and TypeScript sources."""

    def test_python_model_and_f_string(self, traversal):
        """self.update() and f-string SQL in one Python file."""
        source = (
            "class User(Model):\n"
            "    def deactivate(self):\n"
            "        self.update(active=False)\n"
            "\n"
            "\n"
            "def load_order(cursor, order_id):\n"
            "    cursor.execute(f\"SELECT * FROM orders WHERE id = {order_id}\")\n"
        )
        result = traversal.analyze_file(FileInfo(path='app/models.py', content=source))

        assert kinds_and_tables(result.operations) == [('UPDATE', 'User'), ('SELECT', 'orders')]

    def test_python_docstring_is_classified(self, traversal):
        """Plain string literals are classified unguarded, docstrings included."""
        source = (
            "def refresh():\n"
            "    \"\"\"Update the cache from disk.\"\"\"\n"
            "    return None\n"
        )
        result = traversal.analyze_file(FileInfo(path='db.py', content=source))

        assert kinds_and_tables(result.operations) == [('UPDATE', 'the')]
        assert result.operations[0].line == 2

    def test_typescript(self, traversal):
        """Type annotations do not disturb chain resolution."""
        source = (
            "export async function removeSession(db: Knex, id: number): Promise<void> {\n"
            "  await db('sessions').where({ id }).delete();\n"
            "}\n"
        )
        result = traversal.analyze_file(FileInfo(path='src/db/sessions.ts', content=source))

        assert kinds_and_tables(result.operations) == [('DELETE', 'sessions')]


class TestFailureIsolation:
    """Files that cannot be analyzed contribute nothing."""

    def test_malformed_file_yields_nothing(self, traversal, recording_logger):
        """A syntax error drops the file and logs it."""
        source = "function broken( {\n  knex('users').select('*');\n"
        result = traversal.analyze_file(FileInfo(path='db.js', content=source))

        assert result.operations == []
        assert result.queries == []
        assert recording_logger.errors[0][0] == 'Error analyzing database file: db.js'

    def test_empty_content(self, traversal):
        """A file without content yields nothing."""
        result = traversal.analyze_file(FileInfo(path='db.js', content=None))

        assert result.operations == []

    def test_unsupported_extension_is_skipped(self, traversal, recording_logger):
        """Languages without a grammar are skipped with an info log."""
        result = traversal.analyze_file(FileInfo(path='db/queries.rb', content="User.where(id: 1)"))

        assert result.operations == []
        assert recording_logger.infos[0][0] == 'Skipping file without a supported parser: db/queries.rb'
