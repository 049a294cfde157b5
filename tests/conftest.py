"""Shared fixtures for dbsweep tests."""

import pytest

from dbsweep.analyzer.context import AnalysisContext
from dbsweep.analyzer.models import FileInfo


class RecordingLogger:
    """Logger collaborator that keeps messages in memory."""

    def __init__(self):
        self.infos = []
        self.errors = []

    def log_info(self, message, context=None):
        self.infos.append((message, context))

    def log_error(self, message, context=None):
        self.errors.append((message, context))


KNEX_SOURCE = """const knex = require('knex')(config);

async function run(id) {
  const rows = await knex('users').select('*');
  await knex('users').insert({ name: 'a' });
  await knex('users').where('id', id).update({ name: 'b' });
  await knex('posts').where('id', id).del();
  await knex.raw('SELECT * FROM sessions');
  return rows;
}
"""

SEQUELIZE_SOURCE = """class Post extends Model {
  static async recent() {
    return this.findAll({ limit: 10 });
  }
}
"""

SCHEMA_SCRIPT = """CREATE TABLE users (id INT);
CREATE TABLE posts (id INT, user_id INT);
CREATE TABLE sessions (id INT);
CREATE VIEW active_users AS SELECT * FROM users;
INSERT INTO posts (id, user_id) VALUES (1, 1);
"""


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def context(recording_logger):
    """Fresh analysis context wired to an in-memory logger."""
    return AnalysisContext(logger=recording_logger)


@pytest.fixture
def knex_file():
    return FileInfo(path='src/app.js', content=KNEX_SOURCE)


@pytest.fixture
def sequelize_file():
    return FileInfo(path='src/models/post.js', content=SEQUELIZE_SOURCE)


@pytest.fixture
def schema_file():
    return FileInfo(path='db/schema.sql', content=SCHEMA_SCRIPT)
