"""Prepare a database before an application starts using it."""
import collections
import logging

from davenport import design
from davenport.client import Server

__all__ = ['DatabaseConfiguration', 'configure_database', 'MIN_COUCHDB_VERSION']

log = logging.getLogger(__name__)

MIN_COUCHDB_VERSION = 2


class DatabaseConfiguration(collections.namedtuple("DatabaseConfiguration", ["name", "indexes", "design_docs"])):
    """What a database should look like: its name, the fields to build a mango
    index over, and the design documents (`DesignDocConfiguration`) to keep
    in sync."""
    __slots__ = ()

    def __new__(cls, name, indexes=None, design_docs=None):
        return super(DatabaseConfiguration, cls).__new__(cls, name, indexes, design_docs)

    @property
    def index_name(self):
        return '%s-indexes' % self.name


def configure_database(url, configuration, session=None, max_workers=None, **options):
    """Check the server, create the database, its index and design documents,
    and return a `Database` bound to it.

    The database and design documents are only written when missing or out of
    date, so this is safe to call on every startup.

    >>> db = configure_database('http://localhost:5984/', DatabaseConfiguration(
    ...     'people',
    ...     indexes=['name'],
    ...     design_docs=[DesignDocConfiguration('list', [GENERIC_LIST_VIEW])],
    ... ))   # doctest: +SKIP

    :param url: the URI of the server
    :param configuration: a `DatabaseConfiguration`
    :param session: an optional `Session` to send requests through; its
                    ``base_url`` should point at ``url``
    :param max_workers: thread pool size for syncing design documents
    :param options: ``warnings``, ``logger``, ``credentials``, ``proxy`` and
                    ``timeout``
    :raise ConnectivityError: if the server root cannot be read
    :raise DatabaseError: if the database or its index cannot be created
    """
    database_options = dict((k, options.pop(k)) for k in ('warnings', 'logger') if k in options)
    server = Server(url, session=session, **options)

    version = server.version_info()
    if not version or version[0] < MIN_COUCHDB_VERSION:
        log.warning("Expected CouchDB %d.0 or higher at %s, found version %s. "
                    "Some database methods may not work.",
                    MIN_COUCHDB_VERSION, url, '.'.join(map(str, version)) or 'unknown')

    db = server.database(configuration.name, **database_options)
    if db.create_db().get('already_existed'):
        log.debug("Database %s already exists.", configuration.name)
    else:
        log.info("Created database %s.", configuration.name)

    if configuration.indexes:
        db.create_index(configuration.indexes, name=configuration.index_name)

    if configuration.design_docs:
        design.sync_design_docs(db, configuration.design_docs, max_workers=max_workers)

    return db
