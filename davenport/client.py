# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""Python client API for CouchDB.

>>> db = Database('http://localhost:5984/', 'python-tests')
>>> db.create_db()
{'ok': True}
>>> doc_id, doc_rev = db.post({'type': 'Person', 'name': 'John Doe'})
>>> doc = db.get(doc_id)
>>> doc['name']
'John Doe'
>>> db.delete(doc.id, doc.rev)
>>> db.exists(doc.id)
False

>>> db.delete_db()
{'ok': True}
"""
import logging
import os
from urllib.parse import quote

import furl

from davenport import exceptions, views
from davenport.session import Session, is_success

__all__ = ['Server', 'Database', 'Document']
__docformat__ = 'restructuredtext en'


DEFAULT_BASE_URL = os.environ.get('COUCHDB_URL', 'http://localhost:5984/')

log = logging.getLogger(__name__)


def _check(response, message=None):
    """Return the decoded body of a 2xx response, raise `DatabaseError`
    otherwise."""
    if not is_success(response):
        raise exceptions.database_error(response, message)
    if not response.content:
        return None
    return response.json()


class Server(object):
    """Representation of a CouchDB server.

    >>> server = Server() # connects to the local_server
    >>> remote_server = Server('http://example.com:5984/')
    >>> secure_remote_server = Server('https://example.com:5984/',
    ...                               credentials=('admin', 'secret'))

    Databases bound to the same session are handed out by `database`:

    >>> db = server.database('python-tests')
    >>> db
    <Database 'python-tests'>
    """

    def __init__(self, url=DEFAULT_BASE_URL, session=None, **options):
        """Initialize the server object.

        :param url: the URI of the server (for example ``http://localhost:5984/``)
        :param session: an optional `Session` to send requests through; its
                        ``base_url`` is used as is
        :param options: ``credentials``, ``proxy`` and ``timeout`` for the
                        session built when none is given
        """
        self._url = url
        if session:
            self._session = session
        else:
            self._session = Session(base_url=url, **options)
        self._version_info = None

    @property
    def url(self):
        return self._url

    @property
    def session(self):
        return self._session

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.url)

    def __iter__(self):
        """Iterate over the names of all databases."""
        return iter(self.all_dbs())

    def info(self):
        """The welcome document of the server root.

        :raise ConnectivityError: if the server does not answer with a 2xx
        """
        response = self._session.get("")
        if not is_success(response):
            raise exceptions.ConnectivityError(
                "Failed to connect to CouchDB instance at %s. %s %s"
                % (self.url, response.status_code, response.reason),
                response,
            )
        return response.json()

    def version(self):
        """The version string of the CouchDB server.

        Note that this results in a request being made, and can also be used
        to check for the availability of the server.

        :rtype: `str`"""
        return self.info().get('version', '')

    def version_info(self):
        """The version of the CouchDB server as a tuple of ints.

        Note that this results in a request being made only at the first call.
        Afterwards the result will be cached.

        :rtype: `tuple(int, int, int)`"""
        if self._version_info is None:
            self._version_info = parse_version(self.version())
        return self._version_info

    def all_dbs(self):
        """A list of all database names on the server."""
        return _check(self._session.get("_all_dbs"))

    def database(self, name, **options):
        """Return a `Database` for ``name`` sharing this server's session.

        :param options: ``warnings`` and ``logger`` for the database client
        """
        return Database(self.url, name, session=self._session, **options)


def parse_version(version):
    """Parse ``'2.3.1'`` into ``(2, 3, 1)``, ignoring non numeric suffixes."""
    parts = []
    for part in str(version).split('.'):
        digits = ''
        for char in part:
            if not char.isdigit():
                break
            digits += char
        if not digits:
            break
        parts.append(int(digits))
    return tuple(parts)


class Database(object):
    """Representation of a database on a CouchDB server.

    >>> db = Database('http://localhost:5984/', 'python-tests')
    >>> db.create_db()
    {'ok': True}

    New documents can be added to the database using the `post()` method,
    which lets CouchDB pick the ID:

    >>> doc_id, doc_rev = db.post({'type': 'Person', 'name': 'John Doe'})

    Documents are retrieved by their ID, and come back as instances of the
    `Document` class, which is basically just a normal dictionary with the
    additional attributes ``id`` and ``rev``:

    >>> doc = db.get(doc_id)
    >>> doc.id, doc.rev     #doctest: +ELLIPSIS
    ('...', '...')

    To update an existing document, pass the revision you read:

    >>> doc['name'] = 'Mary Jane'
    >>> new_id, new_rev = db.put(doc.id, doc, doc.rev)

    Every non-2xx answer raises a `DatabaseError` subclass carrying the
    status, status text, body and host of the response.

    >>> db.delete_db()
    {'ok': True}
    """

    def __init__(self, url, name, session=None, warnings=True, logger=None, **options):
        """
        :param url: the URI of the server
        :param name: the database name
        :param session: an optional `Session` to send requests through; its
                        ``base_url`` is used as is
        :param warnings: whether to log client-side warnings
        :param logger: the `logging.Logger` warnings go to
        :param options: ``credentials``, ``proxy`` and ``timeout`` for the
                        session built when none is given
        """
        self._name = name
        self._url = url
        if session:
            self._session = session
        else:
            self._session = Session(base_url=url, **options)
        self.warnings = warnings
        self.log = logger or log

    @classmethod
    def from_url(cls, url, **options):
        """
        Initialize a database object from a URL such as
        ``http://localhost:5984/mydb``.

        Also works with just a name, in which case the server url defaults to the default URL.
        """
        parsed_url = furl.furl(url)
        segments = [s for s in parsed_url.path.segments if s]
        if len(segments) != 1:
            raise ValueError("URL must contain exactly one path segment.")
        db_name = segments[0]
        parsed_url.remove(path=True)
        return cls(parsed_url.url or DEFAULT_BASE_URL, db_name, **options)

    @property
    def name(self):
        return self._name

    @property
    def url(self):
        return self._url

    @property
    def session(self):
        return self._session

    @property
    def path(self):
        return furl.Path([self.name])

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.name)

    def __contains__(self, id):
        """Return whether the database contains a document with the specified
        ID.
        """
        return self.exists(id)

    def __getitem__(self, id):
        return self.get(id)

    def __len__(self):
        """Return the number of documents in the database, design documents
        included."""
        return self.count()

    def _warn(self, message, *args):
        if self.warnings:
            self.log.warning(message, *args)

    def _check(self, response):
        if is_success(response):
            return _check(response)
        message = "Error with {method} request for CouchDB database {name} at {url}. {status} {reason}".format(
            method=response.request.method if response.request is not None else "HTTP",
            name=self.name,
            url=response.url,
            status=response.status_code,
            reason=response.reason,
        )
        raise exceptions.database_error(response, message)

    # Database

    def create_db(self):
        """Create the database.

        An existing database is not an error: the result then carries
        ``already_existed``.

        :return: ``{'ok': True}`` or ``{'ok': True, 'already_existed': True}``
        """
        response = self._session.put(self.path)
        if response.status_code == exceptions.PreconditionFailed.status_code:
            return {'ok': True, 'already_existed': True}
        self._check(response)
        return {'ok': True}

    def delete_db(self):
        """Delete the database.

        :raise NotFound: if the database does not exist
        """
        return self._check(self._session.delete(self.path))

    def info(self):
        """Return information about the database as a dictionary.

        The returned dictionary exactly corresponds to the JSON response to
        a ``GET`` request on the database URI.

        :rtype: ``dict``
        """
        return self._check(self._session.get(self.path))

    get_db_info = info

    def create_index(self, fields, name=None, ddoc=None):
        """Create a mango index over ``fields``.

        :param fields: `list` of field names (or ``{field: direction}`` dicts)
        :param name: optional name of the index
        :param ddoc: optional name of the design document holding the index
        :return: `dict` containing the `id`, the `name` and the `result` of
                 creating the index
        """
        query = {'index': {'fields': list(fields)}}
        if ddoc:
            query['ddoc'] = ddoc
        if name:
            query['name'] = name
        return self._check(self._session.post(self.path.add("_index"), json=query))

    # Documents

    def get(self, id, rev=None):
        """Return the document with the specified ID.

        :param id: the document ID
        :param rev: an optional revision to fetch instead of the latest one
        :rtype: `Document`
        :raise NotFound: if no document with the ID was found
        """
        if not id:
            raise ValueError('document ID cannot be empty')
        params = {'rev': rev} if rev else {}
        return Document(self._check(self._session.get(self.path.add([id]), params=params)))

    def post(self, doc):
        """Create a new document, letting CouchDB allocate an ID unless ``doc``
        carries an ``_id``.

        Note that the underlying HTTP ``POST`` method is not idempotent, so a
        retry somewhere on the network stack may create duplicates. Prefer
        `put` with a client-side ID (e.g. ``uuid4().hex``) where that matters.

        :param doc: the document to store
        :return: (id, rev) of the created document
        :rtype: `Revision`
        """
        data = self._check(self._session.post(self.path, json=_content(doc)))
        return views.Revision(data['id'], data['rev'])

    def put(self, id, doc, rev=None):
        """Create or update the document with the specified ID.

        Updating an existing document without its current revision is
        rejected by CouchDB with a `Conflict`.

        :param id: the document ID
        :param doc: the document content
        :param rev: the current revision of the document
        :rtype: `Revision`
        """
        if not rev:
            self._warn("No revision specified for Database.put with id %s. "
                       "This may cause a document conflict error.", id)
        params = {'rev': rev} if rev else {}
        data = self._check(self._session.put(self.path.add([id]), json=_content(doc), params=params))
        return views.Revision(data['id'], data['rev'])

    def delete(self, id, rev=None):
        """Delete the given revision of a document.

        :param id: the document ID
        :param rev: the current revision of the document
        :raise Conflict: if the document was updated in the database
        """
        if not rev:
            self._warn("No revision specified for Database.delete with id %s. "
                       "This may cause a document conflict error.", id)
        params = {'rev': rev} if rev else {}
        self._check(self._session.delete(self.path.add([id]), params=params))

    def copy(self, id, new_id):
        """Copy the given document to create a new document.

        :param id: the ID of the document to copy
        :param new_id: the ID of the copy
        :rtype: `Revision`
        """
        data = self._check(self._session.copy(self.path.add([id]), quote(new_id, safe='')))
        return views.Revision(data['id'], data['rev'])

    def exists(self, id):
        """Return whether a document with the given ID exists.

        :raise DatabaseError: for any failure other than 404
        """
        response = self._session.head(self.path.add([id]))
        if response.status_code == exceptions.NotFound.status_code:
            return False
        self._check(response)
        return True

    def exists_by_field_value(self, value, field):
        """Return whether a document with ``field`` equal to ``value`` exists.

        Looking up the ``_id`` field is a plain `exists` check.
        """
        if field == '_id':
            return self.exists(value)
        return self.exists_by_selector({field: value})

    def exists_by_selector(self, selector):
        """Return whether any document matches the mango ``selector``."""
        docs = self.find({'selector': selector, 'fields': ['_id'], 'limit': 1})
        return len(docs) > 0

    def bulk(self, docs):
        """Create or update many documents in a single request.

        The result is aligned with ``docs``: every entry is either a
        `BulkSuccess` ``(id, rev)`` or a `BulkFailure` ``(id, error, reason)``,
        e.g. a conflict for a document sent with a stale revision. A failing
        document does not fail the batch.

        :param docs: a sequence of dictionaries, with or without ``_id``
        :rtype: ``list``
        """
        payload = {'docs': [_content(doc) for doc in docs]}
        data = self._check(self._session.post(self.path.add("_bulk_docs"), json=payload))
        return [views.bulk_result(result) for result in data]

    # Queries

    def find(self, options):
        """Execute a mango find-query against the database.

        Note: only available for CouchDB version >= 2.0.0

        >>> docs = db.find({'selector': {'type': 'Person'},
        ...                 'fields': ['name'],
        ...                 'sort': [{'name': 'asc'}]})   # doctest: +SKIP

        :param options: a dictionary with a required ``selector`` and optional
                        ``fields``, ``sort``, ``limit``, ``skip``, ``use_index``
        :return: the matching documents as a list of `Document`
        """
        if not isinstance(options, dict) or 'selector' not in options:
            raise ValueError('find options require a selector')
        body = self._check(self._session.post(self.path.add("_find"), json=options))
        if body.get('warning'):
            self._warn("Database.find result contained warning: %s", body['warning'])
        return [Document(doc) for doc in body.get('docs', [])]

    def count_by_selector(self, selector):
        """Count the documents matching ``selector``.

        This pulls the ``_id`` of every selected document, so it costs memory
        proportional to the result. For large sets, create a dedicated view
        with a ``_count`` reduce and use `view`.
        """
        return len(self.find({'selector': selector, 'fields': ['_id']}))

    def count(self):
        """Count all documents in the database, design documents included."""
        return self._list({'limit': 0})['total_rows']

    def list_without_docs(self, **options):
        """List the revisions of all documents. Design documents are listed
        too. ``include_docs`` is forced off; use `list_with_docs` for bodies.

        :param options: list options, e.g. ``limit``, ``skip``, ``start_key``
        :return: a `ViewResult` whose rows are ``{'rev': ...}`` dicts; rows
                 for ``keys`` CouchDB could not find are passed through as
                 ``{'key': ..., 'error': ...}``
        """
        options['include_docs'] = False
        body = self._list(options)
        return views.ViewResult(
            [row if 'error' in row else row.get('value') for row in body['rows']],
            body.get('offset'),
            body.get('total_rows'),
        )

    def list_with_docs(self, **options):
        """List all documents with their bodies. Design documents are listed
        too. ``include_docs`` is forced on.

        :return: a `ViewResult` whose rows are `Document` instances, aligned
                 with ``keys``: missing keys give their error row, deleted
                 documents give `None`
        """
        options['include_docs'] = True
        body = self._list(options)
        return views.ViewResult(
            [_row_document(row) for row in body['rows']],
            body.get('offset'),
            body.get('total_rows'),
        )

    def _list(self, options):
        params = views.encode_options(options)
        return self._check(self._session.get(self.path.add("_all_docs"), params=params))

    def view(self, design_doc, view_name, **options):
        """Execute a view of a design document.

        >>> result = db.view('list', 'by-foo-value', start_key=15, end_key=20)  # doctest: +SKIP
        >>> [row.key for row in result]                                         # doctest: +SKIP
        [15, 17, 20]

        Keyword arguments are query options: ``key``, ``keys``,
        ``start_key``/``startkey``, ``end_key``/``endkey``, ``inclusive_end``,
        ``descending``, ``skip``, ``limit``, ``reduce``, ``group``,
        ``group_level``, ``include_docs``.

        :param design_doc: the name of the design document, without ``_design/``
        :param view_name: the name of the view
        :rtype: `ViewResult` of `Row`
        """
        params = views.encode_options(options)
        path = self.path.add(["_design", design_doc, "_view", view_name])
        body = self._check(self._session.get(path, params=params))
        return views.ViewResult(
            [views.Row.from_json(r, wrapper=Document) for r in body.get("rows", [])],
            body.get("offset"),
            body.get("total_rows"),
        )

    def view_with_docs(self, design_doc, view_name, **options):
        """Execute a view with ``include_docs`` on, which forces ``reduce``
        off. Each `Row` carries its `Document` in ``doc``."""
        options['include_docs'] = True
        options['reduce'] = False
        return self.view(design_doc, view_name, **options)


def _row_document(row):
    if 'error' in row:
        return row
    if row.get('doc') is None:
        return None
    return Document(row['doc'])


def _content(doc):
    """Copy ``doc`` into a plain dict, leaving out unset ``_id``/``_rev``."""
    if not isinstance(doc, dict):
        if hasattr(doc, 'items'):
            doc = dict(doc.items())
        else:
            raise TypeError('expected dict, got %s' % type(doc))
    return dict((k, v) for k, v in doc.items()
                if not (k in ('_id', '_rev') and v is None))


class Document(dict):
    """Representation of a document in the database.

    This is basically just a dictionary with the two additional properties
    `id` and `rev`, which contain the document ID and revision, respectively.
    """

    def __repr__(self):
        return '<%s %r@%r %r>' % (type(self).__name__, self.id, self.rev,
                                  dict([(k,v) for k,v in self.items()
                                        if k not in ('_id', '_rev')]))

    @property
    def id(self):
        """The document ID.

        :rtype: str
        """
        return self.get('_id')

    @property
    def rev(self):
        """The document revision.

        :rtype: str
        """
        return self.get('_rev')
