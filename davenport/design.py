"""Keeping design documents in sync with the views an application expects.

The views an application needs are declared as `ViewDefinition` objects
grouped in `DesignDocConfiguration` objects. `sync_design_doc` compares them
with the design document stored in CouchDB and writes the document back only
when a view is missing or its ``map``/``reduce`` source differs, so running
it on every startup is cheap:

>>> config = DesignDocConfiguration('list', [
...     ViewDefinition('by-foo', 'function (doc) { emit(doc.foo, doc); }'),
...     GENERIC_LIST_VIEW,
... ])
>>> sync_design_doc(db, config)   # doctest: +SKIP
True
>>> sync_design_doc(db, config)   # doctest: +SKIP
False
"""
import collections
import logging
from concurrent.futures import ThreadPoolExecutor

from davenport import exceptions
from davenport.session import is_success

__all__ = ['ViewDefinition', 'DesignDocConfiguration', 'GENERIC_LIST_VIEW',
           'sync_design_doc', 'sync_design_docs']

log = logging.getLogger(__name__)

DESIGN_PREFIX = '_design/'


class ViewDefinition(collections.namedtuple("ViewDefinition", ["name", "map", "reduce"])):
    """A named view: the source of its map function and, optionally, a reduce
    function source or builtin such as ``_count`` or ``_sum``.

    Both are opaque strings, executed by the server only.
    """
    __slots__ = ()

    def __new__(cls, name, map, reduce=None):
        return super(ViewDefinition, cls).__new__(cls, name, map, reduce)

    def json(self):
        data = {'map': self.map}
        if self.reduce is not None:
            data['reduce'] = self.reduce
        return data

    def matches(self, stored):
        """Exact comparison with the ``{map, reduce}`` stored in a design
        document."""
        if not stored:
            return False
        return stored.get('map') == self.map and stored.get('reduce') == self.reduce


DesignDocConfiguration = collections.namedtuple("DesignDocConfiguration", ["name", "views"])


# Lists and counts every document of the database.
GENERIC_LIST_VIEW = ViewDefinition(
    'all',
    'function (doc) { emit(doc._id, doc); }',
    '_count',
)


def empty_design_doc(name):
    return {
        '_id': DESIGN_PREFIX + name,
        'language': 'javascript',
        'views': {},
    }


def merge_views(doc, views):
    """Stage ``views`` into the design document ``doc``.

    Views stored in ``doc`` but absent from ``views`` are kept.

    :return: the names of the views that had to change
    """
    stored = dict(doc.get('views') or {})
    dirty = []
    for view in views:
        if not view.matches(stored.get(view.name)):
            stored[view.name] = view.json()
            dirty.append(view.name)
    doc['views'] = stored
    return dirty


def sync_design_doc(database, design_doc):
    """Create or update one design document so it contains ``design_doc.views``.

    A missing design document is created. Any other failure to read or write
    it is logged and skipped.

    :param database: the `Database` holding the design document
    :param design_doc: a `DesignDocConfiguration`
    :return: `True` if the design document was written
    """
    path = database.path.add(['_design', design_doc.name])
    response = database.session.get(path)

    if response.status_code == exceptions.NotFound.status_code:
        doc = empty_design_doc(design_doc.name)
    elif is_success(response):
        doc = response.json()
    else:
        log.warning('Failed to retrieve design doc "%s". %s %s %s',
                    design_doc.name, response.status_code, response.reason, response.text)
        return False

    dirty = merge_views(doc, design_doc.views)
    if not dirty:
        log.debug('Design doc "%s" is up to date.', design_doc.name)
        return False

    log.info('Creating or updating design doc "%s" (views: %s).',
             design_doc.name, ', '.join(dirty))
    response = database.session.put(path, json=doc)
    if not is_success(response):
        log.warning('Could not create or update design doc "%s". %s %s %s',
                    design_doc.name, response.status_code, response.reason, response.text)
        return False
    return True


def sync_design_docs(database, design_docs, max_workers=None):
    """Run `sync_design_doc` for every design document concurrently and wait
    for all of them.

    The workers share the database session; pass ``max_workers=1`` to keep
    requests on a single thread.

    :param max_workers: size of the thread pool, one per design document by
                        default
    :return: ``{name: written}`` for every design document
    """
    design_docs = list(design_docs or [])
    if not design_docs:
        return {}
    workers = max_workers or len(design_docs)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        written = list(executor.map(lambda ddoc: sync_design_doc(database, ddoc), design_docs))
    return dict((ddoc.name, result) for ddoc, result in zip(design_docs, written))
