import collections
import json


# Options sent as JSON literals whatever their Python type.
JSON_OPTIONS = frozenset(['key', 'keys', 'start_key', 'startkey', 'end_key', 'endkey'])


class ViewResult(object):
    """Result of view query; contains rows, offset, total_rows.
    Instances of this class are not supposed to be created by client software.
    """

    def __init__(self, rows, offset=None, total_rows=None):
        self.rows = rows
        self.offset = offset
        self.total_rows = total_rows

    def __len__(self):
        return len(self.rows)

    def __getitem__(self, i):
        return self.rows[i]

    def __iter__(self):
        return iter(self.rows)

    def __repr__(self):
        return '<%s offset=%r total_rows=%r rows=%d>' % (
            type(self).__name__, self.offset, self.total_rows, len(self.rows))

    def json(self):
        "Return data in a JSON-like representation."
        result = dict()
        if self.total_rows is not None:
            result["total_rows"] = self.total_rows
        if self.offset is not None:
            result["offset"] = self.offset
        result["rows"] = [row._asdict() if isinstance(row, Row) else row for row in self.rows]
        return result


class Row(collections.namedtuple("Row", ["id", "key", "value", "doc"])):
    """A single view row. ``doc`` is only set when documents were included."""
    __slots__ = ()

    @classmethod
    def from_json(cls, data, wrapper=None):
        doc = data.get("doc")
        if doc is not None and wrapper is not None:
            doc = wrapper(doc)
        return cls(data.get("id"), data.get("key"), data.get("value"), doc)


Revision = collections.namedtuple("Revision", ["id", "rev"])


class BulkSuccess(collections.namedtuple("BulkSuccess", ["id", "rev"])):
    """A document written by a bulk request."""
    __slots__ = ()
    ok = True


class BulkFailure(collections.namedtuple("BulkFailure", ["id", "error", "reason"])):
    """A document rejected by a bulk request, e.g. ``error == 'conflict'``."""
    __slots__ = ()
    ok = False


def bulk_result(data):
    """Turn one entry of a ``_bulk_docs`` response into its variant."""
    if 'error' in data:
        return BulkFailure(data.get('id'), data['error'], data.get('reason'))
    return BulkSuccess(data['id'], data['rev'])


def encode_options(options):
    """Encode list/view options as query string parameters.

    Keys (``key``, ``keys``, ``startkey``/``start_key``, ``endkey``/``end_key``)
    are always sent as JSON, so ``["part", 15]`` travels as the single value
    ``["part",15]``. Other strings pass through, other scalars are JSON encoded
    so booleans read ``true``/``false``. ``None`` values are dropped.
    """
    params = {}
    for name, value in options.items():
        if value is None:
            continue
        if name in JSON_OPTIONS or not isinstance(value, str):
            value = json.dumps(value, separators=(',', ':'), ensure_ascii=False)
        params[name] = value
    return params
