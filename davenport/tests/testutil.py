import collections
import json
import threading

from davenport.session import Session


BASE_URL = 'http://localhost:5984/'

REASONS = {
    200: 'OK', 201: 'Created', 202: 'Accepted', 400: 'Bad Request',
    401: 'Unauthorized', 403: 'Forbidden', 404: 'Object Not Found',
    409: 'Conflict', 412: 'Precondition Failed', 500: 'Internal Server Error',
}

Call = collections.namedtuple("Call", ["method", "url", "kwargs"])


class FakeRequest(object):

    def __init__(self, method, url):
        self.method = method
        self.url = url


class FakeResponse(object):
    """Just enough of `requests.Response` for the client."""

    def __init__(self, status_code=200, body=None, method='GET', url=BASE_URL, reason=None):
        self.status_code = status_code
        self.reason = reason or REASONS.get(status_code, '')
        self.url = url
        self.request = FakeRequest(method, url)
        self.headers = {}
        if body is None:
            self.content = b''
        elif isinstance(body, (bytes, str)):
            self.content = body if isinstance(body, bytes) else body.encode('utf-8')
        else:
            self.content = json.dumps(body).encode('utf-8')

    @property
    def text(self):
        return self.content.decode('utf-8')

    def json(self):
        return json.loads(self.text)


class FakeSession(Session):
    """A `Session` answering from canned responses instead of the network.

    Responses are registered per ``(method, path)``; several responses for the
    same route are returned in order, the last one repeating. Unknown routes
    answer 404.
    """

    def __init__(self, base_url=BASE_URL, **options):
        super(FakeSession, self).__init__(base_url, **options)
        self.routes = {}
        self.calls = []
        self._lock = threading.Lock()

    def add(self, method, path, status=200, body=None, reason=None):
        self.routes.setdefault((method, path), []).append((status, body, reason))
        return self

    def request(self, method, url, **kwargs):
        url = str(url)
        with self._lock:
            self.calls.append(Call(method, url, kwargs))
            queue = self.routes.get((method, url))
            if queue:
                status, body, reason = queue.pop(0) if len(queue) > 1 else queue[0]
            else:
                status, body, reason = 404, {'error': 'not_found', 'reason': 'missing'}, None
        if method == 'HEAD':
            body = None
        return FakeResponse(status, body, method=method, url=self.base_url + url, reason=reason)

    def calls_to(self, method, url=None):
        return [c for c in self.calls
                if c.method == method and (url is None or c.url == url)]
