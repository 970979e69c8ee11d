import requests.exceptions
from requests_toolbelt import sessions

from davenport import exceptions


def is_success(response):
    """Return whether the response carries a 2xx status."""
    return 200 <= response.status_code < 300


class Session(object):
    """Wrapper around BaseUrlSession that hands back every response, whatever
    its status, and wraps transport exceptions.

    :param base_url: the URL every relative path is resolved against
    :param credentials: optional ``(username, password)`` for basic auth
    :param proxy: optional proxy URL, or a ``{scheme: url}`` mapping
    :param timeout: optional default timeout passed to every request
    """

    def __init__(self, base_url=None, credentials=None, proxy=None, timeout=None):
        self._base_session = sessions.BaseUrlSession(base_url=_with_slash(base_url))
        self.timeout = timeout
        if credentials:
            self._base_session.auth = tuple(credentials)
        if proxy:
            if isinstance(proxy, dict):
                self._base_session.proxies.update(proxy)
            else:
                self._base_session.proxies.update({'http': proxy, 'https': proxy})

    @property
    def base_url(self):
        return self._base_session.base_url

    @base_url.setter
    def base_url(self, url):
        self._base_session.base_url = _with_slash(url)

    @property
    def auth(self):
        return self._base_session.auth

    @property
    def proxies(self):
        return self._base_session.proxies

    def request(self, method, url, **kwargs):
        if self.timeout is not None:
            kwargs.setdefault('timeout', self.timeout)
        try:
            return self._base_session.request(method, str(url), **kwargs)
        except requests.exceptions.Timeout as exc:
            raise exceptions.Timeout("Request to %s timed out" % self.base_url) from exc
        except requests.exceptions.RequestException as exc:
            raise exceptions.ConnectivityError("Could not reach %s: %s" % (self.base_url, exc)) from exc

    def head(self, url, **kwargs):
        return self.request("HEAD", url=url, **kwargs)

    def get(self, url, **kwargs):
        return self.request("GET", url=url, **kwargs)

    def put(self, url, data=None, **kwargs):
        return self.request("PUT", url=url, data=data, **kwargs)

    def post(self, url, data=None, json=None, **kwargs):
        return self.request("POST", url=url, data=data, json=json, **kwargs)

    def delete(self, url, **kwargs):
        return self.request("DELETE", url=url, **kwargs)

    def copy(self, url, destination, **kwargs):
        headers = dict(kwargs.pop('headers', None) or {})
        headers['Destination'] = destination
        return self.request("COPY", url=url, headers=headers, **kwargs)


def _with_slash(url):
    # BaseUrlSession joins with urljoin, which drops the last segment otherwise
    if url and not url.endswith('/'):
        return url + '/'
    return url
