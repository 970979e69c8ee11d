import furl


class DavenportException(Exception):
    """There was an ambiguous error interacting with CouchDB."""
    is_davenport = True


class ConnectivityError(DavenportException):
    """The CouchDB server could not be reached."""

    def __init__(self, message, response=None):
        super(ConnectivityError, self).__init__(message)
        self.response = response


class Timeout(ConnectivityError):
    """The request timed out."""
    pass


class DatabaseError(DavenportException):
    """CouchDB answered with a non-2xx status.

    The status, status text, decoded body and host of the failed response are
    kept on the exception so callers can inspect them.
    """
    status_code = None

    def __init__(self, message, response):
        super(DatabaseError, self).__init__(message)
        self.response = response
        self.status = response.status_code
        self.status_text = response.reason
        self.body = _body(response)
        self.url = response.url
        self.host = furl.furl(response.url).host if response.url else None

    @property
    def error(self):
        """The CouchDB ``error`` field of the body, if any."""
        if isinstance(self.body, dict):
            return self.body.get('error')
        return None

    @property
    def reason(self):
        """The CouchDB ``reason`` field of the body, if any."""
        if isinstance(self.body, dict):
            return self.body.get('reason')
        return None


class BadRequest(DatabaseError):
    """400 Bad Request"""
    status_code = 400


class Unauthorized(DatabaseError):
    """401 Unauthorized"""
    status_code = 401


class Forbidden(DatabaseError):
    """403 Forbidden"""
    status_code = 403


class NotFound(DatabaseError):
    """404 Not Found"""
    status_code = 404


class Conflict(DatabaseError):
    """409 Conflict, usually a stale or missing revision."""
    status_code = 409


class PreconditionFailed(DatabaseError):
    """412 Precondition Failed, e.g. the database already exists."""
    status_code = 412


_database_error_lookup = {
    exc.status_code: exc for exc in [BadRequest, Unauthorized, Forbidden, NotFound, Conflict, PreconditionFailed]
}


def database_error(response, message=None):
    """Build the `DatabaseError` matching the status of ``response``."""
    if message is None:
        message = "{method} {url} failed. {status} {reason}".format(
            method=response.request.method if response.request is not None else "Request",
            url=response.url,
            status=response.status_code,
            reason=response.reason,
        )
    exc_type = _database_error_lookup.get(response.status_code, DatabaseError)
    return exc_type(message, response)


def is_davenport_error(error):
    """Return whether ``error`` was raised by this library."""
    return bool(getattr(error, 'is_davenport', False))


def _body(response):
    try:
        return response.json()
    except ValueError:
        return response.text
