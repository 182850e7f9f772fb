"""
The classes that make up the REST layer:  a :py:class:`ServiceApp` picks a :py:class:`Handler` for
each request path, and a :py:class:`WSGIApp` mounts a ServiceApp beneath a base endpoint path.
"""
import re, json
from abc import ABCMeta, abstractmethod
from logging import Logger
from urllib.parse import parse_qs
from typing import Mapping, Callable, List

from wsgiref.headers import Headers

from ...base.config import ConfigurationException

__all__ = ["Handler", "NotFoundHandler", "ServiceApp", "WSGIApp"]

class Handler(object):
    """
    the handler of a single web request.  Subclasses respond to an HTTP method, METH, by
    providing a ``do_METH(path)`` method; ``do_GET`` should also accept an ``ashead`` keyword
    so that it can answer HEAD requests.
    """

    def __init__(self, path: str, wsgienv: dict, start_resp: Callable, config: dict={},
                 log: Logger=None, app=None):
        self._path = path
        self._env = wsgienv
        self._start = start_resp
        self.cfg = config
        self.log = log
        self._app = app
        self._meth = wsgienv.get('REQUEST_METHOD', 'GET')

        # headers that the app wants on every response
        extra = getattr(app, 'include_headers', None) if app else None
        self._hdr = Headers(list(extra.items()) if extra else [])
        self._status = "500 Server failure"

    @property
    def app(self):
        """
        the ServiceApp that created this handler, if any
        """
        return self._app

    def get_query_params(self) -> Mapping:
        """
        return the parsed query string, mapping each parameter name to the list of its values
        """
        return parse_qs(self._env.get('QUERY_STRING', ''), keep_blank_values=True)

    def get_query_param(self, name: str, default: str=None) -> str:
        """
        return the value of a query parameter; if it was given more than once, the last value
        is returned.
        """
        vals = self.get_query_params().get(name)
        return vals[-1] if vals else default

    def add_header(self, name: str, value: str):
        """
        add a header to the response.
        :raises UnicodeEncodeError:  if the name or value cannot be encoded as Latin-1
        """
        name.encode("ISO-8859-1")
        value.encode("ISO-8859-1")
        self._hdr.add_header(name, value)

    def set_response(self, code: int, message: str):
        self._status = "%d %s" % (code, message)

    def end_headers(self):
        self._start(self._status, self._hdr.items(), None)

    def send_ok(self, content=None, contenttype: str=None, message: str="OK", code: int=200,
                ashead: bool=None, encoding: str='utf-8'):
        """
        respond with a success status and, optionally, some content
        :param content:  the body to return, as a str, bytes, or a list of these
        :param bool ashead:  if True, send the headers describing the content but withhold the
                             content itself; if None, this is determined by whether the request
                             was a HEAD request.
        """
        return self._respond(code, message, content, contenttype, ashead, encoding)

    def send_error(self, code: int, message: str, content=None, contenttype: str=None,
                   ashead: bool=None, encoding: str='utf-8'):
        """
        respond with an error status
        :param str message:  the short reason sent in the status line
        """
        return self._respond(code, message, content, contenttype, ashead, encoding)

    def send_json(self, data, message: str="OK", code: int=200, ashead: bool=None,
                  encoding: str='utf-8'):
        """
        respond with the given data encoded as JSON
        """
        return self._respond(code, message, json.dumps(data, indent=2), "application/json",
                             ashead, encoding)

    def send_options(self, allowed_methods: List[str]=None, origin: str=None, extra=None):
        """
        answer an OPTIONS (e.g. CORS preflight) request
        :param [str] allowed_methods:  the methods the resource supports; OPTIONS is added
        :param str            origin:  the origin to allow, if any
        :param extra:  additional headers, given as a dict or a list of name-value pairs
        """
        meths = list(allowed_methods or [])
        if 'OPTIONS' not in meths:
            meths.append('OPTIONS')
        self.add_header('Access-Control-Allow-Methods', ", ".join(meths))
        if origin:
            self.add_header('Access-Control-Allow-Origin', origin)
        self.add_header('Access-Control-Allow-Headers', "Content-Type")
        if isinstance(extra, Mapping):
            extra = extra.items()
        for name, val in (extra or []):
            self.add_header(name, val)
        return self.send_ok(message="No Content")

    def _respond(self, code, message, content, contenttype, ashead, encoding):
        if ashead is None:
            ashead = self._meth.upper() == "HEAD"

        if content is None:
            content = []
        elif not isinstance(content, list):
            content = [content]
        if any(not isinstance(c, (str, bytes)) for c in content):
            raise TypeError("response content must be str or bytes")
        if content and not contenttype:
            contenttype = "text/plain" if isinstance(content[0], str) else "application/octet-stream"
        body = [c.encode(encoding) if isinstance(c, str) else c for c in content]

        self.set_response(code, message)
        if contenttype:
            self.add_header("Content-Type", contenttype)
        if body:
            self.add_header("Content-Length", str(sum(len(b) for b in body)))
        self.end_headers()
        return [] if ashead else body

    def handle(self):
        """
        respond to the request by calling the ``do_`` method matching its HTTP method (which a
        client may override with the X-HTTP-Method-Override header).  Unsupported methods get
        405; unexpected failures get 500.
        """
        meth = self._env.get('HTTP_X_HTTP_METHOD_OVERRIDE') or self._meth
        try:
            if hasattr(self, 'do_'+meth):
                return getattr(self, 'do_'+meth)(self._path)
            if meth == "HEAD" and hasattr(self, 'do_GET'):
                return self.do_GET(self._path, ashead=True)
            return self.send_error(405, meth + " not supported on this resource")
        except Exception as ex:
            if self.log:
                self.log.exception("Unexpected failure: %s", str(ex))
            return self.send_error(500, "Server failure")

class NotFoundHandler(Handler):
    """
    a Handler that answers every request with 404 Not Found
    """
    def do_GET(self, path, ashead=False):
        return self.send_error(404, "Not Found", ashead=ashead)

    def do_OPTIONS(self, path):
        return self.send_options(["GET"])

class ServiceApp(metaclass=ABCMeta):
    """
    a WSGI application that serves the resources beneath some path by creating a
    :py:class:`Handler` for each request.

    The ``include_headers`` configuration parameter, either a dict or a list of name-value
    pairs, names headers to add to every response.
    """

    def __init__(self, appname: str, log: Logger, config: Mapping=None):
        self.log = log
        self.cfg = config if config is not None else {}
        self._name = appname

        hdrs = self.cfg.get("include_headers") or []
        if isinstance(hdrs, Mapping):
            hdrs = hdrs.items()
        elif not isinstance(hdrs, list):
            raise ConfigurationException("include_headers: must be a dict or a list of name-value "
                                         "pairs", "include_headers")
        try:
            self.include_headers = Headers([(n, v) for n, v in hdrs])
        except (TypeError, ValueError) as ex:
            raise ConfigurationException("include_headers: must be a dict or a list of name-value "
                                         "pairs", "include_headers", ex) from ex

    @property
    def name(self):
        """
        the name of the service this app provides
        """
        return self._name

    @abstractmethod
    def create_handler(self, env: dict, start_resp: Callable, path: str) -> Handler:
        """
        return the Handler for a request
        :param str path:  the requested path, relative to the path this app serves
        """
        raise NotImplementedError()

    def handle_path_request(self, env: dict, start_resp: Callable, path: str=None):
        """
        respond to a request for a relative path.  If ``path`` is None, it is taken from
        the ``PATH_INFO`` in ``env``.
        """
        if path is None:
            path = env.get('PATH_INFO', '').strip('/')
        return self.create_handler(env, start_resp, path).handle()

    def __call__(self, env, start_resp):
        return self.handle_path_request(env, start_resp)

class WSGIApp(object):
    """
    a WSGI application that serves a :py:class:`ServiceApp` beneath a base endpoint path.

    A request for a path outside of the base endpoint gets 404 (Not Found), except that a request
    for one of its ancestors gets 403 (Forbidden).  The base endpoint can be given at construction
    or via the ``base_ep`` configuration parameter; the ``name`` parameter identifies the app.
    """

    def __init__(self, svcapp: ServiceApp, log: Logger, base_ep: str=None, config: Mapping=None):
        self.svcapp = svcapp
        self.log = log
        self.cfg = config if config is not None else {}
        self.name = self.cfg.get("name", "")

        if not base_ep:
            base_ep = self.cfg.get("base_ep", "")
        base_ep = base_ep.strip('/')
        self.base_ep = '/%s/' % base_ep if base_ep else None

    def handle_request(self, env: Mapping, start_resp: Callable):
        path = re.sub(r'/+', '/', env.get('PATH_INFO', '/'))

        if self.base_ep:
            if path.startswith(self.base_ep):
                path = path[len(self.base_ep):]
            elif path + '/' == self.base_ep:
                path = ''
            elif self.base_ep.startswith(path.rstrip('/') + '/'):
                return Handler(path, env, start_resp).send_error(403, "Forbidden")
            else:
                return Handler(path, env, start_resp).send_error(404, "Not Found")

        return self.svcapp.handle_path_request(env, start_resp, path.strip('/'))

    def __call__(self, env, start_resp):
        return self.handle_request(env, start_resp)
