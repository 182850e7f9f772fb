"""
A RESTful web service interface that serves suggestions for a set of autocomplete fields.  Each field
is addressed by its link, ``field/<name>``; suggestions are requested via a GET on
``field/<name>/Suggest`` with the search term given by the ``term`` query parameter.  The response is
a JSON array of ``{label, value, stored}`` objects.
"""
import logging
from collections import OrderedDict
from collections.abc import Mapping, Callable

from ..field import AutoCompleteField, SUGGEST_ACTION
from ..source import RecordSource, create_record_source
from ..web.rest import ServiceApp, Handler, NotFoundHandler
from ..web.rest.jsonerr import ErrorHandling
from ..base.config import ConfigurationException
from .. import SuggestClientError, system

deflog = logging.getLogger(system.system_abbrev).getChild('wsgi')

class SuggestServiceHandler(Handler, ErrorHandling):
    """
    Base Handler class for requests to the suggestion service
    """

    def __init__(self, source: RecordSource, path: str, wsgienv: Mapping, start_resp: Callable,
                 config: Mapping={}, log: logging.Logger=None, app=None):
        if not log:
            log = deflog
        super(SuggestServiceHandler, self).__init__(path, wsgienv, start_resp, config, log, app)
        self.svc = source

class ReadyHandler(SuggestServiceHandler):
    """
    Handle requests for the status of the service
    """

    def do_GET(self, path, ashead=False):
        return self.send_json(self.svc.status(), ashead=ashead)

    def do_OPTIONS(self, path):
        return self.send_options(["GET"])

class FieldHandler(SuggestServiceHandler):
    """
    Handle requests for the description of a field (i.e. requests to the field's link)
    """

    def __init__(self, source: RecordSource, field: AutoCompleteField, path: str, wsgienv: Mapping,
                 start_resp: Callable, config: Mapping={}, log: logging.Logger=None, app=None):
        super(FieldHandler, self).__init__(source, path, wsgienv, start_resp, config, log, app)
        self.field = field

    def do_GET(self, path, ashead=False):
        return self.send_json(self.field.describe(self.svc), ashead=ashead)

    def do_OPTIONS(self, path):
        return self.send_options(["GET"])

class SuggestHandler(FieldHandler):
    """
    Handle suggestion requests for a field
    """

    def do_GET(self, path, ashead=False):
        term = self.get_query_param("term", "")
        try:
            out = self.field.suggest(self.svc, term, self.log)
        except SuggestClientError as ex:
            self.log.debug("client error: %s", str(ex))
            return self.send_error_obj(400, "Bad input", str(ex), ashead=ashead)
        except Exception as ex:
            self.log.exception("Failed to execute suggestion query for field %s (term=%s): %s",
                               self.field.name, term, str(ex))
            return self.send_error_obj(500, "Server error", ashead=ashead)

        return self.send_json([s._asdict() for s in out], ashead=ashead)

    def do_OPTIONS(self, path):
        return self.send_options(["GET"])

class NoSuchFieldHandler(SuggestServiceHandler):
    """
    Respond to requests for a field that is not defined with 404 Not Found
    """

    def do_GET(self, path, ashead=False):
        return self.send_error_obj(404, "Not Found", f"No such field: {path}", ashead=ashead)

class SuggestServiceApp(ServiceApp):
    """
    A ServiceApp that serves suggestions for a set of fields drawing from a common record source.

    The configuration parameters looked for include:

    ``source``
        the configuration for the record source (see
        :py:func:`~acfield.source.create_record_source`); this is required unless a source is
        provided at construction time.
    ``fields``
        a dictionary mapping field names to field configurations (see
        :py:meth:`~acfield.field.AutoCompleteField.from_config`).
    ``bound_record_class``
        the class of the record bound to the form; it is used as the source collection for fields
        that do not set ``source_class``.
    ``form_link``
        the URL path of the form that contains the fields; field links are formed from it.
    """

    def __init__(self, config: Mapping, log: logging.Logger, appname: str=None,
                 source: RecordSource=None, fields: Mapping=None):
        if not appname:
            appname = "suggest"
        if not log:
            log = deflog
        super(SuggestServiceApp, self).__init__(appname, log, config)

        if not source:
            if not isinstance(self.cfg.get('source'), Mapping):
                raise ConfigurationException("Missing required config param: source")
            source = create_record_source(self.cfg['source'])
        self.svc = source

        self.form_link = self.cfg.get('form_link', '')
        self.fields = OrderedDict()
        if fields is None:
            fieldcfgs = self.cfg.get('fields', {})
            if not isinstance(fieldcfgs, Mapping):
                raise ConfigurationException("fields: must be a dictionary", "fields")
            for name, fcfg in fieldcfgs.items():
                self.add_field(AutoCompleteField.from_config(name, fcfg, self.form_link,
                                                             self.cfg.get('bound_record_class')))
        else:
            for field in fields.values():
                self.add_field(field)

    def add_field(self, field: AutoCompleteField):
        """
        make a field's suggestions available through this service
        """
        self.fields[field.name] = field
        return field

    def create_handler(self, env: dict, start_resp: Callable, path: str) -> Handler:
        if not path:
            return ReadyHandler(self.svc, path, env, start_resp, log=self.log, app=self)

        parts = path.strip('/').split('/')
        if parts[0] != "field" or len(parts) < 2 or len(parts) > 3:
            return NotFoundHandler(path, env, start_resp, log=self.log, app=self)

        field = self.fields.get(parts[1])
        if not field:
            return NoSuchFieldHandler(self.svc, parts[1], env, start_resp, log=self.log, app=self)

        if len(parts) == 2:
            return FieldHandler(self.svc, field, path, env, start_resp, log=self.log, app=self)
        if parts[2] == SUGGEST_ACTION:
            return SuggestHandler(self.svc, field, path, env, start_resp, log=self.log, app=self)

        return NotFoundHandler(path, env, start_resp, log=self.log, app=self)
