"""
Support for an autocompleting form field whose suggestions come from a server-side record source.

This package is organized into the following modules:

``suggest``
    the suggestion query builder: turns a search term into a deduplicated list of suggestions
``field``
    the field definition that carries the suggestion-source configuration
``source``
    implementations of the record sources that suggestions are drawn from
``wsgi``
    a web service that serves suggestions for configured fields
``client``
    a client for fetching suggestions from the web service
``widget``
    the client-side controller that reconciles typed text against the fetched suggestions
"""
from .base import ACFieldException, SystemInfoMixin

try:
    from .version import __version__
except ImportError:
    __version__ = "(unset)"

_ACFSYSNAME = "AutoComplete Field"
_ACFSYSABBREV = "ACF"

class ACFieldSystem(SystemInfoMixin):
    """
    A SystemInfoMixin representing the autocomplete field system.
    """
    def __init__(self, subsysname="", subsysabbrev=""):
        super(ACFieldSystem, self).__init__(_ACFSYSNAME, _ACFSYSABBREV, subsysname, subsysabbrev,
                                            __version__)

system = ACFieldSystem()

class MissingFieldError(ACFieldException, KeyError):
    """
    an exception indicating that a record does not have a property that the field configuration
    refers to (e.g. the display, label, or stored field).
    """
    def __init__(self, fieldname, message=None):
        if not message:
            message = "Record is missing configured field: " + str(fieldname)
        super(MissingFieldError, self).__init__(message)
        self.field = fieldname

    def __str__(self):
        return self.args[0]

class SuggestServiceException(ACFieldException):
    """
    an exception indicating a problem providing or accessing the suggestion service.
    """

    def __init__(self, resource=None, http_code=None, http_reason=None, message=None, cause=None):
        if not message:
            if resource:
                message = f"Trouble accessing {resource} from the suggestion service"
            else:
                message = f"Problem accessing the suggestion service"
            if http_code or http_reason:
                message += ":"
                if http_code:
                    message += " "+str(http_code)
                if http_reason:
                    message += " "+str(http_reason)
            elif cause:
                message += ": "+str(cause)

        super(SuggestServiceException, self).__init__(message)
        self.resource = resource
        self.code = http_code
        self.status = http_reason
        self.cause = cause


class SuggestServerError(SuggestServiceException):
    """
    an exception indicating an error occurred on the server-side (including within the
    record source backing it) while trying to produce suggestions.

    This exception includes three extra public properties, `code`, `status`,
    and `resource` which capture the HTTP response status code, the associated
    HTTP response message, and (optionally) a name for the resource being
    accessed.
    """

    def __init__(self, resource=None, http_code=None, http_reason=None, message=None, cause=None):
        super(SuggestServerError, self).__init__(resource, http_code, http_reason, message, cause)

class SuggestClientError(SuggestServiceException):
    """
    an exception indicating that a request for suggestions was faulty (e.g. a badly formed
    query against the record source).
    """

    def __init__(self, resource, http_code, http_reason, message=None, cause=None):
        if not message:
            message = "client-side suggestion error occurred"
            if resource:
                message += " while processing " + resource
            message += ": {0} {1}".format(http_code, http_reason)

        super(SuggestClientError, self).__init__(resource, http_code, http_reason, message, cause)


class SuggestResourceNotFound(SuggestClientError):
    """
    An error indicating that a requested resource (e.g. a field's suggestion endpoint) is not
    available.
    """
    def __init__(self, resource, http_reason=None, message=None, cause=None):
        if not message:
            message = "Requested suggestion resource not found"
            if resource:
                message += ": "+resource

        super(SuggestResourceNotFound, self).__init__(resource, 404, http_reason, message, cause)

# errors raised by record sources
SourceServerError = SuggestServerError
SourceClientError = SuggestClientError
