"""
JSON bodies for error responses.

Besides the HTTP status line, the suggestion service describes a failure with a small JSON object
so that a widget (or any other client) can show the user what went wrong:

``http:status``
     the numeric status, repeated from the status line
``http:reason``
     the short reason, repeated from the status line
``acf:message``
     a fuller explanation; it falls back to the reason when none is given
"""
import json
from collections import OrderedDict
from typing import Mapping

def make_message(code: int, reason: str, message: str=None, extra: Mapping=None) -> Mapping:
    """
    build the error object for a response
    :param dict extra:  additional properties to add to the object
    """
    out = OrderedDict([("http:status", code), ("http:reason", reason),
                       ("acf:message", message or reason)])
    out.update(extra or {})
    return out

class ErrorHandling:
    """
    a mixin for :py:class:`~acfield.web.rest.base.Handler` subclasses that answer failures
    with a JSON error object
    """

    def send_error_obj(self, code: int, reason: str, message: str=None, extra: Mapping=None,
                       ashead: bool=None, contenttype: str="application/json"):
        """
        respond with an error status and a JSON body built by :py:func:`make_message`
        """
        body = json.dumps(make_message(code, reason, message, extra))
        return self.send_error(code, reason, body, contenttype, ashead)
