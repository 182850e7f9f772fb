"""
Framework classes for creating REST web interfaces via WSGI

The approach is to provide a thin web service layer over a business service:  the business logic
(here, the suggestion query builder and the record source it searches) is only accessed via its
Python API and contains no knowledge of the web layer.  The web layer is provided via a
:py:class:`~acfield.web.rest.base.ServiceApp` subclass that, when responding to a web request, creates
a :py:class:`~acfield.web.rest.base.Handler` subclass based on the requested resource path.

A :py:class:`~acfield.web.rest.base.ServiceApp` instance is a compliant WSGI application by itself;
however, it is typically wrapped in a :py:class:`~acfield.web.rest.base.WSGIApp` which adds a base
URL path prepended to all handled paths.
"""
from .base import *
