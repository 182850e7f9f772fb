"""
Utilities for creating web services.

``rest``
    a simple framework for creating strict REST services over WSGI
"""
