"""
A client library for fetching suggestions for an autocomplete field from the suggestion service
"""
from collections.abc import Mapping
from typing import List
from urllib.parse import urljoin

import requests

from . import SuggestServerError, SuggestClientError, SuggestResourceNotFound
from .suggest import Suggestion, from_json_data
from .base.config import ConfigurationException

class SuggestClient:
    """
    a client class for retrieving the suggestions for a single field.  The client is pointed at
    the field's suggestion URL (as given by its ``data-source`` attribute).
    """

    def __init__(self, url: str, authconfig: Mapping=None, timeout: float=None):
        """
        initialize the client
        :param str        url:  the suggestion URL for the field (e.g.
                                "https://.../forms/edit/field/Company/Suggest").
        :param str authconfig:  a dictionary providing credentials for connecting to the service; if
                                not provided, it will be assumed that authentication is not required.
        :param float  timeout:  the number of seconds to wait for a response; if not provided,
                                the client will wait indefinitely.
        """
        if not url:
            raise ValueError("SuggestClient: a suggestion URL is required")
        self.url = url
        self.timeout = timeout

        self._authkw = {}
        self._authhdr = {}
        self._setup_auth(authconfig)

    @classmethod
    def for_widget(cls, config, baseurl: str=None, authconfig: Mapping=None, timeout: float=None):
        """
        create a client for the field a widget is attached to.
        :param WidgetConfig config:  the widget's configuration; its ``source`` gives the
                                     (possibly relative) suggestion URL
        :param str         baseurl:  the URL of the page containing the field, used to resolve a
                                     relative ``source``
        """
        url = config.source
        if baseurl:
            url = urljoin(baseurl, url)
        return cls(url, authconfig, timeout)

    def _setup_auth(self, config: Mapping=None):
        self._authkw = {}
        self._authhdr = {}

        if not config or config.get('type', '') is None:
            return      # no authentication required

        authtype = config.get('type', 'bearer')
        if isinstance(authtype, str):
            authtype = authtype.lower()

        if authtype == "none":
            pass

        elif authtype == "userpass":
            self._authkw = { "auth": (config.get('user'), config.get('pass')) }
            if not all(self._authkw["auth"]):
                raise ConfigurationException("SuggestClient: authentication type userpass requires "+
                                             "both 'user' and 'pass' config parameters")

        elif authtype == "bearer":
            token = config.get("token")
            if not token:
                raise ConfigurationException("SuggestClient: authentication type bearer requires "+
                                             "'token' config parameter")
            self._authhdr = { "Authorization": f"Bearer {token}" }

        else:
            raise ConfigurationException("SuggestClient: authentication 'type' param value not "+
                                         "supported: "+str(authtype))

    def _get(self, params: Mapping):
        hdrs = { "Accept": "application/json" }
        hdrs.update(self._authhdr)

        resp = None
        try:
            resp = requests.get(self.url, params=params, headers=hdrs, timeout=self.timeout,
                                **self._authkw)

            if resp.status_code >= 500:
                raise SuggestServerError(self.url, resp.status_code, resp.reason)
            elif resp.status_code == 404:
                raise SuggestResourceNotFound(self.url, resp.reason)
            elif resp.status_code >= 400:
                raise SuggestClientError(self.url, resp.status_code, resp.reason)
            elif resp.status_code != 200:
                raise SuggestServerError(self.url, resp.status_code, resp.reason,
                                         message="Unexpected response from server: {0} {1}"
                                         .format(resp.status_code, resp.reason))

            return resp.json()

        except ValueError as ex:
            if resp is not None and resp.text and \
               ("<body" in resp.text or "<BODY" in resp.text):
                raise SuggestServerError(self.url,
                                         message="HTML returned where JSON "+
                                         "expected (is service URL correct?)", cause=ex)
            else:
                raise SuggestServerError(self.url,
                                         message="Unable to parse response as "+
                                         "JSON (is service URL correct?)", cause=ex)
        except requests.RequestException as ex:
            raise SuggestServerError(self.url, cause=ex)

    def suggest(self, term: str) -> List[Suggestion]:
        """
        return the suggestions the service offers for the given search term
        :raises SuggestServerError:  if the service failed or returned unusable content
        :raises SuggestClientError:  if the service rejected the request
        """
        data = self._get({"term": term or ""})
        try:
            return from_json_data(data)
        except ValueError as ex:
            raise SuggestServerError(self.url, message="Unexpected suggestion data returned: "+str(ex),
                                     cause=ex)

    __call__ = suggest
