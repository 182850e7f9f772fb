"""
The web service that serves suggestions for autocomplete fields.  See
:py:mod:`~acfield.wsgi.suggest` for the resources it provides.
"""
import logging
from logging import Logger
from collections.abc import Mapping

from .suggest import SuggestServiceApp
from ..source import RecordSource
from ..web.rest import WSGIApp
from ..base.config import merge_config
from .. import system

deflog = logging.getLogger(system.system_abbrev).getChild('wsgi')

# configuration values assumed when not given
DEF_CONFIG = {
    "name": "acfield",
    "base_ep": "",
    "fields": {}
}

class SuggestApp(WSGIApp):
    """
    a WSGI application serving suggestions for the fields of a form.  The application's base
    endpoint (the ``base_ep`` configuration parameter) plays the role of the form's link:  a
    field named "Company" answers suggestion requests at ``<base_ep>/field/Company/Suggest``.
    Parameters missing from the configuration take their values from :py:data:`DEF_CONFIG`.
    """

    def __init__(self, config: Mapping, log: Logger=None, base_ep: str=None,
                 source: RecordSource=None):
        """
        initialize the app
        :param dict config:  the collected configuration for the app (see
                             :py:class:`~acfield.wsgi.suggest.SuggestServiceApp`)
        :param Logger  log:  the Logger to use for messages; if None, one will be created using the
                             value of the ``name`` config parameter.
        :param str base_ep:  the resource path to assume as the base of all services provided by
                             this app.  If not provided, the ``base_ep`` config parameter is used.
        :param RecordSource source:  the record source to draw suggestions from; if not provided,
                             one is created from the ``source`` config parameter.
        """
        config = merge_config(config, DEF_CONFIG)
        if not log:
            log = deflog.getChild(config["name"])
        if base_ep is None:
            base_ep = config['base_ep']
        base_ep = base_ep.strip('/')

        if not config.get('form_link'):
            config['form_link'] = '/' + base_ep if base_ep else ''

        svcapp = SuggestServiceApp(config, log, config["name"], source)
        super(SuggestApp, self).__init__(svcapp, log, base_ep, config)

    @property
    def fields(self) -> Mapping:
        """
        the fields served by this app, by name
        """
        return self.svcapp.fields

app = SuggestApp
