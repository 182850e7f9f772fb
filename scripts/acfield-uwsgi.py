"""
the uWSGI script for launching the autocomplete field suggestion service

This script launches the web service using uwsgi.  For example, one can
launch the service with the following command:

  uwsgi --plugin python3 --http-socket :9090 --wsgi-file acfield-uwsgi.py     \
        --set-ph acf_config_file=acfield_conf.yml --set-ph acf_working_dir=_test

See the documentation for acfield.wsgi.suggest for the configuration parameters supported by this
service; parameters missing from the file take their values from acfield.wsgi.DEF_CONFIG.

This script also pays attention to the following environment variables:

   ACF_HOME            The directory where the acfield system is installed; this
                          is used to find the acfield python package.
   ACF_PYTHONPATH      The directory containing the acfield python package.
                          This overrides what is implied by ACF_HOME.
   ACF_CONFIG_FILE     The configuration file to load; this is overridden by the
                          acf_config_file uwsgi variable.
   ACF_MONGODB_URL     The URL of the MongoDB database to draw records from; this
                          overrides the source.db_url configuration parameter.
"""
import os, sys, logging

try:
    import acfield
except ImportError:
    acfpath = os.environ.get('ACF_PYTHONPATH')
    if not acfpath and 'ACF_HOME' in os.environ:
        acfpath = os.path.join(os.environ['ACF_HOME'], "lib", "python")
    if acfpath:
        sys.path.insert(0, acfpath)
    import acfield

from acfield.base import config
from acfield import wsgi

import uwsgi

def _dec(obj):
    # byte-decode an object if it is not None
    return obj.decode() if isinstance(obj, (bytes, bytearray)) else obj

confsrc = _dec(uwsgi.opt.get("acf_config_file")) or os.environ.get("ACF_CONFIG_FILE")
if not confsrc:
    raise config.ConfigurationException("acfield: configuration file not provided")
cfg = config.load_from_file(confsrc)

workdir = _dec(uwsgi.opt.get("acf_working_dir"))
if workdir:
    cfg['working_dir'] = workdir

config.configure_log(config=cfg)

srccfg = cfg.setdefault("source", {})
if os.environ.get("ACF_MONGODB_URL"):
    srccfg['factory'] = "mongo"
    srccfg['db_url'] = os.environ['ACF_MONGODB_URL']

# uwsgi uses the "application" symbol as the WSGI application object
application = wsgi.app(cfg)

msg = f"Autocomplete suggestion service (v{acfield.__version__}) ready with " \
      f"{srccfg.get('factory', 'inmem')} record source"
print(msg)
logging.info(msg)
