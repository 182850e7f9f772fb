"""
module providing implementations of a record source.  A
:py:class:`~acfield.source.base.RecordSource` speaks directly to a backend storage system to return
the records that suggestions are drawn from.  The :py:mod:`.wsgi module<acfield.wsgi>` is responsible
for exposing suggestions through a web interface.
"""
from collections.abc import Mapping

from .base import RecordSource, parse_sort, ASCENDING, DESCENDING
from .files import InMemoryRecordSource, FilesBasedRecordSource
from ..base.config import ConfigurationException

def create_record_source(config: Mapping) -> RecordSource:
    """
    instantiate a :py:class:`RecordSource` instance based on the given configuration.  The
    ``factory`` parameter selects the implementation: ``mongo`` (requires ``db_url``), ``files``
    (requires ``dir``), or ``inmem`` (optionally loaded from ``collections``, a dictionary of
    collection names to record lists).
    """
    if not isinstance(config, Mapping):
        raise ConfigurationException("source config: not a dictionary: "+str(config))

    factory = config.get("factory", "inmem")
    if factory == "mongo":
        dburl = config.get("db_url")
        if not dburl:
            raise ConfigurationException("Missing required config param: source.db_url")
        if not dburl.startswith("mongodb:"):
            raise ConfigurationException("Unsupported (non-MongoDB) database URL: "+dburl)
        from .mongo import MongoRecordSource
        return MongoRecordSource(dburl)

    elif factory == "files":
        return FilesBasedRecordSource(config)

    elif factory == "inmem":
        return InMemoryRecordSource(config.get("collections"))

    raise ConfigurationException("source.factory type not supported: "+str(factory))
