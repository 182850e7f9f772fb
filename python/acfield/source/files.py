"""
implementations of :py:class:`~acfield.source.base.RecordSource` that hold their records in memory,
either given directly or loaded from JSON-formatted files.  These are intended primarily for testing
purposes (e.g. in unittests) and for small, static record sets.
"""
import json, os, re
from collections.abc import Mapping
from typing import List, Iterator, Tuple
from pathlib import Path

from .base import RecordSource, DESCENDING
from .. import SourceServerError, SourceClientError
from ..base.config import ConfigurationException

def _sortkey(val):
    # orders null values first, then numbers, then strings (as MongoDB does)
    if val is None:
        return (0, 0)
    if isinstance(val, (int, float)):
        return (1, val)
    if isinstance(val, str):
        return (2, val)
    return (3, str(val))

class InMemoryRecordSource(RecordSource):
    """
    a RecordSource whose collections are lists of records held in memory
    """

    def __init__(self, data: Mapping=None):
        """
        initialize the source
        :param dict data:  a dictionary mapping collection names to lists of records
        """
        self._data = {}
        if data:
            for coll, recs in data.items():
                self.load_collection(coll, recs)

    def load_collection(self, collname: str, records: List[Mapping]):
        """
        set the records in the named collection, replacing any previously loaded
        """
        if not isinstance(records, list):
            raise SourceClientError(collname, 400, "Bad input",
                                    f"{collname}: records must be given as a list")
        self._data[collname] = list(records)

    def collections(self) -> List[str]:
        return list(self._data.keys())

    def records(self, collname: str) -> List[Mapping]:
        """
        return all of the records in the named collection (or an empty list if the
        collection is unknown)
        """
        return self._data.get(collname, [])

    class ContainsFilter:
        # only string values (or strings within a list value) are searched
        def __init__(self, like: str, props: List[str]):
            self.matcher = re.compile(re.escape(like), re.IGNORECASE)
            self.props = props
        def _hit(self, val):
            if isinstance(val, str):
                return bool(self.matcher.search(val))
            if isinstance(val, list):
                return any(isinstance(v, str) and self.matcher.search(v) for v in val)
            return False
        def matches(self, rec):
            return any(self._hit(rec.get(p)) for p in self.props)

    class ExactFilter:
        def __init__(self, prop: str, wantany: List):
            self.prop = prop
            self.want = wantany
        def matches(self, rec):
            return any(self.prop in rec and rec[self.prop] == v for v in self.want)

    def _make_filters(self, match: List[str], fields: List[str], filter: Mapping) -> List:
        filters = []
        if match:
            if not fields:
                raise SourceClientError("select", 400, "Bad input",
                                        "Keyword match requested without any fields to search")
            filters.extend([self.ContainsFilter(kw, fields) for kw in match])
        if filter:
            for prop, want in filter.items():
                if not isinstance(want, (list, tuple)):
                    want = [want]
                filters.append(self.ExactFilter(prop, want))
        return filters

    def _sort(self, recs: List[Mapping], sort: List[Tuple[str, int]]) -> List[Mapping]:
        # apply the least significant key first; sorted() is stable
        for prop, direction in reversed(sort):
            recs = sorted(recs, key=lambda r: _sortkey(r.get(prop)), reverse=(direction == DESCENDING))
        return recs

    def select(self, collname: str, match: List[str]=None, fields: List[str]=None,
               filter: Mapping=None, sort: List[Tuple[str, int]]=None,
               limit: int=None) -> Iterator[Mapping]:
        if match and not isinstance(match, list):
            match = [match]
        if fields and not isinstance(fields, list):
            fields = [fields]
        filters = self._make_filters(match, fields, filter)

        out = [r for r in self.records(collname) if all([f.matches(r) for f in filters])]
        if sort:
            out = self._sort(out, sort)
        if limit is not None:
            out = out[:limit]
        return iter(out)


class FilesBasedRecordSource(InMemoryRecordSource):
    """
    a RecordSource that reads its collections from a directory of JSON-formatted files: each
    file, named ``<collection>.json``, contains a JSON array of the records in the collection.

    The class constructor accepts a configuration dictionary to locate the data directory:  the
    directory is given by the ``dir`` parameter.  If the configuration contains a ``data``
    parameter whose value is a dictionary, that parameter's contents will be taken as the data
    configuration; this option makes it consistent with the Mongo-based configuration schema.
    The files are re-read on each access so that updates to them are seen without a restart.
    """

    def __init__(self, config: Mapping, data_dir: str=None):
        """
        initialize the source around a file directory containing the record data
        :param dict  config:  the configuration to use.
        :param str data_dir:  the local file directory where the data files are stored.  This
                              value overrides what is given in the configuration.
        """
        super(FilesBasedRecordSource, self).__init__()
        if isinstance(config.get('data'), Mapping):
            config = config['data']

        if not data_dir:
            data_dir = config.get('dir')
        if not data_dir:
            raise ConfigurationException("FilesBasedRecordSource: missing config parameter: dir")

        self.ddir = Path(data_dir)
        if not self.ddir.is_dir():
            raise ConfigurationException("FilesBasedRecordSource: %s: does not exist as a directory" %
                                         data_dir)

    def collections(self) -> List[str]:
        return sorted([f.stem for f in self.ddir.glob("*.json") if f.is_file()])

    def records(self, collname: str) -> List[Mapping]:
        datafile = self.ddir / f"{collname}.json"
        if not datafile.is_file():
            return []
        try:
            with open(datafile) as fd:
                out = json.load(fd)
        except IOError as ex:
            raise SourceServerError(collname, message=f"Failed to read source data from {str(datafile)}: "
                                                      f"{str(ex)}", cause=ex) from ex
        except ValueError as ex:
            raise SourceServerError(collname, message=f"JSON format error in {str(datafile)}: {str(ex)}",
                                    cause=ex) from ex

        if not isinstance(out, list):
            raise SourceServerError(collname, message=f"{str(datafile)}: does not contain a JSON array")
        return out
