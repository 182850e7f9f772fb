"""
an implementation of the :py:class:`~acfield.source.base.RecordSource` using a MongoDB back-end
to store the records.  Each record collection is a MongoDB collection of the same name.
"""
import json, os, re
from collections.abc import Mapping
from typing import List, Iterator, Tuple

from .base import RecordSource
from .. import SourceServerError, SourceClientError
from ..base.config import ConfigurationException

from pymongo import MongoClient
from pymongo.errors import PyMongoError, OperationFailure

class MongoRecordSource(RecordSource):
    """
    An implementation of a RecordSource that uses a Mongo database to store its data
    """

    def __init__(self, mongourl: str):
        """
        initialize the source
        :param str mongourl:  the MongoDB URL, including the name of the default database
        """
        self._dburl = mongourl
        self._cli = MongoClient(self._dburl)
        self._db = self._cli.get_default_database()

    def collections(self) -> List[str]:
        try:
            return sorted(self._db.list_collection_names())
        except PyMongoError as ex:
            raise SourceServerError(message="Collection listing failed due to MongoDB failure: "+
                                            str(ex), cause=ex) from ex

    def _match_to_mongo_filter(self, match: List[str], fields: List[str]) -> List[Mapping]:
        # one OR-group per keyword; the groups are AND-ed by the caller
        cnsts = []
        for kw in match:
            cnsts.append({"$or": [{f: {"$regex": re.escape(kw), "$options": "i"}} for f in fields]})
        return cnsts

    def _to_mongo_filter(self, filter: Mapping) -> List[Mapping]:
        cnsts = []
        for prop, want in filter.items():
            if isinstance(want, (list, tuple)):
                if len(want) == 1:
                    cnsts.append({prop: want[0]})
                else:
                    cnsts.append({prop: {"$in": list(want)}})
            else:
                cnsts.append({prop: want})
        return cnsts

    def select(self, collname: str, match: List[str]=None, fields: List[str]=None,
               filter: Mapping=None, sort: List[Tuple[str, int]]=None,
               limit: int=None) -> Iterator[Mapping]:
        if match and not isinstance(match, list):
            match = [match]
        if fields and not isinstance(fields, list):
            fields = [fields]
        if match and not fields:
            raise SourceClientError(collname, 400, "Bad input",
                                    "Keyword match requested without any fields to search")

        try:
            cnsts = []
            if match:
                cnsts.extend(self._match_to_mongo_filter(match, fields))
            if filter:
                cnsts.extend(self._to_mongo_filter(filter))
        except (TypeError, ValueError, AttributeError) as ex:
            raise SourceClientError(collname, 400, "Bad input",
                                    f"Bad input query syntax: {str(filter)} ({str(ex)})")

        if len(cnsts) < 1:
            mfilt = {}
        elif len(cnsts) == 1:
            mfilt = cnsts[0]
        else:
            mfilt = {"$and": cnsts}

        return self._select_from(collname, mfilt, sort, limit)

    def _select_from(self, collname: str, filter: Mapping, sort=None, limit=None) -> Iterator[Mapping]:
        try:
            cursor = self._db[collname].find(filter, {"_id": False})
            if sort:
                cursor = cursor.sort(list(sort))
            if limit:
                cursor = cursor.limit(limit)
            # force evaluation so that query errors surface here
            return iter(list(cursor))
        except OperationFailure as ex:
            raise SourceClientError(collname, 400, "Bad input", "Bad input query syntax: "+str(filter))
        except PyMongoError as ex:
            raise SourceServerError(message=collname+" select failed due to MongoDB failure: "+str(ex),
                                    cause=ex) from ex

    def load_collection(self, collname: str, data: List[Mapping], clear: bool=False):
        """
        load the given records into the named collection.  This can be called multiple times.
        """
        if clear:
            self._db[collname].delete_many({})
        if data:
            self._db[collname].insert_many([dict(r) for r in data])

    def load(self, config: Mapping, log=None, clear: bool=True):
        """
        load all data described in the given configuration object.

        The configuration provided to this function is used to control the loading.  In particular,
        the following parameters will be looked for:

        ``dir``
            the directory where data files to be loaded should be found (default: "/data/acfield").
        ``collections``
            the names of the collections to load; each is read from a file named
            ``<collection>.json``.  If not provided, all ``.json`` files in the directory are loaded.

        :param dict config:  the configuration to use during loading (see above)
        :param Logger  log:  the Logger to send messages to
        :param bool  clear:  if True, all previously loaded records in a loaded collection will be
                             deleted before loading (default: True)

        :raises ConfigurationException:  if the configured directory does not exist
        """
        datadir = str(config.get('dir', '/data/acfield'))
        if not os.path.isdir(datadir):
            raise ConfigurationException(f"{datadir}: data directory does not exist as a directory")

        colls = config.get('collections')
        if not colls:
            colls = [os.path.splitext(f)[0] for f in sorted(os.listdir(datadir)) if f.endswith(".json")]

        for coll in colls:
            if clear:
                self._db[coll].delete_many({})
            self._load_file(self._db[coll], f"{coll}.json", datadir, log)

    def _load_file(self, mongocoll, file, dir='.', log=None):
        datafile = os.path.join(dir, file)
        try:
            with open(datafile) as fd:
                data = json.load(fd)
            if data:
                mongocoll.insert_many(data)
        except FileNotFoundError as ex:
            if log:
                log.warning("Source data file not found: %s", datafile)
        except ValueError as ex:
            if log:
                log.warning("Source data not parseable as JSON: %s: %s", datafile, str(ex))
