"""
An abstract interface to a source of records that suggestions can be drawn from
"""
import re
from collections.abc import Mapping
from abc import ABC, abstractmethod
from typing import List, Iterator, Tuple

ASCENDING = 1
DESCENDING = -1

_sort_dir = { "ASC": ASCENDING, "DESC": DESCENDING }

def parse_sort(clause) -> List[Tuple[str, int]]:
    """
    convert a sort clause of the form "Field [ASC|DESC][, Field [ASC|DESC]...]" into a list
    of (field, direction) pairs where direction is either ASCENDING or DESCENDING.  A list of
    pairs is returned unchanged.
    :raises ValueError:  if the clause is not syntactically correct
    """
    if not clause:
        return []
    if not isinstance(clause, str):
        return [(f, d) for f, d in clause]

    out = []
    for term in clause.split(','):
        words = term.split()
        if not words:
            continue
        if len(words) > 2:
            raise ValueError("Bad sort term: "+term.strip())
        direction = ASCENDING
        if len(words) > 1:
            direction = _sort_dir.get(words[1].upper())
            if direction is None:
                raise ValueError("Bad sort direction: "+words[1])
        out.append((words[0], direction))
    return out

class RecordSource(ABC):
    """
    An abstract interface to a set of named collections of records.  A record is a JSON-like
    dictionary; a collection plays the role of a record class (e.g. "Company", "Member").
    """

    # the property assumed to uniquely identify a record within a collection
    ID_PROP = "ID"

    @abstractmethod
    def collections(self) -> List[str]:
        """
        return the names of the collections available from this source
        """
        raise NotImplementedError()

    @abstractmethod
    def select(self, collname: str, match: List[str]=None, fields: List[str]=None,
               filter: Mapping=None, sort: List[Tuple[str, int]]=None,
               limit: int=None) -> Iterator[Mapping]:
        """
        return the records from a collection that match given search constraints.
        :param str  collname:  the name of the collection to select from
        :param [str]   match:  a list of keywords; a record matches this constraint if, for
                               every keyword, at least one of the properties named in ``fields``
                               contains the keyword, ignoring case.  Different keywords may match
                               different properties.  Only string values (and the string
                               elements of list values) are searched; numbers and other
                               non-string values never match a keyword.
        :param [str]  fields:  the properties to search for the keywords in ``match``
        :param dict   filter:  a constant constraint that is AND-ed onto the keyword constraints:
                               each key is a property name and each value is either a single value
                               or a list of values, one of which the property must equal.
        :param list     sort:  a list of (property, direction) pairs giving the order of the
                               returned records (see :py:func:`parse_sort`)
        :param int     limit:  the maximum number of records to return
        """
        raise NotImplementedError()

    def get_record(self, collname: str, prop: str, val) -> Mapping:
        """
        return a single record whose given property equals a given value, or None if there is
        no such record.  The implementation assumes each record has a unique value for the
        property.
        """
        hits = list(self.select(collname, filter={ prop: val }, limit=1))
        if not hits:
            return None
        return hits[0]

    def status(self) -> Mapping:
        """
        return a status message that indicates if the source appears ready
        """
        try:
            colls = self.collections()
        except Exception as ex:
            return {
                "status": "not ready",
                "message": "Server error: failed to access record source",
                "collection_count": 0
            }
        if colls:
            return {
                "status": "ready",
                "message": f"Ready with {len(colls)} collections",
                "collection_count": len(colls)
            }
        return {
            "status": "not ready",
            "message": "Not Ready: no collections loaded",
            "collection_count": 0
        }
