"""
The suggestion query builder.  Given the text a user has typed into an autocomplete field, this
module selects the matching records from a :py:class:`~acfield.source.base.RecordSource` and turns
them into a list of :py:class:`Suggestion` objects ready to be returned to the client as JSON.

The search model is a conjunction of disjunctions:  the search term is split into keywords, and a
record matches if every keyword is contained (ignoring case) in at least one of the configured
source fields.  Different keywords may match different fields.
"""
import re, json, logging
from collections import OrderedDict, namedtuple
from collections.abc import Mapping
from typing import List, Iterable

from . import MissingFieldError, system
from .source import RecordSource, parse_sort

deflog = logging.getLogger(system.system_abbrev).getChild('suggest')

DEF_DISPLAY_FIELD = "Title"
DEF_LABEL_FIELD = "Title"
DEF_STORED_FIELD = "ID"
DEF_SOURCE_SORT = "ID ASC"
DEF_LIMIT = 10

Suggestion = namedtuple("Suggestion", "label value stored")
Suggestion.__doc__ = """
a single entry in a suggestion list:  ``label`` is shown in the picklist, ``value`` is the text
committed to the field when the entry is chosen, and ``stored`` is the value persisted as the field's
actual value (usually a record identifier).
"""

_SuggestionRequest = namedtuple("SuggestionRequest", "term limit")

class SuggestionRequest(_SuggestionRequest):
    """
    a request for suggestions:  the (possibly empty) search term and the maximum number of
    suggestions to return.  A missing or non-string term is taken to be an empty string.
    """
    __slots__ = ()

    def __new__(cls, term: str="", limit: int=DEF_LIMIT):
        if not isinstance(term, str):
            term = ""
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            raise ValueError("SuggestionRequest: limit must be a positive integer: "+str(limit))
        return super(SuggestionRequest, cls).__new__(cls, term, limit)

_SourceConfiguration = namedtuple("SourceConfiguration",
                                  "source_class source_fields display_field label_field stored_field "
                                  "source_filter source_sort")

class SourceConfiguration(_SourceConfiguration):
    """
    the (immutable) description of where and how a field looks up its suggestions.

    ``source_class``
        the name of the record collection to search, or None to use the class of the record
        bound to the enclosing form
    ``source_fields``
        the record properties that are searched for the typed keywords
    ``display_field``
        the property committed to the field as its readable value
    ``label_field``
        the property shown for each entry in the picklist
    ``stored_field``
        the property persisted as the field's value
    ``source_filter``
        a constant constraint AND-ed onto every query: a dictionary mapping property names to
        a value or list of values
    ``source_sort``
        the order of the results, e.g. "ID ASC" or "LastName ASC, FirstName ASC"
    """
    __slots__ = ()

    def __new__(cls, source_class: str=None, source_fields: Iterable[str]=None,
                display_field: str=DEF_DISPLAY_FIELD, label_field: str=DEF_LABEL_FIELD,
                stored_field: str=DEF_STORED_FIELD, source_filter: Mapping=None,
                source_sort: str=DEF_SOURCE_SORT):
        if isinstance(source_fields, str):
            source_fields = [source_fields]
        source_fields = tuple(source_fields or [])
        if not source_fields:
            raise ValueError("SourceConfiguration: at least one source field is required")
        return super(SourceConfiguration, cls).__new__(cls, source_class, source_fields, display_field,
                                                       label_field, stored_field, source_filter,
                                                       source_sort)

def tokenize(term: str) -> List[str]:
    """
    split a search term into keywords on runs of whitespace and/or commas
    """
    if not term:
        return []
    return [kw for kw in re.split(r'[\s,]+', term) if kw]

def resolve_source_class(explicit: str=None, bound_class: str=None) -> str:
    """
    determine the record collection to search.  An explicitly configured collection takes
    precedence; otherwise, the class of the record bound to the enclosing form is used.  None
    is returned if neither is available.
    """
    if explicit:
        return explicit
    if bound_class:
        return bound_class
    return None

def extract_field(record: Mapping, fieldname: str):
    """
    return the value of the named property from a record
    :raises MissingFieldError:  if the record does not have the property
    """
    try:
        return record[fieldname]
    except KeyError as ex:
        raise MissingFieldError(fieldname) from ex

def suggest(source: RecordSource, config: SourceConfiguration, request: SuggestionRequest,
            bound_class: str=None, log: logging.Logger=None) -> List[Suggestion]:
    """
    return the suggestions matching a request.

    The suggestions are unique by their ``stored`` value (the first one encountered wins) and
    are given in the order set by the configured sort; there will be no more than
    ``request.limit`` of them.  An empty list is returned if no record collection can be
    determined.  Errors from the record source are not caught.

    :param RecordSource source:  the source of records to search
    :param SourceConfiguration config:  the description of what to search and return
    :param SuggestionRequest request:   the search term and limit
    :param str bound_class:  the class of the record bound to the enclosing form; this is used
                             as the collection to search if ``config`` does not name one.
    :param Logger log:       the Logger to send messages to
    """
    if not log:
        log = deflog

    collname = resolve_source_class(config.source_class, bound_class)
    if not collname:
        log.debug("No source collection determined; returning no suggestions")
        return []

    keywords = tokenize(request.term)
    recs = source.select(collname, keywords, list(config.source_fields), config.source_filter,
                         parse_sort(config.source_sort), request.limit)

    items = OrderedDict()
    for rec in recs:
        stored = extract_field(rec, config.stored_field)
        if stored in items:
            continue
        items[stored] = Suggestion(extract_field(rec, config.label_field),
                                   extract_field(rec, config.display_field), stored)

    log.debug("%s: %d suggestions for %s", collname, len(items), str(keywords))
    return list(items.values())

def to_json(suggestions: List[Suggestion], indent: int=None) -> str:
    """
    serialize a list of suggestions as a JSON array of objects with ``label``, ``value``, and
    ``stored`` properties
    """
    return json.dumps([s._asdict() for s in suggestions], indent=indent)

def from_json_data(data: List[Mapping]) -> List[Suggestion]:
    """
    convert a list of suggestion objects (as parsed from the JSON returned by the suggestion
    service) into Suggestion instances
    :raises ValueError:  if the data is not a list of suggestion objects
    """
    if not isinstance(data, list):
        raise ValueError("Suggestion data is not a list")
    out = []
    for item in data:
        if not isinstance(item, Mapping) or any(p not in item for p in Suggestion._fields):
            raise ValueError("Not a suggestion object: "+str(item))
        out.append(Suggestion(item['label'], item['value'], item['stored']))
    return out
