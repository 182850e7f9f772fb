"""
The autocompleting text field definition.

An :py:class:`AutoCompleteField` wraps a plain :py:class:`TextField` and adds the configuration
describing where suggestions come from and how the client-side widget should behave.  The
configuration is set via builder-style ``set_*`` methods (each returns the field) and read back
via matching ``get_*`` methods.  The field renders the ``data-*`` attributes that the client-side
controller (:py:mod:`acfield.widget`) reads, and it answers suggestion requests via
:py:meth:`AutoCompleteField.suggest`.
"""
import re, logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import List, Union
from urllib.parse import urlparse

from . import system
from .suggest import (SourceConfiguration, SuggestionRequest, Suggestion, suggest, to_json,
                      resolve_source_class, DEF_DISPLAY_FIELD, DEF_LABEL_FIELD, DEF_STORED_FIELD,
                      DEF_SOURCE_SORT, DEF_LIMIT)
from .source import RecordSource
from .base.config import ConfigurationException

deflog = logging.getLogger(system.system_abbrev).getChild('field')

SUGGEST_ACTION = "Suggest"
DEF_MIN_SEARCH_LENGTH = 2

class TextField(object):
    """
    a plain single-line text input
    """

    def __init__(self, name: str, title: str=None, value='', form_link: str=None):
        """
        :param str      name:  the name of the field
        :param str     title:  the title to label the field with in the form; defaults to the name
        :param         value:  the initial value of the field
        :param str form_link:  the URL of the form that contains this field
        """
        if not name:
            raise ValueError("TextField: a name is required")
        self.name = name
        self.title = title if title is not None else name
        self.value = value
        self.form_link = form_link

    def type(self) -> str:
        return "text"

    def link(self) -> str:
        """
        return the URL that addresses this field within its form
        """
        base = (self.form_link or "").rstrip('/')
        return f"{base}/field/{self.name}"

    def attributes(self) -> Mapping:
        """
        return the HTML attributes for the input element
        """
        return OrderedDict([
            ("type", "text"),
            ("name", self.name),
            ("id", self.name),
            ("class", self.type()),
            ("title", self.title),
            ("value", self.value)
        ])

def _as_data_value(val):
    # boolean attributes are rendered as "1" or ""
    if isinstance(val, bool):
        return "1" if val else ""
    if val is None:
        return ""
    return str(val)

class AutoCompleteField(object):
    """
    a text field whose input is completed from suggestions drawn from a record source
    """

    def __init__(self, name: str, title: str=None, value='', source_class: str=None,
                 source_fields: Union[str, List[str]]=None, form_link: str=None,
                 bound_class: str=None):
        """
        :param str          name:  the name of the field
        :param str         title:  the title to use in the form
        :param             value:  the initial (stored) value of the field
        :param str  source_class:  the name of the record collection to draw suggestions from
        :param     source_fields:  the record fields to search; defaults to the field name
        :param str     form_link:  the URL of the form that contains this field
        :param str   bound_class:  the class of the record bound to the enclosing form; used as
                                   the source collection if ``source_class`` is not set
        """
        self.input = TextField(name, title, value, form_link)
        self._source_class = source_class
        self._source_fields = None
        if source_fields:
            self.set_source_fields(source_fields)
        self._bound_class = bound_class

        self._display_field = DEF_DISPLAY_FIELD
        self._label_field = DEF_LABEL_FIELD
        self._stored_field = DEF_STORED_FIELD
        self._source_filter = None
        self._source_sort = DEF_SOURCE_SORT
        self._suggest_url = None
        self._limit = DEF_LIMIT
        self._min_search_length = DEF_MIN_SEARCH_LENGTH
        self._require_selection = True
        self._populate_separately = False
        self._clear_input = True

    @classmethod
    def from_config(cls, name: str, config: Mapping, form_link: str=None, bound_class: str=None):
        """
        create a field from a configuration dictionary whose keys are the names of the
        configurable properties (e.g. ``source_class``, ``source_fields``, ``limit``, etc.)
        :raises ConfigurationException:  if the configuration contains an unrecognized or
                                         invalid parameter
        """
        if config is None:
            config = {}
        if not isinstance(config, Mapping):
            raise ConfigurationException(f"fields.{name}: not a dictionary")
        out = cls(name, config.get('title'), config.get('value', ''), form_link=form_link,
                  bound_class=bound_class)

        for param, val in config.items():
            if param in ('title', 'value'):
                continue
            setter = getattr(out, 'set_'+param, None)
            if not setter:
                raise ConfigurationException(f"fields.{name}: unrecognized parameter: {param}",
                                             f"fields.{name}.{param}")
            try:
                setter(val)
            except (TypeError, ValueError) as ex:
                raise ConfigurationException(f"fields.{name}.{param}: bad value: {str(ex)}",
                                             f"fields.{name}.{param}", ex) from ex
        return out

    @property
    def name(self) -> str:
        return self.input.name

    def type(self) -> str:
        return "autocomplete text"

    def link(self) -> str:
        return self.input.link()

    def get_value(self):
        """
        return the stored value of this field
        """
        return self.input.value

    def set_value(self, value):
        self.input.value = value
        return self

    def set_source_class(self, classname: str):
        """
        set the name of the record collection to get suggestions from
        """
        self._source_class = classname
        return self

    def get_source_class(self) -> str:
        return self._source_class

    def set_bound_class(self, classname: str):
        """
        set the class of the record bound to the enclosing form
        """
        self._bound_class = classname
        return self

    def get_bound_class(self) -> str:
        return self._bound_class

    def set_source_fields(self, fields: Union[str, List[str]]):
        """
        set the record fields to search for suggestions
        """
        if isinstance(fields, str):
            fields = [fields]
        self._source_fields = list(fields) if fields else None
        return self

    def get_source_fields(self) -> List[str]:
        """
        return the record fields searched for suggestions; this defaults to the field's name
        """
        if self._source_fields:
            return list(self._source_fields)
        return [self.name]

    def set_display_field(self, field: str):
        """
        set the record field committed as the readable value of this field
        """
        self._display_field = field
        return self

    def get_display_field(self) -> str:
        return self._display_field

    def set_label_field(self, field: str):
        """
        set the record field used to label each entry in the picklist
        """
        self._label_field = field
        return self

    def get_label_field(self) -> str:
        return self._label_field

    def set_stored_field(self, field: str):
        """
        set the record field whose value is stored as this field's value
        """
        self._stored_field = field
        return self

    def get_stored_field(self) -> str:
        return self._stored_field

    def set_source_filter(self, filter: Mapping):
        """
        set the constant constraint applied to every suggestion query
        """
        if filter is not None and not isinstance(filter, Mapping):
            raise TypeError("source filter must be a dictionary")
        self._source_filter = filter
        return self

    def get_source_filter(self) -> Mapping:
        return self._source_filter

    def set_source_sort(self, sort: str):
        self._source_sort = sort
        return self

    def get_source_sort(self) -> str:
        return self._source_sort

    def set_suggest_url(self, url: str):
        """
        set the URL the client should fetch suggestions from, overriding the default
        """
        self._suggest_url = url
        return self

    def get_suggest_url(self) -> str:
        """
        return the URL to fetch suggestions from.  Unless it was set explicitly, this is
        the path of this field's link followed by "/Suggest".
        """
        if self._suggest_url:
            return self._suggest_url
        return urlparse(self.link()).path + '/' + SUGGEST_ACTION

    def set_limit(self, limit: int):
        """
        set the maximum number of suggestions returned per search
        """
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            raise ValueError("limit must be a positive integer: "+str(limit))
        self._limit = limit
        return self

    def get_limit(self) -> int:
        return self._limit

    def set_min_search_length(self, length: int):
        """
        set the minimum number of characters that must be typed before a search is made
        """
        if not isinstance(length, int) or isinstance(length, bool) or length < 0:
            raise ValueError("min search length must be a non-negative integer: "+str(length))
        self._min_search_length = length
        return self

    def get_min_search_length(self) -> int:
        return self._min_search_length

    def set_require_selection(self, required: bool):
        """
        set whether the value must be chosen from the suggestions (True) or whether free text
        is accepted (False)
        """
        self._require_selection = bool(required)
        return self

    def get_require_selection(self) -> bool:
        return self._require_selection

    def set_populate_separately(self, separately: bool):
        """
        set whether a chosen suggestion should be shown beneath the input rather than inside it
        """
        self._populate_separately = bool(separately)
        return self

    def get_populate_separately(self) -> bool:
        return self._populate_separately

    def set_clear_input(self, clear: bool):
        """
        set whether the input is cleared once a selection is made (only applies when populating
        separately)
        """
        self._clear_input = bool(clear)
        return self

    def get_clear_input(self) -> bool:
        return self._clear_input

    def determine_source_class(self) -> str:
        return resolve_source_class(self._source_class, self._bound_class)

    def source_config(self) -> SourceConfiguration:
        """
        return an immutable snapshot of the suggestion source configuration
        """
        return SourceConfiguration(self._source_class, self.get_source_fields(), self._display_field,
                                   self._label_field, self._stored_field, self._source_filter,
                                   self._source_sort)

    def suggest(self, source: RecordSource, term: str, log: logging.Logger=None) -> List[Suggestion]:
        """
        return the suggestions matching a search term
        """
        return suggest(source, self.source_config(), SuggestionRequest(term, self._limit),
                       self._bound_class, log or deflog)

    def suggest_json(self, source: RecordSource, term: str, log: logging.Logger=None) -> str:
        """
        return the suggestions matching a search term, serialized as JSON
        """
        return to_json(self.suggest(source, term, log))

    def _stored_candidates(self, value) -> list:
        # a stored value submitted as text may correspond to a numeric identifier
        out = [value]
        if isinstance(value, str) and re.fullmatch(r'-?\d+', value.strip()):
            out.append(int(value))
        return out

    def display_value(self, source: RecordSource=None):
        """
        return the readable value of this field:  the display field of the record whose stored
        field matches this field's value.  If there is no such record and a selection is not
        required, the raw value is returned; otherwise, an empty string is returned.
        """
        value = self.get_value()
        collname = self.determine_source_class()
        if source and collname and value not in (None, ''):
            for cand in self._stored_candidates(value):
                rec = source.get_record(collname, self._stored_field, cand)
                if rec:
                    return rec.get(self._display_field, '')

        if not self._require_selection and value:
            return value

        return ''

    def attributes(self, source: RecordSource=None) -> Mapping:
        """
        return the HTML attributes for the visible search input, including the ``data-*``
        attributes that configure the client-side controller.
        """
        out = OrderedDict([
            ("data-source", self.get_suggest_url()),
            ("data-min-length", self._min_search_length),
            ("data-require-selection", self._require_selection),
            ("data-pop-separate", self._populate_separately),
            ("data-clear-input", self._clear_input),
            ("autocomplete", "off"),
            ("name", self.name + "__autocomplete"),
            ("placeholder", "Search on " + " or ".join(self.get_source_fields()))
        ])
        for key, val in self.input.attributes().items():
            if key not in out:
                out[key] = val
        out["class"] = self.type()

        # start with a clear search input when populating separately
        out["value"] = None if self._populate_separately else self.display_value(source)
        return out

    def data_attributes(self, source: RecordSource=None) -> Mapping:
        """
        return the ``data-*`` attributes as they are rendered into the page (i.e. as strings)
        """
        return OrderedDict([(k, _as_data_value(v)) for k, v in self.attributes(source).items()
                                                   if k.startswith("data-")])

    def describe(self, source: RecordSource=None) -> Mapping:
        """
        return a JSON-serializable description of this field
        """
        return OrderedDict([
            ("name", self.name),
            ("title", self.input.title),
            ("type", self.type()),
            ("source_class", self.determine_source_class()),
            ("source_fields", self.get_source_fields()),
            ("display_field", self._display_field),
            ("label_field", self._label_field),
            ("stored_field", self._stored_field),
            ("source_sort", self._source_sort),
            ("limit", self._limit),
            ("attributes", self.data_attributes(source))
        ])
