"""
The client-side controller for an autocomplete field.

A :py:class:`SelectionController` drives the live search of a single field instance:  it watches
the text typed into the field, fetches suggestions once enough has been typed, and reconciles the
field's stored value and readable display against the user's choice.  Two selection models are
supported:  a strict model (``require_selection``) where only a value picked from the suggestions
is accepted, and a permissive one where free text is accepted as the value.

The controller is configured from the ``data-*`` attributes that the server-side
:py:class:`~acfield.field.AutoCompleteField` renders (see :py:meth:`WidgetConfig.from_attributes`).
Suggestions are obtained via a ``fetch`` function (e.g. a :py:class:`~acfield.client.SuggestClient`)
which may be run on a ``concurrent.futures`` executor so that typing is never blocked; responses to
superseded requests are discarded.
"""
import logging, threading
from collections import namedtuple
from collections.abc import Mapping
from typing import Callable, List

from . import system
from .suggest import Suggestion
from .field import DEF_MIN_SEARCH_LENGTH

deflog = logging.getLogger(system.system_abbrev).getChild('widget')

IDLE = "idle"
ATTACHED = "attached"
SEARCHING = "searching"
RECONCILED = "reconciled"

_TRUE_VALUES = ("1", "true", "yes", "on")

def _as_flag(val) -> bool:
    if isinstance(val, str):
        return val.strip().lower() in _TRUE_VALUES
    return bool(val)

_WidgetConfig = namedtuple("WidgetConfig", "source min_length require_selection pop_separate clear_input")

class WidgetConfig(_WidgetConfig):
    """
    the configuration of the client-side controller.  Clearing the input after a selection
    only applies when the selection is displayed separately from the input; thus, ``clear_input``
    is always False unless ``pop_separate`` is True.
    """
    __slots__ = ()

    def __new__(cls, source: str, min_length: int=DEF_MIN_SEARCH_LENGTH, require_selection: bool=True,
                pop_separate: bool=False, clear_input: bool=True):
        pop_separate = bool(pop_separate)
        return super(WidgetConfig, cls).__new__(cls, source, int(min_length), bool(require_selection),
                                                pop_separate, bool(clear_input) and pop_separate)

    @classmethod
    def from_attributes(cls, attrs: Mapping):
        """
        create a configuration from the ``data-*`` attributes rendered for the field.  Flag
        values are true if they are "1", "true", "yes", or "on"; an empty string is false.
        :raises ValueError:  if ``data-source`` is missing or ``data-min-length`` is not an integer
        """
        source = attrs.get("data-source")
        if not source:
            raise ValueError("WidgetConfig: missing data-source attribute")

        minlen = attrs.get("data-min-length", DEF_MIN_SEARCH_LENGTH)
        if minlen in (None, ""):
            minlen = DEF_MIN_SEARCH_LENGTH
        try:
            minlen = int(minlen)
        except (TypeError, ValueError) as ex:
            raise ValueError("WidgetConfig: data-min-length: not an integer: "+str(minlen)) from ex

        return cls(source, minlen,
                   _as_flag(attrs.get("data-require-selection", True)),
                   _as_flag(attrs.get("data-pop-separate", False)),
                   _as_flag(attrs.get("data-clear-input", True)))

class FieldState(object):
    """
    the state of a single field instance:

    ``input_text``
        the text currently in the visible search input
    ``stored_value``
        the value that will be submitted with the form (the hidden input)
    ``display_value``
        the text shown in the separate value display (used when populating separately)
    ``has_value``
        True if the separate value display is showing a selected value
    ``loaded``
        True once the controller has been attached to the field
    """

    def __init__(self, input_text: str="", stored_value: str="", display_value: str="",
                 has_value: bool=False):
        self.input_text = input_text
        self.stored_value = stored_value
        self.display_value = display_value
        self.has_value = has_value
        self.loaded = False

    def __repr__(self):
        return "FieldState(input_text=%r, stored_value=%r, display_value=%r, has_value=%r, loaded=%r)" % \
               (self.input_text, self.stored_value, self.display_value, self.has_value, self.loaded)

class SelectionController(object):
    """
    the controller that reconciles what a user types into an autocomplete field with the
    suggestions offered for it.
    """

    def __init__(self, config: WidgetConfig, fetch: Callable[[str], List[Suggestion]], executor=None,
                 empty_display: str="", log: logging.Logger=None, text: str="", stored: str="",
                 display: str=None):
        """
        :param WidgetConfig config:  the controller's configuration
        :param Callable      fetch:  a function that takes a search term and returns the list of
                                     matching Suggestions
        :param executor:             a ``concurrent.futures`` Executor to run fetches on; if None,
                                     fetches are run in the calling thread.
        :param str   empty_display:  the placeholder shown in the separate value display when no
                                     value is selected
        :param Logger          log:  the Logger to use for messages
        :param str            text:  the text initially in the search input
        :param str          stored:  the initially stored value of the field
        :param str         display:  the readable form of the initially stored value shown in the
                                     separate value display; defaults to ``empty_display`` if
                                     there is no stored value.
        """
        self.cfg = config
        self._fetch = fetch
        self._executor = executor
        self.empty_display = empty_display
        if not log:
            log = deflog
        self.log = log

        if display is None:
            display = text if stored else empty_display
        self.state = FieldState(text, stored, display, bool(stored) and config.pop_separate)
        self.status = IDLE

        self._lock = threading.Lock()
        self._seq = 0
        self._picklist = []
        self._picked = None

    @property
    def picklist(self) -> List[Suggestion]:
        """
        the suggestions from the most recent search
        """
        with self._lock:
            return list(self._picklist)

    @property
    def loaded(self) -> bool:
        return self.state.loaded

    def _long_enough(self) -> bool:
        return len(self.state.input_text or "") >= self.cfg.min_length

    def attach(self):
        """
        attach this controller to its field.  If the field already contains enough text, a search
        is made right away.  Attaching more than once has no effect.
        """
        if self.state.loaded:
            return self
        self.state.loaded = True
        with self._lock:
            self.status = ATTACHED

        if self._long_enough():
            self.search()
        return self

    def focus(self):
        """
        handle the field receiving focus:  a field that already contains enough text will
        re-offer its suggestions.
        """
        if not self.state.loaded:
            return self.attach()
        if self._long_enough():
            self.search()
        return self

    def input(self, text: str):
        """
        handle a change to the text in the search input
        """
        text = text or ""
        if text != self.state.input_text:
            self._picked = None
        self.state.input_text = text
        if self.state.loaded and self._long_enough():
            self.search()
        return self

    def search(self, term: str=None) -> int:
        """
        request the suggestions for the given term (or the current input text).  The request is
        issued on the executor if one was provided.
        :return:  the sequence number assigned to the request
        """
        if term is None:
            term = self.state.input_text or ""
        with self._lock:
            self._seq += 1
            seq = self._seq
            self.status = SEARCHING

        if self._executor:
            fut = self._executor.submit(self._fetch, term)
            fut.add_done_callback(lambda f: self._on_results(seq, term, f))
        else:
            try:
                results = self._fetch(term)
            except Exception as ex:
                self.log.warning("Failed to fetch suggestions for %r: %s", term, str(ex))
                results = []
            self.receive(seq, results)
        return seq

    def _on_results(self, seq, term, future):
        try:
            results = future.result()
        except Exception as ex:
            self.log.warning("Failed to fetch suggestions for %r: %s", term, str(ex))
            results = []
        self.receive(seq, results)

    def receive(self, seq: int, results: List[Suggestion]) -> bool:
        """
        accept the results of a search.  Results from a request older than the most recently
        issued one are discarded.
        :return:  True if the results were accepted
        """
        with self._lock:
            if seq < self._seq:
                self.log.debug("Discarding stale suggestions (request %d; latest is %d)",
                               seq, self._seq)
                return False
            self._picklist = list(results or [])
            if self.status == SEARCHING:
                self.status = ATTACHED
        return True

    def _set_field_value(self, stored, label):
        self.state.stored_value = stored
        if self.cfg.pop_separate:
            self.state.display_value = label
            self.state.has_value = True

    def _settle(self):
        with self._lock:
            self.status = RECONCILED

    def pick(self, suggestion: Suggestion):
        """
        handle the selection of a suggestion from the picklist
        """
        self._set_field_value(suggestion.stored, suggestion.label)
        if self.cfg.clear_input:
            self.state.input_text = ""
        elif not self.cfg.pop_separate:
            self.state.input_text = suggestion.label
        self._picked = suggestion
        self._settle()
        return self

    def commit(self):
        """
        handle the input losing focus.  If the input still reflects the last suggestion picked,
        that pick stands.  Otherwise, free text is accepted as the value unless a selection is
        required, in which case the field is cleared.
        """
        if self._picked is not None:
            self._set_field_value(self._picked.stored, self._picked.label)
            self._settle()
            return self

        text = self.state.input_text
        if text and not self.cfg.require_selection:
            self._set_field_value(text, text)
            if self.cfg.clear_input:
                self.state.input_text = ""
            self._settle()
        else:
            if text:
                self.log.debug("Rejecting unselected text: %r", text)
            self.clear()
        return self

    def clear(self):
        """
        clear the field's value
        """
        self._picked = None
        self.state.stored_value = ""
        self.state.input_text = ""
        if self.cfg.pop_separate:
            self.state.display_value = self.empty_display
            self.state.has_value = False
        self._settle()
        return self
