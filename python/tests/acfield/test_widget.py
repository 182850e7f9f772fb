import os, pdb, logging, tempfile, threading
from concurrent.futures import ThreadPoolExecutor
import unittest as test

from acfield import widget as wdg
from acfield.suggest import Suggestion
from acfield import SuggestServerError

tmpdir = tempfile.TemporaryDirectory(prefix="_test_widget.")
loghdlr = None
rootlog = None
def setUpModule():
    global loghdlr
    global rootlog
    rootlog = logging.getLogger()
    rootlog.setLevel(logging.DEBUG)
    loghdlr = logging.FileHandler(os.path.join(tmpdir.name,"test_widget.log"))
    loghdlr.setLevel(logging.DEBUG)
    loghdlr.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    rootlog.addHandler(loghdlr)

def tearDownModule():
    global loghdlr
    if loghdlr:
        if rootlog:
            rootlog.removeHandler(loghdlr)
            loghdlr.flush()
            loghdlr.close()
        loghdlr = None
    tmpdir.cleanup()

acme = Suggestion("Acme Corp", "Acme Corp", "42")
acmew = Suggestion("Acme Widgets", "Acme Widgets", "43")

class FakeFetcher:
    def __init__(self, results=None, fail=False):
        self.results = results if results is not None else [acme, acmew]
        self.fail = fail
        self.terms = []
    def __call__(self, term):
        self.terms.append(term)
        if self.fail:
            raise SuggestServerError("/field/Company/Suggest", 500, "Server error")
        return list(self.results)

class TestWidgetConfig(test.TestCase):

    def test_ctor(self):
        cfg = wdg.WidgetConfig("/field/Company/Suggest")
        self.assertEqual(cfg.source, "/field/Company/Suggest")
        self.assertEqual(cfg.min_length, 2)
        self.assertTrue(cfg.require_selection)
        self.assertFalse(cfg.pop_separate)
        self.assertFalse(cfg.clear_input)

        cfg = wdg.WidgetConfig("/field/Company/Suggest", 3, False, True)
        self.assertEqual(cfg.min_length, 3)
        self.assertFalse(cfg.require_selection)
        self.assertTrue(cfg.pop_separate)
        self.assertTrue(cfg.clear_input)

        cfg = wdg.WidgetConfig("/field/Company/Suggest", 3, False, True, False)
        self.assertFalse(cfg.clear_input)

    def test_from_attributes(self):
        cfg = wdg.WidgetConfig.from_attributes({
            "data-source": "/forms/edit/field/Company/Suggest",
            "data-min-length": "1",
            "data-require-selection": "",
            "data-pop-separate": "1",
            "data-clear-input": "1"
        })
        self.assertEqual(cfg, ("/forms/edit/field/Company/Suggest", 1, False, True, True))

        cfg = wdg.WidgetConfig.from_attributes({
            "data-source": "/forms/edit/field/Company/Suggest",
            "data-min-length": "",
            "data-require-selection": "true",
            "data-pop-separate": "",
            "data-clear-input": "1"
        })
        self.assertEqual(cfg, ("/forms/edit/field/Company/Suggest", 2, True, False, False))

        with self.assertRaises(ValueError):
            wdg.WidgetConfig.from_attributes({ "data-min-length": "2" })
        with self.assertRaises(ValueError):
            wdg.WidgetConfig.from_attributes({ "data-source": "/s", "data-min-length": "two" })

class TestSelectionController(test.TestCase):

    def setUp(self):
        self.fetch = FakeFetcher()
        self.cfg = wdg.WidgetConfig("/field/Company/Suggest")

    def make_ctl(self, cfg=None, **kw):
        return wdg.SelectionController(cfg or self.cfg, self.fetch, **kw)

    def test_ctor(self):
        ctl = self.make_ctl()
        self.assertEqual(ctl.status, wdg.IDLE)
        self.assertFalse(ctl.loaded)
        self.assertEqual(ctl.state.input_text, "")
        self.assertEqual(ctl.state.stored_value, "")
        self.assertFalse(ctl.state.has_value)
        self.assertEqual(ctl.picklist, [])

    def test_attach(self):
        ctl = self.make_ctl()
        self.assertIs(ctl.attach(), ctl)
        self.assertTrue(ctl.loaded)
        self.assertEqual(ctl.status, wdg.ATTACHED)
        self.assertEqual(self.fetch.terms, [])

        ctl.attach()
        self.assertEqual(ctl.status, wdg.ATTACHED)
        self.assertEqual(self.fetch.terms, [])

    def test_attach_prefilled(self):
        ctl = self.make_ctl(text="Acme Corp", stored="42")
        ctl.attach()
        self.assertEqual(self.fetch.terms, ["Acme Corp"])
        self.assertEqual(ctl.picklist, [acme, acmew])
        self.assertEqual(ctl.status, wdg.ATTACHED)

        # attaching again does not search again
        ctl.attach()
        self.assertEqual(self.fetch.terms, ["Acme Corp"])

        ctl.focus()
        self.assertEqual(self.fetch.terms, ["Acme Corp", "Acme Corp"])

    def test_focus(self):
        ctl = self.make_ctl(text="A")
        ctl.focus()
        self.assertTrue(ctl.loaded)
        self.assertEqual(self.fetch.terms, [])
        ctl.focus()
        self.assertEqual(self.fetch.terms, [])

        ctl.state.input_text = "Ac"
        ctl.focus()
        self.assertEqual(self.fetch.terms, ["Ac"])

    def test_input(self):
        ctl = self.make_ctl()
        ctl.input("Ac")
        self.assertEqual(self.fetch.terms, [])

        ctl.attach()
        ctl.input("A")
        self.assertEqual(self.fetch.terms, [])
        self.assertEqual(ctl.state.input_text, "A")

        ctl.input("Ac")
        self.assertEqual(self.fetch.terms, ["Ac"])
        ctl.input("Acm")
        self.assertEqual(self.fetch.terms, ["Ac", "Acm"])
        self.assertEqual(ctl.picklist, [acme, acmew])

        ctl = self.make_ctl(wdg.WidgetConfig("/field/Company/Suggest", 0)).attach()
        self.assertEqual(self.fetch.terms, ["Ac", "Acm", ""])

    def test_pick_in_input(self):
        ctl = self.make_ctl().attach()
        ctl.input("acm")
        ctl.pick(acme)
        self.assertEqual(ctl.state.stored_value, "42")
        self.assertEqual(ctl.state.input_text, "Acme Corp")
        self.assertFalse(ctl.state.has_value)
        self.assertEqual(ctl.status, wdg.RECONCILED)

        ctl.pick(acme)
        self.assertEqual(ctl.state.stored_value, "42")
        self.assertEqual(ctl.state.input_text, "Acme Corp")

    def test_pick_separately(self):
        cfg = wdg.WidgetConfig("/field/Company/Suggest", pop_separate=True)
        ctl = self.make_ctl(cfg, empty_display="(none)").attach()
        self.assertEqual(ctl.state.display_value, "(none)")
        ctl.input("acm")
        ctl.pick(acmew)
        self.assertEqual(ctl.state.stored_value, "43")
        self.assertEqual(ctl.state.display_value, "Acme Widgets")
        self.assertTrue(ctl.state.has_value)
        self.assertEqual(ctl.state.input_text, "")

        ctl.pick(acmew)
        self.assertEqual(ctl.state.stored_value, "43")
        self.assertEqual(ctl.state.display_value, "Acme Widgets")
        self.assertTrue(ctl.state.has_value)

        cfg = wdg.WidgetConfig("/field/Company/Suggest", pop_separate=True, clear_input=False)
        ctl = self.make_ctl(cfg).attach()
        ctl.input("acm")
        ctl.pick(acmew)
        self.assertEqual(ctl.state.stored_value, "43")
        self.assertEqual(ctl.state.display_value, "Acme Widgets")
        self.assertEqual(ctl.state.input_text, "acm")

    def test_commit_requires_selection(self):
        ctl = self.make_ctl(text="Acme Corp", stored="42").attach()
        ctl.input("nonexistent")
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "")
        self.assertEqual(ctl.state.input_text, "")
        self.assertEqual(ctl.status, wdg.RECONCILED)

    def test_commit_free_text(self):
        cfg = wdg.WidgetConfig("/field/Company/Suggest", require_selection=False)
        ctl = self.make_ctl(cfg).attach()
        ctl.input("nonexistent")
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "nonexistent")
        self.assertEqual(ctl.state.input_text, "nonexistent")

        cfg = wdg.WidgetConfig("/field/Company/Suggest", require_selection=False, pop_separate=True)
        ctl = self.make_ctl(cfg).attach()
        ctl.input("nonexistent")
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "nonexistent")
        self.assertEqual(ctl.state.display_value, "nonexistent")
        self.assertTrue(ctl.state.has_value)
        self.assertEqual(ctl.state.input_text, "")

    def test_commit_empty(self):
        cfg = wdg.WidgetConfig("/field/Company/Suggest", require_selection=False, pop_separate=True)
        ctl = self.make_ctl(cfg, empty_display="(none)", text="", stored="42", display="Acme Corp")
        self.assertTrue(ctl.state.has_value)
        ctl.attach()
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "")
        self.assertEqual(ctl.state.display_value, "(none)")
        self.assertFalse(ctl.state.has_value)

    def test_commit_after_pick(self):
        ctl = self.make_ctl().attach()
        ctl.input("acm")
        ctl.pick(acme)
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "42")
        self.assertEqual(ctl.state.input_text, "Acme Corp")
        self.assertEqual(ctl.status, wdg.RECONCILED)

        # same text reported again keeps the pick
        ctl.input("Acme Corp")
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "42")

        cfg = wdg.WidgetConfig("/field/Company/Suggest", pop_separate=True)
        ctl = self.make_ctl(cfg, empty_display="(none)").attach()
        ctl.input("acm")
        ctl.pick(acmew)
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "43")
        self.assertEqual(ctl.state.display_value, "Acme Widgets")
        self.assertTrue(ctl.state.has_value)
        self.assertEqual(ctl.state.input_text, "")

        cfg = wdg.WidgetConfig("/field/Company/Suggest", pop_separate=True, clear_input=False)
        ctl = self.make_ctl(cfg).attach()
        ctl.input("acm")
        ctl.pick(acmew)
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "43")
        self.assertEqual(ctl.state.input_text, "acm")

    def test_commit_after_edit_of_pick(self):
        ctl = self.make_ctl().attach()
        ctl.input("acm")
        ctl.pick(acme)
        ctl.input("Acme Corporation")
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "")
        self.assertEqual(ctl.state.input_text, "")

        cfg = wdg.WidgetConfig("/field/Company/Suggest", require_selection=False)
        ctl = self.make_ctl(cfg).attach()
        ctl.input("acm")
        ctl.pick(acme)
        ctl.input("Acme Corporation")
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "Acme Corporation")

        # a cleared field forgets its pick
        ctl.pick(acme)
        ctl.clear()
        ctl.commit()
        self.assertEqual(ctl.state.stored_value, "")

    def test_results_after_pick(self):
        ctl = self.make_ctl().attach()
        ctl.input("acm")
        seq = ctl.search()
        ctl.pick(acme)
        self.assertTrue(ctl.receive(seq, [acmew]))
        self.assertEqual(ctl.picklist, [acmew])
        self.assertEqual(ctl.status, wdg.RECONCILED)

    def test_clear(self):
        cfg = wdg.WidgetConfig("/field/Company/Suggest", pop_separate=True)
        ctl = self.make_ctl(cfg, empty_display="(none)").attach()
        ctl.input("acm")
        ctl.pick(acme)
        self.assertTrue(ctl.state.has_value)

        self.assertIs(ctl.clear(), ctl)
        self.assertEqual(ctl.state.stored_value, "")
        self.assertEqual(ctl.state.input_text, "")
        self.assertEqual(ctl.state.display_value, "(none)")
        self.assertFalse(ctl.state.has_value)

        ctl = self.make_ctl().attach()
        ctl.input("acm")
        ctl.pick(acme)
        ctl.clear()
        self.assertEqual(ctl.state.stored_value, "")
        self.assertEqual(ctl.state.input_text, "")

    def test_fetch_failure(self):
        self.fetch = FakeFetcher(fail=True)
        ctl = self.make_ctl().attach()
        ctl.input("acm")
        self.assertEqual(self.fetch.terms, ["acm"])
        self.assertEqual(ctl.picklist, [])
        self.assertEqual(ctl.status, wdg.ATTACHED)

    def test_stale_results(self):
        ctl = self.make_ctl().attach()
        first = ctl.search("ac")
        second = ctl.search("acme w")
        self.assertGreater(second, first)
        self.assertEqual(ctl.picklist, [acme, acmew])

        self.assertFalse(ctl.receive(first, [acme]))
        self.assertEqual(ctl.picklist, [acme, acmew])

        self.assertTrue(ctl.receive(second, [acmew]))
        self.assertEqual(ctl.picklist, [acmew])

    def test_executor(self):
        gate = threading.Event()
        calls = []
        def slowfetch(term):
            calls.append(term)
            if term == "ac":
                gate.wait(5)
                return [acme, acmew]
            return [acmew]

        with ThreadPoolExecutor(max_workers=2) as exe:
            ctl = wdg.SelectionController(self.cfg, slowfetch, exe).attach()
            ctl.input("ac")
            ctl.input("acme w")
            while len(calls) < 2:
                gate.wait(0.01)
            gate.set()

        # the slow response to the first request arrives last and is discarded
        self.assertEqual(ctl.picklist, [acmew])
        self.assertEqual(sorted(calls), ["ac", "acme w"])


if __name__ == '__main__':
    test.main()
