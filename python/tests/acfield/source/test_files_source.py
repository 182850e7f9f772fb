import os, json, pdb, tempfile
from pathlib import Path
import unittest as test

from acfield.source import base, files
from acfield import source as src
from acfield import SourceServerError, SourceClientError
from acfield.base.config import ConfigurationException

testdir = Path(__file__).parents[0]
datadir = testdir.parents[0] / 'data'

class TestParseSort(test.TestCase):

    def test_parse_sort(self):
        self.assertEqual(base.parse_sort("ID ASC"), [("ID", base.ASCENDING)])
        self.assertEqual(base.parse_sort("ID"), [("ID", base.ASCENDING)])
        self.assertEqual(base.parse_sort("Title desc"), [("Title", base.DESCENDING)])
        self.assertEqual(base.parse_sort("LastName ASC, FirstName ASC,ID DESC"),
                         [("LastName", 1), ("FirstName", 1), ("ID", -1)])
        self.assertEqual(base.parse_sort(""), [])
        self.assertEqual(base.parse_sort(None), [])
        self.assertEqual(base.parse_sort([("ID", -1)]), [("ID", -1)])

        with self.assertRaises(ValueError):
            base.parse_sort("Title UP")
        with self.assertRaises(ValueError):
            base.parse_sort("Title ASC DESC")

class TestInMemoryRecordSource(test.TestCase):

    def setUp(self):
        with open(datadir / "Company.json") as fd:
            self.companies = json.load(fd)
        self.src = files.InMemoryRecordSource({ "Company": self.companies })

    def test_ctor(self):
        self.assertEqual(self.src.collections(), ["Company"])
        self.assertEqual(len(self.src.records("Company")), 6)
        self.assertEqual(self.src.records("Member"), [])

        with self.assertRaises(SourceClientError):
            files.InMemoryRecordSource({ "Company": { "ID": 1 } })

    def test_load_collection(self):
        self.src.load_collection("Member", [{ "ID": 1, "Title": "Jane Doe" }])
        self.assertEqual(set(self.src.collections()), set(["Company", "Member"]))
        self.assertEqual(self.src.records("Member"), [{ "ID": 1, "Title": "Jane Doe" }])

        self.src.load_collection("Member", [])
        self.assertEqual(self.src.records("Member"), [])

    def test_select(self):
        recs = list(self.src.select("Company"))
        self.assertEqual(len(recs), 6)

        recs = list(self.src.select("Company", ["ACME"], ["Title"]))
        self.assertEqual([r['ID'] for r in recs], [1, 2])

        recs = list(self.src.select("Company", ["corp", "uk"], ["Title", "Country"]))
        self.assertEqual([r['ID'] for r in recs], [5])

        recs = list(self.src.select("Company", "widget", "Title"))
        self.assertEqual([r['ID'] for r in recs], [2])

        # keywords are matched literally
        recs = list(self.src.select("Company", ["c.rp"], ["Title"]))
        self.assertEqual(recs, [])

        recs = list(self.src.select("Company", filter={"Country": "UK"}))
        self.assertEqual([r['ID'] for r in recs], [2, 5])

        recs = list(self.src.select("Company", filter={"ID": [3, 4, 99]}))
        self.assertEqual([r['ID'] for r in recs], [3, 4])

        recs = list(self.src.select("Company", ["corp"], ["Title"], sort=[("Title", base.DESCENDING)],
                                    limit=2))
        self.assertEqual([r['ID'] for r in recs], [5, 6])

        recs = list(self.src.select("Company", sort=[("Country", 1), ("ID", -1)]))
        self.assertEqual([r['ID'] for r in recs], [5, 2, 6, 4, 3, 1])

        self.assertEqual(list(self.src.select("Gurn", ["corp"], ["Title"])), [])

        with self.assertRaises(SourceClientError):
            self.src.select("Company", ["corp"])

    def test_select_nonstring(self):
        # numbers are never searched for keywords
        recs = list(self.src.select("Company", ["4"], ["ID", "Title"]))
        self.assertEqual(recs, [])

        self.src.load_collection("Thing", [
            { "ID": 1, "Title": "Thing One", "Tags": ["red", "Blue"] },
            { "ID": 2, "Title": "Thing Two", "Tags": [7, "green"] },
            { "ID": 3, "Title": "Thing 3", "Tags": None }
        ])
        recs = list(self.src.select("Thing", ["blue"], ["Tags"]))
        self.assertEqual([r['ID'] for r in recs], [1])
        recs = list(self.src.select("Thing", ["7"], ["Tags"]))
        self.assertEqual(recs, [])
        recs = list(self.src.select("Thing", ["3"], ["ID", "Title"]))
        self.assertEqual([r['ID'] for r in recs], [3])

    def test_sort_mixed(self):
        self.src.load_collection("Thing", [
            { "ID": "b" }, { "ID": 2 }, { "ID": None }, { "ID": "a" }, { "ID": 1 }
        ])
        recs = list(self.src.select("Thing", sort=[("ID", 1)]))
        self.assertEqual([r['ID'] for r in recs], [None, 1, 2, "a", "b"])

    def test_get_record(self):
        rec = self.src.get_record("Company", "ID", 4)
        self.assertEqual(rec['Title'], "Initech")
        self.assertIsNone(self.src.get_record("Company", "ID", "4"))
        self.assertIsNone(self.src.get_record("Company", "ID", 40))
        self.assertIsNone(self.src.get_record("Member", "ID", 4))

    def test_status(self):
        stat = self.src.status()
        self.assertEqual(stat['status'], "ready")
        self.assertEqual(stat['collection_count'], 1)

        stat = files.InMemoryRecordSource().status()
        self.assertEqual(stat['status'], "not ready")
        self.assertEqual(stat['collection_count'], 0)

class TestFilesBasedRecordSource(test.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory(prefix="_test_files_source.")
        self.src = files.FilesBasedRecordSource({ "dir": str(datadir) })

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_ctor(self):
        self.assertEqual(self.src.ddir, datadir)

        self.src = files.FilesBasedRecordSource({ "data": { "dir": str(datadir) } })
        self.assertEqual(self.src.ddir, datadir)

        self.src = files.FilesBasedRecordSource({}, datadir)
        self.assertEqual(self.src.ddir, datadir)

        with self.assertRaises(ConfigurationException):
            files.FilesBasedRecordSource({})
        with self.assertRaises(ConfigurationException):
            files.FilesBasedRecordSource({ "dir": str(datadir / "goober") })

    def test_collections(self):
        self.assertEqual(self.src.collections(), ["Company", "Member"])

    def test_records(self):
        self.assertEqual(len(self.src.records("Company")), 6)
        self.assertEqual(len(self.src.records("Member")), 6)
        self.assertEqual(self.src.records("Goober"), [])

    def test_select(self):
        recs = list(self.src.select("Member", ["jane"], ["FirstName", "LastName"]))
        self.assertEqual([r['ID'] for r in recs], [1, 2])

        recs = list(self.src.select("Member", filter={"CompanyID": 4}, sort=[("LastName", 1)]))
        self.assertEqual([r['LastName'] for r in recs], ["Bolton", "Gibbons", "Nagheenanajar"])

    def test_updates_seen(self):
        ddir = Path(self.tmpdir.name)
        with open(ddir / "Thing.json", 'w') as fd:
            json.dump([{ "ID": 1, "Title": "Thing One" }], fd)
        self.src = files.FilesBasedRecordSource({ "dir": self.tmpdir.name })
        self.assertEqual(self.src.collections(), ["Thing"])
        self.assertEqual(len(self.src.records("Thing")), 1)

        with open(ddir / "Thing.json", 'w') as fd:
            json.dump([{ "ID": 1, "Title": "Thing One" }, { "ID": 2, "Title": "Thing Two" }], fd)
        self.assertEqual(len(self.src.records("Thing")), 2)

    def test_bad_files(self):
        ddir = Path(self.tmpdir.name)
        with open(ddir / "Bad.json", 'w') as fd:
            fd.write("[{ goober")
        with open(ddir / "Obj.json", 'w') as fd:
            json.dump({ "ID": 1 }, fd)
        self.src = files.FilesBasedRecordSource({ "dir": self.tmpdir.name })

        with self.assertRaises(SourceServerError):
            self.src.records("Bad")
        with self.assertRaises(SourceServerError):
            list(self.src.select("Obj"))

class TestCreateRecordSource(test.TestCase):

    def test_create(self):
        svc = src.create_record_source({})
        self.assertTrue(isinstance(svc, files.InMemoryRecordSource))
        self.assertEqual(svc.collections(), [])

        svc = src.create_record_source({ "factory": "inmem",
                                         "collections": { "Thing": [{ "ID": 1 }] } })
        self.assertEqual(svc.collections(), ["Thing"])

        svc = src.create_record_source({ "factory": "files", "dir": str(datadir) })
        self.assertTrue(isinstance(svc, files.FilesBasedRecordSource))
        self.assertEqual(svc.collections(), ["Company", "Member"])

    def test_create_bad(self):
        with self.assertRaises(ConfigurationException):
            src.create_record_source({ "factory": "oracle" })
        with self.assertRaises(ConfigurationException):
            src.create_record_source({ "factory": "mongo" })
        with self.assertRaises(ConfigurationException):
            src.create_record_source({ "factory": "mongo", "db_url": "postgres://localhost/acf" })
        with self.assertRaises(ConfigurationException):
            src.create_record_source({ "factory": "files" })
        with self.assertRaises(ConfigurationException):
            src.create_record_source("files")


if __name__ == '__main__':
    test.main()
