import json
import tempfile
import unittest
from pathlib import Path

from stackplan.errors import ConflictError, InvalidStateError
from stackplan.graph import build_graph
from stackplan.models import ResourceDeclaration
from stackplan.plan import StateRecord, synthesize
from stackplan.store import FilePlanStore


def sample_record(version: int) -> StateRecord:
    plan = synthesize(build_graph([ResourceDeclaration("a", "test:Resource", {"x": 1})]))
    return StateRecord(version=version, plan=plan, attributes={"a": {"id": "a-1"}})


class TestFilePlanStore(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "nested" / "state.json"
        self.store = FilePlanStore(self.path)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_loads_empty_record(self) -> None:
        record = self.store.load()
        self.assertEqual(record.version, 0)
        self.assertIsNone(record.plan)

    def test_save_then_load(self) -> None:
        self.store.save(sample_record(1), expected_version=0)
        loaded = self.store.load()
        self.assertEqual(loaded.version, 1)
        self.assertEqual(loaded.plan.identifiers, ["a"])
        self.assertEqual(loaded.attributes_of("a"), {"id": "a-1"})
        self.assertEqual(json.loads(self.path.read_text(encoding="utf-8"))["version"], 1)
        self.assertEqual(list(self.path.parent.glob("*.tmp")), [])

    def test_stale_writer_gets_conflict(self) -> None:
        self.store.save(sample_record(1), expected_version=0)
        with self.assertRaises(ConflictError) as ctx:
            self.store.save(sample_record(1), expected_version=0)
        self.assertEqual(ctx.exception.details["current_version"], 1)

    def test_corrupt_file(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(InvalidStateError):
            self.store.load()


if __name__ == "__main__":
    unittest.main()
