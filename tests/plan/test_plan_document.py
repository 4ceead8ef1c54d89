import json
import unittest
from datetime import datetime, timezone

from stackplan.errors import InvalidStateError
from stackplan.graph import build_graph
from stackplan.models import ResourceDeclaration, ref
from stackplan.plan import (
    Plan,
    ResourceDescription,
    StateRecord,
    dumps_plan,
    dumps_record,
    loads_plan,
    loads_record,
    synthesize,
)

CREATED = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def sample_plan() -> Plan:
    graph = build_graph(
        [
            ResourceDeclaration("network", "aws:ec2:Vpc", {"cidr": "10.0.0.0/16", "tags": {"b": 1, "a": 2}}),
            ResourceDeclaration("db", "aws:rds:Instance", {"subnet": ref("network")}),
        ]
    )
    return synthesize(graph, plan_id="P1", created_at=CREATED)


class TestPlanDocument(unittest.TestCase):
    def test_serialization_is_byte_identical(self) -> None:
        self.assertEqual(dumps_plan(sample_plan()), dumps_plan(sample_plan()))

    def test_keys_are_sorted_and_text_ends_with_newline(self) -> None:
        text = dumps_plan(sample_plan())
        self.assertTrue(text.endswith("\n"))
        data = json.loads(text)
        self.assertEqual(data["format_version"], 1)
        self.assertEqual(data["created_at"], "2025-01-01T12:00:00.000000Z")
        self.assertEqual([r["id"] for r in data["resources"]], ["network", "db"])
        self.assertLess(text.index('"a": 2'), text.index('"b": 1'))

    def test_load_restores_the_plan(self) -> None:
        plan = sample_plan()
        loaded = loads_plan(dumps_plan(plan))
        self.assertEqual(loaded.plan_id, "P1")
        self.assertEqual(loaded.created_at, CREATED)
        self.assertEqual(loaded.resources, plan.resources)

    def test_load_rejects_out_of_order_resources(self) -> None:
        data = json.loads(dumps_plan(sample_plan()))
        data["resources"].reverse()
        with self.assertRaises(InvalidStateError):
            loads_plan(json.dumps(data))

    def test_load_rejects_bad_documents(self) -> None:
        with self.assertRaises(InvalidStateError):
            loads_plan("not json")
        with self.assertRaises(InvalidStateError):
            loads_plan(json.dumps({"format_version": 99}))


class TestStateRecord(unittest.TestCase):
    def test_empty_record(self) -> None:
        record = loads_record(dumps_record(StateRecord.empty()))
        self.assertEqual(record.version, 0)
        self.assertIsNone(record.plan)

    def test_record_keeps_attributes(self) -> None:
        record = StateRecord(version=3, plan=sample_plan(), attributes={"network": {"id": "vpc-1"}})
        loaded = loads_record(dumps_record(record))
        self.assertEqual(loaded.version, 3)
        self.assertEqual(loaded.plan.identifiers, ["network", "db"])
        self.assertEqual(loaded.attributes_of("network"), {"id": "vpc-1"})
        self.assertEqual(loaded.attributes_of("db"), {})

    def test_invalid_version(self) -> None:
        with self.assertRaises(InvalidStateError):
            loads_record(json.dumps({"format_version": 1, "version": -1}))


class TestPlanModel(unittest.TestCase):
    def test_same_as_ignores_identifier(self) -> None:
        a = ResourceDescription("a", "t", {"x": 1}, ("n",))
        b = ResourceDescription("b", "t", {"x": 1}, ("n",))
        self.assertTrue(a.same_as(b))
        self.assertFalse(a.same_as(ResourceDescription("a", "t", {"x": 2}, ("n",))))


if __name__ == "__main__":
    unittest.main()
