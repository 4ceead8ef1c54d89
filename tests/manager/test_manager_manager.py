import os
import tempfile
import unittest
from unittest.mock import Mock

from stackplan.config import StackConfig
from stackplan.deploy import LocalRemoteClient, RemoteResult
from stackplan.diff import ChangeType
from stackplan.errors import ConflictError, DuplicateIdentifierError, RemoteOperationFailure
from stackplan.manager import StackManager, create_store, describe_record
from stackplan.models import ResourceDeclaration, ref
from stackplan.store import FilePlanStore


def stack(*extra):
    return [
        ResourceDeclaration("network", "aws:ec2:Vpc", {"cidr": "10.0.0.0/16"}),
        ResourceDeclaration("db", "aws:rds:Instance", {"subnet": ref("network")}),
        *extra,
    ]


class TestStackManager(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = FilePlanStore(os.path.join(self._tmp.name, "state.json"))
        self.remote = LocalRemoteClient()
        self.manager = StackManager(self.store, self.remote, max_concurrency=2)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_apply_persists_and_second_diff_is_empty(self) -> None:
        result = self.manager.apply(stack())
        self.assertTrue(result.ok)

        record = self.store.load()
        self.assertEqual(record.version, 1)
        self.assertEqual(record.plan.identifiers, ["network", "db"])
        self.assertTrue(self.manager.diff(stack()).is_empty)

    def test_noop_apply_does_not_write(self) -> None:
        self.manager.apply(stack())
        result = self.manager.apply(stack())
        self.assertTrue(result.ok)
        self.assertEqual(result.results, [])
        self.assertEqual(self.store.load().version, 1)

    def test_diff_reports_added_resource(self) -> None:
        self.manager.apply(stack())
        change_set = self.manager.diff(stack(ResourceDeclaration("cache", "aws:ecs:Cache")))
        self.assertEqual([e.identifier for e in change_set.changes], ["cache"])
        self.assertIs(change_set.get("cache").change_type, ChangeType.ADDED)

    def test_build_errors_happen_before_remote_calls(self) -> None:
        dup = ResourceDeclaration("network", "aws:ec2:Vpc")
        with self.assertRaises(DuplicateIdentifierError):
            self.manager.apply(stack(dup))
        self.assertEqual(self.remote.calls, [])
        self.assertEqual(self.store.load().version, 0)

    def test_destroy_removes_everything_dependents_first(self) -> None:
        self.manager.apply(stack())
        self.remote.calls.clear()

        result = self.manager.destroy()

        self.assertTrue(result.ok)
        self.assertEqual(self.remote.calls, [("delete", "db"), ("delete", "network")])
        record = self.store.load()
        self.assertEqual(record.version, 2)
        self.assertEqual(len(record.plan), 0)
        self.assertEqual(self.remote.resources, {})

    def test_partial_failure_is_persisted(self) -> None:
        class RejectDb(LocalRemoteClient):
            def create(self, resource_type, identifier, properties):
                if identifier == "db":
                    return RemoteResult.failure("no capacity")
                return super().create(resource_type, identifier, properties)

        manager = StackManager(self.store, RejectDb())
        result = manager.apply(stack())

        self.assertEqual(result.status, "partial")
        self.assertEqual(self.store.load().plan.identifiers, ["network"])
        self.assertEqual([e.identifier for e in manager.diff(stack()).changes], ["db"])

    def test_conflicting_writer(self) -> None:
        store = Mock(wraps=self.store)
        store.save.side_effect = ConflictError("stale")
        manager = StackManager(store, self.remote)
        with self.assertRaises(ConflictError):
            manager.apply(stack())

    def test_missing_resources_reads_every_recorded_resource(self) -> None:
        self.assertEqual(self.manager.missing_resources(), [])
        self.manager.apply(stack())
        self.remote.resources.pop("network")
        self.remote.calls.clear()

        with self.assertLogs("stackplan.manager", level="WARNING"):
            missing = self.manager.missing_resources()

        self.assertEqual(missing, ["network"])
        self.assertEqual(self.remote.calls, [("read", "network"), ("read", "db")])

    def test_missing_resources_wraps_raising_reads(self) -> None:
        class BrokenRead(LocalRemoteClient):
            def read(self, resource_type, identifier, attributes):
                raise TimeoutError("read timed out")

        self.manager.apply(stack())
        manager = StackManager(self.store, BrokenRead())
        with self.assertRaises(RemoteOperationFailure) as ctx:
            manager.missing_resources()
        self.assertEqual(ctx.exception.details["identifier"], "network")
        self.assertIsInstance(ctx.exception.cause, TimeoutError)

    def test_describe_record(self) -> None:
        self.assertIsNone(describe_record(self.store.load()))
        self.manager.apply(stack())
        self.assertTrue(describe_record(self.store.load()).startswith("version 1, 2 resource(s)"))
        self.manager.destroy()
        self.assertIsNone(describe_record(self.store.load()))


class TestFromConfig(unittest.TestCase):
    def test_file_backend_and_default_remote(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config = StackConfig(state_path=os.path.join(tmp, "s.json"), max_concurrency=3)
            manager = StackManager.from_config(config)
            self.assertIsInstance(manager.store, FilePlanStore)
            self.assertTrue(manager.apply(stack()).ok)

    def test_create_store_file(self) -> None:
        store = create_store(StackConfig(state_path="x/state.json"))
        self.assertIsInstance(store, FilePlanStore)


if __name__ == "__main__":
    unittest.main()
