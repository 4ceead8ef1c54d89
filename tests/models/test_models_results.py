import unittest

from stackplan.models import ApplyResult, EntryResult


class TestResults(unittest.TestCase):
    def test_apply_result_groups_by_status(self) -> None:
        result = ApplyResult(
            status="partial",
            results=[
                EntryResult(identifier="a", change_type="added", status="succeeded"),
                EntryResult(identifier="b", change_type="added", status="failed", error_message="x"),
                EntryResult(identifier="c", change_type="added", status="skipped", skipped_because="b"),
            ],
        )
        self.assertFalse(result.ok)
        self.assertEqual(result.succeeded, ["a"])
        self.assertEqual(result.failed, ["b"])
        self.assertEqual(result.skipped, ["c"])

    def test_success_is_ok(self) -> None:
        self.assertTrue(ApplyResult(status="success", results=[]).ok)


if __name__ == "__main__":
    unittest.main()
