import unittest
from unittest.mock import Mock

from stackplan.controller import DriveFile
from stackplan.errors import ConflictError
from stackplan.plan import StateRecord, dumps_record
from stackplan.store import DrivePlanStore
from stackplan.store.drive_store import VERSION_PROPERTY


class TestDrivePlanStore(unittest.TestCase):
    def test_load_without_file_returns_empty_record(self) -> None:
        controller = Mock()
        controller.find_file.return_value = None
        store = DrivePlanStore(controller, "FOLDER")

        record = store.load()

        self.assertEqual(record.version, 0)
        controller.find_file.assert_called_once_with("FOLDER", "stackplan-state.json")
        controller.download.assert_not_called()

    def test_load_downloads_record(self) -> None:
        controller = Mock()
        controller.find_file.return_value = DriveFile(file_id="F1", name="stackplan-state.json")
        controller.download.return_value = dumps_record(StateRecord(version=4)).encode("utf-8")

        record = DrivePlanStore(controller, "FOLDER").load()

        self.assertEqual(record.version, 4)
        controller.download.assert_called_once_with("F1")

    def test_first_save_creates_file(self) -> None:
        controller = Mock()
        controller.find_file.return_value = None
        store = DrivePlanStore(controller, "FOLDER", name="prod.json")

        store.save(StateRecord(version=1), expected_version=0)

        args, kwargs = controller.create.call_args
        self.assertEqual(args[:2], ("FOLDER", "prod.json"))
        self.assertIn(b'"version": 1', args[2])
        self.assertEqual(kwargs["app_properties"], {VERSION_PROPERTY: "1"})
        self.assertEqual(store.location, "drive://FOLDER/prod.json")

    def test_save_updates_existing_file(self) -> None:
        controller = Mock()
        controller.find_file.return_value = DriveFile(
            file_id="F1",
            name="stackplan-state.json",
            app_properties={VERSION_PROPERTY: "2"},
        )

        DrivePlanStore(controller, "FOLDER").save(StateRecord(version=3), expected_version=2)

        controller.update.assert_called_once()
        self.assertEqual(controller.update.call_args.args[0], "F1")
        controller.download.assert_not_called()

    def test_version_mismatch_raises_conflict(self) -> None:
        controller = Mock()
        controller.find_file.return_value = DriveFile(
            file_id="F1",
            name="stackplan-state.json",
            app_properties={VERSION_PROPERTY: "5"},
        )

        with self.assertRaises(ConflictError):
            DrivePlanStore(controller, "FOLDER").save(StateRecord(version=3), expected_version=2)
        controller.update.assert_not_called()

    def test_version_falls_back_to_document(self) -> None:
        controller = Mock()
        controller.find_file.return_value = DriveFile(file_id="F1", name="stackplan-state.json")
        controller.download.return_value = dumps_record(StateRecord(version=2)).encode("utf-8")

        DrivePlanStore(controller, "FOLDER").save(StateRecord(version=3), expected_version=2)

        controller.update.assert_called_once()


if __name__ == "__main__":
    unittest.main()
