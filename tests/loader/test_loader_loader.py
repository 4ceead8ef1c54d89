import os
import tempfile
import unittest

from stackplan.errors import ConfigError, InvalidDeclarationError
from stackplan.loader import load_declarations, loads_declarations
from stackplan.models import Deferred

SAMPLE = """
resources:
  - id: network
    type: aws:ec2:Vpc
    properties:
      cidr: 10.0.0.0/16
  - id: db
    type: aws:rds:Instance
    properties:
      subnet: !ref network
      endpoints: [!ref network.arn]
    depends_on: [network]
"""


class TestLoadsDeclarations(unittest.TestCase):
    def test_parses_resources_and_refs(self) -> None:
        network, db = loads_declarations(SAMPLE)
        self.assertEqual(network.identifier, "network")
        self.assertEqual(network.properties, {"cidr": "10.0.0.0/16"})
        self.assertEqual(db.properties["subnet"], Deferred("network", "id"))
        self.assertEqual(db.properties["endpoints"], [Deferred("network", "arn")])
        self.assertEqual(db.depends_on, ["network"])

    def test_empty_document(self) -> None:
        self.assertEqual(loads_declarations(""), [])
        self.assertEqual(loads_declarations("resources: []\n"), [])

    def test_invalid_yaml(self) -> None:
        with self.assertRaises(ConfigError):
            loads_declarations("resources: [\n")

    def test_invalid_ref(self) -> None:
        with self.assertRaises(ConfigError):
            loads_declarations("resources:\n  - id: a\n    type: t\n    properties: {x: !ref .id}\n")

    def test_invalid_shapes(self) -> None:
        with self.assertRaises(ConfigError):
            loads_declarations("resources: 3\n")
        with self.assertRaises(InvalidDeclarationError):
            loads_declarations("resources:\n  - just-a-string\n")
        with self.assertRaises(InvalidDeclarationError):
            loads_declarations("resources:\n  - {id: a, type: t, properties: [1]}\n")
        with self.assertRaises(InvalidDeclarationError):
            loads_declarations("resources:\n  - {id: a, type: t, depends_on: b}\n")

    def test_blank_or_null_fields_are_rejected(self) -> None:
        for text in (
            "resources:\n  - id:\n    type:\n",
            "resources:\n  - {id: , type: }\n",
            "resources:\n  - {type: t}\n",
            "resources:\n  - {id: a, type: \"  \"}\n",
            "resources:\n  - {id: [a], type: t}\n",
            "resources:\n  - {id: a, type: t, depends_on: [null]}\n",
            "resources:\n  - {id: a, type: t, depends_on: [{x: 1}]}\n",
        ):
            with self.subTest(text=text), self.assertRaises(InvalidDeclarationError):
                loads_declarations(text)

    def test_numeric_ids_are_read_as_strings(self) -> None:
        (decl,) = loads_declarations("resources:\n  - {id: 42, type: t, depends_on: [7]}\n")
        self.assertEqual(decl.identifier, "42")
        self.assertEqual(decl.depends_on, ["7"])

    def test_python_tags_are_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            loads_declarations("resources: !!python/object/apply:os.getcwd []\n")


class TestLoadDeclarations(unittest.TestCase):
    def test_reads_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "stack.yaml")
            with open(path, "w", encoding="utf-8") as f:
                f.write(SAMPLE)
            self.assertEqual([d.identifier for d in load_declarations(path)], ["network", "db"])

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigError) as ctx:
            load_declarations("/nonexistent/stack.yaml")
        self.assertEqual(ctx.exception.details["path"], "/nonexistent/stack.yaml")


if __name__ == "__main__":
    unittest.main()
