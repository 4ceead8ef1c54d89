import unittest
from datetime import datetime, timezone

from stackplan.errors import InvalidDeclarationError, UnresolvablePropertyError
from stackplan.graph import build_graph
from stackplan.models import ResourceDeclaration, ref
from stackplan.plan import synthesize


def decl(identifier, depends_on=None, **properties):
    return ResourceDeclaration(
        identifier=identifier,
        type="test:Resource",
        properties=properties,
        depends_on=list(depends_on or []),
    )


class TestSynthesize(unittest.TestCase):
    def test_dependency_first_then_declaration_order(self) -> None:
        graph = build_graph([decl("B", ["A"]), decl("C", ["A"]), decl("A")])
        plan = synthesize(graph)
        self.assertEqual(plan.identifiers, ["A", "B", "C"])

    def test_every_edge_is_respected(self) -> None:
        graph = build_graph(
            [
                decl("app", ["cache"], db=ref("db", "endpoint")),
                decl("cache", ["network"]),
                decl("db", subnet=ref("network")),
                decl("network"),
                decl("logs"),
            ]
        )
        plan = synthesize(graph)
        position = {identifier: i for i, identifier in enumerate(plan.identifiers)}
        for resource in plan:
            for dep in resource.depends_on:
                self.assertLess(position[dep], position[resource.identifier])
        self.assertEqual(plan.identifiers, ["network", "cache", "db", "app", "logs"])

    def test_deferred_becomes_token(self) -> None:
        graph = build_graph([decl("network"), decl("db", subnet=ref("network"), size=10)])
        db = synthesize(graph).get("db")
        self.assertEqual(db.properties, {"subnet": {"$ref": "network", "$attr": "id"}, "size": 10})
        self.assertEqual(db.depends_on, ("network",))

    def test_unresolvable_property(self) -> None:
        graph = build_graph([decl("db", subnet=ref("ghost"))])
        with self.assertRaises(UnresolvablePropertyError) as ctx:
            synthesize(graph)
        self.assertEqual(ctx.exception.details["reference"], "ghost")

    def test_non_serializable_property(self) -> None:
        graph = build_graph([decl("a", value={1, 2})])
        with self.assertRaises(InvalidDeclarationError):
            synthesize(graph)

    def test_plan_id_and_created_at_can_be_given(self) -> None:
        created = datetime(2025, 1, 1, tzinfo=timezone.utc)
        plan = synthesize(build_graph([decl("a")]), plan_id="P1", created_at=created)
        self.assertEqual(plan.plan_id, "P1")
        self.assertEqual(plan.created_at, created)
        plan.validate()

    def test_empty_graph(self) -> None:
        self.assertEqual(len(synthesize(build_graph([]))), 0)


if __name__ == "__main__":
    unittest.main()
