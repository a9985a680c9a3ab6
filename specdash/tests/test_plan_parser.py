import unittest

from specdash.parsers.plan import extract_key_values, parse_plan_content, split_risk

PLAN = """# Implementation Plan: User Login

## Summary

Add email login backed by SQLite.

## Technical Context

**Language/Version**: Python 3.12
**Storage**: SQLite

- **Testing**: unittest

## Phase 0: Research

Pick the storage engine.

- Compare engines
- Write research notes

## Phase 1: Design

- Draft data model

## Dependencies

- aiosqlite
- watchfiles

## Risks

- File watcher misses events: run a full sync on startup
- Provider outage - cache responses
- Latency-Cache hot reads
- Outage – Add failover
- Unclear scope
"""


class PlanParserTests(unittest.TestCase):
    def test_summary_and_tech_stack(self) -> None:
        parsed = parse_plan_content(PLAN)

        self.assertEqual(parsed.summary, "Add email login backed by SQLite.")
        self.assertEqual(
            parsed.techStack,
            {"Language/Version": "Python 3.12", "Storage": "SQLite", "Testing": "unittest"},
        )

    def test_phases_are_ordered_with_goal_and_tasks(self) -> None:
        phases = parse_plan_content(PLAN).phases

        self.assertEqual([(p.name, p.order) for p in phases], [("Phase 0: Research", 1), ("Phase 1: Design", 2)])
        self.assertEqual(phases[0].goal, "Pick the storage engine.")
        self.assertEqual(phases[0].tasks, ["Compare engines", "Write research notes"])
        self.assertEqual(phases[1].goal, "")
        self.assertEqual(phases[1].tasks, ["Draft data model"])

    def test_dependencies_and_risks(self) -> None:
        parsed = parse_plan_content(PLAN)

        self.assertEqual(parsed.dependencies, ["aiosqlite", "watchfiles"])
        self.assertEqual(
            [(r.risk, r.mitigation) for r in parsed.risks],
            [
                ("File watcher misses events", "run a full sync on startup"),
                ("Provider outage", "cache responses"),
                ("Latency", "Cache hot reads"),
                ("Outage", "Add failover"),
            ],
        )

    def test_split_risk_without_delimiter(self) -> None:
        self.assertIsNone(split_risk("Unclear scope"))

    def test_extract_key_values_ignores_plain_text(self) -> None:
        self.assertEqual(extract_key_values("no pairs here"), {})

    def test_empty_plan(self) -> None:
        parsed = parse_plan_content("")

        self.assertIsNone(parsed.summary)
        self.assertEqual(parsed.techStack, {})
        self.assertEqual(parsed.phases, [])


if __name__ == "__main__":
    unittest.main()
