import unittest

from specdash.parsers.data_model import (
    parse_attribute,
    parse_data_model_content,
    parse_relation_type,
    parse_relationship,
)

DATA_MODEL = """# Data Model

## Overview

Accounts and their sessions.

## User

Represents a registered account.

### Attributes

- id (uuid, primary key): generated
- email (string): unique
- display_name

### Relationships

- has many Session (1:N)
- belongs to Organization

### Validation Rules

- email must be a valid address

## Session

**Fields**:

| Field | Type | Notes |
|-------|------|-------|
| token | string | unique |
| expires_at | datetime | |

## Relationships

- User 1:N Session
"""


class DataModelParserTests(unittest.TestCase):
    def test_overview_and_entities(self) -> None:
        parsed = parse_data_model_content(DATA_MODEL)

        self.assertEqual(parsed.overview, "Accounts and their sessions.")
        self.assertEqual([e.name for e in parsed.entities], ["User", "Session"])
        self.assertEqual(parsed.entities[0].description, "Represents a registered account.")
        self.assertIsNone(parsed.entities[1].description)

    def test_attribute_list_items(self) -> None:
        user = parse_data_model_content(DATA_MODEL).entities[0]

        self.assertEqual(
            [(a.name, a.type, a.constraints) for a in user.attributes],
            [
                ("id", "uuid", "primary key, generated"),
                ("email", "string", "unique"),
                ("display_name", "string", None),
            ],
        )

    def test_relationships_and_validation_rules(self) -> None:
        user = parse_data_model_content(DATA_MODEL).entities[0]

        self.assertEqual([(r.target, r.type) for r in user.relationships], [("Session", "1:N"), ("Organization", "1:1")])
        self.assertEqual(user.validationRules, ["email must be a valid address"])

    def test_attribute_table_after_bold_label(self) -> None:
        session = parse_data_model_content(DATA_MODEL).entities[1]

        self.assertEqual(
            [(a.name, a.type, a.constraints) for a in session.attributes],
            [("token", "string", "unique"), ("expires_at", "datetime", None)],
        )

    def test_relation_type_keywords(self) -> None:
        self.assertEqual(parse_relation_type("one-to-many"), "1:N")
        self.assertEqual(parse_relation_type("many-to-one"), "N:1")
        self.assertEqual(parse_relation_type("N:N via tags"), "N:N")
        self.assertEqual(parse_relation_type("plain"), "1:1")

    def test_leaf_helpers(self) -> None:
        self.assertIsNone(parse_relationship("is related somehow"))
        attribute = parse_attribute("created_at (timestamp)")
        assert attribute is not None
        self.assertEqual((attribute.name, attribute.type, attribute.constraints), ("created_at", "timestamp", None))

    def test_empty_document(self) -> None:
        parsed = parse_data_model_content("")

        self.assertIsNone(parsed.overview)
        self.assertEqual(parsed.entities, [])


if __name__ == "__main__":
    unittest.main()
