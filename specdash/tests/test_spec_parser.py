import unittest

from specdash.parsers.spec import normalize_feature_status, parse_spec_content

SPEC = """# Feature Specification: User Login

**Feature Branch**: `001-user-login`
**Created**: 2025-01-15
**Status**: In Progress

## User Scenarios & Testing

### User Story 1 - Sign in (Priority: P1)

A user signs in with email.

**Why this priority**: core flow.

1. **Given** valid credentials, **When** submitting, **Then** the user is signed in

### User Story 2 - Reset password

Users reset their password.

## Requirements

### Functional Requirements

- **FR-001**: Users must log in
- FR-002 - System must lock accounts
- nfr-002 latency under 200ms
- Not a requirement
"""


class SpecParserTests(unittest.TestCase):
    def test_title_and_metadata(self) -> None:
        parsed = parse_spec_content(SPEC)

        self.assertEqual(parsed.title, "User Login")
        self.assertEqual(parsed.featureBranch, "001-user-login")
        self.assertEqual(parsed.createdDate, "2025-01-15")
        self.assertEqual(parsed.status, "in_progress")

    def test_user_stories_with_priority_default(self) -> None:
        stories = parse_spec_content(SPEC).userStories

        self.assertEqual([s.title for s in stories], ["User Story 1 - Sign in", "User Story 2 - Reset password"])
        self.assertEqual([s.priority for s in stories], ["P1", "P2"])
        self.assertEqual(stories[0].description, "A user signs in with email.")
        self.assertEqual(
            stories[0].acceptanceScenarios,
            ["Given valid credentials, When submitting, Then the user is signed in"],
        )
        self.assertEqual(stories[1].description, "Users reset their password.")

    def test_requirements_are_extracted_with_token_stripped(self) -> None:
        requirements = parse_spec_content(SPEC).requirements

        self.assertEqual([r.id for r in requirements], ["FR-001", "FR-002", "NFR-002"])
        self.assertEqual(requirements[0].description, "Users must log in")
        self.assertEqual(requirements[1].description, "System must lock accounts")
        self.assertEqual(requirements[2].description, "latency under 200ms")

    def test_defaults_when_metadata_missing(self) -> None:
        parsed = parse_spec_content("Just some prose.\n")

        self.assertIsNone(parsed.title)
        self.assertEqual(parsed.status, "draft")
        self.assertEqual(parsed.userStories, [])
        self.assertEqual(parsed.requirements, [])

    def test_last_status_wins(self) -> None:
        parsed = parse_spec_content("**Status**: Draft\n\nText.\n\n**Status**: Approved\n")

        self.assertEqual(parsed.status, "approved")

    def test_unknown_status_leaves_default(self) -> None:
        parsed = parse_spec_content("**Status**: Someday maybe\n")

        self.assertEqual(parsed.status, "draft")

    def test_frontmatter_seeds_fields(self) -> None:
        parsed = parse_spec_content("---\ntitle: From Frontmatter\nstatus: done\n---\n\nBody.\n")

        self.assertEqual(parsed.title, "From Frontmatter")
        self.assertEqual(parsed.status, "complete")

    def test_normalize_feature_status(self) -> None:
        self.assertEqual(normalize_feature_status("Completed"), "complete")
        self.assertEqual(normalize_feature_status("**in-progress**"), "in_progress")
        self.assertIsNone(normalize_feature_status(""))


if __name__ == "__main__":
    unittest.main()
