"""
Unit tests for change classification (Layer 2).

These tests verify that:
1. Groups are classified by size and side composition only
2. Updates pair old and new versions deterministically
3. Every raw difference is accounted for exactly once
4. Category suppression and exclusion stages run in the right order
"""

import pytest

from appdelta.diff.change_events import (
    AppDelta,
    ChangeRecord,
    ChangeType,
    classify_diff,
    classify_group,
    group_by_application,
    reformat_difference,
)
from appdelta.diff.exclusions import ExclusionRules
from appdelta.diff.snapshot_diff import RawDifference, Side, diff_snapshots
from appdelta.ingest.snapshot_ingest import AppRecord


# =============================================================================
# FIXTURES
# =============================================================================

def make_record(name: str, version: str = "", publisher: str = "", **kwargs) -> AppRecord:
    """Helper to create AppRecord objects for testing."""
    return AppRecord(display_name=name, display_version=version, publisher=publisher, **kwargs)


def classify(old, new, **kwargs):
    """Diff two record lists and classify with updates reported."""
    kwargs.setdefault("exclude_updates", False)
    return classify_diff(diff_snapshots(old, new), **kwargs)


# =============================================================================
# REFORMAT TESTS
# =============================================================================

class TestReformatDifference:

    def test_reformat_fields(self):
        record = make_record(
            "Foo 2.0", "2.0", "Foo Inc",
            install_date="20240213",
            install_location="C:\\Users\\alice\\AppData\\Local\\Foo"
        )
        delta = reformat_difference(RawDifference(record=record, side=Side.ONLY_IN_NEW))

        assert delta == AppDelta(
            application="Foo",
            publisher="Foo Inc",
            version="2.0",
            installed="2024-02-13",
            user="alice",
            side=Side.ONLY_IN_NEW,
            record=record
        )

    def test_publisher_falls_back_to_application(self):
        record = make_record("Notepad++", "8.0")
        delta = reformat_difference(RawDifference(record=record, side=Side.ONLY_IN_NEW))
        assert delta.publisher == "Notepad++"

    def test_group_by_application_is_case_sensitive(self):
        deltas = [
            reformat_difference(RawDifference(make_record("Foo"), Side.ONLY_IN_OLD)),
            reformat_difference(RawDifference(make_record("foo"), Side.ONLY_IN_NEW)),
        ]
        assert list(group_by_application(deltas)) == ["Foo", "foo"]


# =============================================================================
# SCENARIOS
# =============================================================================

class TestScenarios:

    def test_version_upgrade_is_updated(self):
        """Foo 1.0 -> Foo 2.0 is one update."""
        result = classify(
            [make_record("Foo 1.0", "1.0")],
            [make_record("Foo 2.0", "2.0")]
        )

        assert len(result.records) == 1
        record = result.records[0]
        assert record.change == ChangeType.UPDATED
        assert record.application == "Foo"
        assert record.old_version == "1.0"
        assert record.version == "2.0"

    def test_new_application_is_installed(self):
        result = classify([], [make_record("Notepad++", "8.0", "")])

        assert result.records == [ChangeRecord(
            change=ChangeType.INSTALLED,
            application="Notepad++",
            publisher="Notepad++",
            version="8.0"
        )]

    def test_missing_version_keeps_names_distinct(self):
        """Without a DisplayVersion the update counter is not normalized."""
        result = classify(
            [make_record("Java 8 Update 381")],
            [make_record("Java 8 Update 391")]
        )

        assert result.updated_count == 0
        assert [(r.change, r.application) for r in result.records] == [
            (ChangeType.UNINSTALLED, "Java 8 Update 381"),
            (ChangeType.INSTALLED, "Java 8 Update 391"),
        ]

    def test_publisher_exclusion_removes_before_classification(self):
        rules = ExclusionRules.from_terms(publisher_terms=["Acme"])
        result = classify(
            [make_record("Widget 1.0", "1.0", "Other")],
            [make_record("Gadget", "3.1", "Acme Corp"), make_record("Widget 1.0", "1.0", "Other")],
            exclusions=rules
        )

        assert result.records == []
        assert result.excluded_count == 1
        for change_type in ChangeType:
            assert all(r.application != "Gadget" for r in result.records_by_type(change_type))

    def test_all_differences_accounted_for(self):
        old = [make_record("Alpha", "1"), make_record("Beta 1.0", "1.0")]
        new = [make_record("Beta 2.0", "2.0"), make_record("Gamma", "5")]

        result = classify(old, new)

        assert result.uninstalled_count == 1
        assert result.installed_count == 1
        assert result.updated_count == 1
        assert {r.application for r in result.records} == {"Alpha", "Beta", "Gamma"}


# =============================================================================
# GROUP CLASSIFICATION TESTS
# =============================================================================

class TestGroupClassification:

    def test_empty_group(self):
        assert classify_group([]) == []

    def test_multiple_versions_pair_first_in_order(self):
        """Two stale versions replaced by two new ones: first old pairs with first new."""
        result = classify(
            [make_record("Foo 1.0", "1.0"), make_record("Foo 1.5", "1.5")],
            [make_record("Foo 2.0", "2.0"), make_record("Foo 2.5", "2.5")]
        )

        assert len(result.records) == 1
        assert result.records[0].change == ChangeType.UPDATED
        assert result.records[0].old_version == "1.0"
        assert result.records[0].version == "2.0"

    def test_one_sided_group_is_never_updated(self):
        """Two new versions sharing a name are two installs."""
        result = classify([], [make_record("Foo 1.0", "1.0"), make_record("Foo 2.0", "2.0")])

        assert result.updated_count == 0
        assert [r.version for r in result.records_by_type(ChangeType.INSTALLED)] == ["1.0", "2.0"]

    def test_group_left_one_sided_by_exclusion(self):
        rules = ExclusionRules.from_terms(publisher_terms=["Acme"])
        result = classify(
            [make_record("Foo 1.0", "1.0", "Old Vendor")],
            [make_record("Foo 2.0", "2.0", "Acme")],
            exclusions=rules
        )

        assert [(r.change, r.version) for r in result.records] == [(ChangeType.UNINSTALLED, "1.0")]

    def test_updated_takes_details_from_new_version(self):
        result = classify(
            [make_record("Foo 1.0", "1.0", "Foo Inc", install_date="20230101")],
            [make_record(
                "Foo 2.0", "2.0", "Foo Inc",
                install_date="20240213",
                install_location="C:\\Users\\alice\\AppData\\Local\\Foo"
            )]
        )

        record = result.records[0]
        assert record.installed == "2024-02-13"
        assert record.user == "alice"
        assert record.publisher == "Foo Inc"

    def test_uninstalled_has_no_old_version(self):
        result = classify([make_record("Foo", "1.0")], [])
        assert result.records[0].change == ChangeType.UNINSTALLED
        assert result.records[0].old_version == ""
        assert result.records[0].version == "1.0"


# =============================================================================
# SUPPRESSION AND EXCLUSION ORDER
# =============================================================================

class TestSuppression:

    @pytest.fixture
    def mixed(self):
        old = [make_record("Alpha", "1"), make_record("Beta 1.0", "1.0")]
        new = [make_record("Beta 2.0", "2.0"), make_record("Gamma", "5")]
        return diff_snapshots(old, new)

    def test_updates_suppressed_by_default(self, mixed):
        result = classify_diff(mixed)

        assert result.updated_count == 0
        assert result.installed_count == 1
        assert result.uninstalled_count == 1
        assert result.suppressed_count == 1

    def test_exclude_installs(self, mixed):
        result = classify_diff(mixed, exclude_installs=True, exclude_updates=False)
        assert {r.change for r in result.records} == {ChangeType.UNINSTALLED, ChangeType.UPDATED}

    def test_exclude_uninstalls(self, mixed):
        result = classify_diff(mixed, exclude_uninstalls=True, exclude_updates=False)
        assert {r.change for r in result.records} == {ChangeType.INSTALLED, ChangeType.UPDATED}

    def test_per_type_exclusion_only_hits_its_type(self, mixed):
        rules = ExclusionRules.from_terms(install_terms=["beta", "gamma"])
        result = classify_diff(mixed, exclude_updates=False, exclusions=rules)

        assert [(r.change, r.application) for r in result.records] == [
            (ChangeType.UNINSTALLED, "Alpha"),
            (ChangeType.UPDATED, "Beta"),
        ]

    def test_update_exclusion(self, mixed):
        rules = ExclusionRules.from_terms(update_terms=["BETA"])
        result = classify_diff(mixed, exclude_updates=False, exclusions=rules)

        assert result.updated_count == 0
        assert result.suppressed_count == 1

    def test_global_exclusion_matches_normalized_application(self, mixed):
        rules = ExclusionRules.from_terms(global_terms=["Beta"])
        result = classify_diff(mixed, exclude_updates=False, exclusions=rules)

        assert result.excluded_count == 2
        assert {r.application for r in result.records} == {"Alpha", "Gamma"}

    def test_to_dict(self, mixed):
        data = classify_diff(mixed).to_dict()
        assert data["total_changes"] == 2
        assert data["records"][0]["Change"] in ("Installed", "Uninstalled")
