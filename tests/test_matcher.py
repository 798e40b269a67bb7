"""Tests for the matching engine."""

import pytest

from cpe_shield.core.matcher import DEFAULT_BOUNDARY_RULES, MatchingEngine, vendor_product_rule
from cpe_shield.core.models import MatchResult, RangeEntry
from cpe_shield.core.version import Version


def entry(version: str, affects_all_prior: bool = False, vendor: str = "v", product: str = "p") -> RangeEntry:
    """Build an entry from a version string."""
    return RangeEntry.from_cpe(f"cpe:/a:{vendor}:{product}:{version}", affects_all_prior)


@pytest.fixture
def engine():
    """Engine with the default boundary rules."""
    return MatchingEngine()


class TestSentinelEntries:
    """Entries covering every version of a product."""

    @pytest.mark.parametrize("identified", [None, "-", "0.1", "1.0.0", "99"])
    def test_dash_entry_matches_everything(self, engine, identified):
        """A '-' entry matches any identified version, including unknown."""
        result = engine.match(identified, [entry("-")], "v", "p")
        assert result == MatchResult(cpe="cpe:/a:v:p:-", version_text="-", affects_all_prior=False)

    def test_entry_without_version_matches(self, engine):
        """A CPE without a version component covers all versions."""
        candidates = [RangeEntry.from_cpe("cpe:/a:v:p")]
        assert engine.match("3.0", candidates, "v", "p").matched_version == "-"

    def test_sentinel_wins_over_earlier_entries(self, engine):
        """The sentinel is returned even when other entries come first."""
        candidates = [entry("1.0"), entry("2.0", True), entry("-")]
        assert engine.match("1.0", candidates, "v", "p").cpe == "cpe:/a:v:p:-"

    def test_unparseable_candidate_matches(self, engine):
        """A candidate whose version cannot be parsed degrades to all versions."""
        result = engine.match("5.0", [entry("garbage")], "v", "p")
        assert result is not None
        assert result.version_text == "garbage"


class TestUnknownIdentifiedVersion:
    """Matching when the identified version is unknown."""

    def test_unknown_version_only_matches_open_ranges(self, engine):
        """None matches the open range, never the exact entry."""
        candidates = [entry("1.0.0"), entry("2.0.0", True)]
        result = engine.match(None, candidates, "v", "p")
        assert result.version_text == "2.0.0"
        assert result.affects_all_prior is True

    def test_unknown_version_without_open_range(self, engine):
        """Exact entries alone never match an unknown version."""
        assert engine.match(None, [entry("1.0.0"), entry("2.0.0")], "v", "p") is None

    @pytest.mark.parametrize("identified", ["", "-", "unknown"])
    def test_unparseable_identified_version(self, engine, identified):
        """Unparseable identified versions are treated as unknown."""
        result = engine.match(identified, [entry("1.0.0"), entry("2.0.0", True)], "v", "p")
        assert result.version_text == "2.0.0"


class TestExactAndOpenRanges:
    """Exact and open-range passes."""

    def test_exact_beats_open_range(self, engine):
        """An exact entry is preferred to an open range that also covers the version."""
        candidates = [entry("2.5.0", True), entry("1.0.0")]
        result = engine.match("1.0.0", candidates, "v", "p")
        assert result.version_text == "1.0.0"
        assert result.affects_all_prior is False

    def test_open_range_accepts_earlier_version(self, engine):
        """A version before the range bound matches."""
        result = engine.match("2.0.0", [entry("2.5.0", True)], "v", "p")
        assert result.version_text == "2.5.0"
        assert result.affects_all_prior is True

    def test_open_range_includes_bound(self, engine):
        """The range bound itself is affected."""
        assert engine.match("2.5.0", [entry("2.5.0", True)], "v", "p") is not None

    def test_open_range_rejects_later_version(self, engine):
        """A version after the bound does not match."""
        assert engine.match("2.5.1", [entry("2.5.0", True)], "v", "p") is None

    def test_no_match_above_all_ranges(self, engine):
        """3.0.0 is beyond both 1.9.0 and 2.5.0."""
        candidates = [entry("1.9.0", True), entry("2.5.0", True)]
        assert engine.match("3.0.0", candidates, "v", "p") is None

    def test_exact_entry_must_be_equal(self, engine):
        """Exact entries do not act as ranges."""
        assert engine.match("1.0", [entry("1.1")], "v", "p") is None
        assert engine.match("1.0", [entry("1.0.0")], "v", "p") is None

    def test_exact_match_with_update(self, engine):
        """Updates take part in exact matching."""
        candidates = [RangeEntry.from_cpe("cpe:/a:v:p:2.0:sp1")]
        assert engine.match(Version.from_parts("2.0", "sp1"), candidates, "v", "p") is not None
        assert engine.match("2.0", candidates, "v", "p") is None

    def test_first_open_range_in_order_wins(self, engine):
        """Among covering ranges the first one given is returned."""
        candidates = [entry("2.9", True), entry("2.5", True)]
        assert engine.match("2.0", candidates, "v", "p").version_text == "2.9"

    def test_accepts_version_objects(self, engine):
        """The identified version may be passed already parsed."""
        assert engine.match(Version.parse("1.0"), [entry("1.0")], "v", "p") is not None

    def test_empty_candidates(self, engine):
        """No candidates means no match."""
        assert engine.match("1.0", [], "v", "p") is None

    def test_candidates_may_be_any_iterable(self, engine):
        """Generators are consumed once."""
        assert engine.match("1.0", (e for e in [entry("1.0")]), "v", "p") is not None


class TestMajorVersionSkipFilter:
    """The major-version anchor and skip filter."""

    def test_other_release_line_is_ignored(self, engine):
        """With a range for the 2.x line, a 3.x range does not cover 2.5."""
        candidates = [entry("3.0", True), entry("2.1", True)]
        assert engine.match("2.5", candidates, "v", "p") is None

    def test_matching_release_line_still_applies(self, engine):
        """The anchor's own line is still checked."""
        candidates = [entry("3.0", True), entry("2.1", True)]
        assert engine.match("2.0", candidates, "v", "p").version_text == "2.1"

    def test_filter_inactive_without_anchor(self, engine):
        """When no range shares the identified major, ordering alone decides."""
        candidates = [entry("3.0", True), entry("4.0", True)]
        assert engine.match("2.5", candidates, "v", "p").version_text == "3.0"

    def test_filter_inactive_with_single_major(self, engine):
        """Ranges from one release line only never trigger the filter."""
        candidates = [entry("3.0", True), entry("3.4", True)]
        assert engine.match("2.5", candidates, "v", "p").version_text == "3.0"

    def test_exact_entry_in_anchor_line_matches(self, engine):
        """Exact entries of the anchor's line survive the filter."""
        candidates = [entry("1.9", True), entry("2.3", True), entry("1.5")]
        result = engine.match("1.5", candidates, "v", "p")
        assert result.version_text == "1.5"
        assert result.affects_all_prior is False

    def test_several_anchor_candidates(self, engine):
        """Several ranges in the identified line are all kept."""
        candidates = [entry("3.0", True), entry("2.1", True), entry("2.8", True)]
        assert engine.match("2.5", candidates, "v", "p").version_text == "2.8"


class TestBoundaryRules:
    """Vendor/product rules that keep open ranges within a major version."""

    def test_struts_range_does_not_cross_major(self, engine):
        """Struts 2.x ranges do not cover Struts 1.x."""
        candidates = [entry("2.3.1", True, "apache", "struts")]
        assert engine.match("1.2.9", candidates, "apache", "struts") is None

    def test_struts_range_within_major(self, engine):
        """Within the same major version the range applies."""
        candidates = [entry("2.3.1", True, "apache", "struts")]
        assert engine.match("2.0.5", candidates, "apache", "struts") is not None

    def test_rule_is_case_insensitive(self, engine):
        """Vendor and product names match regardless of case."""
        candidates = [entry("2.3.1", True, "apache", "struts")]
        assert engine.match("1.2.9", candidates, "Apache", "Struts") is None

    def test_other_products_cross_major(self, engine):
        """Without a rule, open ranges cover earlier major versions."""
        candidates = [entry("2.3.1", True, "apache", "tomcat")]
        assert engine.match("1.2.9", candidates, "apache", "tomcat") is not None

    def test_rules_can_be_replaced(self):
        """An engine without rules lets struts ranges cross majors."""
        engine = MatchingEngine(boundary_rules=[])
        candidates = [entry("2.3.1", True, "apache", "struts")]
        assert engine.match("1.2.9", candidates, "apache", "struts") is not None

    def test_rules_can_be_added(self, engine):
        """Additional products can be given the rule."""
        engine.add_boundary_rule(vendor_product_rule("python", "python"))
        candidates = [entry("3.4", True, "python", "python")]
        assert engine.match("2.7", candidates, "python", "python") is None
        assert engine.keeps_major_boundary("apache", "struts")
        assert len(engine.boundary_rules) == len(DEFAULT_BOUNDARY_RULES) + 1

    def test_custom_predicate(self):
        """Any callable over vendor and product works as a rule."""
        engine = MatchingEngine(boundary_rules=[lambda vendor, product: vendor == "acme"])
        candidates = [entry("5.0", True, "acme", "anvil")]
        assert engine.match("4.9", candidates, "acme", "anvil") is None
        assert engine.match("5.0", candidates, "acme", "anvil") is not None

    def test_rule_does_not_affect_exact_entries(self, engine):
        """Exact entries are unaffected by boundary rules."""
        candidates = [entry("1.2.9", False, "apache", "struts")]
        assert engine.match("1.2.9", candidates, "apache", "struts") is not None
