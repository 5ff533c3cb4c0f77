"""Tests for the interaction-pattern policy table."""

import pytest

from sportello.config import ISSUE_CODES, InteractionPattern, Severity
from sportello.workflow.pattern_policy import PATTERN_POLICY, PageFeature, get_pattern_rule
from sportello.workflow.validators._markup_patterns import FEATURE_DETECTORS


class TestPolicyTable:
    def test_every_pattern_has_a_row(self):
        assert set(PATTERN_POLICY) == set(InteractionPattern)

    def test_rows_are_keyed_by_their_own_pattern(self):
        for pattern, rule in PATTERN_POLICY.items():
            assert rule.pattern is pattern

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            PATTERN_POLICY[InteractionPattern.DIRECT_TOUCH] = None

    def test_every_feature_has_a_detector(self):
        assert set(FEATURE_DETECTORS) == set(PageFeature)

    def test_rule_codes_are_known_issue_codes(self):
        for rule in PATTERN_POLICY.values():
            for feature_rule in (*rule.required, *rule.forbidden):
                assert feature_rule.code in ISSUE_CODES

    def test_directional_patterns_require_controls(self):
        directional = (InteractionPattern.DIRECTIONAL_MOVEMENT, InteractionPattern.HYBRID_CONTROLS)
        for pattern in directional:
            required = {rule.feature for rule in PATTERN_POLICY[pattern].required}
            assert PageFeature.DIRECTIONAL_CONTROLS in required

    @pytest.mark.parametrize(
        "pattern,code",
        [
            (InteractionPattern.DIRECT_TOUCH, "UNWANTED_DIRECTIONAL_CONTROLS"),
            (InteractionPattern.FORM_BASED, "UNWANTED_DIRECTIONAL_CONTROLS"),
            (InteractionPattern.PASSIVE_SCROLL, "UNWANTED_GAME_CONTROLS"),
        ],
    )
    def test_non_directional_patterns_forbid_controls_as_critical(self, pattern, code):
        forbidden = [
            rule
            for rule in PATTERN_POLICY[pattern].forbidden
            if rule.feature is PageFeature.DIRECTIONAL_CONTROLS
        ]
        assert len(forbidden) == 1
        assert forbidden[0].code == code
        assert forbidden[0].severity is Severity.CRITICAL

    def test_direct_touch_breakpoints_only_for_games(self):
        rule = PATTERN_POLICY[InteractionPattern.DIRECT_TOUCH]
        breakpoints = [r for r in rule.required if r.feature is PageFeature.RESPONSIVE_BREAKPOINTS]
        assert breakpoints[0].games_only
        assert breakpoints[0].severity is Severity.WARNING


class TestGetPatternRule:
    def test_accepts_enum(self):
        rule = get_pattern_rule(InteractionPattern.FORM_BASED)
        assert rule.pattern is InteractionPattern.FORM_BASED

    def test_accepts_string_value(self):
        rule = get_pattern_rule("passive-scroll")
        assert rule.pattern is InteractionPattern.PASSIVE_SCROLL

    def test_none_is_direct_touch(self):
        assert get_pattern_rule(None).pattern is InteractionPattern.DIRECT_TOUCH

    def test_unknown_string_raises(self):
        with pytest.raises(ValueError):
            get_pattern_rule("telepathy")


class TestDescribe:
    def test_lists_required_and_forbidden_features(self):
        text = get_pattern_rule(InteractionPattern.DIRECT_TOUCH).describe()
        assert text.startswith("NO D-pad.")
        assert "REQUIRED: touch/click or keyboard event handlers" in text
        assert "REQUIRED (games): responsive breakpoints" in text
        assert "FORBIDDEN: directional control surface" in text

    def test_passive_scroll_has_no_requirements(self):
        text = get_pattern_rule(InteractionPattern.PASSIVE_SCROLL).describe()
        assert "REQUIRED" not in text
        assert text.count("FORBIDDEN") == 2
