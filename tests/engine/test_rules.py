"""
Tests for the rule catalog and evaluator.
Each of the 18 rules is checked against synthetic signal sets.
"""
import pytest
from types import MappingProxyType
from deal_doctor.engine import rules
from deal_doctor.engine.rules import (
    BASE_CONFIDENCE,
    CONFIDENCE_BONUSES,
    DIAGNOSIS_EXECUTION_ORDER,
    DIAGNOSIS_RULES,
    RULE_EVIDENCE,
    calculate_confidence,
    collect_evidence,
    evaluate_rules,
    get_highest_severity,
    severity_rank,
)
from deal_doctor.models.diagnosis import DiagnosisCode, RuleMatch, Severity

RULES_BY_ID = {rule.id: rule for rule in DIAGNOSIS_RULES}


class TestCatalogShape:
    """The catalog is a fixed table of 18 rules, 3 per code."""

    def test_rule_count(self):
        assert len(DIAGNOSIS_RULES) == 18

    def test_three_rules_per_code(self):
        for code in DiagnosisCode:
            assert len([r for r in DIAGNOSIS_RULES if r.code == code]) == 3

    def test_canonical_order(self):
        assert [r.id for r in DIAGNOSIS_RULES] == [
            "PG-1", "PG-2", "PG-3",
            "ST-1", "ST-2", "ST-3",
            "EB-1", "EB-2", "EB-3",
            "BI-1", "BI-2", "BI-3",
            "UR-1", "UR-2", "UR-3",
            "NV-1", "NV-2", "NV-3",
        ]

    def test_severities(self):
        medium = {"PG-1", "ST-1", "ST-3", "EB-3", "BI-1", "UR-1", "NV-1"}
        for rule in DIAGNOSIS_RULES:
            expected = Severity.MEDIUM if rule.id in medium else Severity.HIGH
            assert rule.severity == expected, rule.id

    def test_execution_order(self):
        assert DIAGNOSIS_EXECUTION_ORDER == (
            DiagnosisCode.SALES_PROCESS_GAPS,
            DiagnosisCode.SINGLE_THREADED,
            DiagnosisCode.NO_ECONOMIC_BUYER,
            DiagnosisCode.NO_BUSINESS_IMPACT,
            DiagnosisCode.WEAK_URGENCY,
            DiagnosisCode.NO_NEW_VALUE,
        )

    def test_every_rule_has_evidence(self):
        assert set(RULE_EVIDENCE) == set(RULES_BY_ID)

    def test_static_tables_are_read_only(self):
        with pytest.raises(TypeError):
            BASE_CONFIDENCE[DiagnosisCode.SINGLE_THREADED] = 0.9
        with pytest.raises(TypeError):
            CONFIDENCE_BONUSES["ST-1"] = 0.5
        with pytest.raises(TypeError):
            RULE_EVIDENCE["ST-1"] = "changed"

    def test_rules_are_frozen(self):
        with pytest.raises(AttributeError):
            DIAGNOSIS_RULES[0].severity = Severity.LOW


# (rule id, overrides that make it fire, overrides that keep it quiet)
RULE_TRUTH_TABLE = [
    ("PG-1", dict(discovery_summary_present=False), dict()),
    ("PG-2", dict(next_step_scheduled=False), dict()),
    ("PG-3", dict(discovery_summary_present=False, next_step_scheduled=False),
     dict(discovery_summary_present=False)),
    ("ST-1", dict(contact_count=1), dict(contact_count=2)),
    ("ST-2", dict(contact_count=1, days_in_stage=15), dict(contact_count=1, days_in_stage=14)),
    ("ST-3", dict(contact_count=2, cross_functional_contact_present=False),
     dict(contact_count=3, cross_functional_contact_present=False)),
    ("EB-1", dict(decision_maker_present=False), dict()),
    ("EB-2", dict(decision_maker_present=False, days_in_stage=22),
     dict(decision_maker_present=False, days_in_stage=21)),
    ("EB-3", dict(budget_discussed=False, days_in_stage=15), dict(budget_discussed=False, days_in_stage=14)),
    ("BI-1", dict(metrics_mentioned=False), dict()),
    ("BI-2", dict(metrics_mentioned=False, days_in_stage=22), dict(metrics_mentioned=False, days_in_stage=21)),
    ("BI-3", dict(budget_discussed=False, metrics_mentioned=False), dict(budget_discussed=False)),
    ("UR-1", dict(timeline_defined=False), dict()),
    ("UR-2", dict(timeline_defined=False, consequence_of_inaction_defined=False),
     dict(timeline_defined=False)),
    ("UR-3", dict(timeline_defined=False, days_in_stage=22), dict(timeline_defined=False, days_in_stage=21)),
    ("NV-1", dict(new_value_sent_post_demo=False), dict()),
    ("NV-2", dict(new_value_sent_post_demo=False, days_since_last_activity=11),
     dict(new_value_sent_post_demo=False, days_since_last_activity=10)),
    ("NV-3", dict(new_value_sent_post_demo=False, days_in_stage=15),
     dict(new_value_sent_post_demo=False, days_in_stage=14)),
]


class TestRulePredicates:

    @pytest.mark.parametrize("rule_id,fires,quiet", RULE_TRUTH_TABLE)
    def test_rule_fires(self, make_signals, rule_id, fires, quiet):
        assert RULES_BY_ID[rule_id].condition(make_signals(**fires)) is True

    @pytest.mark.parametrize("rule_id,fires,quiet", RULE_TRUTH_TABLE)
    def test_rule_stays_quiet(self, make_signals, rule_id, fires, quiet):
        assert RULES_BY_ID[rule_id].condition(make_signals(**quiet)) is False

    def test_zero_contacts_trips_cross_functional_rule(self, make_signals):
        signals = make_signals(contact_count=0, cross_functional_contact_present=False)

        assert RULES_BY_ID["ST-1"].condition(signals) is False
        assert RULES_BY_ID["ST-3"].condition(signals) is True


class TestEvaluateRules:

    def test_healthy_signals_match_nothing(self, make_signals):
        assert evaluate_rules(make_signals()) == {}

    def test_groups_by_code_in_catalog_order(self, make_signals):
        signals = make_signals(
            contact_count=1,
            cross_functional_contact_present=False,
            days_in_stage=20,
            days_since_last_activity=20,
        )

        result = evaluate_rules(signals)

        assert list(result) == [DiagnosisCode.SINGLE_THREADED]
        assert [m.rule_id for m in result[DiagnosisCode.SINGLE_THREADED]] == ["ST-1", "ST-2", "ST-3"]
        assert [m.severity for m in result[DiagnosisCode.SINGLE_THREADED]] == [
            Severity.MEDIUM, Severity.HIGH, Severity.MEDIUM,
        ]

    def test_absent_code_means_no_match(self, make_signals):
        result = evaluate_rules(make_signals(timeline_defined=False))

        assert DiagnosisCode.WEAK_URGENCY in result
        assert DiagnosisCode.NO_NEW_VALUE not in result

    def test_all_codes_can_match_at_once(self, make_signals):
        signals = make_signals(
            contact_count=1,
            decision_maker_present=False,
            cross_functional_contact_present=False,
            days_in_stage=30,
            days_since_last_activity=30,
            next_step_scheduled=False,
            budget_discussed=False,
            metrics_mentioned=False,
            new_value_sent_post_demo=False,
            timeline_defined=False,
            consequence_of_inaction_defined=False,
            discovery_summary_present=False,
        )

        result = evaluate_rules(signals)

        assert set(result) == set(DiagnosisCode)
        assert sum(len(matches) for matches in result.values()) == 18


def matches(*rule_ids, severity=Severity.HIGH):
    return [RuleMatch(rule_id=rid, severity=severity) for rid in rule_ids]


class TestConfidence:

    def test_base_confidence_only(self):
        assert calculate_confidence(DiagnosisCode.WEAK_URGENCY, matches("UR-1")) == pytest.approx(0.65)

    def test_no_per_match_bonus_for_economic_buyer(self):
        """EB-1..EB-3 together: only EB-2's bonus applies."""
        result = calculate_confidence(DiagnosisCode.NO_ECONOMIC_BUYER, matches("EB-1", "EB-2", "EB-3"))
        assert result == pytest.approx(0.8)

    def test_per_match_bonus_for_single_threaded(self):
        result = calculate_confidence(DiagnosisCode.SINGLE_THREADED, matches("ST-1", "ST-2", "ST-3"))
        assert result == pytest.approx(0.8)

    def test_per_match_bonus_for_business_impact(self):
        result = calculate_confidence(DiagnosisCode.NO_BUSINESS_IMPACT, matches("BI-1", "BI-3"))
        assert result == pytest.approx(0.75)

    def test_single_match_gets_no_extra_rule_bonus(self):
        result = calculate_confidence(DiagnosisCode.SINGLE_THREADED, matches("ST-3"))
        assert result == pytest.approx(0.6)

    def test_rule_bonuses(self):
        assert calculate_confidence(
            DiagnosisCode.SALES_PROCESS_GAPS, matches("PG-1", "PG-2", "PG-3")
        ) == pytest.approx(0.8)
        assert calculate_confidence(
            DiagnosisCode.NO_NEW_VALUE, matches("NV-1", "NV-2", "NV-3")
        ) == pytest.approx(0.75)

    def test_capped_at_one(self):
        many = matches("ST-1", "ST-2", "ST-3", "ST-1", "ST-2", "ST-3")
        assert calculate_confidence(DiagnosisCode.SINGLE_THREADED, many) == 1.0


class TestSeverity:

    def test_high_beats_medium(self):
        mixed = matches("ST-1", severity=Severity.MEDIUM) + matches("ST-2")
        assert get_highest_severity(mixed) == Severity.HIGH

    def test_all_medium(self):
        assert get_highest_severity(matches("ST-1", "ST-3", severity=Severity.MEDIUM)) == Severity.MEDIUM

    def test_empty_defaults_to_medium(self):
        assert get_highest_severity([]) == Severity.MEDIUM

    def test_critical_beats_high(self):
        mixed = matches("X-1") + matches("X-2", severity=Severity.CRITICAL)
        assert get_highest_severity(mixed) == Severity.CRITICAL

    def test_rank_order(self):
        assert severity_rank(Severity.CRITICAL) < severity_rank(Severity.HIGH)
        assert severity_rank(Severity.HIGH) < severity_rank(Severity.MEDIUM)
        assert severity_rank(Severity.MEDIUM) < severity_rank(Severity.LOW)

    def test_unknown_severity_is_medium(self):
        odd = RuleMatch.model_construct(rule_id="X-1", severity="urgent")

        assert severity_rank("urgent") == severity_rank(Severity.MEDIUM)
        assert get_highest_severity([odd]) == Severity.MEDIUM


class TestEvidence:

    def test_evidence_in_match_order(self):
        assert collect_evidence(matches("UR-1", "UR-2")) == [
            "No decision timeline defined",
            "No consequence of delay discussed",
        ]

    def test_repeated_rule_reported_once(self):
        assert collect_evidence(matches("ST-1", "ST-1")) == ["Only 1 contact associated"]

    def test_shared_text_deduplicated_first_wins(self, monkeypatch):
        shared = dict(RULE_EVIDENCE)
        shared["BI-3"] = shared["BI-1"]
        monkeypatch.setattr(rules, "RULE_EVIDENCE", MappingProxyType(shared))

        assert collect_evidence(matches("BI-1", "BI-2", "BI-3")) == [
            "No quantified impact found in notes",
            "No metrics discussed for 21+ days",
        ]

    def test_unknown_rule_has_no_evidence(self):
        assert collect_evidence(matches("ZZ-9")) == []
