"""Tests for risk scoring module."""

from datetime import date

import pytest

from risk_dashboard.ingestion.schemas import RiskDraft, RiskInput, RiskItem, RiskStatus
from risk_dashboard.scoring import (
    LEVEL_NAMES,
    RISK_LEVELS,
    build_risk_item,
    classify_tier,
    compute_metrics,
    compute_residual_score,
    compute_score,
    summarize,
    update_risk_item,
    update_risk_status,
    validate_mitigation_effectiveness,
    validate_probability_impact,
    validate_risk_input,
)


class TestRiskLevels:
    """Test tier definitions and classification."""

    def test_thresholds_strictly_increasing(self):
        """Tiers are ordered by unique ascending thresholds."""
        thresholds = [level.threshold for level in RISK_LEVELS]
        assert thresholds == sorted(set(thresholds))
        assert thresholds[0] == 1

    @pytest.mark.parametrize(
        "score,expected",
        [
            (1, "LOWEST"),
            (2, "VERY LOW"),
            (3, "LOW"),
            (4, "MEDIUM LOW"),
            (5, "MEDIUM LOW"),
            (6, "MEDIUM HIGH"),
            (8, "MEDIUM HIGH"),
            (9, "HIGHEST"),
            (81, "HIGHEST"),
        ],
    )
    def test_boundaries(self, score, expected):
        """Scores land in the tier with the largest threshold they meet."""
        assert classify_tier(score).name == expected

    def test_fractional_scores_compare_unrounded(self):
        """Residual scores between thresholds are not rounded up."""
        assert classify_tier(5.99).name == "MEDIUM LOW"
        assert classify_tier(8.999).name == "MEDIUM HIGH"
        assert classify_tier(1.5).name == "LOWEST"

    @pytest.mark.parametrize("score", [0, 0.3, 0.999, -4])
    def test_below_lowest_threshold_falls_back(self, score):
        """Scores below every threshold map to the lowest tier."""
        level = classify_tier(score)
        assert level.name == "LOWEST"
        assert level.threshold == 1

    def test_monotonic(self):
        """A higher score never maps to a lower tier."""
        scores = [s / 4 for s in range(0, 82 * 4)]
        thresholds = [classify_tier(s).threshold for s in scores]
        assert thresholds == sorted(thresholds)

    def test_presentation_attributes_carried(self):
        """Classification returns the full tier, colors included."""
        level = classify_tier(48)
        assert level.color
        assert level.text_color


class TestScores:
    """Test score and residual calculations."""

    def test_score_is_product(self):
        """Score is probability times impact over the whole rating domain."""
        for probability in range(1, 10):
            for impact in range(1, 10):
                score = compute_score(probability, impact)
                assert score == probability * impact
                assert 1 <= score <= 81

    def test_residual_no_mitigation(self):
        """Zero effectiveness leaves the score unchanged."""
        assert compute_residual_score(48, 0) == 48

    def test_residual_full_mitigation(self):
        """Full effectiveness removes all risk."""
        assert compute_residual_score(48, 1) == 0

    @pytest.mark.parametrize("effectiveness", [0.0, 0.1, 0.25, 0.5, 0.75, 0.9, 1.0])
    def test_residual_bounded_by_score(self, effectiveness):
        """Residual stays within [0, score] for effectiveness in [0, 1]."""
        for score in (0, 1, 7, 48, 81):
            residual = compute_residual_score(score, effectiveness)
            assert 0 <= residual <= score

    def test_residual_not_clamped(self):
        """Out-of-range effectiveness is computed, not clamped."""
        assert compute_residual_score(10, 1.5) == pytest.approx(-5)
        assert compute_residual_score(10, -0.5) == pytest.approx(15)


class TestComputeMetrics:
    """Test combined metric calculation."""

    def test_high_risk_partially_mitigated(self):
        """6 x 8 at 30% mitigation stays in the highest tier."""
        metrics = compute_metrics(6, 8, 0.3)

        assert metrics.score == 48
        assert metrics.risk_level == "HIGHEST"
        assert metrics.residual_score == pytest.approx(33.6)
        assert metrics.residual_risk_level == "HIGHEST"

    def test_low_risk_mostly_mitigated(self):
        """1 x 3 at 90% mitigation drops to the lowest tier."""
        metrics = compute_metrics(1, 3, 0.9)

        assert metrics.score == 3
        assert metrics.risk_level == "LOW"
        assert metrics.residual_score == pytest.approx(0.3)
        assert metrics.residual_risk_level == "LOWEST"

    def test_effectiveness_defaults_to_zero(self):
        """Omitted effectiveness means no mitigation."""
        metrics = compute_metrics(2, 3)

        assert metrics.residual_score == metrics.score == 6
        assert metrics.residual_risk_level == metrics.risk_level == "MEDIUM HIGH"

    def test_idempotent(self):
        """Identical inputs give identical outputs."""
        first = compute_metrics(7, 5, 0.1)
        second = compute_metrics(7, 5, 0.1)

        assert first == second
        assert first.residual_score == second.residual_score


class TestValidation:
    """Test validation messages."""

    def test_valid_ratings(self):
        assert validate_probability_impact(6, 8) == []

    def test_probability_out_of_range(self):
        """A zero probability is reported."""
        errors = validate_probability_impact(0, 5)

        assert len(errors) == 1
        assert "Probability" in errors[0]

    def test_both_out_of_range(self):
        """Every violation is reported, not just the first."""
        errors = validate_probability_impact(10, 0)

        assert len(errors) == 2
        assert any("Probability" in e for e in errors)
        assert any("Impact" in e for e in errors)

    @pytest.mark.parametrize("value", [1, 9])
    def test_rating_bounds_inclusive(self, value):
        assert validate_probability_impact(value, value) == []

    @pytest.mark.parametrize("effectiveness", [0, 0.5, 1])
    def test_effectiveness_valid(self, effectiveness):
        assert validate_mitigation_effectiveness(effectiveness) == []

    @pytest.mark.parametrize("effectiveness", [-0.01, 1.01, 30])
    def test_effectiveness_invalid(self, effectiveness):
        errors = validate_mitigation_effectiveness(effectiveness)
        assert len(errors) == 1
        assert "effectiveness" in errors[0]

    def test_risk_input_collects_all(self):
        """Form validation reports description and range problems together."""
        raw = RiskInput(description="  ", probability=0, impact=12, mitigation_effectiveness=2)

        errors = validate_risk_input(raw)

        assert len(errors) == 4
        assert errors[0] == "Description is required"

    def test_risk_input_valid(self, sample_risk_data):
        assert validate_risk_input(RiskInput(**sample_risk_data)) == []


class TestBuildRiskItem:
    """Test risk construction."""

    def test_derived_fields(self, sample_draft):
        """Derived fields come from the scoring functions."""
        assert isinstance(sample_draft, RiskDraft)
        assert not isinstance(sample_draft, RiskItem)
        assert sample_draft.score == 48
        assert sample_draft.risk_level == "HIGHEST"
        assert sample_draft.residual_score == pytest.approx(33.6)
        assert sample_draft.residual_risk_level == "HIGHEST"
        assert sample_draft.status == RiskStatus.IN_PROGRESS

    def test_timestamps_identical(self, sample_draft, fixed_now):
        """Creation and update times come from one clock read."""
        assert sample_draft.created_at == fixed_now
        assert sample_draft.updated_at == sample_draft.created_at

    def test_timestamps_default_to_now(self):
        draft = build_risk_item({"description": "x", "probability": 1, "impact": 1})
        assert draft.created_at == draft.updated_at
        assert draft.created_at.tzinfo is not None

    def test_defaults(self, fixed_now):
        """Status defaults to Open and effectiveness to zero."""
        draft = build_risk_item(
            RiskInput(description="Office flood", probability=2, impact=4),
            now=fixed_now,
        )

        assert draft.status == RiskStatus.OPEN
        assert draft.mitigation_effectiveness == 0
        assert draft.residual_score == draft.score == 8
        assert draft.owner is None
        assert draft.completion_date is None

    def test_out_of_range_inputs_still_build(self, fixed_now):
        """Construction does not validate."""
        draft = build_risk_item(
            {"description": "", "probability": 0, "impact": 12, "mitigation_effectiveness": 1.5},
            now=fixed_now,
        )

        assert draft.score == 0
        assert draft.risk_level == "LOWEST"
        assert draft.residual_score == 0

    def test_blank_optional_fields_become_none(self, fixed_now):
        draft = build_risk_item(
            {"description": "x", "probability": 3, "impact": 3, "owner": " ", "notes": ""},
            now=fixed_now,
        )
        assert draft.owner is None
        assert draft.notes is None


class TestUpdateRiskItem:
    """Test risk updates."""

    @pytest.fixture
    def sample_item(self, sample_draft):
        return RiskItem(**sample_draft.model_dump(), id="risk_abc123")

    def test_recomputes_metrics(self, sample_item, later_now):
        """Changing ratings rescores the risk."""
        updated = update_risk_item(
            sample_item,
            {"probability": 1, "impact": 2, "mitigation_effectiveness": 0},
            now=later_now,
        )

        assert updated.score == 2
        assert updated.risk_level == "VERY LOW"
        assert updated.residual_score == 2
        assert updated.residual_risk_level == "VERY LOW"

    def test_keeps_identity(self, sample_item, fixed_now, later_now):
        """The id and creation time survive; the update time moves."""
        updated = update_risk_item(sample_item, {"owner": "CISO"}, now=later_now)

        assert updated.id == sample_item.id
        assert updated.created_at == fixed_now
        assert updated.updated_at == later_now
        assert updated.owner == "CISO"
        assert updated.description == sample_item.description

    def test_derived_fields_ignored(self, sample_item, later_now):
        """Derived and identity fields cannot be edited directly."""
        updated = update_risk_item(
            sample_item,
            {"score": 1, "risk_level": "LOWEST", "id": "other", "created_at": later_now},
            now=later_now,
        )

        assert updated.score == 48
        assert updated.risk_level == "HIGHEST"
        assert updated.id == "risk_abc123"
        assert updated.created_at == sample_item.created_at

    def test_original_untouched(self, sample_item, later_now):
        update_risk_item(sample_item, {"probability": 1}, now=later_now)
        assert sample_item.probability == 6

    def test_completion_date(self, sample_item, later_now):
        updated = update_risk_item(
            sample_item,
            {"status": RiskStatus.CLOSED, "completion_date": date(2024, 3, 5)},
            now=later_now,
        )
        assert updated.status == RiskStatus.CLOSED
        assert updated.completion_date == date(2024, 3, 5)

    def test_update_status(self, sample_item, later_now):
        """Status changes refresh the update time only."""
        updated = update_risk_status(sample_item, "Mitigated", now=later_now)

        assert updated.status == RiskStatus.MITIGATED
        assert updated.updated_at == later_now
        assert updated.created_at == sample_item.created_at
        assert updated.score == sample_item.score

    def test_update_status_rejects_unknown(self, sample_item):
        with pytest.raises(ValueError):
            update_risk_status(sample_item, "Forgotten")


class TestSummarize:
    """Test risk aggregation."""

    def test_empty(self):
        """An empty collection has every tier at zero and no statuses."""
        summary = summarize([])

        assert summary.total == 0
        assert summary.by_level == {name: 0 for name in LEVEL_NAMES}
        assert summary.by_status == {}

    def test_counts(self, fixed_now):
        """Tier counts cover every tier; status counts only observed ones."""
        drafts = [
            build_risk_item({"description": "a", "probability": 6, "impact": 8}, now=fixed_now),
            build_risk_item({"description": "b", "probability": 9, "impact": 9, "status": "Closed"}, now=fixed_now),
            build_risk_item({"description": "c", "probability": 1, "impact": 1}, now=fixed_now),
        ]

        summary = summarize(drafts)

        assert summary.total == 3
        assert summary.by_level["HIGHEST"] == 2
        assert summary.by_level["LOWEST"] == 1
        assert summary.by_level["MEDIUM LOW"] == 0
        assert set(summary.by_level) == set(LEVEL_NAMES)
        assert summary.by_status == {"Open": 2, "Closed": 1}

    def test_trusts_stored_level(self, sample_draft):
        """Summary counts the stored tier rather than reclassifying."""
        tampered = sample_draft.model_copy(update={"risk_level": "LOW"})

        summary = summarize([tampered])

        assert summary.by_level["LOW"] == 1
        assert summary.by_level["HIGHEST"] == 0

    def test_accepts_generator(self, sample_draft):
        summary = summarize(d for d in [sample_draft, sample_draft])
        assert summary.total == 2
