"""Tests for the weighted score engine and grade mapping."""

import pytest
from types import SimpleNamespace

from appraisal.services.scoring import (
    ScoredIndicator,
    SectionScores,
    allowed_scores,
    build_section_scores,
    calculate_weighted_score,
    coerce_score,
    get_grade_from_score,
    score_assessment,
)


def section(id, weight, *scores, actor="staff"):
    return SectionScores(
        id=id,
        weight=weight,
        indicators=[ScoredIndicator(id=i, **{f"{actor}_score": s}) for i, s in enumerate(scores)],
    )


def fake_template(*sections):
    """sections: (weight, [score_options or None, ...])"""
    next_id = iter(range(1, 100))
    return SimpleNamespace(
        sections=[
            SimpleNamespace(
                id=sid,
                weight=weight,
                indicators=[SimpleNamespace(id=next(next_id), score_options=opts) for opts in options],
            )
            for sid, (weight, options) in enumerate(sections, start=1)
        ]
    )


class TestCalculateWeightedScore:
    def test_unscored_section_is_excluded(self):
        sections = [section(1, 60, 4, 4), section(2, 40, None, None)]
        assert calculate_weighted_score(sections) == 4

    def test_adding_empty_section_does_not_change_score(self):
        base = [section(1, 30, 2, 3), section(2, 70, 4)]
        with_empty = base + [section(3, 50, None)]
        assert calculate_weighted_score(with_empty) == pytest.approx(calculate_weighted_score(base))

    def test_weighted_mean_of_section_averages(self):
        # (2.5 * 60 + 1 * 40) / 100
        sections = [section(1, 60, 2, 3), section(2, 40, 1)]
        assert calculate_weighted_score(sections) == pytest.approx(1.9)

    def test_weights_need_not_sum_to_100(self):
        sections = [section(1, 10, 4), section(2, 30, 2)]
        assert calculate_weighted_score(sections) == pytest.approx(2.5)

    def test_nothing_scored_returns_none(self):
        assert calculate_weighted_score([section(1, 60, None), section(2, 40)]) is None

    def test_no_sections_returns_none(self):
        assert calculate_weighted_score([]) is None
        assert calculate_weighted_score(None) is None

    def test_zero_weight_sections_fall_back_to_plain_mean(self):
        sections = [section(1, 0, 4, 2), section(2, 0, 3)]
        assert calculate_weighted_score(sections) == pytest.approx(3.0)

    def test_actor_selects_score_field(self):
        sections = [
            SectionScores(
                id=1,
                weight=100,
                indicators=[ScoredIndicator(id=1, staff_score=4, manager_score=2)],
            )
        ]
        assert calculate_weighted_score(sections, "staff") == 4
        assert calculate_weighted_score(sections, "manager") == 2

    def test_unusable_values_are_ignored(self):
        sections = [section(1, 100, 3, float("nan"), True, "X")]
        assert calculate_weighted_score(sections) == 3

    def test_unknown_actor_raises(self):
        with pytest.raises(ValueError):
            calculate_weighted_score([section(1, 100, 3)], "director")


class TestGradeFromScore:
    @pytest.mark.parametrize(
        "score,grade",
        [
            (4.0, "A+"),
            (3.72, "A+"),
            (3.71, "A"),
            (3.5, "A"),
            (3.41, "B+"),
            (3.2, "B+"),
            (3.0, "B"),
            (2.6, "C+"),
            (2.3, "C"),
            (2.01, "D"),
            (2.00, "F"),
            (0.0, "F"),
        ],
    )
    def test_boundaries_are_exclusive(self, score, grade):
        assert get_grade_from_score(score) == grade


class TestScoreOptions:
    def test_default_scale_when_options_missing(self):
        assert allowed_scores(SimpleNamespace(score_options=None)) == {0, 1, 2, 3, 4}

    def test_disabled_options_are_not_allowed(self):
        indicator = SimpleNamespace(
            score_options=[
                {"score": 1, "label": "Low", "enabled": True},
                {"score": 4, "label": "High", "enabled": False},
            ]
        )
        assert allowed_scores(indicator) == {1}
        assert coerce_score(indicator, 4) is None
        assert coerce_score(indicator, 1) == 1

    def test_not_applicable_is_unscored(self):
        assert coerce_score(SimpleNamespace(score_options=None), "X") is None


class TestBuildSectionScores:
    def test_joins_template_with_score_maps(self):
        template = fake_template((60, [None, None]), (40, [None]))
        sections = build_section_scores(
            template,
            staff_scores={"1": 4, "2": 2, "3": "X"},
            manager_scores={"1": 3, "99": 4},
        )
        assert [i.staff_score for i in sections[0].indicators] == [4, 2]
        assert sections[1].indicators[0].staff_score is None
        assert [i.manager_score for i in sections[0].indicators] == [3, None]

    def test_score_assessment_returns_score_and_grade(self):
        template = fake_template((60, [None, None]), (40, [None]))
        assessment = SimpleNamespace(staff_scores={}, manager_scores={"1": 4, "2": 4})
        assert score_assessment(template, assessment, "manager") == (4.0, "A+")
        assert score_assessment(template, assessment, "staff") == (None, None)
