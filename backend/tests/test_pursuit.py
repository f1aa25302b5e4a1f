"""
Tests for engine/terms.py and engine/pursuit.py — monthly terms, annual pursuit, exemption, final grade.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from engine.grades import Sentinel, SubjectGradeRecord
from engine.policy import SchoolPolicy
from engine.pursuit import annual_pursuit, first_final_grade, is_exempt
from engine.stages import Profile
from engine.terms import aggregate_terms


class TestAggregateTerms:

    def test_monthly_terms_skip_missing_months(self):
        record = SubjectGradeRecord(october=60, november=70, december=None, january=80)
        first, second = aggregate_terms(record, Profile.PRIMARY_5)
        assert first == 70
        assert second is None

    def test_monthly_terms_skip_sentinels(self):
        record = SubjectGradeRecord(february=Sentinel.ABSENT, march=55, april=60)
        _, second = aggregate_terms(record, Profile.PRIMARY_6)
        assert second == 58

    def test_standard_passes_terms_through(self):
        record = SubjectGradeRecord(first_term=61, second_term=Sentinel.WAIVED, october=99)
        assert aggregate_terms(record, Profile.STANDARD) == (61, Sentinel.WAIVED)

    def test_primary_1_to_4_has_no_terms(self):
        record = SubjectGradeRecord(first_term=8, mid_year=7)
        assert aggregate_terms(record, Profile.PRIMARY_1_TO_4) == (None, None)


class TestAnnualPursuit:

    def test_mean_of_three(self):
        assert annual_pursuit(60, 70, 81) == 70

    def test_missing_component_excluded(self):
        assert annual_pursuit(70, 75, None, Profile.PRIMARY_5) == 73

    def test_absent_component_excluded(self):
        assert annual_pursuit(Sentinel.ABSENT, 65, 70) == 68

    def test_nothing_entered_is_none(self):
        assert annual_pursuit(None, None, None) is None

    def test_primary_1_to_4_not_computed(self):
        assert annual_pursuit(8, 9, 7, Profile.PRIMARY_1_TO_4) is None


class TestExemption:

    def test_standard_above_threshold(self):
        assert is_exempt(85, Profile.STANDARD, SchoolPolicy(exemption_threshold=85))

    def test_standard_below_threshold(self):
        assert not is_exempt(84, Profile.STANDARD, SchoolPolicy(exemption_threshold=85))

    def test_only_standard_profile(self):
        policy = SchoolPolicy(exemption_threshold=85)
        assert not is_exempt(99, Profile.PRIMARY_5, policy)
        assert not is_exempt(99, Profile.MINISTERIAL, policy)

    def test_no_pursuit(self):
        assert not is_exempt(None, Profile.STANDARD, SchoolPolicy())


class TestFirstFinalGrade:

    def test_mean_of_pursuit_and_exam(self):
        assert first_final_grade(60, 35, Profile.STANDARD) == 48

    def test_exempt_uses_pursuit_and_ignores_exam(self):
        assert first_final_grade(90, 20, Profile.STANDARD, exempt=True) == 90
        assert first_final_grade(90, None, Profile.STANDARD, exempt=True) == 90

    def test_absent_exam(self):
        assert first_final_grade(70, Sentinel.ABSENT, Profile.STANDARD) is Sentinel.ABSENT

    def test_exam_not_entered(self):
        assert first_final_grade(70, None, Profile.STANDARD) is None
        assert first_final_grade(70, Sentinel.WAIVED, Profile.PRIMARY_5) is Sentinel.WAIVED

    def test_ministerial_uses_pursuit(self):
        assert first_final_grade(47, None, Profile.MINISTERIAL) == 47

    def test_no_pursuit(self):
        assert first_final_grade(None, 80, Profile.STANDARD) is None
