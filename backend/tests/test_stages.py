"""
Tests for engine/stages.py — stage name → profile resolution and stage configuration loading.
"""

import json
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from engine.stages import (
    Profile,
    StageConfig,
    StageConfigError,
    load_stage_config,
    max_grade,
    resolve_profile,
    stage_config_from_dict,
)


class TestResolveProfile:

    @pytest.mark.parametrize("stage, profile", [
        ("الاول ابتدائي", Profile.PRIMARY_1_TO_4),
        ("الرابع ابتدائي", Profile.PRIMARY_1_TO_4),
        ("الخامس ابتدائي", Profile.PRIMARY_5),
        ("السادس ابتدائي", Profile.PRIMARY_6),
        ("الثالث متوسط", Profile.MINISTERIAL),
        ("السادس العلمي", Profile.MINISTERIAL),
        ("الاول متوسط", Profile.STANDARD),
        ("الرابع العلمي", Profile.STANDARD),
    ])
    def test_default_stages(self, stage, profile):
        assert resolve_profile(stage) is profile

    def test_unknown_and_empty_fall_back_to_standard(self):
        assert resolve_profile("Grade 9") is Profile.STANDARD
        assert resolve_profile("") is Profile.STANDARD
        assert resolve_profile(None) is Profile.STANDARD

    def test_whitespace_is_normalised(self):
        assert resolve_profile("  الخامس   ابتدائي ") is Profile.PRIMARY_5

    def test_primary6_wins_over_ministerial_list(self):
        config = StageConfig(ministerial=("الثالث متوسط", "السادس ابتدائي"))
        assert resolve_profile("السادس ابتدائي", config) is Profile.PRIMARY_6

    def test_custom_config(self):
        config = StageConfig(ministerial=("Year 12",))
        assert resolve_profile("Year 12", config) is Profile.MINISTERIAL
        assert resolve_profile("الثالث متوسط", config) is Profile.STANDARD


class TestMaxGrade:

    def test_primary_1_to_4_uses_ten_point_scale(self):
        assert max_grade(Profile.PRIMARY_1_TO_4) == 10

    def test_other_profiles_use_hundred(self):
        assert max_grade(Profile.STANDARD) == 100
        assert max_grade(Profile.PRIMARY_5) == 100


class TestStageConfigLoading:

    def test_default_when_no_path(self, monkeypatch):
        monkeypatch.delenv("STAGE_CONFIG_PATH", raising=False)
        assert load_stage_config() == StageConfig()

    def test_loads_json_file(self, tmp_path):
        path = tmp_path / "stages.json"
        path.write_text(json.dumps({"ministerial": ["Year 12"], "primary_5": "Year 5"}), encoding="utf-8")
        config = load_stage_config(str(path))
        assert config.ministerial == ("Year 12",)
        assert config.primary_5 == ("Year 5",)
        assert config.primary_6 == StageConfig().primary_6

    def test_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "stages.json"
        path.write_text(json.dumps({"primary_6": ["Year 6"]}), encoding="utf-8")
        monkeypatch.setenv("STAGE_CONFIG_PATH", str(path))
        assert resolve_profile("Year 6", load_stage_config()) is Profile.PRIMARY_6

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(StageConfigError):
            load_stage_config(str(tmp_path / "nope.json"))

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "stages.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StageConfigError):
            load_stage_config(str(path))

    def test_bad_shape_raises(self):
        with pytest.raises(StageConfigError):
            stage_config_from_dict({"ministerial": [1, 2]})
        with pytest.raises(StageConfigError):
            stage_config_from_dict(["not", "a", "dict"])
