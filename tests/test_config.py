import pytest

from utils.config import default_config, load_config

ENV_VARS = [
    "GRADE_WINDOW_METERS",
    "PACE_SMOOTHING_METERS",
    "SAMPLE_STEP_METERS",
    "PACING_CACHE_SIZE",
    "DISTANCE_UNIT",
    "GRADE_MODEL",
    "DISPLAY_LOCALE",
]


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_config_defaults(clean_env):
    cfg = load_config()
    assert cfg == default_config()


def test_load_config_reads_environment(clean_env):
    clean_env.setenv("GRADE_WINDOW_METERS", "0")
    clean_env.setenv("SAMPLE_STEP_METERS", "25")
    clean_env.setenv("PACING_CACHE_SIZE", "4")
    clean_env.setenv("DISTANCE_UNIT", "miles")
    clean_env.setenv("GRADE_MODEL", "minetti")
    cfg = load_config()
    assert cfg.grade_window_m == 0.0
    assert cfg.sample_step_m == 25.0
    assert cfg.cache_size == 4
    assert cfg.distance_unit == "miles"
    assert cfg.grade_model == "minetti"


def test_load_config_invalid_values_fall_back(clean_env):
    clean_env.setenv("GRADE_WINDOW_METERS", "wide")
    clean_env.setenv("SAMPLE_STEP_METERS", "0")
    clean_env.setenv("PACING_CACHE_SIZE", "many")
    clean_env.setenv("DISTANCE_UNIT", "leagues")
    cfg = load_config()
    assert cfg.grade_window_m == 100.0
    assert cfg.sample_step_m == 50.0
    assert cfg.cache_size == 32
    assert cfg.distance_unit == "kilometers"


def test_load_config_small_step_is_raised_to_minimum(clean_env):
    clean_env.setenv("SAMPLE_STEP_METERS", "0.25")
    assert load_config().sample_step_m == 1.0


def test_load_config_reads_dotenv(clean_env, tmp_path):
    (tmp_path / ".env").write_text("PACE_SMOOTHING_METERS=500\nDISPLAY_LOCALE=fr_FR\n")
    cfg = load_config()
    assert cfg.pace_smoothing_m == 500.0
    assert cfg.display_locale == "fr_FR"


def test_default_config_overrides():
    cfg = default_config({"cache_size": 0})
    assert cfg.cache_size == 0
    assert cfg.grade_model == "polynomial"
