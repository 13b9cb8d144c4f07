import pytest

from errors import ConfigurationError
from models import Gender, HorizontalQuota
from settings import ROOT, EngineSettings, load_settings

ENV_NAMES = [
    "CUTOFF_RESULTS_PATH",
    "CUTOFF_VACANCIES_PATH",
    "CUTOFF_DV_MULTIPLIER",
    "CUTOFF_CONFIDENT_THRESHOLD",
    "CUTOFF_PH_MALE_SHARE",
    "CUTOFF_PH_FEMALE_SHARE",
    "CUTOFF_EX_SERVICEMEN_MALE_SHARE",
    "CUTOFF_EX_SERVICEMEN_FEMALE_SHARE",
    "CUTOFF_AUTO_CORRECT_QUOTA",
    "CUTOFF_QUOTA_TOLERANCE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = load_settings()
    assert settings == EngineSettings()
    assert settings.dv_multiplier == 1.5
    assert settings.confident_threshold == 70
    assert settings.results_path == ROOT / "data" / "results.sample.csv"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("CUTOFF_DV_MULTIPLIER", "2")
    monkeypatch.setenv("CUTOFF_AUTO_CORRECT_QUOTA", "yes")
    monkeypatch.setenv("CUTOFF_QUOTA_TOLERANCE", "5")
    monkeypatch.setenv("CUTOFF_RESULTS_PATH", "exports/results.csv")
    settings = load_settings()
    assert settings.dv_multiplier == 2.0
    assert settings.auto_correct_quota is True
    assert settings.quota_tolerance == 5
    assert settings.results_path == ROOT / "exports" / "results.csv"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("CUTOFF_DV_MULTIPLIER", "abc"),
        ("CUTOFF_DV_MULTIPLIER", "0.5"),
        ("CUTOFF_PH_MALE_SHARE", "1.5"),
        ("CUTOFF_PH_FEMALE_SHARE", "-0.1"),
        ("CUTOFF_CONFIDENT_THRESHOLD", "-1"),
        ("CUTOFF_QUOTA_TOLERANCE", "two"),
    ],
)
def test_malformed_values_raise(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()
    assert name in str(excinfo.value)


def test_gender_share() -> None:
    settings = EngineSettings(ph_male_share=0.6, ph_female_share=0.4)
    assert settings.gender_share(HorizontalQuota.PH, Gender.MALE) == 0.6
    assert settings.gender_share(HorizontalQuota.PH, Gender.FEMALE) == 0.4
    assert settings.gender_share(HorizontalQuota.EX_SERVICEMEN, Gender.MALE) == 0.9
    assert settings.gender_share(HorizontalQuota.EX_SERVICEMEN, Gender.FEMALE) == 0.1


def test_female_shares_are_configured_directly(monkeypatch) -> None:
    monkeypatch.setenv("CUTOFF_EX_SERVICEMEN_FEMALE_SHARE", "0.2")
    settings = load_settings()
    assert settings.ex_servicemen_female_share == 0.2
    assert settings.ex_servicemen_male_share == 0.9
    assert settings.gender_share(HorizontalQuota.EX_SERVICEMEN, Gender.FEMALE) == 0.2
