from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from errors import ConfigurationError
from models import Gender, HorizontalQuota

load_dotenv()

ROOT = Path(__file__).resolve().parent


@dataclass(frozen=True)
class EngineSettings:
    results_path: Path = ROOT / "data" / "results.sample.csv"
    vacancies_path: Path = ROOT / "data" / "vacancies.sample.json"
    dv_multiplier: float = 1.5
    confident_threshold: int = 70
    ph_male_share: float = 0.67
    ph_female_share: float = 0.33
    ex_servicemen_male_share: float = 0.9
    ex_servicemen_female_share: float = 0.1
    auto_correct_quota: bool = False
    quota_tolerance: int = 2

    def gender_share(self, quota: HorizontalQuota, gender: Gender) -> float:
        """Estimated fraction of a horizontal quota's seats going to one gender."""
        if quota is HorizontalQuota.PH:
            return self.ph_male_share if gender is Gender.MALE else self.ph_female_share
        return self.ex_servicemen_male_share if gender is Gender.MALE else self.ex_servicemen_female_share


def _env_float(name: str, default: float, low: float | None = None, high: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if (low is not None and value < low) or (high is not None and value > high):
        raise ConfigurationError(f"{name}={value} is outside [{low}, {high}]")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = (os.getenv(name) or "").strip().strip('"').strip("'")
    if not raw:
        return default
    path = Path(raw)
    return path if path.is_absolute() else ROOT / path


def load_settings() -> EngineSettings:
    defaults = EngineSettings()
    return EngineSettings(
        results_path=_env_path("CUTOFF_RESULTS_PATH", defaults.results_path),
        vacancies_path=_env_path("CUTOFF_VACANCIES_PATH", defaults.vacancies_path),
        dv_multiplier=_env_float("CUTOFF_DV_MULTIPLIER", defaults.dv_multiplier, low=1.0),
        confident_threshold=_env_int("CUTOFF_CONFIDENT_THRESHOLD", defaults.confident_threshold),
        ph_male_share=_env_float("CUTOFF_PH_MALE_SHARE", defaults.ph_male_share, low=0.0, high=1.0),
        ph_female_share=_env_float("CUTOFF_PH_FEMALE_SHARE", defaults.ph_female_share, low=0.0, high=1.0),
        ex_servicemen_male_share=_env_float(
            "CUTOFF_EX_SERVICEMEN_MALE_SHARE", defaults.ex_servicemen_male_share, low=0.0, high=1.0
        ),
        ex_servicemen_female_share=_env_float(
            "CUTOFF_EX_SERVICEMEN_FEMALE_SHARE", defaults.ex_servicemen_female_share, low=0.0, high=1.0
        ),
        auto_correct_quota=_env_bool("CUTOFF_AUTO_CORRECT_QUOTA", defaults.auto_correct_quota),
        quota_tolerance=_env_int("CUTOFF_QUOTA_TOLERANCE", defaults.quota_tolerance),
    )
