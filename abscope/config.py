"""
Analysis configuration.

Every recognized option is a field with its default; values are validated
when the object is constructed. Configs load from nested JSON dicts:

    {"loudness": {...}, "spectrogram": {...}, "spectrum": {...}}
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, fields

from abscope.errors import InvalidInputError


def _is_pow2(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class LoudnessConfig:
    block_ms: float = 400.0
    hop_ms: float = 100.0
    short_term_ms: float = 3000.0
    absolute_gate_lufs: float = -70.0
    relative_gate_lu: float = 10.0
    lra_relative_gate_lu: float = 20.0
    lra_low_percentile: float = 0.10
    lra_high_percentile: float = 0.95

    def __post_init__(self) -> None:
        for name in ("block_ms", "hop_ms", "short_term_ms"):
            if not getattr(self, name) > 0:
                raise InvalidInputError(f"loudness.{name} must be > 0.")
        if self.relative_gate_lu < 0 or self.lra_relative_gate_lu < 0:
            raise InvalidInputError("Relative gates must be non-negative LU offsets.")
        lo, hi = self.lra_low_percentile, self.lra_high_percentile
        if not (0.0 <= lo < hi < 1.0):
            raise InvalidInputError(
                "LRA percentiles must satisfy 0 <= low < high < 1."
            )


@dataclass(frozen=True)
class SpectrogramConfig:
    base_fft_size: int = 2048
    base_sample_rate: float = 44100.0
    target_max_time_steps: int = 4800
    analysis_max_freq: float = 22000.0
    min_db_floor: float = -90.0
    min_fft_size: int = 512
    max_fft_size: int = 16384
    render_height: int = 512
    channel: int = 0

    def __post_init__(self) -> None:
        for name in ("base_fft_size", "min_fft_size", "max_fft_size"):
            if not _is_pow2(int(getattr(self, name))):
                raise InvalidInputError(f"spectrogram.{name} must be a power of two.")
        if self.min_fft_size > self.max_fft_size:
            raise InvalidInputError("spectrogram.min_fft_size exceeds max_fft_size.")
        if not self.base_sample_rate > 0:
            raise InvalidInputError("spectrogram.base_sample_rate must be > 0.")
        if self.target_max_time_steps < 1:
            raise InvalidInputError("spectrogram.target_max_time_steps must be >= 1.")
        if not self.analysis_max_freq > 0:
            raise InvalidInputError("spectrogram.analysis_max_freq must be > 0.")
        if self.render_height < 2:
            raise InvalidInputError("spectrogram.render_height must be >= 2.")
        if self.channel < 0:
            raise InvalidInputError("spectrogram.channel must be >= 0.")


@dataclass(frozen=True)
class SpectrumDisplayConfig:
    min_freq: float = 50.0
    min_db: float = -90.0
    max_db: float = -10.0
    diff_min_db: float = -10.0
    diff_max_db: float = 10.0
    diff_sensitivity: float = 0.7

    def __post_init__(self) -> None:
        if self.min_db >= self.max_db:
            raise InvalidInputError("spectrum.min_db must be below max_db.")
        if self.diff_min_db >= self.diff_max_db:
            raise InvalidInputError("spectrum.diff_min_db must be below diff_max_db.")
        if not self.diff_sensitivity > 0:
            raise InvalidInputError("spectrum.diff_sensitivity must be > 0.")


@dataclass(frozen=True)
class AnalysisConfig:
    loudness: LoudnessConfig = field(default_factory=LoudnessConfig)
    spectrogram: SpectrogramConfig = field(default_factory=SpectrogramConfig)
    spectrum: SpectrumDisplayConfig = field(default_factory=SpectrumDisplayConfig)

    @classmethod
    def from_dict(cls, data: dict | None) -> "AnalysisConfig":
        """Build a config from a nested dict; unknown sections or keys are rejected."""
        data = data or {}
        if not isinstance(data, dict):
            raise InvalidInputError("Config root must be an object.")
        sections = {
            "loudness": LoudnessConfig,
            "spectrogram": SpectrogramConfig,
            "spectrum": SpectrumDisplayConfig,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise InvalidInputError(f"Unknown config sections: {sorted(unknown)}")
        kwargs = {}
        for name, klass in sections.items():
            kwargs[name] = _section(klass, data.get(name), name)
        return cls(**kwargs)


def _section(klass, raw, name: str):
    if raw is None:
        return klass()
    if not isinstance(raw, dict):
        raise InvalidInputError(f"Config section '{name}' must be an object.")
    known = {f.name: f for f in fields(klass)}
    unknown = set(raw) - set(known)
    if unknown:
        raise InvalidInputError(f"Unknown keys in '{name}': {sorted(unknown)}")
    kwargs = {}
    for key, value in raw.items():
        default = known[key].default
        try:
            kwargs[key] = int(value) if isinstance(default, int) else float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"{name}.{key}: expected a number, got {value!r}") from exc
    return klass(**kwargs)


def load_config(path: str) -> AnalysisConfig:
    """Load an AnalysisConfig from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        j = json.load(f)
    return AnalysisConfig.from_dict(j)
