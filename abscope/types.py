from __future__ import annotations
from dataclasses import dataclass, field

import numpy as np

from abscope.analysis.melscale import hz_to_mel, mel_to_hz
from abscope.utils.once import OnceCell


@dataclass(frozen=True)
class SampleBuffer:
    """Decoded audio, channel-major: channels[c] is the c-th channel's samples."""
    channels: np.ndarray
    sample_rate: float
    warnings: list[str] = field(default_factory=list, compare=False)

    @classmethod
    def from_arrays(cls, *arrays, sample_rate: float, warnings: list[str] | None = None) -> "SampleBuffer":
        """Stack per-channel 1D arrays into a float32 buffer."""
        if not arrays:
            return cls(np.zeros((0, 0), dtype=np.float32), float(sample_rate), list(warnings or []))
        chans = [np.asarray(a, dtype=np.float32).reshape(-1) for a in arrays]
        if len({c.size for c in chans}) != 1:
            raise ValueError("All channels must have equal length.")
        return cls(np.stack(chans, axis=0), float(sample_rate), list(warnings or []))

    @property
    def num_channels(self) -> int:
        return int(self.channels.shape[0]) if self.channels.ndim == 2 else 0

    @property
    def num_samples(self) -> int:
        return int(self.channels.shape[1]) if self.channels.ndim == 2 else 0

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.num_samples / float(self.sample_rate)

    def channel(self, index: int) -> np.ndarray:
        return self.channels[index]


@dataclass(frozen=True)
class BiquadCoefficients:
    """Second-order section; a[0] is normalized to 1."""
    b: tuple[float, float, float]
    a: tuple[float, float, float]


@dataclass(frozen=True)
class LoudnessResult:
    lkfs_per_block: np.ndarray
    energies: np.ndarray
    hop_samples: int
    block_samples: int
    sample_rate: float
    integrated: float | None
    threshold: float | None
    min_lkfs: float
    max_lkfs: float
    loudness_range: float | None = None
    lra_threshold: float | None = None
    lra_low: float | None = None
    lra_high: float | None = None

    @property
    def num_blocks(self) -> int:
        return int(self.energies.size)

    @property
    def seconds_per_hop(self) -> float:
        return self.hop_samples / float(self.sample_rate)


@dataclass(frozen=True)
class RangeStats:
    integrated: float | None
    peak: float | None


@dataclass(frozen=True)
class MelScaleInfo:
    """Mel-axis placement of raster rows; row 0 is the highest frequency."""
    min_mel: float
    mel_range: float
    render_height: int

    def ratio_to_hz(self, ratio: float) -> float:
        """Map a vertical ratio (0 = bottom, 1 = top) to frequency in Hz."""
        r = min(1.0, max(0.0, float(ratio)))
        return float(mel_to_hz(self.min_mel + r * self.mel_range))

    def row_to_hz(self, row: float) -> float:
        if self.render_height <= 1:
            return self.ratio_to_hz(0.0)
        return self.ratio_to_hz((self.render_height - 1 - row) / (self.render_height - 1))

    def hz_to_ratio(self, hz: float) -> float:
        if self.mel_range == 0:
            return 0.0
        return float((hz_to_mel(hz) - self.min_mel) / self.mel_range)


@dataclass(frozen=True)
class MelRaster:
    """
    Perceptually spaced raster, shape (render_height, num_time_steps).

    Values are in [0, 1] for spectrograms and [-1, 1] (signed) for diffs.
    """
    values: np.ndarray
    scale: MelScaleInfo
    signed: bool = False

    def to_rgb(self, table: np.ndarray) -> np.ndarray:
        """Apply a (N, 3) uint8 color table; returns (H, T, 3) uint8."""
        from abscope.render.colormaps import apply_colormap, apply_diverging_colormap

        if self.signed:
            return apply_diverging_colormap(self.values, table)
        return apply_colormap(self.values, table)


@dataclass(frozen=True)
class SpectrogramResult:
    """Per-frame dB magnitudes, shape (num_time_steps, num_bins)."""
    data: np.ndarray
    min_db: float
    max_db: float
    sample_rate: float
    fft_size: int
    hop_size: int
    num_samples: int
    render_height: int = 512
    _raster: OnceCell = field(default_factory=OnceCell, init=False, repr=False, compare=False)

    @property
    def num_time_steps(self) -> int:
        return int(self.data.shape[0])

    @property
    def num_bins(self) -> int:
        return int(self.data.shape[1]) if self.data.ndim == 2 else 0

    @property
    def duration(self) -> float:
        return self.num_samples / float(self.sample_rate)

    def bin_frequencies(self) -> np.ndarray:
        return np.arange(self.num_bins, dtype=np.float64) * self.sample_rate / self.fft_size

    def mel_raster(self) -> MelRaster:
        """Mel-warped normalized raster, built on first access and cached."""
        from abscope.analysis.raster import build_spectrogram_raster

        return self._raster.get_or_init(lambda: build_spectrogram_raster(self))


@dataclass(frozen=True)
class DiffResult:
    """Elementwise dB difference (first minus second) of two spectrograms."""
    data: np.ndarray
    max_diff: float
    sample_rate: float
    fft_size: int
    duration: float
    render_height: int = 512
    sensitivity: float = 0.7
    _raster: OnceCell = field(default_factory=OnceCell, init=False, repr=False, compare=False)

    @property
    def num_time_steps(self) -> int:
        return int(self.data.shape[0])

    @property
    def num_bins(self) -> int:
        return int(self.data.shape[1]) if self.data.ndim == 2 else 0

    def mel_raster(self) -> MelRaster:
        from abscope.analysis.raster import build_diff_raster

        return self._raster.get_or_init(lambda: build_diff_raster(self))


@dataclass(frozen=True)
class FrequencyScale:
    freqs_hz: np.ndarray
    labels: list[str]
