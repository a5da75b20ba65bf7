"""
Doppler gesture classification for Audiophile.

A probe tone is played continuously. A hand moving toward the
microphone shifts reflected energy above the probe, moving away shifts
it below. The classifier compares the energy in the bins just above and
just below the probe against a learned quiet baseline and flags
departures beyond a learned noise threshold.
"""

import numpy as np
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .config import Config
from .errors import SpectrumShapeError

_EPS = 1e-10


class GestureState(Enum):
    """Classifier output states."""
    UNAVAILABLE = "Changing Parameters"
    CALIBRATING = "Calibrating Baseline"
    NONE = "Not Gesturing"
    TOWARD = "Gesturing Toward"
    AWAY = "Gesturing Away"

    @property
    def is_gesture(self) -> bool:
        return self in (GestureState.TOWARD, GestureState.AWAY)


@dataclass(frozen=True)
class ProbeConfig:
    """Probe tone settings. Replaced wholesale, never mutated."""
    frequency: float    # Hz
    volume: float       # 0-1


@dataclass
class RollingBaseline:
    """
    Running sum of band averages, collapsed into a baseline every
    `window` samples. The previous baseline stays in effect while the
    next one accumulates.
    """
    window: int
    low_sum: float = 0.0
    high_sum: float = 0.0
    count: int = 0
    average: Optional[Tuple[float, float]] = None

    def add(self, low: float, high: float) -> bool:
        """Accumulate one sample; returns True when a new baseline was formed."""
        self.low_sum += low
        self.high_sum += high
        self.count += 1

        if self.count >= self.window:
            self.average = (self.low_sum / self.count, self.high_sum / self.count)
            self.low_sum = 0.0
            self.high_sum = 0.0
            self.count = 0
            return True
        return False

    @property
    def ready(self) -> bool:
        return self.average is not None

    def clear(self):
        self.low_sum = 0.0
        self.high_sum = 0.0
        self.count = 0
        self.average = None


class ThresholdStatistics:
    """
    Bounded FIFO window of ratio samples reduced to mean and deviation.

    The deviation is floored at `deviation_floor * |mean|` so a very
    quiet room does not produce hair-trigger thresholds.
    """

    def __init__(self, capacity: int, deviation_floor: float = 0.05):
        self.deviation_floor = deviation_floor
        self._samples = deque(maxlen=capacity)
        self.mean: Optional[float] = None
        self.std: Optional[float] = None

    def append(self, ratio: float):
        """Add a sample, evicting the oldest past capacity."""
        self._samples.append(ratio)

    def compute(self) -> Tuple[float, float]:
        """Recompute (mean, std) over the current window."""
        samples = np.asarray(self._samples, dtype=np.float64)
        mean = float(np.mean(samples))
        std = float(np.std(samples))
        self.mean = mean
        self.std = max(std, self.deviation_floor * abs(mean))
        return self.mean, self.std

    def bounds(self, sigma: float) -> Tuple[float, float]:
        """(lower, upper) thresholds at mean ∓ sigma * std."""
        return (self.mean - sigma * self.std, self.mean + sigma * self.std)

    @property
    def ready(self) -> bool:
        return self.mean is not None

    @property
    def samples(self) -> Tuple[float, ...]:
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def clear(self):
        self._samples.clear()
        self.mean = None
        self.std = None


@dataclass
class GestureReading:
    """Classifier outputs for one tick."""
    state: GestureState
    probe_level_db: float
    zoomed_spectrum: np.ndarray
    ratio: Optional[float] = None
    baseline: Optional[Tuple[float, float]] = None
    thresholds: Optional[Tuple[float, float]] = None  # (lower, upper)


class DopplerGestureClassifier:
    """
    Turns probe-band asymmetry into a TOWARD / AWAY / NONE signal.

    Phases, advanced once per update():
    - Stabilizing (UNAVAILABLE): the probe just changed, wait it out
    - Baseline (CALIBRATING): average quiet band energy
    - Learning (CALIBRATING): collect quiet ratio-of-ratios samples
    - Detecting (NONE/TOWARD/AWAY): compare against mean ± k·std,
      adapting baseline and thresholds only while NONE
    """

    def __init__(self, config: Config):
        self.config = config
        self._length = config.spectrum_length

        self._state = GestureState.UNAVAILABLE
        self._probe: Optional[ProbeConfig] = None
        self._probe_bin: int = 0
        self._countdown: int = 0

        self._baseline = RollingBaseline(config.baseline_frames)
        self._thresholds = ThresholdStatistics(
            config.threshold_capacity, config.deviation_floor
        )
        self._bias: float = 0.0

    def update(self, spectrum: np.ndarray, probe: ProbeConfig) -> GestureReading:
        """
        Process one spectrum.

        Args:
            spectrum: Magnitude spectrum in dB, length buffer_size / 2
            probe: Probe settings in effect for this tick

        Returns:
            GestureReading for this tick

        Raises:
            SpectrumShapeError: if the spectrum length is not buffer_size / 2
        """
        spectrum = np.asarray(spectrum, dtype=np.float64)
        if len(spectrum) != self._length:
            raise SpectrumShapeError(
                f"Expected {self._length} spectrum bins, got {len(spectrum)}"
            )

        if probe != self._probe:
            self._begin_stabilization(probe)
            return self._raw_reading(spectrum)

        if self._countdown > 0:
            self._countdown -= 1
            if self._countdown == 0:
                self._reset_statistics()
                self._state = GestureState.CALIBRATING
                self._log("Stabilized, calibrating baseline")
            return self._raw_reading(spectrum)

        zoom, probe_level, center = self._extract_band(spectrum)

        # Bias is fixed for one baseline accumulation cycle
        scaled = self.config.band_gain * zoom
        if self._baseline.count == 0:
            floor = float(np.min(scaled))
            self._bias = -floor if floor < 0 else 0.0
        shifted = scaled + self._bias

        n = self.config.band_bins
        low = float(np.mean(shifted[center - n:center]))
        high = float(np.mean(shifted[center + 1:center + 1 + n]))

        # Phase: baseline
        if not self._baseline.ready:
            if self._baseline.add(low, high):
                self._state = GestureState.CALIBRATING
                self._log(f"Baseline ready: low={self._baseline.average[0]:.2f}, "
                          f"high={self._baseline.average[1]:.2f}")
            return self._reading(probe_level, shifted)

        ratio = self._ratio_of_ratios(low, high)

        # Phase: threshold learning
        if not self._thresholds.ready:
            self._thresholds.append(ratio)
            if len(self._thresholds) >= self.config.threshold_samples:
                mean, std = self._thresholds.compute()
                self._state = GestureState.NONE
                self._log(f"Thresholds ready: mean={mean:.3f}, std={std:.3f}")
            self._baseline.add(low, high)
            return self._reading(probe_level, shifted, ratio)

        # Phase: detection
        lower, upper = self._thresholds.bounds(self.config.sigma_multiplier)
        if ratio > upper:
            state = GestureState.TOWARD
        elif ratio < lower:
            state = GestureState.AWAY
        else:
            state = GestureState.NONE

        if state != self._state:
            self._log(f"{state.value} (R={ratio:.3f}, bounds={lower:.3f}..{upper:.3f})")
        self._state = state

        # Only quiet ticks may move the learned statistics
        if state == GestureState.NONE:
            self._thresholds.append(ratio)
            self._thresholds.compute()
            self._baseline.add(low, high)

        return self._reading(probe_level, shifted, ratio)

    def _begin_stabilization(self, probe: ProbeConfig):
        """Suppress detection while the new probe settles."""
        self._probe = probe
        self._probe_bin = self._clamp_probe_bin(probe.frequency)
        self._countdown = self.config.stabilization_ticks
        self._state = GestureState.UNAVAILABLE
        self._log(f"Probe {probe.frequency:.0f} Hz @ {probe.volume:.2f} "
                  f"(bin {self._probe_bin}), stabilizing for {self._countdown} ticks")

    def _reset_statistics(self):
        self._baseline.clear()
        self._thresholds.clear()
        self._bias = 0.0

    def _clamp_probe_bin(self, freq: float) -> int:
        """Nearest bin, kept far enough from the edges for both bands."""
        n = self.config.band_bins
        probe_bin = self.config.get_probe_bin(freq)
        return min(max(probe_bin, n), self._length - 1 - n)

    def _extract_band(self, spectrum: np.ndarray) -> Tuple[np.ndarray, float, int]:
        """
        Cut the zoomed window around the probe, clamped to the spectrum.

        Returns:
            (zoomed spectrum, probe level in dB, probe index within the zoom)
        """
        half = self.config.zoom_half_width
        start = max(0, self._probe_bin - half)
        stop = min(self._length, self._probe_bin + half + 1)
        zoom = spectrum[start:stop]
        return zoom, float(spectrum[self._probe_bin]), self._probe_bin - start

    def _ratio_of_ratios(self, low: float, high: float) -> float:
        base_low, base_high = self._baseline.average
        high_ratio = (high + _EPS) / (base_high + _EPS)
        low_ratio = (low + _EPS) / (base_low + _EPS)
        return high_ratio / low_ratio

    def _raw_reading(self, spectrum: np.ndarray) -> GestureReading:
        """Reading while stabilizing: display values only, no statistics."""
        zoom, probe_level, _ = self._extract_band(spectrum)
        return GestureReading(
            state=self._state,
            probe_level_db=probe_level,
            zoomed_spectrum=zoom.copy(),
        )

    def _reading(self, probe_level: float, shifted: np.ndarray,
                 ratio: Optional[float] = None) -> GestureReading:
        thresholds = None
        if self._thresholds.ready:
            thresholds = self._thresholds.bounds(self.config.sigma_multiplier)
        return GestureReading(
            state=self._state,
            probe_level_db=probe_level,
            zoomed_spectrum=shifted,
            ratio=ratio,
            baseline=self._baseline.average,
            thresholds=thresholds,
        )

    def _log(self, message: str):
        if self.config.verbose:
            print(f"[GESTURE] {message}")

    def reset(self):
        """Forget the probe and all learned statistics."""
        self._probe = None
        self._countdown = 0
        self._state = GestureState.UNAVAILABLE
        self._reset_statistics()

    @property
    def state(self) -> GestureState:
        """Current gesture state."""
        return self._state

    @property
    def probe(self) -> Optional[ProbeConfig]:
        """Probe settings the statistics were learned for."""
        return self._probe

    @property
    def probe_bin(self) -> int:
        """Spectrum bin of the probe (after edge clamping)."""
        return self._probe_bin

    @property
    def is_stabilizing(self) -> bool:
        return self._countdown > 0

    @property
    def baseline(self) -> RollingBaseline:
        return self._baseline

    @property
    def thresholds(self) -> ThresholdStatistics:
        return self._thresholds
