"""
Spectral peak finding for Audiophile.

Finds the loudest mutually separated tones in a dB magnitude spectrum
and refines each to sub-bin accuracy with quadratic interpolation.
"""

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import ConfigurationError, SourceUnavailableError


@dataclass(frozen=True)
class FrequencyMagnitude:
    """A spectral peak estimate."""
    frequency: float    # Hz
    magnitude: float    # dB


def interpolate_peak(spectrum: np.ndarray, index: int,
                     resolution: float) -> FrequencyMagnitude:
    """
    Refine a peak bin with three-point parabolic interpolation.

    Fits a parabola through the dB magnitudes at index-1, index and
    index+1 and returns its vertex. A flat top (zero curvature) or a
    bin without two neighbours falls back to the raw bin.

    Args:
        spectrum: Magnitude spectrum in dB
        index: Bin of the sampled maximum
        resolution: Hz per bin (sample_rate / buffer_size)

    Returns:
        FrequencyMagnitude at the interpolated vertex
    """
    m_zero = float(spectrum[index])
    if index <= 0 or index >= len(spectrum) - 1:
        return FrequencyMagnitude(frequency=index * resolution, magnitude=m_zero)

    m_below = float(spectrum[index - 1])
    m_above = float(spectrum[index + 1])

    curvature = m_below - 2 * m_zero + m_above
    if curvature == 0:
        delta = 0.0
    else:
        delta = 0.5 * (m_below - m_above) / curvature

    frequency = index * resolution + delta * resolution
    magnitude = m_zero - 0.25 * (m_below - m_above) * delta
    return FrequencyMagnitude(frequency=frequency, magnitude=magnitude)


def separation_to_bins(min_separation_hz: float, sample_rate: float,
                       buffer_size: int) -> int:
    """
    Convert a tone separation in Hz to a sliding-window width in bins.

    Raises:
        ConfigurationError: if the window is narrower than 3 bins, since a
            window-local maximum then cannot have a neighbour on each side
    """
    window = int(min_separation_hz * buffer_size / sample_rate)
    if window < 3:
        min_hz = 3 * sample_rate / buffer_size
        raise ConfigurationError(
            f"Peak separation of {min_separation_hz} Hz spans only {window} bin(s) "
            f"at {sample_rate:.0f} Hz / {buffer_size} samples; "
            f"use at least {min_hz:.1f} Hz"
        )
    return window


def find_top_peaks(spectrum: Sequence[float], sample_rate: Optional[float],
                   min_separation_hz: float, count: int = 2,
                   buffer_size: Optional[int] = None) -> List[Optional[FrequencyMagnitude]]:
    """
    Find the loudest tones in a spectrum at least min_separation_hz apart.

    A window of W bins slides over bins 1..len-W (bin 0 is DC). The
    window maximum counts as a peak only when it has a neighbour on each
    side inside the same window, and each bin is only counted once.
    Candidates are ranked by interpolated magnitude; a candidate whose
    interpolated frequency is closer than min_separation_hz to a louder
    accepted one is dropped.

    Args:
        spectrum: Magnitude spectrum in dB (length buffer_size / 2)
        sample_rate: Sampling rate of the analysed audio in Hz
        min_separation_hz: Minimum distance between reported tones
        count: Number of tones to report
        buffer_size: Time samples behind the spectrum (default 2 * len)

    Returns:
        List of length count, loudest first; unfilled slots are None

    Raises:
        SourceUnavailableError: if no sample rate is known yet
        ConfigurationError: if the separation spans fewer than 3 bins
    """
    if sample_rate is None or sample_rate <= 0:
        raise SourceUnavailableError("Sample rate unknown; cannot locate peaks")

    spectrum = np.asarray(spectrum, dtype=np.float64)
    if buffer_size is None:
        buffer_size = 2 * len(spectrum)

    window = separation_to_bins(min_separation_hz, sample_rate, buffer_size)
    resolution = sample_rate / buffer_size

    candidates: List[FrequencyMagnitude] = []
    last_start = len(spectrum) - window

    if last_start >= 1:
        # Row i holds the window starting at bin i + 1
        windows = sliding_window_view(spectrum[1:], window)
        local_max = np.argmax(windows, axis=1)
        absolute = np.arange(1, last_start + 1) + local_max

        # Reject maxima sitting on the window edge
        interior = (local_max >= 1) & (local_max <= window - 2)

        seen = set()
        for index in absolute[interior]:
            index = int(index)
            if index in seen:
                continue
            seen.add(index)
            candidates.append(interpolate_peak(spectrum, index, resolution))

    return _select_separated(candidates, min_separation_hz, count)


def _select_separated(candidates: List[FrequencyMagnitude], min_separation_hz: float,
                      count: int) -> List[Optional[FrequencyMagnitude]]:
    """Greedy loudest-first selection keeping chosen tones >= min_separation_hz apart."""
    # Stable sort: on equal magnitude the lower frequency wins
    ranked = sorted(candidates, key=lambda c: c.magnitude, reverse=True)

    chosen: List[Optional[FrequencyMagnitude]] = []
    for peak in ranked:
        if len(chosen) == count:
            break
        if all(abs(peak.frequency - other.frequency) >= min_separation_hz for other in chosen):
            chosen.append(peak)

    return chosen + [None] * (count - len(chosen))


class PeakHold:
    """
    Holds the last loud-enough peak in each slot.

    Keeps a readout steady between tones: a slot is only replaced when
    the new estimate is louder than min_magnitude_db.
    """

    def __init__(self, count: int = 2, min_magnitude_db: float = 0.0):
        self.min_magnitude_db = min_magnitude_db
        self._held: List[Optional[FrequencyMagnitude]] = [None] * count

    def update(self, peaks: Sequence[Optional[FrequencyMagnitude]]) -> List[Optional[FrequencyMagnitude]]:
        """Merge a fresh peak list and return the held values."""
        for slot, peak in enumerate(peaks[:len(self._held)]):
            if peak is not None and peak.magnitude > self.min_magnitude_db:
                self._held[slot] = peak
        return list(self._held)

    @property
    def held(self) -> List[Optional[FrequencyMagnitude]]:
        """Currently held peaks."""
        return list(self._held)

    def reset(self):
        """Forget all held peaks."""
        self._held = [None] * len(self._held)
