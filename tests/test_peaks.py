import numpy as np
import pytest

from audiophile.errors import ConfigurationError, SourceUnavailableError
from audiophile.peaks import (
    FrequencyMagnitude,
    PeakHold,
    find_top_peaks,
    interpolate_peak,
    separation_to_bins,
)

# 1 Hz per bin keeps the expected frequencies readable
SAMPLE_RATE = 8192
LENGTH = 4096


def tone_spectrum(peaks, floor=-80.0, width=2.0, length=LENGTH):
    """Flat floor with Gaussian-shaped bumps of (center_bin, height_db)."""
    spectrum = np.full(length, floor)
    for center, height in peaks:
        lo, hi = int(center) - 8, int(center) + 9
        bins = np.arange(lo, hi, dtype=float)
        bump = floor + height * np.exp(-((bins - center) ** 2) / (2 * width ** 2))
        spectrum[lo:hi] = np.maximum(spectrum[lo:hi], bump)
    return spectrum


def test_interpolation_exact_on_parabola():
    vertex, peak_db, curvature = 10.3, -3.0, 2.0
    bins = np.arange(20, dtype=float)
    spectrum = peak_db - curvature * (bins - vertex) ** 2

    result = interpolate_peak(spectrum, 10, resolution=5.0)

    assert result.frequency == pytest.approx(vertex * 5.0)
    assert result.magnitude == pytest.approx(peak_db)


def test_interpolation_flat_top_uses_raw_bin():
    spectrum = np.array([0.0, 5.0, 5.0, 5.0, 0.0])
    result = interpolate_peak(spectrum, 2, resolution=10.0)
    assert result == FrequencyMagnitude(frequency=20.0, magnitude=5.0)


def test_interpolation_at_spectrum_edge_uses_raw_bin():
    spectrum = np.array([3.0, 1.0, 0.0])
    result = interpolate_peak(spectrum, 0, resolution=10.0)
    assert result == FrequencyMagnitude(frequency=0.0, magnitude=3.0)


def test_single_peak():
    spectrum = tone_spectrum([(1000.3, 60.0)])

    peaks = find_top_peaks(spectrum, SAMPLE_RATE, min_separation_hz=50)

    assert len(peaks) == 2
    assert abs(peaks[0].frequency - 1000.3) < 1.0
    assert peaks[0].magnitude > -30.0
    assert peaks[1] is None


def test_two_peaks_exactly_separated():
    spectrum = tone_spectrum([(1000, 40.0), (1050, 60.0)])

    peaks = find_top_peaks(spectrum, SAMPLE_RATE, min_separation_hz=50)

    assert peaks[0].frequency == pytest.approx(1050, abs=1.0)
    assert peaks[1].frequency == pytest.approx(1000, abs=1.0)
    assert peaks[0].magnitude > peaks[1].magnitude


def test_two_peaks_too_close_keeps_louder():
    spectrum = tone_spectrum([(1000, 60.0), (1030, 40.0)])

    peaks = find_top_peaks(spectrum, SAMPLE_RATE, min_separation_hz=50)

    assert peaks[0].frequency == pytest.approx(1000, abs=1.0)
    assert peaks[1] is None


def test_separation_measured_on_interpolated_frequencies():
    # 44.1 kHz / 8192 samples: 5.38 Hz per bin, a 50 Hz window of 9 bins
    rate = 44100
    resolution = rate / (2 * LENGTH)

    # 9 bins apart is only 48.4 Hz
    spectrum = tone_spectrum([(1000, 60.0), (1009, 40.0)])
    peaks = find_top_peaks(spectrum, rate, min_separation_hz=50)
    assert peaks[0].frequency == pytest.approx(1000 * resolution)
    assert peaks[1] is None

    # 10 bins apart is 53.8 Hz
    spectrum = tone_spectrum([(1000, 60.0), (1010, 40.0)])
    peaks = find_top_peaks(spectrum, rate, min_separation_hz=50, buffer_size=8192)
    assert peaks[0].frequency == pytest.approx(1000 * resolution)
    assert peaks[1].frequency == pytest.approx(1010 * resolution)


def test_quietest_of_three_dropped():
    spectrum = tone_spectrum([(500, 30.0), (1500, 60.0), (2500, 45.0)])

    peaks = find_top_peaks(spectrum, SAMPLE_RATE, min_separation_hz=50)
    assert [round(p.frequency) for p in peaks] == [1500, 2500]

    peaks = find_top_peaks(spectrum, SAMPLE_RATE, min_separation_hz=50, count=3)
    assert [round(p.frequency) for p in peaks] == [1500, 2500, 500]


def test_peak_at_window_edge_of_spectrum_ignored():
    # Monotonic ramp: every window maximum sits on its right edge
    spectrum = np.linspace(-80.0, 0.0, LENGTH)
    assert find_top_peaks(spectrum, SAMPLE_RATE, min_separation_hz=50) == [None, None]


def test_flat_spectrum_has_no_peaks():
    spectrum = np.full(LENGTH, -60.0)
    assert find_top_peaks(spectrum, SAMPLE_RATE, min_separation_hz=50) == [None, None]


def test_separation_too_small_is_configuration_error():
    spectrum = tone_spectrum([(1000, 60.0)])
    with pytest.raises(ConfigurationError) as excinfo:
        find_top_peaks(spectrum, SAMPLE_RATE, min_separation_hz=2)
    assert "at least 3.0 Hz" in str(excinfo.value)


def test_separation_to_bins_floors():
    # 50 Hz at 44.1 kHz / 8192 samples is 9.29 bins
    assert separation_to_bins(50, 44100, 8192) == 9


def test_missing_sample_rate_reported():
    spectrum = tone_spectrum([(1000, 60.0)])
    with pytest.raises(SourceUnavailableError):
        find_top_peaks(spectrum, None, min_separation_hz=50)


def test_peak_hold_keeps_last_loud_value():
    hold = PeakHold(count=2, min_magnitude_db=0.0)

    held = hold.update([FrequencyMagnitude(440.0, 10.0), None])
    assert held == [FrequencyMagnitude(440.0, 10.0), None]

    held = hold.update([FrequencyMagnitude(500.0, -5.0), FrequencyMagnitude(880.0, 3.0)])
    assert held == [FrequencyMagnitude(440.0, 10.0), FrequencyMagnitude(880.0, 3.0)]

    hold.reset()
    assert hold.held == [None, None]
