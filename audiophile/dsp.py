"""
Digital Signal Processing module for Audiophile.

Turns blocks of time samples into dB magnitude spectra for the peak
finder and the gesture classifier.
"""

import numpy as np
from scipy import signal
from scipy.fft import rfft, rfftfreq

from .config import Config


class DSP:
    """
    Windowed FFT producing a fixed-length dB spectrum.

    The spectrum holds buffer_size / 2 bins: bin 0 is DC and the Nyquist
    bin is dropped.
    """

    def __init__(self, config: Config):
        self.config = config

        # Pre-compute window function
        self._window = signal.windows.get_window(
            config.window_type, config.buffer_size
        )

        # Pre-compute frequency bins
        self._freqs = rfftfreq(config.buffer_size, 1.0 / config.sample_rate)[:config.spectrum_length]

    def compute_spectrum(self, audio: np.ndarray) -> np.ndarray:
        """
        Compute magnitude spectrum of audio.

        Args:
            audio: Audio samples (at least buffer_size samples)

        Returns:
            Magnitude spectrum (linear scale), buffer_size / 2 bins
        """
        # Take last buffer_size samples
        segment = np.asarray(audio, dtype=np.float64)[-self.config.buffer_size:]
        if len(segment) < self.config.buffer_size:
            segment = np.concatenate([
                np.zeros(self.config.buffer_size - len(segment)), segment
            ])

        # Apply window and compute FFT
        windowed = segment * self._window
        spectrum = np.abs(rfft(windowed))

        return spectrum[:self.config.spectrum_length]

    def compute_log_spectrum(self, audio: np.ndarray) -> np.ndarray:
        """
        Compute log-magnitude spectrum.

        Args:
            audio: Audio samples

        Returns:
            Log-magnitude spectrum in dB, floored at config.db_floor
        """
        spectrum = self.compute_spectrum(audio)
        log_spec = 20 * np.log10(spectrum + 1e-10)
        return np.maximum(log_spec, self.config.db_floor)

    @property
    def freqs(self) -> np.ndarray:
        """Frequency of each spectrum bin in Hz."""
        return self._freqs


class SpectrumSource:
    """
    Supplies the freshest dB spectrum from an audio receiver.

    Any receiver exposing get_samples(num_samples) works (AudioRx,
    AudioDuplex, or a test double).
    """

    def __init__(self, config: Config, audio):
        self.config = config
        self.audio = audio
        self._dsp = DSP(config)

    @property
    def sample_rate(self) -> float:
        return self.config.sample_rate

    def read_spectrum(self) -> np.ndarray:
        """Transform the latest buffer_size samples."""
        samples = self.audio.get_samples(self.config.buffer_size)
        return self._dsp.compute_log_spectrum(samples)
