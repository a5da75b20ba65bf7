"""
Periodic analysis tick for Audiophile.

Pulls the freshest spectrum from a source and runs the peak finder and
the gesture classifier on it. The scheduler is external: call tick()
at whatever cadence suits, or use run() for a simple fixed-rate loop.
"""

import numpy as np
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import Config
from .errors import ConfigurationError, SourceUnavailableError, SpectrumShapeError
from .gesture import DopplerGestureClassifier, GestureReading, ProbeConfig
from .peaks import FrequencyMagnitude, PeakHold, find_top_peaks, separation_to_bins
from .vowel import VowelSound, classify_vowel


@dataclass
class AnalysisFrame:
    """Everything produced by one analysis tick."""
    tick: int
    timestamp: float
    probe: ProbeConfig
    spectrum: np.ndarray
    top_peaks: Optional[List[Optional[FrequencyMagnitude]]] = None
    held_peaks: Optional[List[Optional[FrequencyMagnitude]]] = None
    vowel: Optional[VowelSound] = None
    gesture: Optional[GestureReading] = None


class Analyzer:
    """
    Runs the enabled analysis components once per tick.

    All classifier state is touched only from the thread calling tick().
    set_probe() may be called from any thread: it swaps an immutable
    ProbeConfig under a lock and the next tick picks up the whole value.
    Probe listeners run under the same lock, so they see changes in the
    order they were made.
    """

    def __init__(self, config: Config, source=None,
                 find_peaks: bool = True, detect_gestures: bool = True):
        """
        Args:
            config: Audiophile configuration (validated here)
            source: Object with sample_rate and read_spectrum(); may be
                attached later
            find_peaks: Run the peak finder and vowel guess
            detect_gestures: Run the Doppler gesture classifier

        Raises:
            ConfigurationError: if the configuration cannot be analysed,
                including a peak separation under 3 bins, or if the
                source runs at a different sample rate
        """
        self.config = config.validate()
        self.find_peaks = find_peaks
        self.detect_gestures = detect_gestures

        if find_peaks:
            separation_to_bins(config.min_peak_separation_hz,
                               config.sample_rate, config.buffer_size)

        self._source = None
        self._classifier = DopplerGestureClassifier(config)
        self._hold = PeakHold(config.peak_count, config.peak_hold_min_db)

        self._probe = ProbeConfig(config.probe_freq, config.probe_volume)
        # Reentrant so a listener may read self.probe
        self._probe_lock = threading.RLock()
        self._probe_listeners: List[Callable[[ProbeConfig], None]] = []

        self._tick_count = 0

        if source is not None:
            self.attach(source)

    def attach(self, source):
        """
        Attach (or replace) the spectrum source.

        Raises:
            SourceUnavailableError: if the source has no sample rate yet
            ConfigurationError: if its sample rate differs from config.sample_rate
        """
        sample_rate = getattr(source, "sample_rate", None)
        if sample_rate is None:
            raise SourceUnavailableError("Spectrum source reports no sample rate")
        if sample_rate != self.config.sample_rate:
            raise ConfigurationError(
                f"Source runs at {sample_rate} Hz but the analyzer is configured "
                f"for {self.config.sample_rate} Hz"
            )
        self._source = source

    def add_probe_listener(self, callback: Callable[[ProbeConfig], None]):
        """
        Register a callback for probe changes.

        Used to retune the tone generator along with the classifier.

        Args:
            callback: Function(ProbeConfig) -> None
        """
        self._probe_listeners.append(callback)

    def set_probe(self, frequency: Optional[float] = None,
                  volume: Optional[float] = None) -> ProbeConfig:
        """
        Change the probe tone (thread-safe).

        Unspecified fields keep their current value. Volume is clipped
        to 0-1.

        Returns:
            The new ProbeConfig
        """
        with self._probe_lock:
            current = self._probe
            probe = ProbeConfig(
                frequency=float(frequency) if frequency is not None else current.frequency,
                volume=float(np.clip(volume, 0.0, 1.0)) if volume is not None else current.volume,
            )
            self._probe = probe

            for callback in self._probe_listeners:
                callback(probe)
        return probe

    @property
    def probe(self) -> ProbeConfig:
        with self._probe_lock:
            return self._probe

    def tick(self) -> AnalysisFrame:
        """
        Run one analysis pass on the freshest spectrum.

        Raises:
            SourceUnavailableError: if no source is attached
            SpectrumShapeError: if the source returns the wrong number of bins
        """
        if self._source is None:
            raise SourceUnavailableError("No spectrum source attached to analyzer")

        # One snapshot per tick
        probe = self.probe

        spectrum = np.asarray(self._source.read_spectrum(), dtype=np.float64)
        if len(spectrum) != self.config.spectrum_length:
            raise SpectrumShapeError(
                f"Source returned {len(spectrum)} bins, expected {self.config.spectrum_length}"
            )

        frame = AnalysisFrame(
            tick=self._tick_count,
            timestamp=time.time(),
            probe=probe,
            spectrum=spectrum,
        )

        if self.find_peaks:
            peaks = find_top_peaks(
                spectrum,
                self.config.sample_rate,
                self.config.min_peak_separation_hz,
                count=self.config.peak_count,
                buffer_size=self.config.buffer_size,
            )
            frame.top_peaks = peaks
            frame.held_peaks = self._hold.update(peaks)
            frame.vowel = classify_vowel(frame.held_peaks)

        if self.detect_gestures:
            frame.gesture = self._classifier.update(spectrum, probe)

        self._tick_count += 1
        return frame

    def run(self, callback: Callable[[AnalysisFrame], None],
            stop_event: Optional[threading.Event] = None,
            max_ticks: Optional[int] = None):
        """
        Tick at config.analysis_fps until stopped.

        A tick that overruns its slot is not made up: the schedule
        restarts from now, so only the most recent audio is analysed.

        Args:
            callback: Function(AnalysisFrame) -> None, called each tick
            stop_event: Set to end the loop
            max_ticks: Optional limit on the number of ticks
        """
        stop_event = stop_event or threading.Event()
        interval = self.config.tick_interval
        next_tick = time.monotonic()
        ticks = 0

        while not stop_event.is_set():
            callback(self.tick())
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break

            next_tick += interval
            delay = next_tick - time.monotonic()
            if delay > 0:
                stop_event.wait(delay)
            else:
                next_tick = time.monotonic()

    def reset(self):
        """Clear held peaks and classifier statistics."""
        self._hold.reset()
        self._classifier.reset()

    @property
    def classifier(self) -> DopplerGestureClassifier:
        return self._classifier

    @property
    def peak_hold(self) -> PeakHold:
        return self._hold

    @property
    def tick_count(self) -> int:
        return self._tick_count
