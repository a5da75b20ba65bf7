"""
Audio I/O module - captures microphone input and plays the probe tone.

The sounddevice callbacks only append into a fixed-capacity circular
buffer; the analysis tick copies the freshest window out of it.
"""

import numpy as np
import threading
from collections import deque
from typing import Optional

try:
    import sounddevice as sd
except ImportError:
    raise ImportError("sounddevice required: pip install sounddevice")

from .config import Config
from .gesture import ProbeConfig


class AudioRx:
    """
    Microphone input receiver.

    Captures audio from the system microphone into a circular buffer
    holding the most recent samples.
    """

    def __init__(self, config: Config, buffer_duration: float = 1.0):
        """
        Initialize receiver.

        Args:
            config: Audiophile configuration
            buffer_duration: Seconds of audio history to retain
        """
        self.config = config
        self._stream: Optional[sd.InputStream] = None
        self._running: bool = False

        # Circular buffer, never smaller than one FFT block
        buffer_size = max(int(buffer_duration * config.sample_rate), config.buffer_size)
        self._buffer = deque(maxlen=buffer_size)
        self._lock = threading.Lock()

    def _input_callback(self, indata: np.ndarray, frames: int,
                        time_info, status):
        """Sounddevice input callback."""
        if status:
            print(f"[RX] Input status: {status}")

        samples = indata[:, 0].copy()
        with self._lock:
            self._buffer.extend(samples)

    def start(self):
        """Start recording from microphone."""
        if self._running:
            return

        print(f"[RX] Starting microphone capture at {self.config.sample_rate} Hz")

        self._stream = sd.InputStream(
            samplerate=self.config.sample_rate,
            channels=1,
            dtype=np.float32,
            callback=self._input_callback,
        )
        self._stream.start()
        self._running = True
        print("[RX] Recording started ✓")

    def stop(self):
        """Stop recording."""
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        self._running = False
        with self._lock:
            self._buffer.clear()
        print("[RX] Recording stopped")

    def get_samples(self, num_samples: int) -> np.ndarray:
        """
        Get the most recent audio samples.

        Args:
            num_samples: Number of samples to retrieve

        Returns:
            Audio samples, zero-padded at the front if not enough recorded yet
        """
        with self._lock:
            buffer_list = list(self._buffer)

        if len(buffer_list) < num_samples:
            padding = np.zeros(num_samples - len(buffer_list), dtype=np.float32)
            return np.concatenate([padding, np.asarray(buffer_list, dtype=np.float32)])

        return np.array(buffer_list[-num_samples:], dtype=np.float32)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()


class AudioDuplex(AudioRx):
    """
    Microphone capture plus a continuous probe tone on the speaker.

    Uses a single full-duplex stream. The tone keeps its phase across
    callbacks so retuning does not click.
    """

    def __init__(self, config: Config, probe: Optional[ProbeConfig] = None,
                 buffer_duration: float = 1.0):
        super().__init__(config, buffer_duration)
        self._phase: float = 0.0
        self._probe = probe or ProbeConfig(config.probe_freq, config.probe_volume)

    @property
    def probe(self) -> ProbeConfig:
        return self._probe

    @probe.setter
    def probe(self, probe: ProbeConfig):
        with self._lock:
            self._probe = probe

    def _duplex_callback(self, indata: np.ndarray, outdata: np.ndarray,
                         frames: int, time_info, status):
        """Combined I/O callback."""
        if status and 'overflow' not in str(status):
            print(f"[DUPLEX] Status: {status}")

        # === OUTPUT: probe tone ===
        with self._lock:
            probe = self._probe

        t = np.arange(frames) / self.config.sample_rate
        tone = probe.volume * np.sin(2 * np.pi * probe.frequency * t + self._phase)
        outdata[:] = tone[:, np.newaxis]

        phase_increment = 2 * np.pi * probe.frequency * frames / self.config.sample_rate
        self._phase = (self._phase + phase_increment) % (2 * np.pi)

        # === INPUT: store samples ===
        samples = indata[:, 0].copy()
        with self._lock:
            self._buffer.extend(samples)

    def start(self):
        """Start duplex audio stream."""
        if self._running:
            return

        print(f"[DUPLEX] Starting at {self.config.sample_rate} Hz, "
              f"probe {self._probe.frequency:.0f} Hz @ {self._probe.volume:.2f}")

        self._stream = sd.Stream(
            samplerate=self.config.sample_rate,
            channels=1,
            dtype=np.float32,
            callback=self._duplex_callback,
            latency='high',  # Prioritize stability over latency
        )
        self._stream.start()
        self._running = True
        print("[DUPLEX] Stream started ✓")

    def stop(self):
        """Stop duplex stream."""
        super().stop()
        self._phase = 0.0
