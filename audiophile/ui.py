"""
User interface module for Audiophile.

Console status line and a live matplotlib view of the spectrum, the
zoomed probe band and the detected gesture.
"""

import numpy as np
from typing import Optional

from .analyzer import AnalysisFrame, Analyzer
from .config import Config
from .gesture import GestureState
from .peaks import FrequencyMagnitude
from .vowel import VowelSound


def format_peak(peak: Optional[FrequencyMagnitude]) -> str:
    """Readout text for one peak slot."""
    if peak is None:
        return "Noise"
    return f"{peak.frequency:8.1f} Hz"


GESTURE_SYMBOLS = {
    GestureState.UNAVAILABLE: "…",
    GestureState.CALIBRATING: "◌",
    GestureState.NONE: "·",
    GestureState.TOWARD: "▲",
    GestureState.AWAY: "▼",
}

GESTURE_COLORS = {
    GestureState.UNAVAILABLE: '#888888',
    GestureState.CALIBRATING: '#ffcc00',
    GestureState.NONE: '#555555',
    GestureState.TOWARD: '#00ff88',
    GestureState.AWAY: '#ff4488',
}


class ConsoleUI:
    """
    Simple console-based UI for terminal display.

    Rewrites one status line per tick.
    """

    def __init__(self, config: Config):
        self.config = config
        self._last_state: Optional[GestureState] = None

    def update(self, frame: AnalysisFrame):
        """Update console display."""
        parts = []

        if frame.held_peaks is not None:
            for slot, peak in enumerate(frame.held_peaks, start=1):
                parts.append(f"F{slot}: {format_peak(peak)}")
            if frame.vowel is not None and frame.vowel != VowelSound.NONE:
                parts.append(f"vowel: {frame.vowel.value}")

        if frame.gesture is not None:
            g = frame.gesture
            symbol = GESTURE_SYMBOLS[g.state]
            parts.append(f"{symbol} {g.state.value:<20}")
            parts.append(f"probe {g.probe_level_db:6.1f} dB")
            if g.ratio is not None:
                parts.append(f"R={g.ratio:5.3f}")

            if g.state != self._last_state and g.state.is_gesture:
                print(f"\n✨ {symbol} {g.state.value.upper()}")
            self._last_state = g.state

        print("\r" + "  ".join(parts) + " " * 10, end="", flush=True)


class MatplotlibUI:
    """
    Matplotlib-based visualization.

    Shows:
    - Full dB spectrum with the two loudest tones marked
    - Zoomed band around the probe with the detected gesture
    - Frequency and volume sliders driving Analyzer.set_probe()
    """

    def __init__(self, config: Config, analyzer: Analyzer):
        self.config = config
        self.analyzer = analyzer
        self._fig = None
        self._anim = None
        self._sliders = []

    def start(self):
        """Start the visualization (blocks until the window closes)."""
        import matplotlib.pyplot as plt
        from matplotlib.animation import FuncAnimation
        from matplotlib.gridspec import GridSpec
        from matplotlib.widgets import Slider

        plt.style.use('dark_background')

        self._fig = plt.figure(figsize=(12, 8))
        gs = GridSpec(4, 1, height_ratios=[3, 3, 0.3, 0.3], hspace=0.45)
        self._ax_spec = self._fig.add_subplot(gs[0])
        self._ax_zoom = self._fig.add_subplot(gs[1])

        if self.analyzer.detect_gestures:
            probe = self.analyzer.probe
            ax_freq = self._fig.add_subplot(gs[2])
            ax_vol = self._fig.add_subplot(gs[3])
            freq_slider = Slider(ax_freq, 'Probe Hz', self.config.probe_freq_min,
                                 self.config.probe_freq_max, valinit=probe.frequency)
            vol_slider = Slider(ax_vol, 'Volume', 0.0, 1.0, valinit=probe.volume)
            freq_slider.on_changed(lambda value: self.analyzer.set_probe(frequency=value))
            vol_slider.on_changed(lambda value: self.analyzer.set_probe(volume=value))
            # Keep references or the widgets stop responding
            self._sliders = [freq_slider, vol_slider]

        self._fig.suptitle('Audiophile', fontsize=14, fontweight='bold', color='#00ff88')

        self._anim = FuncAnimation(
            self._fig, self._update_plot,
            interval=self.config.ui_update_interval_ms,
            blit=False, cache_frame_data=False
        )
        plt.show()

    def _update_plot(self, _frame):
        """Run one analysis tick and redraw."""
        frame = self.analyzer.tick()
        resolution = self.config.freq_resolution

        # === Full spectrum ===
        self._ax_spec.clear()
        freqs = np.arange(len(frame.spectrum)) * resolution
        self._ax_spec.plot(freqs, frame.spectrum, color='#00ffff', linewidth=0.8)

        if frame.held_peaks is not None:
            for peak in frame.held_peaks:
                if peak is None:
                    continue
                self._ax_spec.axvline(x=peak.frequency, color='#ff8800',
                                      linestyle='--', alpha=0.8)
                self._ax_spec.text(peak.frequency, peak.magnitude, f'{peak.frequency:.0f} Hz',
                                   color='#ff8800', fontsize=9)
            title = '   '.join(format_peak(p).strip() for p in frame.held_peaks)
            if frame.vowel is not None and frame.vowel != VowelSound.NONE:
                title += f'   [{frame.vowel.value}]'
        else:
            title = 'Spectrum'

        self._ax_spec.set_xlabel('Frequency (Hz)', color='#aaa')
        self._ax_spec.set_ylabel('dB', color='#aaa')
        self._ax_spec.set_title(title, color='#00ff88')

        # === Zoomed probe band ===
        self._ax_zoom.clear()
        g = frame.gesture
        if g is not None:
            x = np.arange(len(g.zoomed_spectrum))
            color = GESTURE_COLORS[g.state]
            self._ax_zoom.plot(x, g.zoomed_spectrum, color=color, linewidth=1.5)
            self._ax_zoom.set_title(
                f'{g.state.value}   probe {frame.probe.frequency:.0f} Hz '
                f'@ {g.probe_level_db:.1f} dB', color=color
            )
            if g.ratio is not None:
                text = f'R = {g.ratio:.3f}'
                if g.thresholds is not None:
                    text += f'   ({g.thresholds[0]:.3f} .. {g.thresholds[1]:.3f})'
                self._ax_zoom.text(0.02, 0.9, text, transform=self._ax_zoom.transAxes,
                                   color='#aaa', family='monospace')
        self._ax_zoom.set_xlabel('Bin (zoomed)', color='#aaa')

        self._fig.canvas.draw_idle()

    def stop(self):
        """Stop visualization."""
        if self._fig:
            import matplotlib.pyplot as plt
            plt.close(self._fig)
