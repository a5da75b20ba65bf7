#!/usr/bin/env python3
"""
Audiophile - Tone peaks and Doppler hand gestures from a microphone

Finds the two loudest tones the microphone hears, and detects a hand
moving toward or away from the device using an inaudible probe tone.

Usage:
    python main.py peaks          # Two loudest tones + vowel guess
    python main.py gesture        # Play probe tone, detect gestures
    python main.py visualize      # Live spectrum with probe sliders

License: MIT
"""

import argparse
import sys
import time

from audiophile import Config
from audiophile.analyzer import Analyzer
from audiophile.dsp import SpectrumSource
from audiophile.errors import AudiophileError
from audiophile.ui import ConsoleUI, MatplotlibUI


def build_config(args, **overrides) -> Config:
    """Config from the common command line flags."""
    return Config(
        sample_rate=args.rate,
        buffer_size=args.buffer,
        analysis_fps=args.fps,
        verbose=args.verbose,
        **overrides
    )


def cmd_peaks(args):
    """Two loudest tones, microphone only."""
    from audiophile.audio_rx import AudioRx

    config = build_config(args, min_peak_separation_hz=args.separation)
    analyzer = Analyzer(config, detect_gestures=False)

    print("\n" + "=" * 60)
    print("  Audiophile - Tone Peaks")
    print("=" * 60)
    print(f"\nResolution: {config.freq_resolution:.2f} Hz, "
          f"separation: {config.min_peak_separation_hz} Hz")
    print("Press Ctrl+C to exit.\n")

    ui = ConsoleUI(config)

    try:
        with AudioRx(config) as audio:
            time.sleep(config.buffer_size / config.sample_rate)  # Let buffer fill
            analyzer.attach(SpectrumSource(config, audio))
            analyzer.run(ui.update)
    except KeyboardInterrupt:
        print("\n\nStopping...")


def cmd_gesture(args):
    """Gesture detection mode."""
    from audiophile.audio_rx import AudioDuplex

    config = build_config(args, probe_freq=args.freq, probe_volume=args.volume)
    analyzer = Analyzer(config, find_peaks=False)

    print("\n" + "=" * 60)
    print("  Audiophile - Doppler Gestures")
    print("=" * 60)
    print(f"\nProbe: {config.probe_freq:,.0f} Hz @ {config.probe_volume:.2f}")
    print("\nKeep hands still while calibrating, then move toward or away.")
    print("Press Ctrl+C to exit.\n")

    ui = ConsoleUI(config)

    try:
        with AudioDuplex(config, analyzer.probe) as audio:
            analyzer.add_probe_listener(lambda probe: setattr(audio, 'probe', probe))
            analyzer.attach(SpectrumSource(config, audio))
            analyzer.run(ui.update)
    except KeyboardInterrupt:
        print("\n\nStopping...")


def cmd_visualize(args):
    """Real-time visualization."""
    from audiophile.audio_rx import AudioDuplex

    config = build_config(
        args,
        probe_freq=args.freq,
        probe_volume=args.volume,
        min_peak_separation_hz=args.separation,
    )
    analyzer = Analyzer(config)

    print("\n" + "=" * 60)
    print("  Audiophile - Live View")
    print("=" * 60)
    print("\nClose window or Ctrl+C to exit.\n")

    with AudioDuplex(config, analyzer.probe) as audio:
        analyzer.add_probe_listener(lambda probe: setattr(audio, 'probe', probe))
        analyzer.attach(SpectrumSource(config, audio))
        time.sleep(0.5)

        ui = MatplotlibUI(config, analyzer)
        ui.start()


def main():
    parser = argparse.ArgumentParser(
        description="Audiophile - Tone peaks and Doppler hand gestures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py peaks                     # Two loudest tones
    python main.py peaks --separation 100    # Tones at least 100 Hz apart
    python main.py gesture --freq 18000      # Gestures with an 18 kHz probe
    python main.py visualize                 # Spectrum + probe sliders
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    # Common arguments
    def add_common_args(p):
        p.add_argument('--rate', type=int, default=44100,
                      help='Sample rate in Hz (default: 44100)')
        p.add_argument('--buffer', type=int, default=8192,
                      help='FFT buffer size in samples (default: 8192)')
        p.add_argument('--fps', type=float, default=20.0,
                      help='Analysis ticks per second (default: 20)')
        p.add_argument('--verbose', action='store_true',
                      help='Print calibration progress')

    def add_probe_args(p):
        p.add_argument('--freq', type=float, default=17500,
                      help='Probe frequency in Hz (default: 17500)')
        p.add_argument('--volume', type=float, default=0.3,
                      help='Probe volume 0-1 (default: 0.3)')

    def add_peak_args(p):
        p.add_argument('--separation', type=int, default=50,
                      help='Minimum tone separation in Hz (default: 50)')

    # Peaks command
    p_peaks = subparsers.add_parser('peaks', help='Two loudest tones')
    add_common_args(p_peaks)
    add_peak_args(p_peaks)

    # Gesture command
    p_gesture = subparsers.add_parser('gesture', help='Doppler gesture detection')
    add_common_args(p_gesture)
    add_probe_args(p_gesture)

    # Visualize command
    p_viz = subparsers.add_parser('visualize', help='Real-time visualization')
    add_common_args(p_viz)
    add_probe_args(p_viz)
    add_peak_args(p_viz)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    # Dispatch
    commands = {
        'peaks': cmd_peaks,
        'gesture': cmd_gesture,
        'visualize': cmd_visualize,
    }

    try:
        commands[args.command](args)
    except AudiophileError as e:
        print(f"[ERROR] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
