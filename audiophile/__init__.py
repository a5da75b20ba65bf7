"""
Audiophile - Tone peaks and Doppler hand gestures from a microphone

Finds the two loudest tones in a live spectrum with sub-bin accuracy,
and classifies hand motion toward or away from the device from the
spectral asymmetry around a continuously played probe tone.
"""

__version__ = "0.1.0"
__author__ = "Audiophile Project"

from .config import Config
