import pytest

from audiophile.peaks import FrequencyMagnitude
from audiophile.vowel import VowelSound, classify_vowel


def tones(*freqs):
    return [FrequencyMagnitude(f, 20.0) if f is not None else None for f in freqs]


@pytest.mark.parametrize("first, second, expected", [
    (300.0, 900.0, VowelSound.OOO),
    (900.0, 300.0, VowelSound.OOO),
    (296.0, 905.0, VowelSound.OOO),     # rounds to 300 / 900
    (1000.0, 200.0, VowelSound.AHH),
    (100.0, 700.0, VowelSound.AHH),
    (400.0, 100.0, VowelSound.NONE),
    (300.0, 700.0, VowelSound.NONE),
    (440.0, 440.0, VowelSound.NONE),
    (30.0, 90.0, VowelSound.NONE),      # rounds to 0 Hz
])
def test_ratio_labels(first, second, expected):
    assert classify_vowel(tones(first, second)) == expected


def test_missing_peak_is_none():
    assert classify_vowel(tones(300.0, None)) == VowelSound.NONE
    assert classify_vowel(tones(None, None)) == VowelSound.NONE
    assert classify_vowel([]) == VowelSound.NONE
