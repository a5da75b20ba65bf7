"""
Vowel guess from the two loudest tones.

Rounds both tones to the nearest 100 Hz and checks for a small integer
ratio between them.
"""

from enum import Enum
from typing import Optional, Sequence

from .peaks import FrequencyMagnitude


class VowelSound(Enum):
    """Vowel labels."""
    OOO = "ooo"
    AHH = "ahh"
    NONE = "None"


OOO_RATIOS = (3,)
AHH_RATIOS = (5, 7)


def classify_vowel(peaks: Sequence[Optional[FrequencyMagnitude]]) -> VowelSound:
    """
    Map the top two peaks to a vowel label.

    Args:
        peaks: Peak finder output, loudest first

    Returns:
        OOO for a 3:1 ratio, AHH for 5:1 or 7:1 (either order), else NONE
    """
    if len(peaks) < 2 or peaks[0] is None or peaks[1] is None:
        return VowelSound.NONE

    first = int(round(peaks[0].frequency / 100.0))
    second = int(round(peaks[1].frequency / 100.0))
    if first <= 0 or second <= 0:
        return VowelSound.NONE

    high, low = max(first, second), min(first, second)
    if high % low:
        return VowelSound.NONE

    ratio = high // low
    if ratio in OOO_RATIOS:
        return VowelSound.OOO
    if ratio in AHH_RATIOS:
        return VowelSound.AHH
    return VowelSound.NONE
