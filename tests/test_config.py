import pytest

from audiophile import Config
from audiophile.errors import ConfigurationError


def test_derived_properties():
    config = Config()
    assert config.spectrum_length == 4096
    assert config.freq_resolution == pytest.approx(44100 / 8192)
    assert config.tick_interval == pytest.approx(0.05)
    assert config.get_probe_bin(17500.0) == 3251


def test_defaults_are_valid():
    config = Config()
    assert config.validate() is config


@pytest.mark.parametrize("overrides", [
    dict(sample_rate=0),
    dict(buffer_size=8191),
    dict(analysis_fps=0),
    dict(band_bins=0),
    dict(zoom_half_width=5),
    dict(baseline_frames=0),
    dict(threshold_capacity=10),
    dict(sigma_multiplier=0.0),
    dict(deviation_floor=-0.1),
    dict(probe_volume=1.5),
])
def test_invalid_combinations_rejected(overrides):
    with pytest.raises(ConfigurationError):
        Config(**overrides).validate()


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        Config(sample_rate=-1).validate()
