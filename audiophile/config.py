"""
Configuration module for Audiophile.

All tunable parameters in one place for easy experimentation.
"""

from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass
class Config:
    """Audiophile configuration parameters."""
    
    # ==========================================================================
    # Audio Settings
    # ==========================================================================
    sample_rate: int = 44100              # Hz
    buffer_size: int = 8192               # Time samples per FFT (spectrum gets half)
    analysis_fps: float = 20.0            # Analysis ticks per second
    window_type: str = "hann"             # Window function
    db_floor: float = -120.0              # Minimum dB value in spectra
    
    # Derived: freq resolution = sample_rate / buffer_size ≈ 5.4 Hz at 44.1kHz
    
    # ==========================================================================
    # Peak Finding
    # ==========================================================================
    min_peak_separation_hz: int = 50      # Hz - tones closer than this merge
    peak_count: int = 2                   # Number of tones to report
    peak_hold_min_db: float = 0.0         # Held readout only replaced above this
    
    # ==========================================================================
    # Probe Tone
    # ==========================================================================
    probe_freq: float = 17500.0           # Hz - inaudible for most listeners
    probe_volume: float = 0.3             # 0-1
    probe_freq_min: float = 15000.0       # Slider range
    probe_freq_max: float = 20000.0
    
    # ==========================================================================
    # Gesture Detection
    # ==========================================================================
    zoom_half_width: int = 100            # Bins either side of probe in zoomed view
    band_bins: int = 10                   # Bins averaged on each side of probe
    stabilization_ticks: int = 30         # Ticks suppressed after probe change
    baseline_frames: int = 30             # Ticks per baseline average
    threshold_samples: int = 30           # Ratio samples before detection starts
    threshold_capacity: int = 30          # Max ratio samples kept (FIFO)
    sigma_multiplier: float = 3.0         # Threshold = mean ± k * std
    deviation_floor: float = 0.05         # Min std as a fraction of |mean|
    band_gain: float = 1.0                # value' = gain * value + bias
    
    # ==========================================================================
    # Visualization
    # ==========================================================================
    ui_update_interval_ms: int = 50       # UI refresh rate
    verbose: bool = False                 # Print phase transitions
    
    # ==========================================================================
    # Derived Properties
    # ==========================================================================
    @property
    def freq_resolution(self) -> float:
        """Frequency resolution in Hz."""
        return self.sample_rate / self.buffer_size
    
    @property
    def spectrum_length(self) -> int:
        """Number of magnitude bins (DC included, Nyquist dropped)."""
        return self.buffer_size // 2
    
    @property
    def tick_interval(self) -> float:
        """Seconds between analysis ticks."""
        return 1.0 / self.analysis_fps
    
    def get_probe_bin(self, freq: float) -> int:
        """Get the spectrum bin index nearest to a frequency."""
        return int(round(freq / self.freq_resolution))
    
    def validate(self) -> "Config":
        """
        Check for parameter combinations the analysis cannot run with.
        
        Returns:
            self, so construction can be chained
            
        Raises:
            ConfigurationError: naming the first offending parameter
        """
        if self.sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.buffer_size < 2 or self.buffer_size % 2:
            raise ConfigurationError(f"buffer_size must be an even number >= 2, got {self.buffer_size}")
        if self.analysis_fps <= 0:
            raise ConfigurationError(f"analysis_fps must be positive, got {self.analysis_fps}")
        if self.peak_count < 1:
            raise ConfigurationError(f"peak_count must be at least 1, got {self.peak_count}")
        if self.band_bins < 1:
            raise ConfigurationError(f"band_bins must be at least 1, got {self.band_bins}")
        if self.zoom_half_width < self.band_bins:
            raise ConfigurationError(
                f"zoom_half_width ({self.zoom_half_width}) must cover band_bins ({self.band_bins})"
            )
        if self.spectrum_length < 2 * self.band_bins + 1:
            raise ConfigurationError(
                f"spectrum of {self.spectrum_length} bins cannot hold two bands of {self.band_bins}"
            )
        for name in ("stabilization_ticks", "baseline_frames", "threshold_samples"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1, got {getattr(self, name)}")
        if self.threshold_capacity < self.threshold_samples:
            raise ConfigurationError(
                f"threshold_capacity ({self.threshold_capacity}) must be >= "
                f"threshold_samples ({self.threshold_samples})"
            )
        if self.sigma_multiplier <= 0:
            raise ConfigurationError(f"sigma_multiplier must be positive, got {self.sigma_multiplier}")
        if self.deviation_floor < 0:
            raise ConfigurationError(f"deviation_floor must be >= 0, got {self.deviation_floor}")
        if not 0.0 <= self.probe_volume <= 1.0:
            raise ConfigurationError(f"probe_volume must be within 0-1, got {self.probe_volume}")
        return self
