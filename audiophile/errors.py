"""Exceptions raised by the analysis core."""


class AudiophileError(Exception):
    """Base class for errors reported to the caller."""


class ConfigurationError(AudiophileError, ValueError):
    """A parameter (or combination) the analysis cannot run with."""


class SourceUnavailableError(AudiophileError, RuntimeError):
    """Analysis was requested before a spectrum source was attached."""


class SpectrumShapeError(AudiophileError, ValueError):
    """A spectrum did not have the length this instance was built for."""
