"""Error taxonomy for Note Tuner.

All library errors derive from TunerError so the CLI can report them
uniformly. PartialIOError is also a UserWarning: short reads and writes are
recovered locally and reported through ``warnings.warn``.
"""


class TunerError(Exception):
    """Base class for Note Tuner errors."""


class FileOpenError(TunerError):
    """An audio source or sink could not be opened."""


class UnsupportedFormatError(TunerError, ValueError):
    """The audio container is not supported by the I/O backend."""


class EmptyAudioError(TunerError):
    """No audio (or no pitched audio) was available for processing."""


class PartialIOError(TunerError, UserWarning):
    """Fewer frames were read or written than requested."""


class StretchStateError(TunerError, RuntimeError):
    """A streaming engine was used out of order."""
