"""Audio source - block-wise reading of audio files."""

import warnings
import numpy as np
import soundfile as sf
from pathlib import Path
from typing import Iterator, Optional

from ..core import AudioInfo, FileOpenError, PartialIOError, UnsupportedFormatError


class AudioSource:
    """Reads an audio file as consecutive frame blocks.

    Frames are returned as float32 arrays shaped ``(frames, channels)``,
    which is the interleaved sample order when flattened.
    """

    # Common extensions that are not libsndfile major format names
    FORMAT_ALIASES = {
        "AIF": "AIFF",
        "AIFC": "AIFF",
        "WAVE": "WAV",
        "OGA": "OGG",
        "OPUS": "OGG",
        "SND": "AU",
    }

    def __init__(self, path: str):
        """
        Open an audio file for reading.

        Args:
            path: Path to audio file

        Raises:
            FileOpenError: If the file is missing or cannot be decoded
            UnsupportedFormatError: If the container is not supported
        """
        self.path = Path(path)

        if not self.path.is_file():
            raise FileOpenError(f"Audio file not found: {self.path}")

        extension = self.path.suffix.lstrip(".").upper()
        extension = self.FORMAT_ALIASES.get(extension, extension)
        if extension not in sf.available_formats():
            raise UnsupportedFormatError(
                f"Unsupported format: {self.path.suffix}. "
                f"Supported: {sorted(sf.available_formats())}"
            )

        try:
            self._file: Optional[sf.SoundFile] = sf.SoundFile(str(self.path), mode="r")
        except (RuntimeError, OSError) as e:
            raise FileOpenError(f"Unable to open audio file {self.path}: {e}") from e

    def __enter__(self) -> "AudioSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying file handle."""
        if self._file is not None:
            self._file.close()
            self._file = None

    @property
    def closed(self) -> bool:
        return self._file is None

    def _handle(self) -> sf.SoundFile:
        if self._file is None:
            raise ValueError(f"Audio source is closed: {self.path}")
        return self._file

    @property
    def sample_rate(self) -> int:
        return self._handle().samplerate

    @property
    def channels(self) -> int:
        return self._handle().channels

    @property
    def frames(self) -> int:
        return self._handle().frames

    @property
    def info(self) -> AudioInfo:
        handle = self._handle()
        return AudioInfo(
            path=str(self.path),
            sample_rate=handle.samplerate,
            channels=handle.channels,
            frames=handle.frames,
            format=handle.format,
            subtype=handle.subtype,
        )

    def read_frames(self, max_frames: int) -> np.ndarray:
        """
        Read up to ``max_frames`` frames.

        Args:
            max_frames: Maximum number of frames to read

        Returns:
            Array shaped (frames_read, channels); zero rows at end of stream
        """
        handle = self._handle()
        expected = max(0, min(max_frames, handle.frames - handle.tell()))

        data = handle.read(max_frames, dtype="float32", always_2d=True)

        if len(data) != expected:
            warnings.warn(
                PartialIOError(
                    f"Read {len(data)} of {expected} frames from {self.path.name}"
                )
            )
        return data

    def blocks(self, block_frames: int) -> Iterator[np.ndarray]:
        """Yield consecutive, non-overlapping blocks until end of stream."""
        if block_frames <= 0:
            raise ValueError(f"block_frames must be positive, got {block_frames}")

        while True:
            block = self.read_frames(block_frames)
            if len(block) == 0:
                return
            yield block

    def read_all(self) -> np.ndarray:
        """Read all remaining frames as one (frames, channels) array."""
        handle = self._handle()
        remaining = max(0, handle.frames - handle.tell())
        return self.read_frames(remaining)
