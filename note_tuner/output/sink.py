"""Audio sink - float WAV writer."""

import numpy as np
import soundfile as sf
from pathlib import Path
from typing import Optional

from ..core import FileOpenError


class AudioSink:
    """Writes (frames, channels) float audio to a 32-bit float WAV file."""

    FORMAT = "WAV"
    SUBTYPE = "FLOAT"

    def __init__(self, path: str, sample_rate: int, channels: int):
        """
        Create the output file.

        Args:
            path: Destination path (parent directories are created)
            sample_rate: Sample rate in Hz
            channels: Number of channels

        Raises:
            FileOpenError: If the file cannot be created
        """
        self.path = Path(path)
        self.sample_rate = sample_rate
        self.channels = channels

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file: Optional[sf.SoundFile] = sf.SoundFile(
                str(self.path),
                mode="w",
                samplerate=sample_rate,
                channels=channels,
                format=self.FORMAT,
                subtype=self.SUBTYPE,
            )
        except (RuntimeError, OSError, ValueError) as e:
            raise FileOpenError(f"Unable to open output file {self.path}: {e}") from e

    def __enter__(self) -> "AudioSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def write_frames(self, data: np.ndarray) -> int:
        """
        Append frames.

        Args:
            data: Samples shaped (frames, channels) or (frames,) for mono

        Returns:
            Number of frames written
        """
        if self._file is None:
            raise ValueError(f"Audio sink is closed: {self.path}")

        data = np.asarray(data, dtype=np.float32)
        if data.ndim == 1:
            data = data[:, np.newaxis]
        if data.shape[1] != self.channels:
            raise ValueError(
                f"Expected {self.channels} channels, got {data.shape[1]}"
            )

        before = self._file.frames
        self._file.write(data)
        return self._file.frames - before
