"""Pitch shift engine - duration-preserving re-pitching of a whole recording.

The recording is de-interleaved, zero-padded to a multiple of the stretch
engine's block length and streamed through it block by block. After the
flush, the priming region at the head of the output is trimmed using an
energy-based onset search that never cuts before the engine latency nor
more than one block after it, so leading silence in the input survives.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from .stretch import STRETCH_ENGINES, TimeStretchEngine
from ..core import EmptyAudioError, PitchShiftRequest, StretchStateError
from ..core.constants import (
    DEFAULT_TONALITY_LIMIT,
    DEFAULT_TRIM_REQUIRED_WINDOWS,
    DEFAULT_TRIM_THRESHOLD,
    DEFAULT_TRIM_WINDOW,
)


@dataclass
class ShiftConfig:
    """Configuration for the pitch shift stage.

    Attributes:
        tonality_limit_hz: Cutoff above which content is offset rather than scaled (default: 8000, None = off)
        trim_window: Window length in samples for the onset search (default: 256)
        trim_threshold: RMS level a window must exceed (default: 1e-4)
        trim_required_windows: Consecutive windows needed to accept an onset (default: 3)
        engine: Stretch engine name, one of STRETCH_ENGINES (default: "vocoder")
    """

    tonality_limit_hz: Optional[float] = DEFAULT_TONALITY_LIMIT
    trim_window: int = DEFAULT_TRIM_WINDOW
    trim_threshold: float = DEFAULT_TRIM_THRESHOLD
    trim_required_windows: int = DEFAULT_TRIM_REQUIRED_WINDOWS
    engine: str = "vocoder"

    def __post_init__(self):
        if self.engine not in STRETCH_ENGINES:
            raise ValueError(
                f"Unknown stretch engine: {self.engine!r}. "
                f"Available: {sorted(STRETCH_ENGINES)}"
            )


class ShiftState(Enum):
    """Lifecycle of a PitchShiftEngine."""
    IDLE = "idle"
    CONFIGURED = "configured"
    STREAMING = "streaming"
    FLUSHING = "flushing"
    TRIMMING = "trimming"
    DONE = "done"


def find_trim_point(
    output: np.ndarray,
    latency: int,
    window: int = DEFAULT_TRIM_WINDOW,
    threshold: float = DEFAULT_TRIM_THRESHOLD,
    required_windows: int = DEFAULT_TRIM_REQUIRED_WINDOWS,
    search_length: Optional[int] = None,
) -> int:
    """
    Find where real audio starts in a stretch engine's output.

    Args:
        output: Raw output shaped (channels, samples)
        latency: Engine output latency; the result is never smaller
        window: Window length in samples
        threshold: RMS (across all channels) a window must exceed
        required_windows: Consecutive loud windows needed
        search_length: Only windows starting within this many samples after
            the latency are scanned (default: all)

    Returns:
        Sample index to trim at
    """
    total = output.shape[1]
    count = (total - latency) // window
    if search_length is not None:
        count = min(count, search_length // window)
    if count <= 0:
        return latency

    segments = output[:, latency:latency + count * window]
    segments = segments.reshape(output.shape[0], count, window)
    rms = np.sqrt(np.mean(segments ** 2, axis=(0, 2)))

    consecutive = 0
    for index, loud in enumerate(rms > threshold):
        if not loud:
            consecutive = 0
            continue
        consecutive += 1
        if consecutive >= required_windows:
            start = latency + index * window
            # Back off half the run so the attack is kept
            return max(latency, start - (required_windows - 1) * window // 2)

    return latency


class PitchShiftEngine:
    """Re-pitches one recording. Instances are single-use."""

    def __init__(
        self,
        config: Optional[ShiftConfig] = None,
        stretch_factory: Optional[Callable[[], TimeStretchEngine]] = None,
    ):
        """
        Initialize PitchShiftEngine.

        Args:
            config: Optional ShiftConfig
            stretch_factory: Builds a fresh stretch engine for the run
                (default: the engine named in config)
        """
        self.config = config or ShiftConfig()
        self.stretch_factory = stretch_factory or STRETCH_ENGINES[self.config.engine]
        self.state = ShiftState.IDLE

        self.block_samples: Optional[int] = None
        self.latency: Optional[int] = None
        self.trim_point: Optional[int] = None
        self.raw_length: Optional[int] = None

    def shift(self, audio: np.ndarray, request: PitchShiftRequest) -> np.ndarray:
        """
        Re-pitch a recording.

        Args:
            audio: Samples shaped (frames, channels) or (frames,)
            request: Shift amount, sample rate and channel count

        Returns:
            Shifted float32 samples shaped (frames, channels)

        Raises:
            EmptyAudioError: If the audio has no samples
            StretchStateError: If this engine was already used
        """
        if self.state is not ShiftState.IDLE:
            raise StretchStateError("PitchShiftEngine instances are single-use")

        audio = np.asarray(audio, dtype=np.float32)
        if audio.ndim == 1:
            audio = audio[:, np.newaxis]
        if audio.size == 0:
            raise EmptyAudioError("No audio data to process")
        if audio.shape[1] != request.channels:
            raise ValueError(
                f"Audio has {audio.shape[1]} channels, request says {request.channels}"
            )

        with self.stretch_factory() as stretcher:
            stretcher.configure(request.channels, request.sample_rate)
            stretcher.set_pitch_shift(request.semitones, self.config.tonality_limit_hz)
            self.block_samples = stretcher.block_samples
            self.latency = stretcher.output_latency
            self.state = ShiftState.CONFIGURED

            channels = self._prepare(audio, self.block_samples)

            self.state = ShiftState.STREAMING
            blocks = self._stream(stretcher, channels)

            self.state = ShiftState.FLUSHING
            blocks.append(stretcher.flush())

        raw = np.concatenate(blocks, axis=1)
        self.raw_length = raw.shape[1]

        self.state = ShiftState.TRIMMING
        self.trim_point = find_trim_point(
            raw,
            self.latency,
            window=self.config.trim_window,
            threshold=self.config.trim_threshold,
            required_windows=self.config.trim_required_windows,
            search_length=self.block_samples,
        )

        # The tail is kept in full
        trimmed = np.ascontiguousarray(raw[:, self.trim_point:].T, dtype=np.float32)
        self.state = ShiftState.DONE
        return trimmed

    @staticmethod
    def _prepare(audio: np.ndarray, block_samples: int) -> np.ndarray:
        """De-interleave and zero-pad to a multiple of block_samples."""
        frames = audio.shape[0]
        n_blocks = -(-frames // block_samples)
        padded = np.zeros((audio.shape[1], n_blocks * block_samples), dtype=np.float64)
        padded[:, :frames] = audio.T
        return padded

    @staticmethod
    def _stream(stretcher: TimeStretchEngine, channels: np.ndarray) -> List[np.ndarray]:
        """Feed consecutive blocks in order."""
        block_samples = stretcher.block_samples
        total = channels.shape[1]
        outputs = []
        for start in range(0, total, block_samples):
            size = min(block_samples, total - start)
            outputs.append(stretcher.process(channels[:, start:start + size]))
        return outputs
