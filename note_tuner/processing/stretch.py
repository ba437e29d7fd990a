"""Streaming pitch transforms.

A TimeStretchEngine keeps overlap-add state between calls, so blocks must
be fed in order and without gaps. The base class enforces the call order:

    IDLE -> configure() -> CONFIGURED -> process()* -> STREAMING
         -> flush() -> FLUSHED -> close() -> CLOSED
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Tuple

import numpy as np
import librosa

from ..core import StretchStateError
from ..core.constants import DEFAULT_STRETCH_FFT, DEFAULT_STRETCH_OVERSAMPLE


class StretchState(Enum):
    """Lifecycle of a streaming transform."""
    IDLE = "idle"
    CONFIGURED = "configured"
    STREAMING = "streaming"
    FLUSHED = "flushed"
    CLOSED = "closed"


class TimeStretchEngine(ABC):
    """Block-streaming, duration-preserving pitch transform."""

    def __init__(self):
        self.state = StretchState.IDLE
        self.channels = 0
        self.sample_rate = 0
        self.semitones = 0.0
        self.tonality_limit_hz: Optional[float] = None

    def __enter__(self) -> "TimeStretchEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require(self, allowed: Tuple[StretchState, ...], action: str) -> None:
        if self.state not in allowed:
            expected = ", ".join(s.value for s in allowed)
            raise StretchStateError(
                f"Cannot {action} in state '{self.state.value}' (expected: {expected})"
            )

    def configure(self, channels: int, sample_rate: int) -> None:
        """Allocate streaming state for a channel count and sample rate."""
        self._require((StretchState.IDLE,), "configure")
        if channels <= 0:
            raise ValueError(f"channels must be positive, got {channels}")
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")

        self.channels = channels
        self.sample_rate = sample_rate
        self._allocate()
        self.state = StretchState.CONFIGURED

    def set_pitch_shift(
        self,
        semitones: float,
        tonality_limit_hz: Optional[float] = None,
    ) -> None:
        """
        Set the transposition before streaming starts.

        Args:
            semitones: Signed shift in semitones
            tonality_limit_hz: Above this cutoff frequencies are offset by the
                cutoff's shift instead of scaled (None = scale everything)
        """
        self._require((StretchState.CONFIGURED,), "set pitch shift")
        if tonality_limit_hz is not None and tonality_limit_hz <= 0:
            raise ValueError(f"tonality_limit_hz must be positive, got {tonality_limit_hz}")

        self.semitones = float(semitones)
        self.tonality_limit_hz = tonality_limit_hz
        self._update_shift()

    @property
    @abstractmethod
    def block_samples(self) -> int:
        """Preferred block length B."""
        pass

    @property
    @abstractmethod
    def output_latency(self) -> int:
        """Number of priming samples at the head of the output."""
        pass

    def process(self, block: np.ndarray) -> np.ndarray:
        """
        Transform the next block.

        Args:
            block: De-interleaved samples shaped (channels, n)

        Returns:
            Output samples shaped (channels, n)
        """
        self._require((StretchState.CONFIGURED, StretchState.STREAMING), "process")
        block = np.asarray(block, dtype=np.float64)
        if block.ndim != 2 or block.shape[0] != self.channels:
            raise ValueError(
                f"Expected block shaped ({self.channels}, n), got {block.shape}"
            )

        self.state = StretchState.STREAMING
        return self._process(block)

    def flush(self) -> np.ndarray:
        """Drain the remaining output_latency samples."""
        self._require((StretchState.CONFIGURED, StretchState.STREAMING), "flush")
        output = self._flush()
        self.state = StretchState.FLUSHED
        return output

    def close(self) -> None:
        """Release internal buffers. Safe to call more than once."""
        if self.state is not StretchState.CLOSED:
            self._release()
            self.state = StretchState.CLOSED

    @abstractmethod
    def _allocate(self) -> None:
        pass

    @abstractmethod
    def _update_shift(self) -> None:
        pass

    @abstractmethod
    def _process(self, block: np.ndarray) -> np.ndarray:
        pass

    @abstractmethod
    def _flush(self) -> np.ndarray:
        pass

    @abstractmethod
    def _release(self) -> None:
        pass


class PhaseVocoderStretch(TimeStretchEngine):
    """Streaming STFT phase-vocoder pitch shifter.

    Each hop, the newest ``fft_size`` input samples are analysed; every
    bin's true frequency is estimated from its phase advance, moved to bin
    ``floor(k * ratio)`` (or past the tonality limit, shifted by the limit's
    displacement) and resynthesised with accumulated phase, then
    overlap-added into the output. Output is delayed by ``fft_size - hop``
    samples; with a zero shift the input is reconstructed exactly.
    """

    def __init__(
        self,
        fft_size: int = DEFAULT_STRETCH_FFT,
        oversample: int = DEFAULT_STRETCH_OVERSAMPLE,
    ):
        """
        Initialize PhaseVocoderStretch.

        Args:
            fft_size: Analysis frame length in samples
            oversample: Frames per fft_size (hop = fft_size / oversample)
        """
        super().__init__()
        if oversample < 2 or fft_size % oversample:
            raise ValueError(
                f"fft_size ({fft_size}) must be a multiple of oversample ({oversample}) >= 2"
            )

        self.fft_size = fft_size
        self.oversample = oversample
        self.hop = fft_size // oversample
        self.ratio = 1.0

    @property
    def block_samples(self) -> int:
        return self.fft_size

    @property
    def output_latency(self) -> int:
        return self.fft_size - self.hop

    def _allocate(self) -> None:
        n_bins = self.fft_size // 2 + 1

        self._window = librosa.filters.get_window("hann", self.fft_size, fftbins=True)
        self._norm = np.sum(self._window ** 2) / self.hop
        self._bins = np.arange(n_bins)
        self._expected_advance = 2.0 * np.pi * self.hop / self.fft_size

        self._in_fifo = np.zeros((self.channels, self.fft_size))
        self._out_accum = np.zeros((self.channels, self.fft_size))
        self._last_phase = np.zeros((self.channels, n_bins))
        self._sum_phase = np.zeros((self.channels, n_bins))

        self._update_shift()

    def _update_shift(self) -> None:
        self.ratio = 2.0 ** (self.semitones / 12.0)

        # f -> f * ratio below the limit, f -> f + (ratio - 1) * limit above it
        scale = np.full(len(self._bins), self.ratio)
        offset = np.zeros(len(self._bins))
        if self.tonality_limit_hz is not None:
            limit_bin = self.tonality_limit_hz * self.fft_size / self.sample_rate
            above = self._bins > limit_bin
            scale[above] = 1.0
            offset[above] = (self.ratio - 1.0) * limit_bin

        target = np.floor(self._bins * scale + offset).astype(int)
        valid = (target >= 0) & (target < len(self._bins))

        self._source_bins = self._bins[valid]
        self._target_bins = target[valid]
        self._freq_scale = scale[valid]
        self._freq_offset = offset[valid]

    def _process(self, block: np.ndarray) -> np.ndarray:
        n = block.shape[1]
        if n % self.hop:
            raise ValueError(f"Block length {n} is not a multiple of hop {self.hop}")

        output = np.empty_like(block)
        for start in range(0, n, self.hop):
            output[:, start:start + self.hop] = self._step(block[:, start:start + self.hop])
        return output

    def _flush(self) -> np.ndarray:
        silence = np.zeros((self.channels, self.output_latency))
        return self._process(silence)

    def _release(self) -> None:
        self._in_fifo = None
        self._out_accum = None
        self._last_phase = None
        self._sum_phase = None

    def _step(self, chunk: np.ndarray) -> np.ndarray:
        hop = self.hop

        self._in_fifo[:, :-hop] = self._in_fifo[:, hop:]
        self._in_fifo[:, -hop:] = chunk

        self._out_accum += self._transform_frame(self._in_fifo)

        ready = self._out_accum[:, :hop].copy()
        self._out_accum[:, :-hop] = self._out_accum[:, hop:]
        self._out_accum[:, -hop:] = 0.0
        return ready

    def _transform_frame(self, frame: np.ndarray) -> np.ndarray:
        spectrum = np.fft.rfft(frame * self._window, axis=1)
        magnitude = np.abs(spectrum)
        phase = np.angle(spectrum)

        # Analysis: phase advance -> true frequency in bins
        delta = phase - self._last_phase
        self._last_phase = phase
        delta -= self._bins * self._expected_advance
        delta = np.mod(delta + np.pi, 2.0 * np.pi) - np.pi
        true_freq = self._bins + self.oversample * delta / (2.0 * np.pi)

        # Shift
        syn_magnitude = np.zeros_like(magnitude)
        syn_freq = np.zeros_like(true_freq)
        np.add.at(
            syn_magnitude,
            (slice(None), self._target_bins),
            magnitude[:, self._source_bins],
        )
        syn_freq[:, self._target_bins] = (
            true_freq[:, self._source_bins] * self._freq_scale + self._freq_offset
        )

        # Synthesis: true frequency -> accumulated phase
        deviation = syn_freq - self._bins
        self._sum_phase += (
            2.0 * np.pi * deviation / self.oversample
            + self._bins * self._expected_advance
        )

        synthesized = np.fft.irfft(
            syn_magnitude * np.exp(1j * self._sum_phase),
            n=self.fft_size,
            axis=1,
        )
        return synthesized * self._window / self._norm


class LibrosaStretch(TimeStretchEngine):
    """Block-wise pitch shifter backed by ``librosa.effects.pitch_shift``.

    librosa shifts whole signals, so every block is shifted together with
    the blocks on either side and only the middle one is kept. Output is
    delayed by one block. Block seams are not phase-continuous, and the
    tonality limit is not supported (the whole spectrum is scaled).
    """

    def __init__(self, block_size: int = DEFAULT_STRETCH_FFT):
        super().__init__()
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")
        self.block_size = block_size

    @property
    def block_samples(self) -> int:
        return self.block_size

    @property
    def output_latency(self) -> int:
        return self.block_size

    def _allocate(self) -> None:
        self._history = np.zeros((self.channels, 2 * self.block_size))

    def _update_shift(self) -> None:
        pass

    def _process(self, block: np.ndarray) -> np.ndarray:
        n = block.shape[1]
        if n % self.block_size:
            raise ValueError(
                f"Block length {n} is not a multiple of block_size {self.block_size}"
            )

        output = np.empty_like(block)
        for start in range(0, n, self.block_size):
            output[:, start:start + self.block_size] = self._step(
                block[:, start:start + self.block_size]
            )
        return output

    def _flush(self) -> np.ndarray:
        return self._process(np.zeros((self.channels, self.output_latency)))

    def _release(self) -> None:
        self._history = None

    def _step(self, chunk: np.ndarray) -> np.ndarray:
        size = self.block_size
        context = np.concatenate([self._history, chunk], axis=1)
        self._history = context[:, size:]

        if self.semitones == 0:
            return context[:, size:2 * size].copy()

        shifted = librosa.effects.pitch_shift(
            context, sr=self.sample_rate, n_steps=self.semitones
        )
        return shifted[:, size:2 * size]


STRETCH_ENGINES = {
    "vocoder": PhaseVocoderStretch,
    "librosa": LibrosaStretch,
}
