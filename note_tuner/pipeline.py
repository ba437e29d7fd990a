"""Two-pass tuning pipeline.

Pass 1 streams the file in FFT-sized blocks and votes for the dominant
pitch class. Pass 2 reopens the file, reads it in full at its original
channel layout and re-pitches it toward the target. The analysis pass
never keeps the audio, so memory during analysis is bounded by one block;
the price is reading the file twice.
"""

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .analysis import AnalysisConfig, FrameAnalyzer
from .core import AudioInfo, EmptyAudioError, PartialIOError, PitchObservation, PitchShiftRequest
from .core.constants import DEFAULT_TARGET, OUTPUT_TEMPLATE
from .inference import DominantNote, NoteAggregator, NoteClassifier, NoteTally, semitones_to
from .input import AudioSource
from .output import AudioSink
from .processing import PitchShiftEngine, ShiftConfig

FrameCallback = Callable[[int, PitchObservation, Optional[str]], None]
OpenCallback = Callable[[AudioInfo], None]


@dataclass
class AnalysisReport:
    """Result of the analysis pass for one file."""

    info: AudioInfo
    tally: NoteTally
    dominant: Optional[DominantNote]
    blocks: int


@dataclass
class TuneResult:
    """Result of the pitch shift pass for one file."""

    output_path: Path
    semitones: float
    frames_in: int
    frames_written: int
    trim_point: int


@dataclass
class RunResult:
    """Outcome of a full analyse-and-tune run."""

    report: AnalysisReport
    target: str
    semitones: int
    tuned: Optional[TuneResult] = None

    @property
    def already_tuned(self) -> bool:
        return self.tuned is None


def output_path_for(label: str, directory: Path) -> Path:
    """Output file for a detected label: <directory>/tuned_<LABEL>.wav."""
    return Path(directory) / OUTPUT_TEMPLATE.format(label=label)


def analyze_file(
    path: str,
    config: Optional[AnalysisConfig] = None,
    on_frame: Optional[FrameCallback] = None,
    on_open: Optional[OpenCallback] = None,
) -> AnalysisReport:
    """
    Run the analysis pass over one file.

    Args:
        path: Audio file path
        config: Optional AnalysisConfig
        on_frame: Called with (block index, observation, label) per block
        on_open: Called with the AudioInfo once the file is open

    Returns:
        AnalysisReport with a tally owned by this call
    """
    config = config or AnalysisConfig()
    aggregator = NoteAggregator()
    classifier = NoteClassifier()
    blocks = 0

    with AudioSource(path) as source:
        info = source.info
        if on_open is not None:
            on_open(info)
        analyzer = FrameAnalyzer(info.sample_rate, config)

        for index, block in enumerate(source.blocks(config.n_fft)):
            observation = analyzer.analyze(block)
            label = classifier.classify(observation.frequency)
            aggregator.observe(observation, label)
            blocks += 1
            if on_frame is not None:
                on_frame(index, observation, label)

    return AnalysisReport(
        info=info,
        tally=aggregator.tally,
        dominant=aggregator.winner(),
        blocks=blocks,
    )


def tune_file(
    path: str,
    semitones: float,
    output_path: str,
    config: Optional[ShiftConfig] = None,
) -> TuneResult:
    """
    Run the pitch shift pass over one file.

    Args:
        path: Audio file path (reopened and read in full)
        semitones: Signed shift in semitones
        output_path: Destination WAV path
        config: Optional ShiftConfig

    Returns:
        TuneResult

    Raises:
        EmptyAudioError: If the file has no frames
        FileOpenError: If the source or destination cannot be opened
    """
    with AudioSource(path) as source:
        sample_rate = source.sample_rate
        channels = source.channels
        audio = source.read_all()

    if len(audio) == 0:
        raise EmptyAudioError(f"No audio data in {path}")

    request = PitchShiftRequest(
        semitones=semitones,
        sample_rate=sample_rate,
        channels=channels,
    )
    frames_in = len(audio)
    engine = PitchShiftEngine(config)
    shifted = engine.shift(audio, request)
    del audio

    with AudioSink(output_path, sample_rate, channels) as sink:
        frames_written = sink.write_frames(shifted)

    if frames_written != len(shifted):
        warnings.warn(
            PartialIOError(
                f"Wrote {frames_written} of {len(shifted)} frames to {output_path}"
            )
        )

    return TuneResult(
        output_path=Path(output_path),
        semitones=semitones,
        frames_in=frames_in,
        frames_written=frames_written,
        trim_point=engine.trim_point,
    )


def run(
    path: str,
    target: str = DEFAULT_TARGET,
    output_path: Optional[str] = None,
    analysis_config: Optional[AnalysisConfig] = None,
    shift_config: Optional[ShiftConfig] = None,
    force: bool = False,
    on_frame: Optional[FrameCallback] = None,
    on_open: Optional[OpenCallback] = None,
    on_decision: Optional[Callable[[AnalysisReport, int], None]] = None,
) -> RunResult:
    """
    Analyse a file and retune it toward ``target``.

    Args:
        path: Audio file path
        target: Reference pitch class
        output_path: Destination (default: tuned_<LABEL>.wav beside the input)
        analysis_config: Optional AnalysisConfig
        shift_config: Optional ShiftConfig
        force: Write output even when the file is already at the target
        on_frame: Per-block callback for the analysis pass
        on_open: Called with the AudioInfo once the file is open
        on_decision: Called with (report, semitones) before the shift pass

    Returns:
        RunResult; ``tuned`` is None when nothing was written

    Raises:
        EmptyAudioError: If the file has no frames or no pitched content
    """
    report = analyze_file(path, analysis_config, on_frame, on_open)

    if report.blocks == 0:
        raise EmptyAudioError(f"No audio frames in {path}")
    if report.dominant is None:
        raise EmptyAudioError(f"No pitched content found in {path}")

    label = report.dominant.label
    semitones = semitones_to(label, target)
    if on_decision is not None:
        on_decision(report, semitones)

    result = RunResult(report=report, target=target, semitones=semitones)
    if semitones == 0 and not force:
        return result

    if output_path is None:
        output_path = output_path_for(label, Path(path).parent)

    result.tuned = tune_file(path, semitones, str(output_path), shift_config)
    return result
