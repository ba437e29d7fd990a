"""Command-line interface for Note Tuner.

Analyses an audio file, detects its dominant pitch class and writes a copy
re-pitched toward a reference pitch class (C by default).
"""

import time
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core import PITCH_NAMES, TunerError
from .core.constants import DEFAULT_N_FFT, DEFAULT_TARGET, DEFAULT_TONALITY_LIMIT

app = typer.Typer(
    name="note-tuner",
    help="Detect the dominant note of a recording and retune it to a reference pitch class",
    rich_markup_mode="markdown",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


@dataclass
class StageTimings:
    """Wall-clock time of the analysis and tuning passes."""

    stages: Dict[str, float] = field(default_factory=dict)
    _running: Optional[Tuple[str, float]] = field(default=None, repr=False)

    def start(self, stage: str) -> None:
        """Begin timing ``stage``; a stage still running is closed first."""
        self.stop()
        self._running = (stage, time.perf_counter())

    def stop(self) -> None:
        if self._running is not None:
            stage, started = self._running
            self.stages[stage] = time.perf_counter() - started
            self._running = None

    def show(self) -> None:
        table = Table(title="Timings")
        table.add_column("Stage", style="cyan")
        table.add_column("Seconds", justify="right")
        for stage, seconds in self.stages.items():
            table.add_row(stage, f"{seconds:.2f}")
        table.add_row("[bold]Total[/bold]", f"[bold]{sum(self.stages.values()):.2f}[/bold]")
        console.print(table)


def _report_warnings(caught: List[warnings.WarningMessage]) -> None:
    for warning in caught:
        err_console.print(f"[yellow]Warning: {escape(str(warning.message))}[/yellow]")


@app.command()
def tune(
    input_file: Optional[Path] = typer.Argument(None, help="Input audio file"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output WAV path (default: tuned_<NOTE>.wav beside the input)"
    ),
    target: str = typer.Option(
        DEFAULT_TARGET, "-t", "--target", help="Reference pitch class to tune toward"
    ),
    block_size: int = typer.Option(
        DEFAULT_N_FFT, "-n", "--block-size", help="Analysis FFT size in frames"
    ),
    tonality_limit: float = typer.Option(
        DEFAULT_TONALITY_LIMIT, "--tonality-limit", help="Frequencies above this (Hz) are not transposed. 0 = off"
    ),
    engine: str = typer.Option(
        "vocoder", "-e", "--engine", help="Pitch shift engine: vocoder or librosa"
    ),
    force: bool = typer.Option(
        False, "-f", "--force", help="Write output even if already at the target"
    ),
    quiet: bool = typer.Option(
        False, "-q", "--quiet", help="Do not print per-block analysis lines"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Show the note tally and stage timings"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
):
    """Retune an audio file so its dominant note lands on the target.

    **Examples:**

        note-tuner song.wav

        note-tuner song.flac -t A -o song_in_a.wav
    """
    from .analysis import AnalysisConfig
    from .inference import pitch_class_of
    from .pipeline import run
    from .processing import ShiftConfig

    if input_file is None:
        err_console.print("Usage: note-tuner <audio_file> [OPTIONS]")
        raise typer.Exit(1)

    try:
        target = pitch_class_of(target)
        analysis_config = AnalysisConfig(n_fft=block_size)
        shift_config = ShiftConfig(tonality_limit_hz=tonality_limit or None, engine=engine)
    except ValueError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    timings = StageTimings()
    show_frames = not (quiet or json_output)

    def on_open(info):
        if json_output:
            return
        console.print(f"Sample rate: {info.sample_rate} Hz", highlight=False)
        console.print(f"Channels: {info.channels}", highlight=False)
        console.print(f"Frames: {info.frames}", highlight=False)

    def on_frame(index, observation, label):
        if show_frames:
            console.print(
                f"Fundamental frequency: {observation.frequency:.2f} Hz, "
                f"Magnitude: {observation.magnitude:.4f}, "
                f"Note: {label or '-'}",
                highlight=False,
            )

    def on_decision(report, semitones):
        timings.start("Tuning")
        if json_output:
            return
        dominant = report.dominant
        console.print(
            f"Overall note: {dominant.label}, Score: {dominant.score:.4f}",
            highlight=False,
        )
        if verbose:
            _show_tally_table(report.tally)
        if semitones:
            console.print(f"[blue]Shifting by {semitones:+d} semitones toward {target}...[/blue]")

    if not json_output:
        console.print(f"[blue]Opened file:[/blue] {escape(str(input_file))}")

    timings.start("Analysis")
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            result = run(
                str(input_file),
                target=target,
                output_path=str(output) if output else None,
                analysis_config=analysis_config,
                shift_config=shift_config,
                force=force,
                on_frame=on_frame,
                on_open=on_open,
                on_decision=on_decision,
            )
        except (TunerError, OSError, ValueError, RuntimeError) as e:
            _report_warnings(caught)
            err_console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(1)
    timings.stop()
    _report_warnings(caught)

    report = result.report
    info = report.info

    if json_output:
        data = {
            "input": str(input_file),
            "sample_rate": info.sample_rate,
            "channels": info.channels,
            "frames": info.frames,
            "blocks": report.blocks,
            "note": report.dominant.label,
            "score": report.dominant.score,
            "target": result.target,
            "semitones": result.semitones,
            "output": str(result.tuned.output_path) if result.tuned else None,
            "frames_written": result.tuned.frames_written if result.tuned else 0,
            "tally": {
                name: {"count": report.tally.counts[name], "magnitude": report.tally.magnitudes[name]}
                for name in PITCH_NAMES
            },
            "timings": timings.stages,
        }
        console.print_json(data=data)
        return

    if result.already_tuned:
        console.print(f"[green]The file is already tuned to {result.target}. No changes made.[/green]")
    else:
        console.print(f"[green]Tuned file saved as: {escape(str(result.tuned.output_path))}[/green]")

    if verbose:
        timings.show()


def _show_tally_table(tally):
    """Display the note tally in a table."""
    table = Table(title="Note Tally")
    table.add_column("Note", style="cyan")
    table.add_column("Blocks", style="green")
    table.add_column("Magnitude", style="yellow")
    table.add_column("Score", style="magenta")

    for name in tally.ranking():
        table.add_row(
            name,
            str(tally.counts[name]),
            f"{tally.magnitudes[name]:.2f}",
            f"{tally.score(name):.2f}",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
