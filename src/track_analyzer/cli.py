"""Command-line interface for Track Analyzer.

Provides commands for:
- bpm: Detect tempo
- key: Detect musical key and Camelot code
- analyze: Tempo and key together
- info: Show audio file information
"""

import logging
import time
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.config import AnalysisConfig, AveragingMode, KeyConfig
from .core.errors import AnalysisError
from .input.loader import AudioLoader, AudioTrack
from .input.remote import fetched_audio, is_url
from .pipeline import BpmAnalysis, KeyAnalysis, TrackAnalyzer

app = typer.Typer(
    name="track-analyzer",
    help="Tempo and key detection for DJ software",
    rich_markup_mode="markdown",
)
console = Console()


@dataclass
class StageTimings:
    """Track timing of processing stages."""

    stages: Dict[str, float] = field(default_factory=dict)
    _current_stage: Optional[str] = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)

    def start(self, stage: str) -> None:
        self._current_stage = stage
        self._start_time = time.time()

    def stop(self) -> float:
        """Stop timing the current stage, return duration."""
        if self._current_stage is None:
            return 0.0
        duration = time.time() - self._start_time
        self.stages[self._current_stage] = duration
        self._current_stage = None
        return duration

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        self.start(name)
        try:
            yield
        finally:
            self.stop()

    @property
    def total_time(self) -> float:
        return sum(self.stages.values())

    def print_summary(self) -> None:
        console.print("\n[bold]Timing Summary:[/bold]")
        for stage, duration in self.stages.items():
            console.print(f"  {stage}: {duration:.2f}s")
        console.print(f"  [bold]Total: {self.total_time:.2f}s[/bold]")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stages": self.stages,
            "total_time": self.total_time,
        }


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@contextmanager
def open_track(source: str, timings: StageTimings) -> Iterator[AudioTrack]:
    """Resolve a path, ``file://`` path or URL and decode it.

    Downloaded files live only for the duration of the block.
    """
    remote = is_url(source)
    with fetched_audio(source) if remote else nullcontext(source) as local:
        if remote:
            console.print(f"   Downloaded: {Path(local).name}")
        with timings.stage("load"):
            track = AudioLoader().load(local)
        yield track


@app.command()
def bpm(
    input_file: str = typer.Argument(..., help="Input audio file, file:// path, or URL"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
    unweighted: bool = typer.Option(
        False, "--unweighted", help="Average histogram candidates without score weights"
    ),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", "-t", help="Adaptive threshold position between section min and max (0-1)"
    ),
    show_beats: bool = typer.Option(False, "--beats", help="List detected beats"),
):
    """Detect the tempo (BPM) of a track."""
    setup_logging(verbose)
    config = AnalysisConfig()
    if unweighted:
        config.bpm.averaging = AveragingMode.UNWEIGHTED
    if threshold is not None:
        config.beats.threshold_percentage = threshold

    timings = StageTimings()
    try:
        analyzer = TrackAnalyzer(config)
        with open_track(input_file, timings) as track:
            with timings.stage("bpm"):
                result = analyzer.analyze_bpm(track)
    except (AnalysisError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        console.print_json(data={**result.to_dict(), "timing": timings.to_dict()})
        return

    _show_bpm_table(result)
    if show_beats:
        _show_beats_table(result)
    if verbose:
        timings.print_summary()


@app.command()
def key(
    input_file: str = typer.Argument(..., help="Input audio file, file:// path, or URL"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
    template_confidence: bool = typer.Option(
        False, "--template-confidence", help="Scale confidence by the best achievable template score"
    ),
):
    """Detect the musical key and Camelot code of a track."""
    setup_logging(verbose)
    config = AnalysisConfig()
    if template_confidence:
        config.key = KeyConfig.template_normalized()

    timings = StageTimings()
    try:
        analyzer = TrackAnalyzer(config)
        with open_track(input_file, timings) as track:
            with timings.stage("key"):
                result = analyzer.analyze_key(track)
    except (AnalysisError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        console.print_json(data={**result.to_dict(), "timing": timings.to_dict()})
        return

    _show_key_table(result)
    if verbose:
        _show_chroma_table(result)
        timings.print_summary()


@app.command()
def analyze(
    input_file: str = typer.Argument(..., help="Input audio file, file:// path, or URL"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Detect tempo and key together."""
    setup_logging(verbose)

    timings = StageTimings()
    try:
        analyzer = TrackAnalyzer()
        with open_track(input_file, timings) as track:
            with timings.stage("analysis"):
                result = analyzer.analyze(track)
    except (AnalysisError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        console.print_json(data={**result.to_dict(), "timing": timings.to_dict()})
        return

    console.print(f"\n[bold]Track:[/bold] {result.source}")
    console.print(f"  Duration: {result.duration:.2f} seconds")
    _show_bpm_table(result.bpm)
    _show_key_table(result.key)
    if verbose:
        timings.print_summary()


@app.command()
def info(
    input_file: str = typer.Argument(..., help="Input audio file, file:// path, or URL"),
):
    """Show information about an audio file."""
    timings = StageTimings()
    try:
        with open_track(input_file, timings) as track:
            console.print(f"\n[bold]Audio Info:[/bold] {Path(track.source).name}")
            console.print(f"  Duration: {track.duration:.2f} seconds")
            console.print(f"  Sample rate: {track.sample_rate} Hz")
            console.print(f"  Samples: {len(track):,}")
    except (AnalysisError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _show_bpm_table(result: BpmAnalysis) -> None:
    table = Table(title="Tempo")
    table.add_column("BPM", style="cyan")
    table.add_column("Raw", style="green")
    table.add_column("Reliable", style="yellow")
    table.add_column("Beats", style="magenta")

    raw = f"{result.raw_bpm:.1f}" if result.raw_bpm is not None else "-"
    table.add_row(
        f"{result.bpm:.1f}",
        raw,
        "yes" if result.reliable else "[red]no[/red]",
        str(len(result.beats)),
    )
    console.print(table)
    if result.failure:
        console.print(f"[yellow]Fallback tempo used: {result.failure}[/yellow]")


def _show_beats_table(result: BpmAnalysis) -> None:
    table = Table(title="Detected Beats")
    table.add_column("Time", style="cyan")
    table.add_column("Energy", style="green")
    table.add_column("Dominant Hz", style="yellow")
    table.add_column("Confidence", style="magenta")

    for beat in result.beats:
        table.add_row(
            f"{beat.timestamp:.3f}s",
            f"{beat.energy:.4f}",
            f"{beat.dominant_freq:.1f}",
            f"{beat.confidence:.2f}",
        )
    console.print(table)


def _show_key_table(result: KeyAnalysis) -> None:
    detected = result.key
    table = Table(title="Key")
    table.add_column("Key", style="cyan")
    table.add_column("Tonic", style="blue")
    table.add_column("Camelot", style="green")
    table.add_column("Confidence", style="yellow")
    table.add_column("Relative", style="magenta")

    table.add_row(
        detected.key_name,
        detected.key.long_name,
        detected.camelot,
        f"{detected.confidence:.2f}",
        detected.key.relative.name,
    )
    console.print(table)

    if detected.alternatives:
        alternatives = ", ".join(
            f"{c.name} ({c.key.camelot})" for c in detected.alternatives
        )
        console.print(f"  Alternatives: {alternatives}")


def _show_chroma_table(result: KeyAnalysis) -> None:
    table = Table(title="Chroma Profile")
    table.add_column("Pitch", style="cyan")
    table.add_column("Energy", style="green")

    for name, value in result.chroma.to_dict().items():
        table.add_row(name, f"{value:.4f}")
    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
