"""Command-line interface for Chord Follower.

Provides commands for:
- detect: Print the chord timeline of an audio file
- follow: Replay an audio file against a chord sheet
- listen: Follow a chord sheet live from the microphone
- info: Show audio file information
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

app = typer.Typer(
    name="chord-follower",
    help="Real-time chord detection and chord-sheet following",
    rich_markup_mode="markdown",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]):
    from .config import FollowerConfig, load_config

    if config_file is None:
        return FollowerConfig()
    try:
        return load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _build_follower(config, **kwargs):
    from .follower import ChordFollower

    try:
        return ChordFollower(config, **kwargs)
    except ValueError as e:
        console.print(f"[red]Error: Invalid configuration: {e}[/red]")
        raise typer.Exit(1)


def _load_audio(input_file: Path, sample_rate: int):
    from .input import AudioLoader

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)
    loader = AudioLoader(target_sr=sample_rate)
    try:
        return loader.load(str(input_file))
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _load_sheet(sheet_file: Path):
    from .input import load_chord_sheet

    if not sheet_file.exists():
        console.print(f"[red]Error: Chord sheet not found: {sheet_file}[/red]")
        raise typer.Exit(1)
    sheet = load_chord_sheet(sheet_file)
    if not sheet.sections:
        console.print(f"[yellow]Warning: no chord lines found in {sheet_file}[/yellow]")
    return sheet


@app.command()
def detect(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="JSON configuration file"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
):
    """Detect major chords over time in an audio file.

    **Examples:**

        chord-follower detect strumming.wav

        chord-follower detect strumming.wav --json
    """
    from .core import ManualClock
    from .input import iter_frames

    _setup_logging(verbose)
    config = _load_config(config_file)
    audio, sr = _load_audio(input_file, config.chroma.sample_rate)

    clock = ManualClock()
    follower = _build_follower(config, clock=clock)
    follower.start()

    frame_duration = follower.frame_size / sr
    timeline: List[Dict[str, Any]] = []
    for frame in iter_frames(audio, follower.frame_size):
        clock.advance(frame_duration)
        label = follower.feed_frame(frame)
        if not timeline or timeline[-1]["chord"] != label:
            timeline.append({"time": round(clock(), 3), "chord": label})
    follower.stop()

    if json_output:
        console.print_json(data={"file": str(input_file), "chords": timeline})
        return

    table = Table(title="Detected Chords")
    table.add_column("Time (s)", style="yellow")
    table.add_column("Chord", style="cyan")
    for event in timeline:
        table.add_row(f"{event['time']:.2f}", event["chord"])
    console.print(table)


@app.command()
def follow(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    sheet_file: Path = typer.Argument(..., help="Chord sheet text file"),
    capo: Optional[int] = typer.Option(
        None, "--capo", help="Capo fret (overrides the sheet's Capo line)"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="JSON configuration file"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
):
    """Replay an audio file and follow it through a chord sheet.

    **Examples:**

        chord-follower follow take1.wav song.txt

        chord-follower follow take1.wav song.txt --capo 2 --json
    """
    from .core import ManualClock
    from .input import iter_frames

    _setup_logging(verbose)
    config = _load_config(config_file)
    sheet = _load_sheet(sheet_file)
    audio, sr = _load_audio(input_file, config.chroma.sample_rate)
    capo = capo if capo is not None else sheet.capo

    clock = ManualClock()
    events: List[Dict[str, Any]] = []

    def record(snapshot):
        events.append({
            "time": round(clock(), 3),
            "section": snapshot.position[0],
            "entry": snapshot.position[1],
            "mode": snapshot.mode.value,
            "expected": snapshot.expected,
        })
        if not json_output:
            console.print(
                f"  [yellow]{clock():7.2f}s[/yellow] "
                f"{snapshot.position} [cyan]{snapshot.mode.value}[/cyan] "
                f"next: {snapshot.expected or '--'}"
            )

    follower = _build_follower(config, clock=clock, on_position_change=record)
    if not json_output:
        console.print(f"[blue]Following:[/blue] {sheet_file.name} ({len(sheet.sections)} lines, capo {capo or 0})")

    started = time.perf_counter()
    follower.start(sheet.to_sequence(), capo=capo)
    frame_duration = follower.frame_size / sr
    for frame in iter_frames(audio, follower.frame_size):
        clock.advance(frame_duration)
        follower.feed_frame(frame)
    elapsed = time.perf_counter() - started

    labels = follower.tracker.sequence.labels()
    played = follower.played_flags()
    final_position = follower.current_position()
    final_mode = follower.current_mode()
    follower.stop()

    if json_output:
        console.print_json(data={
            "file": str(input_file),
            "sheet": str(sheet_file),
            "capo": capo,
            "events": events,
            "final": {
                "section": final_position[0],
                "entry": final_position[1],
                "mode": final_mode.value,
            },
            "played": played,
        })
        return

    table = Table(title="Chord Sheet Progress")
    table.add_column("Line", style="cyan")
    table.add_column("Chords")
    for i, (line, flags) in enumerate(zip(labels, played)):
        cells = [f"[green]{c}[/green]" if p else f"[dim]{c}[/dim]" for c, p in zip(line, flags)]
        table.add_row(str(i + 1), " ".join(cells))
    console.print(table)
    console.print(
        f"Final position: {final_position} ({final_mode.value}); "
        f"processed {len(audio) / sr:.1f}s of audio in {elapsed:.2f}s"
    )


@app.command()
def listen(
    sheet_file: Optional[Path] = typer.Argument(None, help="Chord sheet text file"),
    capo: Optional[int] = typer.Option(None, "--capo", help="Capo fret"),
    device: Optional[int] = typer.Option(None, "--device", help="Input device index"),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="JSON configuration file"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """Detect chords from the microphone, optionally following a sheet.

    Press Ctrl+C to stop.
    """
    from .inference import describe_detection

    _setup_logging(verbose)
    config = _load_config(config_file)
    sheet = _load_sheet(sheet_file) if sheet_file else None
    if capo is None and sheet is not None:
        capo = sheet.capo

    def show_position(snapshot):
        console.print(
            f"[cyan]{snapshot.mode.value}[/cyan] at {snapshot.position}, "
            f"next: {snapshot.expected or '--'}"
        )

    follower = _build_follower(config, on_position_change=show_position)

    try:
        from .input.capture import MicrophoneStream
        stream = MicrophoneStream(config.chroma.sample_rate, config.chroma.frame_size, device)
    except ImportError:
        console.print("[red]sounddevice not installed. Run: pip install sounddevice[/red]")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Audio input unavailable: {e}[/red]")
        raise typer.Exit(1)

    follower.start(sheet.to_sequence() if sheet else None, capo=capo, source=stream)
    console.print("[blue]Listening... (Ctrl+C to stop)[/blue]")

    last = None
    try:
        for frame in stream.frames():
            label = follower.feed_frame(frame)
            if label != last:
                console.print(f"Detected chord: [bold]{describe_detection(label, capo)}[/bold]")
                last = label
    except KeyboardInterrupt:
        pass
    finally:
        follower.stop()
    console.print("[blue]Stopped.[/blue]")


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="JSON configuration file"
    ),
):
    """Show information about an audio file and the analysis settings."""
    config = _load_config(config_file)
    audio, sr = _load_audio(input_file, config.chroma.sample_rate)
    chroma = config.chroma

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {len(audio) / sr:.2f} seconds")
    console.print(f"  Sample rate: {sr} Hz")
    console.print(f"  Samples: {len(audio):,}")
    console.print(f"  Frames: {-(-len(audio) // chroma.frame_size):,} x {chroma.frame_size} samples")
    console.print("\n[bold]Analysis:[/bold]")
    console.print(f"  Decimated rate: {chroma.decimated_rate:.1f} Hz")
    console.print(f"  Buffer: {chroma.buffer_size} samples ({chroma.buffer_size / chroma.decimated_rate:.2f}s)")
    console.print(f"  Bin resolution: {chroma.bin_resolution:.3f} Hz")
    console.print(f"  Chromagram every {chroma.hop_size / chroma.decimated_rate:.2f}s")


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
