"""
Minimalist output renderer for recorder results.

Handles both console output and file persistence.
All formatting decisions are centralized here.
Color output uses ANSI codes via colorama for Windows compatibility.
Console width is detected dynamically from the terminal.
"""

import json
import shutil
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import colorama

from ..core.stats import summarize
from ..core.timer import TimingRecord

if TYPE_CHECKING:
    from ..core.recorder import Recorder

colorama.just_fix_windows_console()


class _Color:
    """ANSI color constants."""

    RESET   = colorama.Style.RESET_ALL
    DIM     = colorama.Style.DIM
    BOLD    = colorama.Style.BRIGHT
    CYAN    = colorama.Fore.CYAN
    GREEN   = colorama.Fore.GREEN
    YELLOW  = colorama.Fore.YELLOW
    RED     = colorama.Fore.RED
    WHITE   = colorama.Fore.WHITE
    MAGENTA = colorama.Fore.MAGENTA


def _console_width() -> int:
    """Return current terminal width, with a sensible fallback."""
    return shutil.get_terminal_size(fallback=(80, 24)).columns


def _separator(char: str = "-") -> str:
    """Return a separator line sized to the current terminal width."""
    return char * _console_width()


_THRESHOLD_FAST_NS   = 1_000_000        # under 1 ms   -> green
_THRESHOLD_MEDIUM_NS = 10_000_000       # under 10 ms  -> yellow
                                        # 10 ms and above -> red


def _color_for_duration(ns) -> str:
    """Return the appropriate color code based on how slow the measurement is."""
    if ns < _THRESHOLD_FAST_NS:
        return _Color.GREEN
    if ns < _THRESHOLD_MEDIUM_NS:
        return _Color.YELLOW
    return _Color.RED


def _format_duration(ns) -> str:
    """Return a human-readable string for a nanosecond duration."""
    if ns is None:
        return "-"
    if ns < 1_000:
        return f"{ns:.0f} ns" if isinstance(ns, float) else f"{ns} ns"
    if ns < 1_000_000:
        return f"{ns / 1_000:.3f} us"
    if ns < 1_000_000_000:
        return f"{ns / 1_000_000:.3f} ms"
    return f"{ns / 1_000_000_000:.6f} s"


def _colored_duration(ns) -> str:
    """Return a color-coded human-readable duration string."""
    return f"{_color_for_duration(ns)}{_format_duration(ns)}{_Color.RESET}"


def _format_sample_line(record: TimingRecord) -> str:
    """Render a single record as a compact colored one-line string."""
    name_str = f"{_Color.CYAN}{record.name:<40}{_Color.RESET}"
    total_str = f"{_color_for_duration(record.total_ns)}{_format_duration(record.total_ns):>14}{_Color.RESET}"
    self_str = f"{_Color.DIM}self {_format_duration(record.self_ns)}{_Color.RESET}"
    return f"  {name_str} {total_str}  {self_str}"


def _format_entry_block(name: str, entry: dict) -> str:
    """Render the report entry of one name."""
    total = entry["total_time"]
    own = entry["self_time"]
    lines = [
        f"  {_Color.CYAN}{_Color.BOLD}{name}{_Color.RESET}",
        f"    calls : {_Color.WHITE}{entry['calls']}{_Color.RESET}",
        f"    total : {_colored_duration(total['sum'])}"
        f"  {_Color.DIM}(mean {_format_duration(total['mean'])}, "
        f"min {_format_duration(total['min'])}, max {_format_duration(total['max'])}){_Color.RESET}",
        f"    self  : {_colored_duration(own['sum'])}"
        f"  {_Color.DIM}(mean {_format_duration(own['mean'])}, "
        f"min {_format_duration(own['min'])}, max {_format_duration(own['max'])}){_Color.RESET}",
    ]
    return "\n".join(lines)


def print_sample(record: TimingRecord) -> None:
    """Print a single timing record to stdout immediately."""
    print(_format_sample_line(record))


def print_report(recorder: "Recorder") -> None:
    """Print the recorder's report to stdout, slowest total time first."""
    report = recorder.get_report()
    thick = _separator("=")
    thin  = _separator("-")

    if not report:
        print(f"  {_Color.DIM}[deepwatch] No samples recorded.{_Color.RESET}")
        return

    print(f"{_Color.MAGENTA}{thick}{_Color.RESET}")
    print(f"  {_Color.BOLD}{_Color.WHITE}deepwatch{_Color.RESET} | Instrumentation Report")
    print(f"  {_Color.DIM}{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}{_Color.RESET}")
    print(f"{_Color.MAGENTA}{thick}{_Color.RESET}")

    ordered = sorted(report.items(), key=lambda item: item[1]["total_time"]["sum"], reverse=True)
    for name, entry in ordered:
        print(_format_entry_block(name, entry))
        print(f"{_Color.DIM}{thin}{_Color.RESET}")

    total_calls = sum(entry["calls"] for entry in report.values())
    total_self = sum(entry["self_time"]["sum"] for entry in report.values())
    print(f"  Total self time    : {_colored_duration(total_self)}")
    print(f"  Total calls        : {_Color.WHITE}{total_calls}{_Color.RESET}")
    print(f"  Instrumented names : {_Color.WHITE}{len(report)}{_Color.RESET}")
    print(f"{_Color.MAGENTA}{thick}{_Color.RESET}")


def save_to_file(recorder: "Recorder", path: str) -> None:
    """
    Persist raw samples, the report and per-name statistics to a JSON file.

    Args:
        recorder: The recorder holding all samples
        path: File path to write (will overwrite if exists)
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    samples = recorder.get_samples()
    payload = {
        "generated_at": datetime.now().isoformat(),
        "total_names": len(samples),
        "samples": {
            name: {
                "total_times": list(sample_set.total_times),
                "self_times": list(sample_set.self_times),
            }
            for name, sample_set in samples.items()
        },
        "report": recorder.get_report(),
        "summary": {
            name: {
                "total_time": summarize(sample_set.total_times),
                "self_time": summarize(sample_set.self_times),
            }
            for name, sample_set in samples.items()
        },
    }

    with open(output_path, "w", encoding="utf-8") as file:
        json.dump(payload, file, indent=2)

    print(f"  {_Color.GREEN}[deepwatch] Results saved -> {output_path.resolve()}{_Color.RESET}")
