"""Small helpers for the command line: timing and run summaries."""

from ..models.raw_data import RawData


def format_execution_time(
        start_time: float,
        end_time: float
) -> str:
    """Return a human-readable elapsed time between two timestamps.

    Args:
        start_time: Start timestamp in seconds.
        end_time: End timestamp in seconds.

    Returns:
        Nicely formatted string displaying the amount of hours, minutes
        and seconds.
    """
    elapsed = abs(end_time - start_time)  # Seconds
    h = int(elapsed // 3600)  # Hours
    m = int((elapsed % 3600) // 60)  # Minutes
    s = int(elapsed % 60)  # Remaining seconds

    return f"Execution time: {h} hours, {m} minutes and {s} seconds."


def summarize(raw_data: RawData) -> str:
    """Return a short multi-line description of a run."""
    levels = {}
    for scan in raw_data.scans:
        levels[scan.ms_level] = levels.get(scan.ms_level, 0) + 1
    level_text = ", ".join(
        f"MS{level}: {count}" for level, count in sorted(levels.items())
    ) or "none"

    return (
        f"Source file: {raw_data.source_file or 'unknown'}\n"
        f"Instrument: {raw_data.instrument.manufacturer} "
        f"{raw_data.instrument.model} ({raw_data.instrument.mass_analyzer})\n"
        f"Scans: {len(raw_data.scans)} decoded, "
        f"{raw_data.scan_count} declared ({level_text})"
    )
