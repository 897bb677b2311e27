import os


def to_mtime_ms_from_stat(stat_result: os.stat_result) -> int:
    try:
        return int(stat_result.st_mtime_ns) // 1_000_000
    except AttributeError:
        return round(float(stat_result.st_mtime) * 1000.0)


def stat_signature(stat_result: os.stat_result) -> tuple[int, int]:
    """Return ``(mtime_ms, size)`` used to detect a changed file."""
    return to_mtime_ms_from_stat(stat_result), int(stat_result.st_size)
