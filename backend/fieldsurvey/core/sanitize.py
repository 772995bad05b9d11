"""Input sanitization for blob paths supplied by field devices."""

import re


def strip_control_chars(value: str) -> str:
    """Remove non-printable control characters (except newline, tab)."""
    if not value:
        return value
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)


def sanitize_path_segment(segment: str) -> str:
    """Sanitize one segment of a blob path.

    Rejects traversal components outright; strips control characters and
    replaces characters that are problematic in file paths.
    """
    if segment in ("", ".", "..") or "/" in segment or "\\" in segment:
        raise ValueError(f"Invalid path segment: {segment!r}")
    name = strip_control_chars(segment)
    name = re.sub(r'[<>:"|?*]', "_", name)
    # Leading dots would create hidden files on the storage mount
    name = name.lstrip(".")
    if not name:
        raise ValueError(f"Invalid path segment: {segment!r}")
    return name
