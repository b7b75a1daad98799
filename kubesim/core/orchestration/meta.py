"""
Shared metadata helpers for cluster objects
"""

from datetime import datetime, timezone


def timestamp_to_rfc3339(timestamp: float) -> str:
    """Format a POSIX timestamp the way the API server does"""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def format_labels(labels, separator: str = ',') -> str:
    """Render a label map as key=value pairs, "<none>" when empty"""
    if not labels:
        return '<none>'
    return separator.join(f"{k}={v}" for k, v in labels.items())
