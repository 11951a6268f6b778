"""
Status normalization: free-text lifecycle state -> canonical status.

Precedence matters: a finished/failed marker wins over a "running" substring
that happens to appear elsewhere in the text.
"""

from enum import Enum
from typing import Optional, Tuple


class CanonicalStatus(str, Enum):
    UNKNOWN = "unknown"
    QUEUED = "queued"
    IDLE = "idle"
    OK = "ok"
    FINISHED = "finished"
    FAILED = "failed"


# Checked in order; first match wins.
_STATUS_RULES: Tuple[Tuple[Tuple[str, ...], CanonicalStatus], ...] = (
    (("finish", "complete"), CanonicalStatus.FINISHED),
    (("fail", "error"), CanonicalStatus.FAILED),
    (("running",), CanonicalStatus.OK),
    (("queued",), CanonicalStatus.QUEUED),
    (("idle",), CanonicalStatus.IDLE),
)


def normalize(state_text: Optional[str]) -> CanonicalStatus:
    """Map a state string to a CanonicalStatus. Total: never raises."""
    if not state_text or not isinstance(state_text, str):
        return CanonicalStatus.UNKNOWN
    lowered = state_text.lower()
    for needles, status in _STATUS_RULES:
        if any(n in lowered for n in needles):
            return status
    return CanonicalStatus.UNKNOWN
