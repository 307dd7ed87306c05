"""
Progress frames and their Server-Sent-Events encoding.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class ProgressFrame:
    """One unit of the deployment status stream."""
    progress: Optional[int]     # 0..100; None on a failure frame
    step: str
    message: str
    deployment_url: Optional[str] = None
    timestamp: str = field(default_factory=_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "progress": self.progress,
            "step": self.step,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.deployment_url:
            data["deploymentUrl"] = self.deployment_url
        return data


ProgressCallback = Callable[[ProgressFrame], None]


class Sentinel:
    COMPLETE = "complete"
    ERROR = "error"


def encode_sse(data: Dict[str, Any]) -> str:
    return f"data: {json.dumps(data)}\n\n"


def encode_frame(frame: ProgressFrame) -> str:
    return encode_sse(frame.to_dict())


def encode_sentinel(kind: str) -> str:
    """Terminal frame: ``{"type": "complete"}`` or ``{"type": "error"}``."""
    return encode_sse({"type": kind})


def decode_sse(payload: str) -> list:
    """
    Parse an SSE payload back into its JSON objects.

    Lines that are not ``data:`` lines are ignored.
    """
    events = []
    for line in payload.splitlines():
        line = line.strip()
        if not line.startswith("data:"):
            continue
        try:
            events.append(json.loads(line[len("data:"):].strip()))
        except json.JSONDecodeError:
            continue  # Skip malformed lines
    return events
