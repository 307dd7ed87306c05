"""
Relay a deployment's progress frames as a Server-Sent-Events stream.
"""

import logging
import queue
import threading
from typing import Callable, Iterator, Optional

from ..models import DeploymentConfig
from .progress import ProgressFrame, Sentinel, encode_frame, encode_sentinel
from .runner import DeployRunner

logger = logging.getLogger(__name__)


def stream_deployment(
    repo_url: str,
    config: Optional[DeploymentConfig] = None,
    runner_factory: Callable[..., DeployRunner] = DeployRunner,
) -> Iterator[str]:
    """
    Run a deployment on a worker thread and yield its SSE frames in order.

    The stream ends with a ``complete`` sentinel after a successful run or an
    ``error`` sentinel after a failed one.
    """
    frames: "queue.Queue[object]" = queue.Queue()

    def worker() -> None:
        try:
            runner = runner_factory(progress_callback=frames.put)
            runner.deploy(repo_url, config)
        except Exception:
            # Any failure frame has already been queued by the runner
            logger.exception(f"Deployment of {repo_url} failed")
            frames.put(Sentinel.ERROR)
            return
        frames.put(Sentinel.COMPLETE)

    thread = threading.Thread(target=worker, name="sst-deploy", daemon=True)
    thread.start()

    while True:
        item = frames.get()
        if isinstance(item, ProgressFrame):
            yield encode_frame(item)
        else:
            yield encode_sentinel(item)
            break

    thread.join(timeout=5)
