"""
Direct deployment with streamed progress.
"""

from .progress import ProgressFrame, Sentinel, decode_sse, encode_frame, encode_sentinel
from .runner import DeployResult, DeployRunner
from .stream import stream_deployment

__all__ = [
    "ProgressFrame",
    "Sentinel",
    "DeployRunner",
    "DeployResult",
    "stream_deployment",
    "encode_frame",
    "encode_sentinel",
    "decode_sse",
]
