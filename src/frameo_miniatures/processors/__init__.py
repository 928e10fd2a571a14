"""Processors that drain the discovery stream concurrently."""

from .worker_pool import ThreadPoolBatchProcessor, drain_queue

__all__ = [
    "ThreadPoolBatchProcessor",
    "drain_queue",
]
