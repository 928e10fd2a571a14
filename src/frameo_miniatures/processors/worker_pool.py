"""Thread pool processor - one discovery thread feeding a fixed pool of workers."""

import queue
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterator, List, Optional

from ..core.discovery import QUEUE_CLOSED, feed_queue
from ..core.models import FileDescriptor, ProcessingResult, ProcessingStatus
from ..core.progress import NullProgress
from ..core.protocols import BatchProcessor, LoggerProtocol, ProgressProtocol

Handler = Callable[[FileDescriptor], ProcessingResult]

DEFAULT_QUEUE_SIZE = 1000


def drain_queue(
    work_queue: "queue.Queue[object]",
    handler: Handler,
    progress: Optional[ProgressProtocol] = None,
    logger: Optional[LoggerProtocol] = None,
) -> List[ProcessingResult]:
    """
    Worker loop: handle descriptors until the queue is closed.

    The close marker is put back so every sibling worker sees it too.
    """
    results: List[ProcessingResult] = []

    while True:
        item = work_queue.get()
        if item is QUEUE_CLOSED:
            work_queue.put(QUEUE_CLOSED)
            break

        descriptor: FileDescriptor = item  # type: ignore[assignment]
        try:
            result = handler(descriptor)
        except Exception as e:  # noqa: BLE001
            # One bad file must not take the worker down
            if logger:
                logger.error(
                    "Failed to process file",
                    file=descriptor.absolute_path,
                    error=str(e),
                )
            result = ProcessingResult(
                source_path=descriptor.absolute_path,
                status=ProcessingStatus.FAILED,
                error=str(e),
            )

        results.append(result)
        if progress:
            progress.advance()

    return results


class ThreadPoolBatchProcessor(BatchProcessor):
    """
    Fixed-size thread pool draining a bounded queue.

    Pillow releases the GIL while decoding, resampling and encoding, so
    threads give real parallelism for this workload.
    """

    def __init__(
        self,
        workers: int,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        progress: Optional[ProgressProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._workers = workers
        self._queue_size = queue_size
        self._progress = progress or NullProgress()
        self._logger = logger

    @property
    def workers(self) -> int:
        return self._workers

    def process_files(
        self, files: Iterator[FileDescriptor], handler: Handler
    ) -> List[ProcessingResult]:
        """
        Process files as they are discovered.

        Args:
            files: Lazy discovery stream, consumed by a dedicated producer thread
            handler: Called once per descriptor by exactly one worker

        Returns:
            Results from every worker, in completion order
        """
        work_queue: "queue.Queue[object]" = queue.Queue(maxsize=self._queue_size)
        results: List[ProcessingResult] = []

        if self._logger:
            self._logger.debug("Starting worker pool", workers=self._workers)

        with ThreadPoolExecutor(
            max_workers=self._workers + 1, thread_name_prefix="frameo"
        ) as executor:
            producer = executor.submit(feed_queue, files, work_queue, self._logger)
            consumers = [
                executor.submit(
                    drain_queue, work_queue, handler, self._progress, self._logger
                )
                for _ in range(self._workers)
            ]

            for future in as_completed(consumers):
                results.extend(future.result())

            discovered = producer.result()

        if self._logger:
            self._logger.debug(
                "Worker pool finished", discovered=discovered, results=len(results)
            )
        return results
