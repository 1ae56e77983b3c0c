"""
Chunked processing of large row collections with progress reporting.

Rows are processed in fixed-size chunks. Small inputs run on the event loop,
pausing briefly after every chunk so other tasks keep running. Large inputs
can be handed to a single background worker thread that processes the chunks
in order and streams results and progress back over an asyncio queue. Both
paths apply the same processor to the same chunks in the same order, so they
produce identical results.
"""
import asyncio
import inspect
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set, Tuple, Union

from campaign_builder.core.config import settings
from campaign_builder.core.exceptions import BackgroundProcessingError
from campaign_builder.schemas.lead import ExtractedRow, ValidationResult
from campaign_builder.services.imports.validator import LeadValidator

logger = logging.getLogger("campaign_builder.chunks")

ProgressCallback = Callable[[int, int], Union[None, Awaitable[None]]]
ChunkFunction = Callable[[Sequence[Any]], Union[Sequence[Any], Awaitable[Sequence[Any]]]]

# Worker message types
MSG_RESULT = "result"
MSG_PROGRESS = "progress"
MSG_COMPLETE = "complete"
MSG_ERROR = "error"
MSG_STOPPED = "stopped"


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ChunkProcessor:
    """
    Runs a chunk function over a row collection without blocking the loop.

    At most one background worker thread exists per processor. It is created
    on first use, reused for later calls and released by ``close()`` or on
    leaving the ``async with`` block. Releasing the processor, cancelling a
    running ``process()`` call or a failing progress callback stops the
    worker before its next chunk.
    """

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        yield_interval: Optional[float] = None,
        use_background_worker: Optional[bool] = None,
        large_dataset_threshold: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None
    ):
        """
        Initialize the chunk processor.

        Args:
            chunk_size: Rows per chunk
            yield_interval: Pause in seconds after each chunk on the event loop
            use_background_worker: Whether large inputs may go to a worker thread
            large_dataset_threshold: Inputs larger than this use the worker
            on_progress: Callback receiving (processed, total) after each chunk
        """
        self.chunk_size = chunk_size or settings.CHUNK_SIZE
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.yield_interval = settings.CHUNK_YIELD_INTERVAL if yield_interval is None else yield_interval
        self.use_background_worker = (
            settings.USE_BACKGROUND_WORKER if use_background_worker is None else use_background_worker
        )
        self.large_dataset_threshold = (
            settings.LARGE_DATASET_THRESHOLD if large_dataset_threshold is None else large_dataset_threshold
        )
        self.on_progress = on_progress
        self._executor: Optional[ThreadPoolExecutor] = None
        self._stop_events: Set[threading.Event] = set()

    async def __aenter__(self) -> "ChunkProcessor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def should_use_background(self, total: int, processor: ChunkFunction) -> bool:
        """Check whether an input of ``total`` rows goes to the worker thread."""
        if not self.use_background_worker or total <= self.large_dataset_threshold:
            return False
        # Coroutine functions need the event loop and cannot run in the worker
        return not asyncio.iscoroutinefunction(processor)

    async def process(self, items: Sequence[Any], processor: ChunkFunction) -> List[Any]:
        """
        Process all items chunk by chunk.

        Args:
            items: Items in input order
            processor: Function mapping one chunk to its results

        Returns:
            List: Concatenated chunk results in input order

        Raises:
            BackgroundProcessingError: If the background worker fails
        """
        if self.should_use_background(len(items), processor):
            logger.info(f"Processing {len(items)} rows in background worker")
            return await self._process_in_background(items, processor)
        return await self._process_in_chunks(items, processor)

    async def _process_in_chunks(self, items: Sequence[Any], processor: ChunkFunction) -> List[Any]:
        results: List[Any] = []
        total = len(items)

        for start in range(0, total, self.chunk_size):
            chunk = items[start:start + self.chunk_size]
            results.extend(await _maybe_await(processor(chunk)))

            await self._report_progress(min(start + self.chunk_size, total), total)

            # Yield control back to the event loop
            await asyncio.sleep(self.yield_interval)

        return results

    async def _process_in_background(self, items: Sequence[Any], processor: ChunkFunction) -> List[Any]:
        loop = asyncio.get_running_loop()
        queue: "asyncio.Queue[Tuple[str, Any]]" = asyncio.Queue()

        def post(message: Tuple[str, Any]) -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(queue.put_nowait, message)

        stop = threading.Event()
        try:
            future = self._get_executor().submit(
                _run_worker, items, processor, self.chunk_size, post, stop
            )
        except RuntimeError as e:
            raise BackgroundProcessingError(
                f"Background worker unavailable: {e}",
                details={"total_rows": len(items)}
            ) from e

        # A call cancelled by close() before it started never posts on its own
        future.add_done_callback(lambda f: post((MSG_STOPPED, 0)) if f.cancelled() else None)
        self._stop_events.add(stop)
        results: List[Any] = []
        try:
            while True:
                message_type, payload = await queue.get()

                if message_type == MSG_RESULT:
                    results.extend(payload)
                elif message_type == MSG_PROGRESS:
                    await self._report_progress(*payload)
                elif message_type == MSG_COMPLETE:
                    break
                elif message_type == MSG_STOPPED:
                    raise BackgroundProcessingError(
                        "Background processing stopped before completion",
                        details={"processed_rows": len(results), "total_rows": len(items)}
                    )
                elif message_type == MSG_ERROR:
                    logger.error(f"Background chunk processing failed: {payload}")
                    raise BackgroundProcessingError(
                        f"Background processing failed: {payload}",
                        details={"processed_rows": len(results), "total_rows": len(items)}
                    ) from payload

            # The worker has posted its last message; surface anything it raised after
            await asyncio.wrap_future(future)
        finally:
            # No-op after completion; otherwise the worker stops before its next chunk
            stop.set()
            self._stop_events.discard(stop)
        return results

    async def _report_progress(self, processed: int, total: int) -> None:
        if self.on_progress:
            await _maybe_await(self.on_progress(processed, total))

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="chunk-worker")
        return self._executor

    def close(self) -> None:
        """Stop any running background work and release the worker."""
        for stop in list(self._stop_events):
            stop.set()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
            logger.debug("Background chunk worker released")


def _run_worker(
    items: Sequence[Any],
    processor: ChunkFunction,
    chunk_size: int,
    post: Callable[[Tuple[str, Any]], None],
    stop: threading.Event
) -> None:
    """Worker thread body: process chunks in order and post each outcome."""
    total = len(items)
    try:
        for start in range(0, total, chunk_size):
            if stop.is_set():
                logger.info(f"Background worker stopped after {start} of {total} rows")
                post((MSG_STOPPED, start))
                return
            chunk = items[start:start + chunk_size]
            post((MSG_RESULT, list(processor(chunk))))
            post((MSG_PROGRESS, (min(start + chunk_size, total), total)))
        post((MSG_COMPLETE, None))
    except Exception as e:
        post((MSG_ERROR, e))


async def validate_rows(
    rows: Sequence[ExtractedRow],
    default_country: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
    processor: Optional[ChunkProcessor] = None
) -> ValidationResult:
    """
    Validate extracted rows chunk by chunk with a fresh validator.

    Args:
        rows: Extracted rows in input order
        default_country: Fallback region for phone parsing
        on_progress: Callback receiving (processed, total)
        processor: Chunk processor to use; one is created and closed if omitted

    Returns:
        ValidationResult: Valid leads, invalid rows and summary counts

    Raises:
        BackgroundProcessingError: If background processing fails
    """
    validator = LeadValidator(default_country)

    if processor is None:
        async with ChunkProcessor(on_progress=on_progress) as owned:
            outcomes = await owned.process(rows, validator.validate_chunk)
    else:
        if on_progress is not None:
            processor.on_progress = on_progress
        outcomes = await processor.process(rows, validator.validate_chunk)

    result = validator.build_result(outcomes)
    summary = result.summary
    logger.info(
        f"Validated {summary.total_rows} rows: {summary.valid_rows} valid, "
        f"{summary.invalid_rows} invalid, {summary.duplicate_rows} duplicates"
    )
    return result
