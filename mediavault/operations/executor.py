"""
Run the copy (and delete) work of an operation and report how it went.

Copies run one at a time, in order, so progress is reported per object. A failed copy is
counted and the batch continues; already copied objects are not rolled back. When a copy
succeeded but removing the source failed, the data is safe at the destination and the
leftover at the source is only reported as a warning.

Deletes run concurrently.
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, Sequence

from mediavault.models import BatchOperationResult, DeleteFailure, DeleteResult, MoveTriple, OperationProgress
from mediavault.objectstorage.store import ObjectStore

ProgressCallback = Callable[[OperationProgress], None]


class ProgressChannel:
    """
    Progress of a batch as an async iterator. Pass the channel as the on_progress callback,
    and iterate over it (e.g. in another task) to receive the updates:

        channel = ProgressChannel()
        task = asyncio.create_task(operations.move_items(context, items, dest, on_progress=channel))
        async for progress in channel:
            print(f"{progress.current}/{progress.total}")
        result = await task

    The executor closes the channel when the batch is done, which ends the iteration.
    A consumer can close it earlier to stop listening; the batch itself always runs to completion.
    """

    def __init__(self):
        self._queue: asyncio.Queue[OperationProgress | None] = asyncio.Queue()
        self.closed = False

    def __call__(self, progress: OperationProgress) -> None:
        if not self.closed:
            self._queue.put_nowait(progress)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(None)

    def __aiter__(self) -> AsyncIterator[OperationProgress]:
        return self

    async def __anext__(self) -> OperationProgress:
        progress = await self._queue.get()
        if progress is None:
            raise StopAsyncIteration
        return progress


async def copy_batch(
    store: ObjectStore,
    triples: Sequence[MoveTriple],
    remove_source: bool = True,
    on_progress: ProgressCallback | None = None,
) -> BatchOperationResult:
    """
    Copy every triple in order, removing the source after a successful copy if remove_source.
    on_progress is called after every triple, whether it failed or not.
    """
    total = len(triples)
    succeeded = 0
    failed_items: list[str] = []
    leftover_sources: list[str] = []
    logging.info(f"Starting batch of {total} object(s) ({'move' if remove_source else 'copy'})")
    try:
        for i, triple in enumerate(triples):
            try:
                await store.copy(triple.source_path, triple.dest_path)
            except Exception as e:
                logging.warning(f"Could not copy {triple.source_path} to {triple.dest_path}: {e!r}")
                failed_items.append(triple.relative_name)
            else:
                succeeded += 1
                if remove_source:
                    try:
                        await store.remove(triple.source_path)
                    except Exception as e:
                        logging.warning(f"Copied {triple.source_path}, but could not remove it afterwards: {e!r}")
                        leftover_sources.append(triple.relative_name)
            if on_progress is not None:
                on_progress(OperationProgress(current=i + 1, total=total))
    finally:
        if isinstance(on_progress, ProgressChannel):
            on_progress.close()

    failed = len(failed_items)
    result = BatchOperationResult(success=failed == 0, succeeded=succeeded, failed=failed, failed_items=failed_items)
    if failed:
        result.error = f"{failed} of {total} item(s) could not be copied"
    if leftover_sources:
        result.warning = (
            f"{len(leftover_sources)} item(s) were copied but could not be removed from their original location: "
            + ", ".join(leftover_sources)
        )
    logging.info(f"Finished batch: {succeeded} succeeded, {failed} failed, {len(leftover_sources)} left at source")
    return result


async def remove_keys(store: ObjectStore, keys: Sequence[str], concurrency: int = 16) -> DeleteResult:
    """Remove all keys concurrently (at most concurrency at the same time) and report per key"""
    semaphore = asyncio.Semaphore(concurrency)

    async def remove(key: str) -> None:
        async with semaphore:
            await store.remove(key)

    logging.info(f"Removing {len(keys)} object(s)")
    outcomes = await asyncio.gather(*(remove(key) for key in keys), return_exceptions=True)
    result = DeleteResult()
    for key, outcome in zip(keys, outcomes):
        if isinstance(outcome, BaseException):
            logging.warning(f"Could not remove {key}: {outcome!r}")
            result.failed.append(DeleteFailure(key=key, error=str(outcome) or type(outcome).__name__))
        else:
            result.succeeded.append(key)
    return result
