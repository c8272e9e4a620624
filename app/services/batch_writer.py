"""
Chunked batch writes with rate limiting and retry logic.

Operations are split into fixed-size chunks in input order. Each chunk is one
atomic batch commit. A chunk that keeps failing is recorded and skipped; the
remaining chunks are still attempted, so callers seeing ``success=False`` must
re-fetch to learn the actual state.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from app.services.repositories import GUESTS, TABLES
from app.services.store import DELETE_FIELD, DocumentStore

logger = logging.getLogger(__name__)

MAX_BACKOFF_MS = 10_000

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class BatchOperation:
    type: str  # "create" | "update" | "delete"
    collection: str
    id: str
    data: Optional[Dict[str, Any]] = None


@dataclass
class BatchOptions:
    max_batch_size: int = 50
    delay_between_batches: int = 100  # ms
    max_retries: int = 3
    retry_delay: int = 1000  # ms, doubled per attempt


@dataclass
class BatchResult:
    success: bool
    errors: List[str] = field(default_factory=list)
    processed_count: int = 0


def exponential_backoff(attempt: int, base_delay: int) -> int:
    return min(base_delay * 2 ** attempt, MAX_BACKOFF_MS)


def chunk_list(items: List[Any], size: int) -> List[List[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def _commit_chunk(store: DocumentStore, operations: List[BatchOperation], number: int, total: int) -> None:
    logger.info(f"Processing chunk {number}/{total} with {len(operations)} operations")
    batch = store.batch()
    for op in operations:
        if op.type == "update":
            if op.data:
                batch.update(op.collection, op.id, op.data)
        elif op.type == "create":
            if op.data:
                batch.create(op.collection, op.id, op.data)
        elif op.type == "delete":
            batch.delete(op.collection, op.id)
        else:
            raise ValueError(f"Unknown batch operation type: {op.type}")
    batch.commit()
    logger.info(f"Chunk {number}/{total} completed successfully")


async def execute_batch_updates(
    store: DocumentStore,
    operations: List[BatchOperation],
    options: Optional[BatchOptions] = None,
    sleep: Sleep = asyncio.sleep,
) -> BatchResult:
    opts = options or BatchOptions()
    errors: List[str] = []
    processed_count = 0

    if not operations:
        return BatchResult(success=True)

    chunks = chunk_list(operations, opts.max_batch_size)
    logger.info(f"Processing {len(operations)} operations in {len(chunks)} chunks")

    for index, chunk in enumerate(chunks):
        number = index + 1
        retry_count = 0

        while retry_count <= opts.max_retries:
            if retry_count > 0:
                delay = exponential_backoff(retry_count - 1, opts.retry_delay)
                logger.info(f"Retrying chunk {number} (attempt {retry_count + 1}) after {delay}ms")
                await sleep(delay / 1000)

            try:
                _commit_chunk(store, chunk, number, len(chunks))
            except Exception as e:
                retry_count += 1
                if retry_count > opts.max_retries:
                    errors.append(f"Chunk {number} failed after {opts.max_retries} retries: {e}")
                    logger.error(f"Chunk {number} failed permanently: {e}")
                else:
                    logger.warning(f"Chunk {number} failed (attempt {retry_count}): {e}")
                continue

            processed_count += len(chunk)
            break

        if index < len(chunks) - 1:
            await sleep(opts.delay_between_batches / 1000)

    success = not errors
    logger.info(f"Batch operation completed. Success: {success}, Processed: {processed_count}/{len(operations)}")
    return BatchResult(success=success, errors=errors, processed_count=processed_count)


def guest_assignment_operations(guest_changes: List[Dict[str, Any]]) -> List[BatchOperation]:
    """Changes are ``{"guestId", "tableId"}``; a missing table id unassigns"""
    return [
        BatchOperation(
            type="update",
            collection=GUESTS,
            id=change["guestId"],
            data={"tableId": change.get("tableId") or DELETE_FIELD},
        )
        for change in guest_changes
    ]


def table_update_operations(table_changes: List[Dict[str, Any]]) -> List[BatchOperation]:
    return [
        BatchOperation(type="update", collection=TABLES, id=change["tableId"], data=change["updates"])
        for change in table_changes
    ]


def table_creation_operations(tables: List[Dict[str, Any]]) -> List[BatchOperation]:
    """Tables are ``{"id", "data"}`` with the id already allocated"""
    return [
        BatchOperation(type="create", collection=TABLES, id=table["id"], data=table["data"])
        for table in tables
    ]


async def bulk_update_guest_assignments(
    store: DocumentStore,
    guest_changes: List[Dict[str, Any]],
    options: Optional[BatchOptions] = None,
    sleep: Sleep = asyncio.sleep,
) -> BatchResult:
    opts = options or BatchOptions(max_batch_size=100, delay_between_batches=50)
    return await execute_batch_updates(store, guest_assignment_operations(guest_changes), opts, sleep)


async def save_assignment_changes(
    store: DocumentStore,
    guest_changes: List[Dict[str, Any]],
    table_changes: Optional[List[Dict[str, Any]]] = None,
    sleep: Sleep = asyncio.sleep,
) -> BatchResult:
    """Persist the assignment screen's diff"""
    table_changes = table_changes or []
    operations = guest_assignment_operations(guest_changes) + table_update_operations(table_changes)
    if not operations:
        return BatchResult(success=True)

    logger.info(f"Saving {len(guest_changes)} guest assignments and {len(table_changes)} table updates")
    return await execute_batch_updates(
        store,
        operations,
        BatchOptions(max_batch_size=75, delay_between_batches=100, max_retries=3, retry_delay=1000),
        sleep,
    )
