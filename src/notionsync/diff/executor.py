"""Diff executor: apply planned operations to a page through :class:`BlockAPI`.

Operations run sequentially in a fixed order: every update, then every
delete, then every insert batch. Application is best-effort: a failed call
is recorded as an :class:`OperationFailure` and the remaining operations
still run. Nothing is rolled back.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from notionsync.config import NotionSyncConfig
from notionsync.errors import ErrorCode, NotionSyncError
from notionsync.models import (
    Block,
    BlockInsert,
    DiffOperations,
    DiffOpType,
    OperationFailure,
)
from notionsync.notion_api.blocks import extract_block_ids
from notionsync.observability import DebugLog, NoopMetricsHook, get_logger
from notionsync.utils.limits import chunk_children

log = get_logger("notionsync.executor")


@dataclass
class ExecutionReport:
    """What an :meth:`DiffExecutor.execute` call actually applied."""

    updated: int = 0
    deleted: int = 0
    inserted: int = 0
    failures: list[OperationFailure] = field(default_factory=list)


class DiffExecutor:
    """Synchronous diff executor.

    Parameters
    ----------
    block_api:
        A :class:`BlockAPI` (or anything with ``update``, ``delete`` and
        ``append_children``).
    config:
        Supplies the insert chunk size, the debug flag and the metrics hook.
    debug_log:
        Receives per-phase timings when ``config.debug`` is set.
    """

    def __init__(
        self,
        block_api: Any,
        config: NotionSyncConfig,
        debug_log: DebugLog | None = None,
    ) -> None:
        self._api = block_api
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._debug_log = debug_log if debug_log is not None else DebugLog()

    def execute(self, page_id: str, ops: DiffOperations) -> ExecutionReport:
        """Apply *ops* to the page *page_id*.

        Returns
        -------
        ExecutionReport
            Counts of applied operations and one failure per call that
            raised a :class:`NotionSyncError`.
        """
        report = ExecutionReport()

        t0 = time.monotonic()
        for update in ops.updates:
            payload = {update.block.type: update.block.to_api()[update.block.type]}
            if self._attempt(report, DiffOpType.UPDATE, update.block_id, 1,
                             lambda u=update, p=payload: self._api.update(u.block_id, p)) is not None:
                report.updated += 1
        t1 = self._phase("All updates", t0)

        for delete in ops.deletes:
            if self._attempt(report, DiffOpType.DELETE, delete.block_id, 1,
                             lambda d=delete: self._api.delete(d.block_id)) is not None:
                report.deleted += 1
        t2 = self._phase("All deletes", t1)

        for batch in ops.inserts:
            self._insert_batch(page_id, batch, report)
        self._phase("All inserts", t2)

        _emit_diff_metrics(self._metrics, ops)
        return report

    # -- internals ---------------------------------------------------------

    def _phase(self, label: str, started: float) -> float:
        now = time.monotonic()
        if self._config.debug:
            self._debug_log.record(label, (now - started) * 1000)
        return now

    def _attempt(
        self,
        report: ExecutionReport,
        op_type: DiffOpType,
        target: str | None,
        block_count: int,
        call: Any,
    ) -> dict | None:
        """Run one remote write; record and swallow a :class:`NotionSyncError`."""
        try:
            return call() or {}
        except NotionSyncError as exc:
            report.failures.append(OperationFailure(
                op_type=op_type,
                target=target,
                error_code=str(getattr(exc.code, "value", exc.code)),
                message=exc.message,
                block_count=block_count,
            ))
            log.error(
                f"{op_type.value} failed",
                extra={"extra_fields": {
                    "op": op_type.value,
                    "target": target,
                    "error_code": str(getattr(exc.code, "value", exc.code)),
                    "error": exc.message,
                }},
            )
            return None

    def _insert_batch(self, page_id: str, batch: BlockInsert, report: ExecutionReport) -> None:
        """Insert one batch in chunks, each anchored after the previous chunk."""
        children: list[Block] = []
        for block in batch.children:
            if block.placeholder:
                log.warning(
                    "Skipping placeholder for unsupported block type",
                    extra={"extra_fields": {"op": "insert", "block_type": block.type}},
                )
                continue
            children.append(block)

        container = batch.parent or page_id
        after = batch.after
        chunks = chunk_children(children, self._config.insert_chunk_size)
        for index, chunk in enumerate(chunks):
            response = self._attempt(
                report, DiffOpType.INSERT, after, len(chunk),
                lambda c=chunk, a=after: self._api.append_children(
                    container, [b.to_api() for b in c], after=a,
                ),
            )
            if response is None:
                continue
            report.inserted += len(chunk)
            new_ids = extract_block_ids(response)
            if new_ids:
                after = new_ids[-1]
                continue
            remaining = sum(len(c) for c in chunks[index + 1:])
            if remaining and after is not None:
                # Without the new ids the next chunk cannot be placed after this one.
                self._abandon(report, after, remaining)
                return

    def _abandon(self, report: ExecutionReport, after: str | None, block_count: int) -> None:
        message = "Insert response listed no block ids; remaining chunks not sent"
        report.failures.append(OperationFailure(
            op_type=DiffOpType.INSERT,
            target=after,
            error_code=ErrorCode.DECODE_ERROR.value,
            message=message,
            block_count=block_count,
        ))
        log.error(
            "insert failed",
            extra={"extra_fields": {
                "op": DiffOpType.INSERT.value,
                "target": after,
                "error_code": ErrorCode.DECODE_ERROR.value,
                "error": message,
                "blocks": block_count,
            }},
        )


def _emit_diff_metrics(metrics: Any, ops: DiffOperations) -> None:
    """Emit ``diff_ops_total`` counters grouped by operation type."""
    counts = {
        DiffOpType.UPDATE.value: len(ops.updates),
        DiffOpType.DELETE.value: len(ops.deletes),
        DiffOpType.INSERT.value: ops.insert_count,
    }
    for op_type, count in counts.items():
        if count:
            metrics.increment("notionsync.diff_ops_total", count, tags={"op_type": op_type})
