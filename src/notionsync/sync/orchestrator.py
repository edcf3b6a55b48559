"""Sync orchestrator: the debounced, per-page mutually exclusive sync pipeline.

One :meth:`SyncOrchestrator.sync` call runs::

    guards -> parse lines -> (precondition) -> fetch existing -> diff
           -> apply updates -> apply deletes -> apply inserts -> report

and always returns the page to Idle, whether the pipeline finished, partly
failed or raised.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from notionsync.config import NotionSyncConfig
from notionsync.diff.conflict import check_precondition
from notionsync.diff.executor import DiffExecutor
from notionsync.diff.planner import STRATEGY_REWRITE, DiffPlanner, prepare_for_remote
from notionsync.models import Block, SyncResult, SyncStatus
from notionsync.notion_api.store import BlockStore
from notionsync.observability import DebugLog, NoopMetricsHook, get_logger

from .state import SyncStateTable

log = get_logger("notionsync.sync")

LineParser = Callable[[list[str]], list[Block]]


def _default_parser() -> LineParser:
    from notionsync.converter.md_to_blocks import MarkdownToBlocksConverter

    return MarkdownToBlocksConverter().convert_lines


class SyncOrchestrator:
    """Drive the sync of local markdown lines into a remote page.

    Parameters
    ----------
    store:
        Reads the page's existing blocks and metadata.
    block_api:
        Receives the update, delete and insert calls.
    config:
        Debounce window, conflict policy, debug flag and metrics hook.
    parser:
        Turns raw lines into desired blocks. Defaults to
        :meth:`MarkdownToBlocksConverter.convert_lines`.
    states:
        The state table to use. Pass a shared table to make several
        orchestrators exclude each other; a private one is created
        otherwise.
    clock:
        Monotonic time source in seconds, used by the debounce guard.
    debug_log:
        Cleared at the start of each sync and filled with phase timings
        when ``config.debug`` is set.
    """

    def __init__(
        self,
        store: BlockStore,
        block_api: Any,
        config: NotionSyncConfig,
        *,
        parser: LineParser | None = None,
        states: SyncStateTable | None = None,
        clock: Callable[[], float] = time.monotonic,
        debug_log: DebugLog | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._parser = parser if parser is not None else _default_parser()
        self.states = states if states is not None else SyncStateTable()
        self._clock = clock
        self.debug_log = debug_log if debug_log is not None else DebugLog()
        self._planner = DiffPlanner()
        self._executor = DiffExecutor(block_api, config, debug_log=self.debug_log)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    def _record(self, label: str, started: float) -> float:
        now = time.monotonic()
        if self._config.debug:
            self.debug_log.record(label, (now - started) * 1000)
        return now

    def sync(
        self,
        page_id: str,
        lines: list[str],
        base_last_edited: str | None = None,
    ) -> SyncResult:
        """Reconcile the remote page *page_id* with *lines*.

        Parameters
        ----------
        page_id:
            The remote page.
        lines:
            Local content, one string per line.
        base_last_edited:
            The page's ``last_edited_time`` when the local copy was loaded.
            Checked only when ``config.on_conflict == "raise"``.

        Returns
        -------
        SyncResult
            ``NOTHING_TO_SYNC`` when *lines* produce no block (no remote
            call is made), ``PARTIAL`` when some operations failed,
            ``SUCCESS`` otherwise.

        Raises
        ------
        NotionSyncAlreadySyncingError
            A sync of this page is already running.
        NotionSyncTooSoonError
            The previous sync of this page started inside the debounce
            window.
        NotionSyncConflictError
            The precondition is enabled and the page changed remotely.
        NotionSyncError
            The existing blocks could not be read completely.
        """
        self.states.acquire(page_id, self._clock(), self._config.sync_debounce_ms)
        started = time.monotonic()
        try:
            self.debug_log.clear()
            result = self._run(page_id, lines, base_last_edited, started)
        finally:
            self.states.release(page_id)

        self._metrics.increment("notionsync.sync_total", tags={"status": result.status.value})
        self._metrics.timing("notionsync.sync_duration_ms", result.elapsed_ms)
        return result

    def _run(
        self,
        page_id: str,
        lines: list[str],
        base_last_edited: str | None,
        started: float,
    ) -> SyncResult:
        t = time.monotonic()
        desired = self._parser(lines)
        t = self._record("Markdown conversion", t)

        if not desired:
            log.info(
                "Nothing to sync",
                extra={"extra_fields": {"op": "sync", "page_id": page_id}},
            )
            return SyncResult(
                page_id=page_id,
                status=SyncStatus.NOTHING_TO_SYNC,
                debug=self.debug_log.entries(),
                elapsed_ms=(time.monotonic() - started) * 1000,
            )

        if base_last_edited and self._config.on_conflict == "raise":
            check_precondition(base_last_edited, self._store.retrieve_page(page_id))
            t = self._record("Conflict check", t)

        existing = self._store.fetch_all_blocks(page_id)
        if self._store.last_errors:
            # Diffing against a partial listing would duplicate or drop content.
            raise self._store.last_errors[-1]
        t = self._record("GET existing blocks", t)

        ops = self._planner.plan(existing, desired)
        ops, strategy = prepare_for_remote(ops, existing, desired)
        if strategy == STRATEGY_REWRITE:
            log.warning(
                "Plan not expressible as positioned inserts, rewriting the page",
                extra={"extra_fields": {
                    "op": "sync",
                    "page_id": page_id,
                    "unrecoverable_placeholders": sum(1 for b in desired if b.placeholder),
                }},
            )
        self._record("Diff calculation", t)
        if self._config.debug:
            self.debug_log.append(
                f"Operations: {len(ops.updates)} updates, {len(ops.deletes)} deletes, "
                f"{ops.insert_count} inserts, {ops.noops} no-ops"
            )

        report = self._executor.execute(page_id, ops)

        elapsed_ms = (time.monotonic() - started) * 1000
        if self._config.debug:
            self.debug_log.record("Total sync", elapsed_ms)

        status = SyncStatus.PARTIAL if report.failures else SyncStatus.SUCCESS
        result = SyncResult(
            page_id=page_id,
            status=status,
            strategy=strategy,
            updates=report.updated,
            deletes=report.deleted,
            inserts=report.inserted,
            noops=ops.noops,
            failures=report.failures,
            debug=self.debug_log.entries(),
            elapsed_ms=elapsed_ms,
        )
        log_fn = log.warning if report.failures else log.info
        log_fn(
            "Sync finished",
            extra={"extra_fields": {
                "op": "sync",
                "page_id": page_id,
                "status": status.value,
                "strategy": strategy,
                "updates": result.updates,
                "deletes": result.deletes,
                "inserts": result.inserts,
                "noops": result.noops,
                "failures": len(report.failures),
            }},
        )
        return result
