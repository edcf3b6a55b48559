"""notionsync.diff -- block diffing and operation application.

* :mod:`.comparable` -- canonical content strings (the equality oracle).
* :mod:`.planner` -- two-pointer alignment with lookahead resynchronization.
* :mod:`.executor` -- ordered, best-effort application of operations.
* :mod:`.conflict` -- optional remote edit-time precondition.
"""

from __future__ import annotations

from .comparable import comparable
from .conflict import check_precondition, detect_conflict
from .executor import DiffExecutor, ExecutionReport
from .planner import DiffPlanner, compute_diff_operations, plan_rewrite, prepare_for_remote

__all__ = [
    "DiffExecutor",
    "DiffPlanner",
    "ExecutionReport",
    "check_precondition",
    "comparable",
    "compute_diff_operations",
    "detect_conflict",
    "plan_rewrite",
    "prepare_for_remote",
]
