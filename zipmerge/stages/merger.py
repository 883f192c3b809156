from __future__ import annotations

from typing import Dict, Hashable, List, NamedTuple, Sequence, Tuple

import numpy as np

from zipmerge.utils import get_logger

logger = get_logger(__name__)


class Match(NamedTuple):
    start_long: int
    start_short: int
    length: int


# ---------- Longest common contiguous run ----------

def _intern(long: Sequence[Hashable], short: Sequence[Hashable]) -> Tuple[np.ndarray, np.ndarray]:
    ids: Dict[Hashable, int] = {}
    lid = np.fromiter((ids.setdefault(x, len(ids)) for x in long), dtype=np.int64, count=len(long))
    sid = np.fromiter((ids.setdefault(x, len(ids)) for x in short), dtype=np.int64, count=len(short))
    return lid, sid


def find_longest_run(long: Sequence[Hashable], short: Sequence[Hashable]) -> Match:
    """Locate the longest run shared by ``long`` and ``short``.

    Equivalent to scanning every start ``i`` in ``long`` (outer) and ``j`` in
    ``short`` (inner), extending each pair as far as it matches and keeping
    only strictly longer runs: ties resolve to the smallest ``i``, then the
    smallest ``j``.

    ``run[j]`` holds the length of the match starting at ``(i, j)``. Rows are
    filled from the end of ``long`` backwards, so a later row with an equal
    maximum is an earlier ``i`` and replaces the current best.
    """
    n, m = len(long), len(short)
    if n == 0 or m == 0:
        return Match(0, 0, 0)

    lid, sid = _intern(long, short)
    prev = np.zeros(m + 1, dtype=np.int64)
    run = np.zeros(m + 1, dtype=np.int64)
    best = Match(0, 0, 0)
    for i in range(n - 1, -1, -1):
        run[:m] = np.where(sid == lid[i], prev[1:] + 1, 0)
        j = int(np.argmax(run[:m]))
        length = int(run[j])
        if length > 0 and length >= best.length:
            best = Match(i, j, length)
        prev, run = run, prev
    return best


# ---------- Splice ----------

def zip_merge(a: Sequence[Hashable], b: Sequence[Hashable]) -> List[Hashable]:
    """Merge two sequences around their longest shared runs.

    The longer operand is ``long`` and the other ``short``; on equal lengths
    ``b`` is ``short``. The longest common run is kept once, and the parts before and
    after it are merged the same way. Operands without any shared element
    are concatenated as ``short + long``.
    """
    out: List[Hashable] = []
    # Work items are either ("merge", first, second) or ("emit", run); LIFO.
    stack: List[tuple] = [("merge", list(a), list(b))]
    while stack:
        item = stack.pop()
        if item[0] == "emit":
            out.extend(item[1])
            continue

        _, first, second = item
        if len(first) >= len(second):
            long, short = first, second
        else:
            long, short = second, first

        match = find_longest_run(long, short)
        if match.length == 0:
            if long and short:
                logger.debug("merge.disjoint: short=%r long=%r", short, long)
            out.extend(short)
            out.extend(long)
            continue

        i, j, k = match
        stack.append(("merge", long[i + k:], short[j + k:]))
        stack.append(("emit", long[i:i + k]))
        stack.append(("merge", long[:i], short[:j]))

    logger.debug("merge.zip: merged=%d from=%d+%d", len(out), len(a), len(b))
    return out
