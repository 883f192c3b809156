from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from numbers import Integral
from typing import Hashable, List, Optional, Sequence, Set

import numpy as np

from zipmerge.utils import get_logger

logger = get_logger(__name__)


# ---------- Window-size throttle ----------

@dataclass(frozen=True)
class ThrottlePolicy:
    """Decides which window sizes a sweep scans.

    A size is expressed as a percentage of the largest candidate size
    (``n // 2``). Sizes up to ``threshold_percent`` are always scanned;
    larger ones only when their percentage is a multiple of ``thoroughness``.
    ``thoroughness=1`` scans every size.
    """

    thoroughness: int = 20
    threshold_percent: int = 10

    def __post_init__(self):
        if not isinstance(self.thoroughness, Integral) or self.thoroughness < 1:
            raise ValueError(f"thoroughness must be an integer >= 1, got {self.thoroughness!r}")
        if not isinstance(self.threshold_percent, Integral) or self.threshold_percent < 0:
            raise ValueError(f"threshold_percent must be an integer >= 0, got {self.threshold_percent!r}")

    def scans(self, size: int, half: int) -> bool:
        percent = size * 100 // half
        return percent <= self.threshold_percent or percent % self.thoroughness == 0


def candidate_sizes(n: int, policy: ThrottlePolicy) -> List[int]:
    half = n // 2
    return [size for size in range(1, half + 1) if policy.scans(size, half)]


# ---------- Sweep ----------

def _scan_offset(seq: Sequence[Hashable], size: int, start: int) -> List[int]:
    # Windows start, start+size, ...; each is compared with the block right after it.
    n = len(seq)
    marks: List[int] = []
    i = start
    while i + 2 * size <= n:
        j = i + size
        if seq[i:j] == seq[j:j + size]:
            marks.extend(range(i, j))
        i += size
    return marks


def _scan_size(seq: Sequence[Hashable], size: int, executor: Optional[Executor]) -> Set[int]:
    scan = partial(_scan_offset, seq, size)
    if executor is None or size == 1:
        parts = map(scan, range(size))
    else:
        parts = executor.map(scan, range(size))
    marked: Set[int] = set()
    for part in parts:
        marked.update(part)
    return marked


def sweep(
    seq: Sequence[Hashable],
    policy: ThrottlePolicy,
    executor: Optional[Executor] = None,
    *,
    stop_at_first: bool = False,
) -> Set[int]:
    """Run one pass over every scanned window size and return the indices to drop.

    With ``stop_at_first`` the pass ends after the first size that marks anything.
    """
    marked: Set[int] = set()
    for size in candidate_sizes(len(seq), policy):
        found = _scan_size(seq, size, executor)
        if found:
            logger.debug("dedup.sweep: size=%d marked=%d n=%d", size, len(found), len(seq))
            marked |= found
            if stop_at_first:
                break
    return marked


def _drop(seq: Sequence[Hashable], marked: Set[int]) -> List[Hashable]:
    keep_mask = np.ones(len(seq), dtype=bool)
    keep_mask[np.fromiter(marked, dtype=np.int64, count=len(marked))] = False
    return [x for x, keep in zip(seq, keep_mask.tolist()) if keep]


# ---------- Fixpoint ----------

def dedup_patterns(
    seq: Sequence[Hashable],
    thoroughness: int = 20,
    *,
    policy: Optional[ThrottlePolicy] = None,
    max_workers: Optional[int] = None,
    eager_rebuild: bool = False,
) -> List[Hashable]:
    """Collapse adjacent repeated blocks until no sweep finds any.

    For every pair of equal adjacent blocks the earlier copy is removed and the
    later one kept. After each sweep the sequence is rebuilt without the marked
    indices and the next sweep starts again from window size 1. With
    ``eager_rebuild`` the rebuild happens as soon as a single window size has
    produced marks.

    ``policy`` overrides ``thoroughness`` when given.
    """
    if policy is None:
        policy = ThrottlePolicy(thoroughness=thoroughness)

    current = list(seq)
    sweeps = 0
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        while True:
            sweeps += 1
            marked = sweep(current, policy, executor, stop_at_first=eager_rebuild)
            if not marked:
                break
            current = _drop(current, marked)

    logger.info("dedup.patterns: kept=%d from=%d sweeps=%d", len(current), len(seq), sweeps)
    return current
