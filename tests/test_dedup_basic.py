import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from zipmerge.stages.dedup import ThrottlePolicy, candidate_sizes, dedup_patterns, sweep


def test_throttle_rejects_zero_thoroughness():
    with pytest.raises(ValueError):
        ThrottlePolicy(thoroughness=0)
    with pytest.raises(ValueError):
        dedup_patterns(["a", "a"], 0)


def test_throttle_rejects_non_integer_values():
    with pytest.raises(ValueError):
        ThrottlePolicy(thoroughness=1.5)
    with pytest.raises(ValueError):
        ThrottlePolicy(thoroughness=20, threshold_percent=10.0)
    assert ThrottlePolicy(thoroughness=3).thoroughness == 3


def test_throttle_boundary_at_ten_percent():
    policy = ThrottlePolicy(thoroughness=20)
    # n=100 -> half=50, so percent == 2 * size
    assert policy.scans(5, 50)       # 10%: at the threshold, always scanned
    assert not policy.scans(6, 50)   # 12%
    assert policy.scans(10, 50)      # 20%
    assert not policy.scans(11, 50)  # 22%
    assert not policy.scans(25, 50)  # 50%
    assert policy.scans(50, 50)      # 100%
    assert candidate_sizes(100, policy) == [1, 2, 3, 4, 5, 10, 20, 30, 40, 50]


def test_full_thoroughness_scans_every_size():
    assert candidate_sizes(10, ThrottlePolicy(thoroughness=1)) == [1, 2, 3, 4, 5]
    assert candidate_sizes(1, ThrottlePolicy(thoroughness=1)) == []
    assert candidate_sizes(0, ThrottlePolicy(thoroughness=1)) == []


def test_threshold_percent_is_configurable():
    policy = ThrottlePolicy(thoroughness=20, threshold_percent=0)
    assert candidate_sizes(100, policy) == [10, 20, 30, 40, 50]


def test_short_sequences_unchanged():
    assert dedup_patterns([], 1) == []
    assert dedup_patterns(["a"], 1) == ["a"]


def test_adjacent_block_collapses():
    seq = ["a", "b", "a", "b", "c"]
    assert sweep(seq, ThrottlePolicy(thoroughness=1)) == {0, 1}
    assert dedup_patterns(seq, 1) == ["a", "b", "c"]
    assert seq == ["a", "b", "a", "b", "c"]


def test_earlier_copy_is_marked():
    assert sweep(["a", "b", "a", "b"], ThrottlePolicy(thoroughness=1)) == {0, 1}
    assert sweep(["x", "x", "x"], ThrottlePolicy(thoroughness=1)) == {0, 1}
    assert dedup_patterns(["x", "x", "x"], 1) == ["x"]


def test_non_adjacent_repeats_survive():
    seq = ["a", "b", "c", "a", "b"]
    assert dedup_patterns(seq, 1) == seq


def test_rebuild_modes_reach_same_fixpoint():
    seq = ["a", "a", "b", "c", "b", "c"]
    assert dedup_patterns(seq, 1) == ["a", "b", "c"]
    assert dedup_patterns(seq, 1, eager_rebuild=True) == ["a", "b", "c"]


def test_skipped_sizes_leave_repeats():
    # n=6, thoroughness=20: sizes 1 (33%) and 2 (66%) are skipped
    seq = ["h", "a", "b", "a", "b", "c"]
    assert dedup_patterns(seq, 20) == seq
    assert dedup_patterns(seq, 1) == ["h", "a", "b", "c"]


def test_parallel_sweep_matches_sequential():
    rng = random.Random(7)
    policy = ThrottlePolicy(thoroughness=1)
    with ThreadPoolExecutor(max_workers=4) as ex:
        for _ in range(20):
            seq = [rng.choice("abc") for _ in range(rng.randint(0, 40))]
            assert sweep(seq, policy, ex) == sweep(seq, policy)


def test_idempotent_at_fixpoint():
    rng = random.Random(11)
    for t in (1, 3, 20):
        for _ in range(15):
            seq = [rng.choice("abcd") for _ in range(rng.randint(0, 60))]
            once = dedup_patterns(seq, t, max_workers=2)
            assert dedup_patterns(once, t) == once
            assert sweep(once, ThrottlePolicy(thoroughness=t)) == set()
            assert len(once) <= len(seq)


def test_rebuild_modes_can_diverge():
    # One rebuild per sweep removes {1, 2, 3, 5} together; rebuilding after
    # size 1 exposes the new "b","a","b","a" repeat first.
    seq = ["b", "a", "a", "b", "a", "b", "b", "c", "a", "c"]
    assert sweep(seq, ThrottlePolicy(thoroughness=1)) == {1, 2, 3, 5}
    assert dedup_patterns(seq, 1) == ["b", "a", "b", "c", "a", "c"]
    assert dedup_patterns(seq, 1, eager_rebuild=True) == ["a", "b", "c", "a", "c"]
