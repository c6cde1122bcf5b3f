import threading

import pytest

from pickchat.candidates import CandidateSet, CandidateIndexError


def test_deltas_append_per_index():
    cands = CandidateSet.create(2)
    cands.apply_delta(0, "a")
    cands.apply_delta(0, "b")
    cands.apply_delta(1, "c")
    assert cands.snapshot() == ["ab", "c"]
    assert cands.get(0) == "ab"
    assert cands.count() == 2


def test_starts_empty():
    assert CandidateSet.create(3).snapshot() == ["", "", ""]


@pytest.mark.parametrize("index", [2, 5, -1])
def test_out_of_range_index_is_an_error(index):
    cands = CandidateSet.create(2)
    with pytest.raises(CandidateIndexError):
        cands.apply_delta(index, "x")
    assert cands.snapshot() == ["", ""]


def test_negative_count_rejected():
    with pytest.raises(ValueError):
        CandidateSet(-1)


def test_render_all():
    cands = CandidateSet.create(2)
    cands.apply_delta(1, "yes")
    assert cands.render_all() == "\nResponse 0: \n\nResponse 1: yes\n"
    assert CandidateSet.create(0).render_all() == ""


def test_concurrent_writers_on_separate_indices():
    cands = CandidateSet.create(4)

    def write(i):
        for _ in range(500):
            cands.apply_delta(i, "x")

    threads = [threading.Thread(target=write, args=(i,)) for i in range(4)]
    for t in threads: t.start()
    for t in threads: t.join()
    assert cands.snapshot() == ["x" * 500] * 4
