from concurrent.futures import ThreadPoolExecutor

import pytest

from conckit.cow import ConcurrentArray, SegmentedIntArray


def _fill_concurrently(array, writers):
    length = len(array)

    def work(i):
        for j in range(length):
            array.set(j, j * i)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(writers)))


def test_concurrent_array_length():
    array = ConcurrentArray(1000)
    assert len(array) == 1000


def test_concurrent_array_set_and_get_in_parallel():
    array = ConcurrentArray(1000)
    writers = 20
    _fill_concurrently(array, writers)
    int_max = (writers - 1) * (len(array) - 1)
    for i in range(len(array)):
        elem = array.get(i)
        assert 0 <= elem <= int_max


def test_concurrent_array_starts_zeroed_and_stores():
    array = ConcurrentArray(5)
    assert [array.get(i) for i in range(5)] == [0] * 5
    array.set(3, 42)
    assert array.get(3) == 42
    assert array.get(2) == 0


def test_concurrent_array_index_errors():
    array = ConcurrentArray(1000)
    with pytest.raises(IndexError, match=r"Index out of range \[0, 1000\)!"):
        array.get(1000)
    with pytest.raises(IndexError):
        array.set(1000, 1)
    with pytest.raises(IndexError):
        array.get(-1)


def test_concurrent_array_rejects_negative_length():
    with pytest.raises(ValueError):
        ConcurrentArray(-1)


def test_segmented_array_length():
    array = SegmentedIntArray(1000)
    assert len(array) == 1000


def test_segmented_array_set_and_get_in_parallel():
    array = SegmentedIntArray(1000)
    writers = 20
    _fill_concurrently(array, writers)
    int_max = (writers - 1) * (len(array) - 1)
    for i in range(len(array)):
        elem = array.get(i)
        assert 0 <= elem <= int_max


@pytest.mark.parametrize("length", [1000, 25, 7])
def test_segmented_array_parallel_distinct_writes(length):
    array = SegmentedIntArray(length)

    with ThreadPoolExecutor(max_workers=8) as pool:
        olds = list(pool.map(lambda i: array.set(i, i), range(length)))

    assert olds == [0] * length
    for j in range(length):
        assert array.get(j) == j


def test_segmented_array_set_returns_old_value():
    array = SegmentedIntArray(30)
    assert array.set(15, 7) == 0
    assert array.set(15, 9) == 7
    assert array.get(15) == 9


def test_segmented_array_tail_segment_bounds():
    array = SegmentedIntArray(25)
    array.set(24, 5)
    assert array.get(24) == 5
    with pytest.raises(IndexError, match=r"index out of range \[0, 25\)"):
        array.get(25)
    with pytest.raises(IndexError):
        array.set(-1, 0)


def test_segmented_array_negative_length_is_empty():
    array = SegmentedIntArray(-5)
    assert len(array) == 0
    with pytest.raises(IndexError):
        array.get(0)