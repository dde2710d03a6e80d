from conckit.cmap.bucket import Bucket
from conckit.cmap.common import DEFAULT_BUCKET_LOAD_FACTOR, DEFAULT_BUCKET_MAX_SIZE
from conckit.cmap.pair import Pair
from conckit.cmap.redistributor import BucketStatus, DefaultPairRedistributor

DEFAULT_THRESHOLD = int(100 * DEFAULT_BUCKET_LOAD_FACTOR)


def filled_buckets(bucket_number, pair_number):
    buckets = [Bucket() for _ in range(bucket_number)]
    pairs = [Pair(f"key-{i}", i) for i in range(pair_number)]
    for p in pairs:
        buckets[p.hash % bucket_number].put(p)
    return buckets, pairs


def contents(buckets):
    return {p.key: p.element for b in buckets for p in b}


def test_status_at_default_threshold():
    pr = DefaultPairRedistributor(DEFAULT_BUCKET_LOAD_FACTOR, 16)
    assert pr.upper_threshold == DEFAULT_THRESHOLD
    assert pr.check_bucket_status(0, DEFAULT_THRESHOLD) == BucketStatus.OVERWEIGHT
    assert pr.check_bucket_status(0, DEFAULT_THRESHOLD - 1) == BucketStatus.NORMAL


def test_non_positive_load_factor_falls_back_to_default():
    pr = DefaultPairRedistributor(0, 16)
    assert pr.load_factor == DEFAULT_BUCKET_LOAD_FACTOR
    assert pr.upper_threshold == DEFAULT_THRESHOLD


def test_max_size_is_always_overweight():
    pr = DefaultPairRedistributor(DEFAULT_BUCKET_LOAD_FACTOR, 16)
    pr.update_threshold(16 * 10 * DEFAULT_BUCKET_MAX_SIZE, 16)
    assert pr.upper_threshold > DEFAULT_BUCKET_MAX_SIZE
    assert pr.check_bucket_status(0, DEFAULT_BUCKET_MAX_SIZE) == BucketStatus.NORMAL
    assert (
        pr.check_bucket_status(0, DEFAULT_BUCKET_MAX_SIZE + 1)
        == BucketStatus.OVERWEIGHT
    )


def test_normal_status_never_redistributes():
    pr = DefaultPairRedistributor(DEFAULT_BUCKET_LOAD_FACTOR, 16)
    buckets, _ = filled_buckets(16, 20)
    assert pr.redistribute(BucketStatus.NORMAL, buckets) is None


def test_too_few_overweight_buckets_keeps_layout():
    pr = DefaultPairRedistributor(DEFAULT_BUCKET_LOAD_FACTOR, 16)
    buckets, _ = filled_buckets(16, 20)
    pr.check_bucket_status(0, DEFAULT_THRESHOLD)
    assert pr.redistribute(BucketStatus.OVERWEIGHT, buckets) is None


def test_overweight_doubles_buckets_and_keeps_pairs():
    bucket_number = 16
    pr = DefaultPairRedistributor(DEFAULT_BUCKET_LOAD_FACTOR, bucket_number)
    buckets, pairs = filled_buckets(bucket_number, 200)
    before = contents(buckets)
    for _ in range(bucket_number // 4):
        assert pr.check_bucket_status(0, DEFAULT_THRESHOLD) == BucketStatus.OVERWEIGHT
    new_buckets = pr.redistribute(BucketStatus.OVERWEIGHT, buckets)
    assert len(new_buckets) == bucket_number * 2
    assert contents(new_buckets) == before
    assert sum(len(b) for b in new_buckets) == len(pairs)
    for index, bucket in enumerate(new_buckets):
        assert all(p.hash % len(new_buckets) == index for p in bucket)
    # counters are reset after a redistribution
    pr.check_bucket_status(0, DEFAULT_THRESHOLD)
    assert pr.redistribute(BucketStatus.OVERWEIGHT, new_buckets) is None


def test_underweight_with_few_buckets_is_ignored():
    pr = DefaultPairRedistributor(DEFAULT_BUCKET_LOAD_FACTOR, 16)
    buckets, _ = filled_buckets(16, 5)
    for _ in range(16):
        pr.check_bucket_status(0, 0)
    assert pr.redistribute(BucketStatus.UNDERWEIGHT, buckets) is None


def test_underweight_halves_buckets():
    bucket_number = 128
    pr = DefaultPairRedistributor(DEFAULT_BUCKET_LOAD_FACTOR, bucket_number)
    buckets, pairs = filled_buckets(bucket_number, 50)
    before = contents(buckets)
    for _ in range(bucket_number // 4):
        assert pr.check_bucket_status(0, 0) == BucketStatus.NORMAL
    new_buckets = pr.redistribute(BucketStatus.UNDERWEIGHT, buckets)
    assert len(new_buckets) == bucket_number // 2
    assert contents(new_buckets) == before
    assert sum(len(b) for b in new_buckets) == len(pairs)
    for index, bucket in enumerate(new_buckets):
        assert all(p.hash % len(new_buckets) == index for p in bucket)


def test_underweight_needs_enough_empty_buckets():
    bucket_number = 128
    pr = DefaultPairRedistributor(DEFAULT_BUCKET_LOAD_FACTOR, bucket_number)
    buckets, _ = filled_buckets(bucket_number, 50)
    for _ in range(bucket_number // 4 - 1):
        pr.check_bucket_status(0, 0)
    assert pr.redistribute(BucketStatus.UNDERWEIGHT, buckets) is None