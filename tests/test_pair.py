import random

import pytest

from conckit.cmap.common import IllegalPairTypeError, IllegalParameterError, key_hash
from conckit.cmap.pair import Pair


def rand_string():
    return random.getrandbits(31).to_bytes(4, "little").hex()


def rand_element():
    value = random.getrandbits(31)
    if value % 3 != 0:
        return value
    return random.getrandbits(31).to_bytes(4, "little").hex()


def gen_key_elements(number):
    return [(rand_string(), rand_element()) for _ in range(number)]


def test_pair_new():
    cases = gen_key_elements(100)
    cases[0] = ("", rand_element())
    for key, element in cases:
        p = Pair(key, element)
        assert p.key == key
        assert p.element == element


def test_pair_key_hash_and_element():
    for key, element in gen_key_elements(30):
        p = Pair(key, element)
        assert p.key == key
        assert p.hash == key_hash(key)
        assert p.element == element


def test_pair_set_element():
    for key, element in gen_key_elements(30):
        p = Pair(key, element)
        new_element = rand_string()
        p.element = new_element
        assert p.element == new_element


def test_pair_next_chain():
    number = 30
    cases = gen_key_elements(number)
    current = None
    prev = None
    for key, element in cases:
        current = Pair(key, element)
        if prev is not None:
            current.next = prev
        prev = current
    for i in range(number - 1, -1, -1):
        following = current.next
        if i == 0:
            assert following is None
        else:
            expected_key, expected_element = cases[i - 1]
            assert following.key == expected_key
            assert following.element == expected_element
        current = following


def test_pair_copy():
    for key, element in gen_key_elements(30):
        p = Pair(key, element)
        p.next = Pair("other", 1)
        duplicate = p.copy()
        assert duplicate.key == p.key
        assert duplicate.hash == p.hash
        assert duplicate.element == p.element
        assert duplicate.next is None


def test_none_element_rejected():
    with pytest.raises(IllegalParameterError):
        Pair("k", None)


def test_set_none_element_rejected():
    p = Pair("k", 1)
    with pytest.raises(IllegalParameterError):
        p.element = None
    assert p.element == 1


def test_next_must_be_pair():
    p = Pair("k", 1)
    with pytest.raises(IllegalPairTypeError):
        p.next = "not a pair"
    p.next = Pair("n", 2)
    p.next = None
    assert p.next is None


def test_string_forms():
    tail = Pair("n", 2)
    head = Pair("k", 1)
    head.next = tail
    assert str(head) == f"pair{{key:k, hash:{key_hash('k')}, element:1, nextKey:n}}"
    assert head.describe(True) == (
        f"pair{{key:k, hash:{key_hash('k')}, element:1, next:"
        f"pair{{key:n, hash:{key_hash('n')}, element:2, next:}}}}"
    )
    assert str(tail) == f"pair{{key:n, hash:{key_hash('n')}, element:2, nextKey:}}"