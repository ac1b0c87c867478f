import threading

import pytest

from src.utils.cache import CATEGORY_CACHE_TTL, CategoryCache, CategoryTree, TTLSlot


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CategoryCache(timer=clock)


def test_default_ttl_is_five_minutes():
    assert CATEGORY_CACHE_TTL == 300
    assert CategoryCache().ttl == 300


def test_empty_cache_misses(cache):
    assert cache.get_tree() is None
    assert cache.get_subs() is None


def test_set_tree_then_get_returns_same_payload(cache):
    parents = [{"id": "A", "children": [{"id": "A1"}]}]
    counts = {"A": 2, "A1": 2}

    cache.set_tree(parents, counts)

    tree = cache.get_tree()
    assert tree == CategoryTree(parents, counts)
    assert tree.parents is parents
    assert tree.product_counts is counts


def test_tree_expires_after_ttl(cache, clock):
    cache.set_tree([{"id": "A"}], {"A": 2})

    clock.advance(5 * 60 + 1)

    assert cache.get_tree() is None


def test_tree_fresh_just_before_ttl(cache, clock):
    cache.set_tree([{"id": "A"}], {"A": 2})

    clock.advance(CATEGORY_CACHE_TTL - 0.001)

    assert cache.get_tree() is not None


def test_tree_stale_exactly_at_ttl(cache, clock):
    cache.set_tree([{"id": "A"}], {"A": 2})

    clock.advance(CATEGORY_CACHE_TTL)

    assert cache.get_tree() is None


def test_subs_expire_after_ttl(cache, clock):
    cache.set_subs([{"id": "A1"}])
    clock.advance(CATEGORY_CACHE_TTL - 1)
    assert cache.get_subs() == [{"id": "A1"}]

    clock.advance(2)
    assert cache.get_subs() is None


def test_invalidate_clears_both_entries(cache):
    cache.set_tree([{"id": "A"}], {"A": 1})
    cache.set_subs([{"id": "A1"}])

    cache.invalidate()

    assert cache.get_tree() is None
    assert cache.get_subs() is None


def test_invalidate_subs_before_ttl(cache, clock):
    cache.set_subs([{"id": "A1"}, {"id": "B1"}])
    clock.advance(10)

    cache.invalidate()

    assert cache.get_subs() is None


def test_invalidate_on_empty_cache_is_noop(cache):
    cache.invalidate()
    assert cache.get_tree() is None
    assert cache.get_subs() is None


def test_entries_expire_independently(cache, clock):
    cache.set_tree([{"id": "A"}], {"A": 1})
    clock.advance(200)
    cache.set_subs([{"id": "A1"}])
    clock.advance(150)

    # árvore com 350s, subcategorias com 150s
    assert cache.get_tree() is None
    assert cache.get_subs() == [{"id": "A1"}]


def test_setting_subs_does_not_touch_tree(cache):
    tree_parents = [{"id": "A"}]
    cache.set_tree(tree_parents, {"A": 1})

    cache.set_subs([{"id": "X1"}])
    cache.set_subs([{"id": "Y1"}])

    assert cache.get_tree().parents is tree_parents


def test_setting_tree_does_not_touch_subs(cache, clock):
    cache.set_subs([{"id": "A1"}])
    clock.advance(100)

    cache.set_tree([{"id": "A"}], {"A": 1})
    clock.advance(250)

    # set_tree não renova o TTL das subcategorias
    assert cache.get_subs() is None
    assert cache.get_tree() is not None


def test_last_writer_wins(cache):
    cache.set_tree([{"id": "A"}], {"A": 1})
    cache.set_tree([{"id": "B"}], {"B": 7})

    tree = cache.get_tree()
    assert tree.parents == [{"id": "B"}]
    assert tree.product_counts == {"B": 7}


def test_second_set_renews_ttl(cache, clock):
    cache.set_tree([{"id": "A"}], {"A": 1})
    clock.advance(200)
    cache.set_tree([{"id": "A"}], {"A": 1})
    clock.advance(200)

    assert cache.get_tree() is not None


def test_set_after_invalidate_is_visible(cache):
    cache.set_tree([{"id": "A"}], {"A": 1})
    cache.invalidate()
    cache.set_tree([{"id": "B"}], {"B": 2})

    assert cache.get_tree().parents == [{"id": "B"}]


def test_readers_never_see_mixed_tree_payloads():
    cache = CategoryCache()
    stop = threading.Event()
    mismatches = []

    def writer(tag: str):
        while not stop.is_set():
            cache.set_tree([tag], {tag: 1})

    def reader():
        for _ in range(5000):
            tree = cache.get_tree()
            if tree is None:
                continue
            if list(tree.product_counts) != tree.parents:
                mismatches.append(tree)

    writers = [threading.Thread(target=writer, args=(tag,)) for tag in ("A", "B")]
    readers = [threading.Thread(target=reader) for _ in range(4)]
    for thread in writers + readers:
        thread.start()
    for thread in readers:
        thread.join()
    stop.set()
    for thread in writers:
        thread.join()

    assert mismatches == []


def test_ttl_slot_clear_and_reset(clock):
    slot = TTLSlot(60, clock)
    assert slot.ttl == 60
    assert slot.get() is None

    slot.set({"total": 3})
    assert slot.get() == {"total": 3}

    slot.clear()
    assert slot.get() is None

    slot.set({"total": 4})
    clock.advance(61)
    assert slot.get() is None
