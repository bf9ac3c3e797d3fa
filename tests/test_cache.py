import unittest

from app.core.cache import CacheBackend


class TestCacheBackend(unittest.TestCase):
    def setUp(self):
        self.cache = CacheBackend(ttl_seconds=60, max_entries=8)

    def test_get_set(self):
        self.assertIsNone(self.cache.get("k"))
        self.cache.set("k", {"a": 1})
        self.assertEqual(self.cache.get("k"), {"a": 1})

    def test_invalidate(self):
        self.cache.set("k", 1)
        self.cache.invalidate("k")
        self.cache.invalidate("missing")
        self.assertIsNone(self.cache.get("k"))

    def test_invalidate_prefix_only_drops_matching_keys(self):
        self.cache.set("courses:list:1:10:", [1])
        self.cache.set("courses:list:2:10:", [2])
        self.cache.set("courses:detail:abc", {"id": "abc"})
        self.cache.invalidate_prefix("courses:list:")
        self.assertEqual(len(self.cache), 1)
        self.assertIsNotNone(self.cache.get("courses:detail:abc"))

    def test_max_entries_bound(self):
        for i in range(20):
            self.cache.set(f"k{i}", i)
        self.assertEqual(len(self.cache), 8)

    def test_clear(self):
        self.cache.set("k", 1)
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)
