import unittest

from gomarket.local_storage import APPLY_SEARCH_KEY, SAVED_LISTINGS_KEY, SAVED_SEARCHES_KEY, MemoryStorage
from gomarket.saved import SavedListingStore, SavedSearchStore


class TestSavedListings(unittest.TestCase):
    def test_toggle_twice_restores_state(self):
        storage = MemoryStorage()
        saved = SavedListingStore(storage)
        self.assertTrue(saved.toggle("3"))
        self.assertTrue(saved.is_saved("3"))
        self.assertFalse(saved.toggle("3"))
        self.assertFalse(saved.is_saved("3"))
        self.assertEqual(storage.get_json(SAVED_LISTINGS_KEY), [])

    def test_saved_ids_persist(self):
        storage = MemoryStorage()
        SavedListingStore(storage).toggle("5")
        self.assertEqual(SavedListingStore(storage).ids, {"5"})

    def test_corrupt_value_resets(self):
        storage = MemoryStorage({SAVED_LISTINGS_KEY: '{"oops": 1}'})
        with self.assertLogs("gomarket.saved", level="ERROR"):
            saved = SavedListingStore(storage)
        self.assertEqual(saved.ids, set())
        self.assertIsNone(storage.get_item(SAVED_LISTINGS_KEY))


class TestSavedSearches(unittest.TestCase):
    def setUp(self):
        self.storage = MemoryStorage()
        self.searches = SavedSearchStore(self.storage)

    def test_add_prepends_and_persists(self):
        self.searches.add("bike")
        self.searches.add("sofa")
        self.assertEqual([s.term for s in self.searches.searches], ["sofa", "bike"])
        self.assertEqual(len(SavedSearchStore(self.storage).searches), 2)

    def test_blank_and_duplicate_terms_are_ignored(self):
        self.assertIsNotNone(self.searches.add("Bike"))
        self.assertIsNone(self.searches.add("  "))
        self.assertIsNone(self.searches.add("bike"))
        self.assertEqual(len(self.searches.searches), 1)

    def test_ids_are_unique(self):
        first = self.searches.add("a")
        second = self.searches.add("b")
        self.assertNotEqual(first.id, second.id)

    def test_delete(self):
        search = self.searches.add("bike")
        self.searches.delete(search.id)
        self.assertEqual(self.searches.searches, [])
        self.assertEqual(self.storage.get_json(SAVED_SEARCHES_KEY), [])

    def test_apply_is_consumed_once(self):
        self.searches.apply("guitar")
        self.assertEqual(self.storage.get_item(APPLY_SEARCH_KEY), "guitar")
        self.assertEqual(self.searches.consume_applied(), "guitar")
        self.assertIsNone(self.searches.consume_applied())

    def test_corrupt_searches_reset(self):
        storage = MemoryStorage({SAVED_SEARCHES_KEY: '[{"no_term": true}]'})
        with self.assertLogs("gomarket.saved", level="ERROR"):
            self.assertEqual(SavedSearchStore(storage).searches, [])


if __name__ == "__main__":
    unittest.main()
