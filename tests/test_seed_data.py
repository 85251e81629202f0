import unittest

from gomarket.data_models import ListingStatus
from gomarket.marketplace import MarketplaceStore
from gomarket.seed_data import seed_listings
from gomarket.session import demo_user


class TestSeedData(unittest.TestCase):
    def setUp(self):
        self.listings = seed_listings()

    def test_ids_are_unique_and_newest_first(self):
        ids = [int(l.id) for l in self.listings]
        self.assertEqual(ids, sorted(set(ids), reverse=True))

    def test_demo_user_can_review_their_purchase(self):
        reviewable = [l for l in self.listings if MarketplaceStore.can_review(l, demo_user())]
        self.assertEqual([l.id for l in reviewable], ["6"])

    def test_verified_sellers_can_be_looked_up(self):
        store = MarketplaceStore(self.listings)
        for seller in store.sellers():
            if seller.is_verified:
                self.assertIs(store.find_seller_by_id_number(seller.id_number), seller)

    def test_every_status_is_represented(self):
        self.assertEqual({l.status for l in self.listings}, set(ListingStatus))

    def test_post_after_seed_gets_next_id(self):
        store = MarketplaceStore(self.listings)
        listing = store.post({"title": "Kettle", "price": 200, "description": "Works", "category": "Appliances"},
                             demo_user())
        self.assertEqual(listing.id, "9")


if __name__ == "__main__":
    unittest.main()
