import unittest

from gomarket.data_models import ListingStatus, Review
from gomarket.marketplace import CHAT_UPDATED, POSTED, REVIEW_ADDED, STATUS_CHANGED, MarketplaceStore
from tests.helpers import make_listing, make_user, message


def review(rating=5, buyer="bob"):
    return Review(rating=rating, comment="Great seller", buyer_name=buyer, date="2024-03-01T10:00:00.000+00:00")


class TestMarketplaceStore(unittest.TestCase):
    def setUp(self):
        self.alice = make_user("alice", name="Alice Smith", id_number="AB123")
        self.bob = make_user("bob", name="Bob Jones")
        self.store = MarketplaceStore([
            make_listing("3", self.alice, title="Lamp"),
            make_listing("2", self.bob, title="Chair"),
            make_listing("1", self.alice, title="Desk"),
        ])
        self.events = []
        self.store.subscribe(lambda event, listing_id: self.events.append((event, listing_id)))

    def test_post_prepends_with_next_id(self):
        listing = self.store.post(
            {"title": "Bike", "price": 1200, "description": "Fast", "category": "Sporting Goods",
             "image_urls": ["bike.png"], "seller_address": "Durban, KZN"},
            self.bob,
        )
        self.assertEqual(listing.id, "4")
        self.assertEqual(self.store.listings[0].id, "4")
        self.assertEqual(listing.status, ListingStatus.AVAILABLE)
        self.assertEqual(listing.chat_history, [])
        self.assertEqual(listing.seller.username, "bob")
        self.assertEqual(self.events, [(POSTED, "4")])

    def test_next_id_ignores_non_numeric_ids(self):
        store = MarketplaceStore([make_listing("abc", self.bob), make_listing("7", self.bob)])
        listing = store.post({"title": "X", "price": 1, "description": "d", "category": "Other"}, self.bob)
        self.assertEqual(listing.id, "8")

    def test_post_keeps_a_snapshot_of_the_seller(self):
        listing = self.store.post({"title": "X", "price": 1, "description": "d", "category": "Other"}, self.alice)
        self.assertIsNot(listing.seller, self.alice)
        self.alice.name = "Alice Renamed"
        self.alice.reviews.append(review())
        self.assertEqual(listing.seller.name, "Alice Smith")
        self.assertEqual(listing.seller.reviews, [])

    def test_update_status_changes_only_that_listing(self):
        self.store.update_status("2", ListingStatus.SOLD)
        statuses = {l.id: l.status for l in self.store.listings}
        self.assertEqual(statuses, {"3": ListingStatus.AVAILABLE, "2": ListingStatus.SOLD, "1": ListingStatus.AVAILABLE})
        self.assertEqual(self.events, [(STATUS_CHANGED, "2")])

    def test_initiate_purchase_records_buyer(self):
        buyer = make_user("carol", avatar_url="https://example.com/carol.png")
        listing = self.store.initiate_purchase("3", buyer)
        self.assertEqual(listing.status, ListingStatus.PENDING)
        self.assertEqual(listing.buyer_name, "carol")
        self.assertEqual(listing.buyer_avatar_url, "https://example.com/carol.png")

    def test_unknown_id_is_a_silent_noop(self):
        before = self.store.listings
        self.assertIsNone(self.store.update_status("99", ListingStatus.SOLD))
        self.assertFalse(self.store.add_review("99", review()))
        self.assertFalse(self.store.update_chat("99", [message("bob")]))
        self.assertEqual(self.store.listings, before)
        self.assertEqual(self.events, [])

    def test_review_propagates_to_every_listing_of_the_seller(self):
        self.assertTrue(self.store.add_review("3", review()))
        by_id = {l.id: l for l in self.store.listings}
        self.assertTrue(by_id["3"].review_left)
        self.assertFalse(by_id["1"].review_left)
        self.assertEqual(len(by_id["3"].seller.reviews), 1)
        self.assertEqual(len(by_id["1"].seller.reviews), 1)
        self.assertEqual(by_id["2"].seller.reviews, [])
        self.assertEqual(self.events, [(REVIEW_ADDED, "3")])

    def test_review_propagation_matches_by_name(self):
        # a different account with the same display name shares the review
        twin = make_user("alice2", name="Alice Smith")
        self.store.post({"title": "Rug", "price": 5, "description": "d", "category": "Other"}, twin)
        self.store.add_review("3", review())
        rug = self.store.get("4")
        self.assertEqual(len(rug.seller.reviews), 1)

    def test_update_chat_replaces_history(self):
        history = [message("bob", "hello"), message("alice", "hi")]
        self.store.update_chat("3", history)
        self.assertEqual(self.store.get("3").chat_history, history)
        self.assertEqual(self.events, [(CHAT_UPDATED, "3")])

    def test_listings_snapshot_is_a_copy(self):
        snapshot = self.store.listings
        snapshot.clear()
        self.assertEqual(len(self.store.listings), 3)

    def test_unsubscribe_stops_notifications(self):
        seen = []
        unsubscribe = self.store.subscribe(lambda *args: seen.append(args))
        unsubscribe()
        self.store.update_status("1", ListingStatus.SOLD)
        self.assertEqual(seen, [])

    def test_sellers_are_unique_by_username(self):
        self.assertEqual(sorted(s.username for s in self.store.sellers()), ["alice", "bob"])

    def test_find_seller_by_id_number_is_case_insensitive(self):
        self.assertEqual(self.store.find_seller_by_id_number(" ab123 ").username, "alice")
        self.assertIsNone(self.store.find_seller_by_id_number("nope"))
        self.assertIsNone(self.store.find_seller_by_id_number(""))

    def test_listings_by_seller_status(self):
        self.store.update_status("1", ListingStatus.SOLD)
        self.assertEqual([l.id for l in self.store.listings_by_seller_status("alice")], ["3", "1"])
        self.assertEqual([l.id for l in self.store.listings_by_seller_status("alice", ListingStatus.SOLD)], ["1"])
        counts = self.store.count_by_status("alice")
        self.assertEqual(counts[ListingStatus.AVAILABLE], 1)
        self.assertEqual(counts[ListingStatus.SOLD], 1)
        self.assertEqual(counts[ListingStatus.PENDING], 0)


class TestEligibility(unittest.TestCase):
    def setUp(self):
        self.seller = make_user("alice", id_number="8001015009087")
        self.buyer = make_user("bob")

    def test_verify_seller_id(self):
        self.assertTrue(MarketplaceStore.verify_seller_id(self.seller, "8001015009087"))
        self.assertFalse(MarketplaceStore.verify_seller_id(self.seller, "123"))
        self.assertFalse(MarketplaceStore.verify_seller_id(self.seller, "  "))
        self.assertFalse(MarketplaceStore.verify_seller_id(make_user("x"), "123"))

    def test_only_recorded_buyer_can_review_once(self):
        listing = make_listing("1", self.seller, status=ListingStatus.SOLD, buyer_name="bob")
        self.assertTrue(MarketplaceStore.can_review(listing, self.buyer))
        self.assertFalse(MarketplaceStore.can_review(listing, make_user("carol")))
        listing.review_left = True
        self.assertFalse(MarketplaceStore.can_review(listing, self.buyer))

    def test_cannot_review_unsold_listing(self):
        listing = make_listing("1", self.seller, status=ListingStatus.PENDING, buyer_name="bob")
        self.assertFalse(MarketplaceStore.can_review(listing, self.buyer))

    def test_purchase_needs_verified_buyer_and_checked_id(self):
        listing = make_listing("1", self.seller)
        self.assertTrue(MarketplaceStore.can_purchase(listing, self.buyer, True))
        self.assertFalse(MarketplaceStore.can_purchase(listing, self.buyer, False))
        self.assertFalse(MarketplaceStore.can_purchase(listing, make_user("bob", verified=False), True))
        self.assertFalse(MarketplaceStore.can_purchase(listing, self.seller, True))
        listing.status = ListingStatus.SOLD
        self.assertFalse(MarketplaceStore.can_purchase(listing, self.buyer, True))


if __name__ == "__main__":
    unittest.main()
