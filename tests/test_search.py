import unittest

from gomarket.search import ALL_LOCATIONS, LOCATIONS, city_of, filter_listings, filter_locations
from tests.helpers import make_listing, make_user


class TestFilterListings(unittest.TestCase):
    def setUp(self):
        seller = make_user("alice")
        self.listings = [
            make_listing("1", seller, title="Red Bike", seller_address="Cape Town, WC"),
            make_listing("2", seller, title="Sofa", description="Comfy, seats a bike rider",
                         seller_address="Durban, KZN"),
            make_listing("3", seller, title="Lamp", seller_address="Johannesburg, GP"),
            make_listing("4", seller, title="Desk", seller_address=None),
        ]

    def ids(self, listings):
        return [l.id for l in listings]

    def test_term_matches_title_or_description(self):
        self.assertEqual(self.ids(filter_listings(self.listings, term="BIKE")), ["1", "2"])

    def test_empty_term_keeps_everything(self):
        self.assertEqual(self.ids(filter_listings(self.listings)), ["1", "2", "3", "4"])

    def test_browsing_location_filters_by_city(self):
        result = filter_listings(self.listings, browsing_location="Durban, KZN")
        self.assertEqual(self.ids(result), ["2"])

    def test_local_listings_sort_first_otherwise_stable(self):
        result = filter_listings(self.listings, browsing_location=ALL_LOCATIONS,
                                 profile_location="Johannesburg, GP")
        self.assertEqual(self.ids(result), ["3", "1", "2", "4"])


class TestLocations(unittest.TestCase):
    def test_city_of(self):
        self.assertEqual(city_of("Cape Town, WC"), "cape town")
        self.assertEqual(city_of(None), "")

    def test_filter_locations(self):
        self.assertEqual(filter_locations("")[0], ALL_LOCATIONS)
        self.assertEqual(len(filter_locations("")), len(LOCATIONS) + 1)
        self.assertEqual(filter_locations("cape"), ["Cape Town, WC"])
        self.assertEqual(filter_locations("zzz"), [])


if __name__ == "__main__":
    unittest.main()
