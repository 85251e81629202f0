"""
Home screen listing search: term filter plus location filter or local-first sort.
"""
from typing import Iterable, List, Optional

from .data_models import Listing

ALL_LOCATIONS = "All Locations"

LOCATIONS = sorted([
    # South Africa
    "Bloemfontein, FS",
    "Cape Town, WC",
    "Durban, KZN",
    "East London, EC",
    "Johannesburg, GP",
    "Kimberley, NC",
    "Mahikeng, NW",
    "Nelspruit, MP",
    "Polokwane, LP",
    "Port Elizabeth, EC",
    "Pretoria, GP",
    "Rustenburg, NW",
    "Stellenbosch, WC",
    # Southern Africa
    "Gaborone, Botswana",
    "Harare, Zimbabwe",
    "Lusaka, Zambia",
    "Maputo, Mozambique",
    "Maseru, Lesotho",
    "Windhoek, Namibia",
    # Rest of Africa
    "Lagos, NG",
    "Nairobi, KE",
])


def city_of(location: Optional[str]) -> str:
    """'Cape Town, WC' -> 'cape town'."""
    if not location:
        return ""
    return location.split(",")[0].strip().lower()


def filter_locations(query: str) -> List[str]:
    """Location picker entries matching a substring, 'All Locations' first."""
    options = [ALL_LOCATIONS] + LOCATIONS
    query = query.strip().lower()
    if not query:
        return options
    return [loc for loc in options if query in loc.lower()]


def matches_term(listing: Listing, term: str) -> bool:
    term = term.lower()
    return term in listing.title.lower() or term in listing.description.lower()


def filter_listings(
    listings: Iterable[Listing],
    term: str = "",
    browsing_location: Optional[str] = ALL_LOCATIONS,
    profile_location: Optional[str] = None,
) -> List[Listing]:
    results = [l for l in listings if matches_term(l, term)]

    if browsing_location and browsing_location != ALL_LOCATIONS:
        browsing_city = city_of(browsing_location)
        return [l for l in results if l.seller_address and city_of(l.seller_address) == browsing_city]

    if not profile_location:
        return results

    home_city = city_of(profile_location)
    # sorted() is stable, so non-local order is kept
    return sorted(results, key=lambda l: city_of(l.seller_address) != home_city)
