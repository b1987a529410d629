from datetime import datetime, timedelta, timezone

from django.test import SimpleTestCase

from stores import filters

from .helpers import product


class FilterTests(SimpleTestCase):
    def setUp(self):
        self.cheap = product("cheap", price=40, new_price=30, category="Shirts", gender="Women", rating=3)
        self.mid = product("mid", price=120, new_price=120, rating=4.5, trending=True)
        self.pricey = product("pricey", price=500, new_price=450, brand="Luxe", gender="Unisex", rating=5)
        self.data = [self.mid, self.pricey, self.cheap]

    def test_sort_by_price(self):
        self.assertEqual(
            [p["_id"] for p in filters.sort_by_price("low_to_high", self.data)],
            ["cheap", "mid", "pricey"],
        )
        self.assertEqual(
            [p["_id"] for p in filters.sort_by_price("high_to_low", self.data)],
            ["pricey", "mid", "cheap"],
        )
        self.assertIs(filters.sort_by_price("", self.data), self.data)

    def test_gender(self):
        self.assertEqual(filters.filter_by_gender("all", self.data), self.data)
        self.assertEqual(filters.filter_by_gender("women", self.data), [self.cheap])

    def test_price_range_uses_effective_price(self):
        self.assertEqual(filters.filter_by_price_range(120, self.data), [self.mid, self.cheap])
        self.assertEqual(filters.filter_by_price_range(None, self.data), self.data)

    def test_rating(self):
        self.assertEqual(filters.filter_by_rating(0, self.data), self.data)
        self.assertEqual(filters.filter_by_rating(4.5, self.data), [self.mid, self.pricey])

    def test_categories(self):
        self.assertEqual(filters.filter_by_categories(["shirts"], self.data), [self.cheap])
        self.assertEqual(filters.filter_by_categories([], self.data), self.data)

    def test_search_keywords(self):
        self.assertEqual(filters.filter_by_search("featured", self.data), [self.mid])
        self.assertEqual(filters.filter_by_search("trending", self.data), [self.mid])
        self.assertEqual(filters.filter_by_search("sale", self.data), [self.pricey, self.cheap])

    def test_search_new_arrivals(self):
        now = datetime(2024, 6, 30, tzinfo=timezone.utc)
        fresh = product("fresh", createdAt="2024-06-20T10:00:00.000Z")
        stale = product("stale", createdAt="2024-01-01T10:00:00.000Z")
        undated = product("undated")
        self.assertEqual(filters.filter_by_search("new", [fresh, stale, undated], now=now), [fresh])
        cutoff = (now - timedelta(days=30)).isoformat()
        edge = product("edge", createdAt=cutoff)
        self.assertEqual(filters.filter_by_search("NEW", [edge], now=now), [edge])

    def test_search_text(self):
        self.assertEqual(filters.filter_by_search("luxe", self.data), [self.pricey])
        self.assertEqual(filters.filter_by_search("SHIRT", self.data), [self.cheap])
        self.assertEqual(filters.filter_by_search("", self.data), self.data)

    def test_apply_all(self):
        result = filters.apply_all(
            {"search": "acme", "gender": "all", "rating": 3, "sort_by": "high_to_low", "categories": []},
            self.data,
        )
        self.assertEqual([p["_id"] for p in result], ["mid", "cheap"])
