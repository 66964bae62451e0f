import unittest
from datetime import datetime, timedelta, timezone

from crypto_news.exceptions import ParseError
from crypto_news.models import FeedSource
from crypto_news.normalizer import PLACEHOLDER_IMAGE_URL, clean_html, parse_date, stable_id, to_news_item

SOURCE = FeedSource("https://coin.example.com/feed", "Coin Example", "defi")


class TestCleanHtml(unittest.TestCase):
    def test_strips_tags_and_decodes_entities(self):
        raw = "<p>Bitcoin&nbsp;&amp; Ether</p> <b>&lt;up&gt;</b> &quot;big&quot; day&#39;s &apos;move&apos;"
        self.assertEqual(clean_html(raw), "Bitcoin & Ether <up> \"big\" day's 'move'")

    def test_collapses_whitespace(self):
        self.assertEqual(clean_html("  a\n\n\tb   c  "), "a b c")

    def test_empty(self):
        self.assertEqual(clean_html(""), "")


class TestParseDate(unittest.TestCase):
    def test_rfc822(self):
        dt = parse_date("Mon, 06 Jan 2025 10:00:00 +0000")
        self.assertEqual(dt, datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc))

    def test_iso_with_offset_is_converted_to_utc(self):
        dt = parse_date("2025-01-06T12:00:00+02:00")
        self.assertEqual(dt, datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc))

    def test_gmt_suffix(self):
        dt = parse_date("Mon, 06 Jan 2025 10:00:00 GMT")
        self.assertEqual(dt, datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc))

    def test_us_zone_names(self):
        self.assertEqual(parse_date("Tue, 10 Jun 2025 12:00:00 EDT"),
                         datetime(2025, 6, 10, 16, 0, tzinfo=timezone.utc))
        self.assertEqual(parse_date("Mon, 06 Jan 2025 10:00:00 PST"),
                         datetime(2025, 1, 6, 18, 0, tzinfo=timezone.utc))
        self.assertEqual(parse_date("Mon, 06 Jan 2025 10:00:00 CST"),
                         datetime(2025, 1, 6, 16, 0, tzinfo=timezone.utc))

    def test_out_of_range_after_conversion_falls_back_to_now(self):
        dt = parse_date("0001-01-01T00:00:00+01:00")
        self.assertLess(abs(datetime.now(timezone.utc) - dt), timedelta(seconds=5))

    def test_unparseable_falls_back_to_now(self):
        dt = parse_date("not-a-date")
        self.assertIsNotNone(dt.tzinfo)
        self.assertLess(abs(datetime.now(timezone.utc) - dt), timedelta(seconds=5))
        # round-trips as ISO-8601
        self.assertEqual(datetime.fromisoformat(dt.isoformat()), dt)

    def test_missing_falls_back_to_now(self):
        dt = parse_date(None)
        self.assertLess(abs(datetime.now(timezone.utc) - dt), timedelta(seconds=5))


class TestStableId(unittest.TestCase):
    def test_known_values(self):
        self.assertEqual(stable_id(""), 0)
        self.assertEqual(stable_id("a"), 97)
        self.assertEqual(stable_id("ab"), 97 * 31 + 98)

    def test_wraps_to_32_bits(self):
        value = stable_id("https://www.coindesk.com/markets/2025/01/06/bitcoin-climbs-past-100k/")
        self.assertGreaterEqual(value, 0)
        self.assertLessEqual(value, 2 ** 31)

    def test_deterministic(self):
        self.assertEqual(stable_id("guid-123"), stable_id("guid-123"))
        self.assertNotEqual(stable_id("guid-123"), stable_id("guid-124"))


class TestToNewsItem(unittest.TestCase):
    def test_id_prefers_guid_then_link_then_title(self):
        base = {"title": "T", "link": "https://x/1", "date": "2025-01-06T10:00:00Z"}
        self.assertEqual(to_news_item({**base, "guid": "g1"}, SOURCE).id, stable_id("g1"))
        self.assertEqual(to_news_item(base, SOURCE).id, stable_id("https://x/1"))
        self.assertEqual(to_news_item({"title": "T"}, SOURCE).id, stable_id("T"))

    def test_rejects_entry_without_any_identifier(self):
        with self.assertRaises(ParseError):
            to_news_item({"description": "orphan"}, SOURCE)

    def test_defaults_and_truncation(self):
        item = to_news_item({"guid": "g", "description": "<p>" + "x" * 400 + "</p>"}, SOURCE)
        self.assertEqual(item.title, "Untitled")
        self.assertEqual(len(item.description), 300)
        self.assertEqual(item.image_url, PLACEHOLDER_IMAGE_URL)
        self.assertEqual(item.source_name, "Coin Example")
        self.assertEqual(item.feed_category, "defi")


if __name__ == "__main__":
    unittest.main()
