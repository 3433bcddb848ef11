"""Unit tests for marketplace HTML parsing."""

from datetime import timedelta

import pytest

from findr.infrastructure.scraper.parsers import MarketplaceListingParser, MarketplaceSelectors
from findr.infrastructure.scraper.parsers.utils import (
    absolute_url,
    currency_symbol_to_code,
    extract_listing_id_from_url,
    extract_price_and_currency,
    has_currency_symbol,
    parse_relative_time,
)


class TestPriceExtraction:
    """Test price and currency parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("$150", (150.0, "USD")),
        ("€120", (120.0, "EUR")),
        ("£99.99", (99.99, "GBP")),
        ("¥5000", (5000.0, "JPY")),
        ("₹2,500", (2500.0, "INR")),
        ("C$1,200", (1200.0, "CAD")),
        ("A$80", (80.0, "AUD")),
        ("$1,200.50", (1200.50, "USD")),
        ("  $45  ", (45.0, "USD")),
        ("$", (None, "USD")),
        ("150", (150.0, "USD")),
        ("", (None, None)),
        (None, (None, None)),
    ])
    def test_extract_price_and_currency(self, text, expected):
        """Test common price formats."""
        assert extract_price_and_currency(text) == expected

    def test_unknown_symbol_defaults_to_usd(self):
        """Test an unrecognized symbol still yields USD."""
        price, currency = extract_price_and_currency("¤30")

        assert price == 30.0
        assert currency == "USD"

    def test_unparseable_number(self):
        """Test a malformed number gives no price."""
        price, _ = extract_price_and_currency("$1.2.3")

        assert price is None

    @pytest.mark.parametrize("symbol,code", [("$", "USD"), ("€", "EUR"), ("C$", "CAD"), (None, "USD"), ("?", "USD")])
    def test_currency_symbol_to_code(self, symbol, code):
        """Test symbol to ISO code mapping."""
        assert currency_symbol_to_code(symbol) == code

    def test_has_currency_symbol(self):
        """Test currency detection in free text."""
        assert has_currency_symbol("$150")
        assert has_currency_symbol("Price: €20")
        assert not has_currency_symbol("Brooklyn, NY")


class TestUrlHelpers:
    """Test listing URL helpers."""

    @pytest.mark.parametrize("url,expected", [
        ("https://www.facebook.com/marketplace/item/123456789/", "123456789"),
        ("/marketplace/item/987654321/?ref=search", "987654321"),
        ("https://www.facebook.com/marketplace/item/42", "42"),
        ("https://www.facebook.com/marketplace/category/furniture", ""),
        ("", ""),
        (None, ""),
    ])
    def test_extract_listing_id_from_url(self, url, expected):
        """Test ID extraction from absolute and relative URLs."""
        assert extract_listing_id_from_url(url) == expected

    def test_absolute_url_resolves_relative(self):
        """Test relative links are resolved against the host."""
        assert absolute_url("/marketplace/item/1/") == "https://www.facebook.com/marketplace/item/1/"

    def test_absolute_url_keeps_absolute(self):
        """Test absolute links are returned unchanged."""
        url = "https://example.com/marketplace/item/1/"

        assert absolute_url(url) == url


class TestRelativeTime:
    """Test posted-time text parsing."""

    @pytest.mark.parametrize("text,delta", [
        ("just now", timedelta(0)),
        ("yesterday", timedelta(days=1)),
        ("5 minutes ago", timedelta(minutes=5)),
        ("an hour ago", timedelta(hours=1)),
        ("3 hours ago", timedelta(hours=3)),
        ("Listed 2 days ago in Brooklyn, NY", timedelta(days=2)),
        ("a week ago", timedelta(weeks=1)),
        ("2 months ago", timedelta(days=60)),
        ("1 year ago", timedelta(days=365)),
    ])
    def test_known_formats(self, now, text, delta):
        """Test supported relative-time phrases."""
        assert parse_relative_time(text, now) == now - delta

    @pytest.mark.parametrize("text", ["", None, "Chicago, IL", "posted recently"])
    def test_unknown_formats(self, now, text):
        """Test unrecognized text gives None."""
        assert parse_relative_time(text, now) is None


class TestMarketplaceListingParser:
    """Test search and detail page parsing."""

    @pytest.fixture
    def parser(self, now):
        """Create parser with a pinned clock."""
        return MarketplaceListingParser(now=lambda: now)

    def test_parse_search_results_fixture(self, parser, search_html):
        """Test every card with an item link becomes a listing, in page order."""
        listings = parser.parse_search_results(search_html)

        assert [listing.listing_id for listing in listings] == [
            "123456789",
            "987654321",
            "555666777",
            "111222333",
            "321654987",
        ]

    def test_first_card_fields(self, parser, search_html):
        """Test field extraction from a search card."""
        first = parser.parse_search_results(search_html)[0]

        assert first.title == "Vintage Mid-Century Chair"
        assert first.price == 150.0
        assert first.currency == "USD"
        assert first.location == "Brooklyn, NY"
        assert first.listing_url.startswith("https://www.facebook.com/marketplace/item/123456789/")
        assert first.image_url == "https://scontent.xx.fbcdn.net/v/t45/chair.jpg"
        assert first.is_synthetic is False

    def test_last_card_fields(self, parser, search_html):
        """Test the last card is parsed too."""
        last = parser.parse_search_results(search_html)[-1]

        assert last.title == "Tall Bookshelf"
        assert last.price == 120.0
        assert last.location == "Staten Island, NY"

    def test_price_with_thousands_separator_is_not_location(self, parser, search_html):
        """Test a "$1,200" span is read as price and not as location."""
        sofa = parser.parse_search_results(search_html)[3]

        assert sofa.price == 1200.0
        assert sofa.location == "Manhattan, NY"

    def test_card_without_title_gets_placeholder(self, parser):
        """Test a missing title falls back to a generated one."""
        html = """
        <div data-pagelet="MarketplaceSearch">
          <div data-testid="marketplace_feed_item">
            <a href="/marketplace/item/42/"><span>$10</span></a>
          </div>
        </div>
        """

        listings = parser.parse_search_results(html)

        assert len(listings) == 1
        assert listings[0].title == "Facebook Marketplace Item 42"
        assert listings[0].location is None

    @pytest.mark.parametrize("html", [
        "",
        "   ",
        "<html><body><p>Log in to continue</p></body></html>",
        "<html><body><div>Incomplete",
        "not html at all",
    ])
    def test_unrecognized_markup_yields_empty(self, parser, html):
        """Test parsing never raises and returns an empty list."""
        assert parser.parse_search_results(html) == []

    def test_custom_selectors(self, now):
        """Test selectors can be overridden for DOM changes."""
        selectors = MarketplaceSelectors(search_card="li.result")
        parser = MarketplaceListingParser(selectors=selectors, now=lambda: now)
        html = '<ul><li class="result"><a href="/marketplace/item/7/"><span dir="auto">Desk</span></a></li></ul>'

        listings = parser.parse_search_results(html)

        assert [listing.title for listing in listings] == ["Desk"]

    def test_parse_listing_details_fixture(self, parser, item_html, now):
        """Test full detail extraction from a listing page."""
        listing = parser.parse_listing_details(item_html, "123456789")

        assert listing.listing_id == "123456789"
        assert listing.listing_url == "https://www.facebook.com/marketplace/item/123456789"
        assert listing.title == "Vintage Mid-Century Chair"
        assert listing.price == 150.0
        assert listing.currency == "USD"
        assert listing.location == "Brooklyn, NY"
        assert listing.category == "Furniture"
        assert listing.condition == "Good"
        assert listing.image_url == "https://scontent.xx.fbcdn.net/v/t45/chair-large.jpg"
        assert listing.description.startswith("Beautiful vintage mid-century chair")
        assert listing.posted_text == "Listed 2 days ago in Brooklyn, NY"
        assert listing.posted_at == now - timedelta(days=2)

    def test_parse_listing_details_seller(self, parser, item_html):
        """Test seller name, rating, join date and profile link."""
        seller = parser.parse_listing_details(item_html, "123456789").seller_info

        assert seller.name == "John Doe"
        assert seller.rating == "★★★★☆ 4.8"
        assert seller.rating_value() == 4.8
        assert seller.joined_date == "January 2019"
        assert seller.profile_url == "https://www.facebook.com/user/johndoe"

    def test_condition_in_single_span(self, parser):
        """Test "Condition: New" written in one span."""
        html = "<html><body><h1 dir='auto'>Lamp</h1><span>Condition: New</span></body></html>"

        listing = parser.parse_listing_details(html, "1")

        assert listing.condition == "New"

    def test_short_text_blocks_are_not_descriptions(self, parser):
        """Test text blocks of 50 characters or fewer are ignored."""
        html = "<html><body><div dir='auto'>Short text.</div></body></html>"

        listing = parser.parse_listing_details(html, "1")

        assert listing.description is None

    def test_sparse_page_leaves_fields_empty(self, parser):
        """Test a page with nothing recognizable still gives a listing."""
        listing = parser.parse_listing_details("<html><body><p>Hi</p></body></html>", "555")

        assert listing.listing_id == "555"
        assert listing.title == "Facebook Marketplace Item 555"
        assert listing.price is None
        assert listing.location is None
        assert listing.seller_info is None
        assert listing.posted_at is None

    @pytest.mark.parametrize("html,listing_id", [("", "1"), ("   ", "1"), ("<html></html>", "")])
    def test_parse_listing_details_empty_input(self, parser, html, listing_id):
        """Test blank HTML or a missing ID gives None."""
        assert parser.parse_listing_details(html, listing_id) is None
