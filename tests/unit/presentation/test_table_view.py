"""Unit tests for table filtering, sorting and pagination."""

from decimal import Decimal

import pytest

from src.pharmacat.entities.product import Product
from src.pharmacat.presentation import (
    NO_MATCH_MESSAGE,
    TableQuery,
    build_table_page,
    filter_products,
    sort_products,
)
from src.pharmacat.presentation.table import EMPTY_STORE_MESSAGE


def make_product(index: int, **overrides) -> Product:
    data = {
        "code": f"PRD{index:03d}",
        "brand": f"Brand {index}",
        "generic_name": "PARACETAMOL",
        "dosage_form": "500 mg TABLET",
        "price": Decimal(index + 1),
    }
    data.update(overrides)
    return Product(**data)


@pytest.fixture
def sixty_products() -> list[Product]:
    return [make_product(i) for i in range(60)]


class TestFilter:
    def test_matches_any_text_column_case_insensitively(self):
        products = [
            make_product(1, brand="Zovirax", generic_name="ACICLOVIR"),
            make_product(2, brand="Biogesic"),
            make_product(3, brand="", dosage_form="250 mg/5 mL SYRUP"),
        ]

        assert filter_products(products, "zovi") == [products[0]]
        assert filter_products(products, "aciclo") == [products[0]]
        assert filter_products(products, "SYRUP") == [products[2]]

    def test_blank_search_keeps_everything(self):
        products = [make_product(1), make_product(2)]

        assert filter_products(products, "   ") == products

    def test_code_and_price_are_not_searched(self):
        products = [make_product(7, price=Decimal("123.00"))]

        assert filter_products(products, "PRD007") == []
        assert filter_products(products, "123") == []


class TestSort:
    def test_price_sorts_numerically(self):
        products = [
            make_product(1, price=Decimal("10.00")),
            make_product(2, price=Decimal("9.50")),
            make_product(3, price=Decimal("100.00")),
        ]

        ascending = sort_products(products, "price", "asc")
        descending = sort_products(products, "price", "desc")

        assert [p.price_display for p in ascending] == ["9.50", "10.00", "100.00"]
        assert descending == list(reversed(ascending))

    def test_sort_is_stable_for_ties(self):
        """Equal keys keep their incoming order in both directions."""
        products = [make_product(i, brand="Same") for i in range(4)]

        assert sort_products(products, "brand", "asc") == products
        assert sort_products(products, "brand", "desc") == products

    def test_text_columns_compare_as_strings(self):
        products = [make_product(1, brand="b"), make_product(2, brand="B"), make_product(3, brand="a")]

        assert [p.brand for p in sort_products(products, "brand")] == ["B", "a", "b"]

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            sort_products([], "created_at")


class TestTableQuery:
    def test_same_key_toggles_direction(self):
        query = TableQuery().with_sort("price")
        assert (query.sort_key, query.direction) == ("price", "asc")

        query = query.with_sort("price")
        assert query.direction == "desc"

        query = query.with_sort("price")
        assert query.direction == "asc"

    def test_new_key_starts_ascending(self):
        query = TableQuery(sort_key="price", direction="desc").with_sort("brand")

        assert (query.sort_key, query.direction) == ("brand", "asc")

    def test_search_and_sort_reset_page(self):
        query = TableQuery(page=3)

        assert query.with_search("para").page == 1
        assert query.with_sort("code").page == 1

    def test_from_params_tolerates_junk(self):
        query = TableQuery.from_params(search=" x ", sort="bogus", direction="sideways", page="abc")

        assert query == TableQuery(search="x")

    def test_params_omit_empty_values(self):
        assert TableQuery(page=2).params() == {"direction": "asc", "page": 2}


class TestPagination:
    def test_sixty_products_paginate_25_25_10(self, sixty_products):
        sizes = [
            len(build_table_page(sixty_products, TableQuery(page=page)).items)
            for page in (1, 2, 3)
        ]

        assert sizes == [25, 25, 10]
        assert build_table_page(sixty_products, TableQuery()).total_pages == 3

    @pytest.mark.parametrize(("requested", "expected"), [(0, 1), (-4, 1), (4, 3), (99, 3)])
    def test_out_of_range_pages_are_clamped(self, sixty_products, requested, expected):
        table = build_table_page(sixty_products, TableQuery(page=requested))

        assert table.page == expected
        assert table.query.page == expected
        assert table.items

    def test_page_bounds(self, sixty_products):
        table = build_table_page(sixty_products, TableQuery(page=3))

        assert (table.first_index, table.last_index) == (51, 60)
        assert table.has_previous and not table.has_next

    def test_filter_before_paginate(self, sixty_products):
        table = build_table_page(sixty_products, TableQuery(search="Brand 5"))

        # "Brand 5" and "Brand 50".."Brand 59"
        assert table.matching_items == 11
        assert table.total_items == 60
        assert table.total_pages == 1

    def test_empty_store_message(self):
        table = build_table_page([], TableQuery())

        assert table.total_pages == 1
        assert table.page == 1
        assert table.empty_message == EMPTY_STORE_MESSAGE

    def test_no_match_message(self, sixty_products):
        table = build_table_page(sixty_products, TableQuery(search="nothing like this"))

        assert table.empty_message == NO_MATCH_MESSAGE

    def test_custom_page_size(self, sixty_products):
        table = build_table_page(sixty_products, TableQuery(), page_size=50)

        assert len(table.items) == 50
        assert table.total_pages == 2

    def test_sort_indicator(self, sixty_products):
        table = build_table_page(sixty_products, TableQuery(sort_key="price", direction="desc"))

        assert table.sort_indicator("price") == "↓"
        assert table.sort_indicator("brand") == "⇅"
        assert table.items[0].price == Decimal("60.00")
