# app/services/product_search.py
"""
In-memory product filtering for an already-fetched product list.

Library helper for consumers of the `/products` JSON (storefront clients,
scripts); the API itself filters in SQL and does not import this module.

Products are plain mappings shaped like `ProductRead` JSON (`final_price`,
`brand`, `category`, `variants[].color`, ...). Nothing here touches the
database or the network; `ProductSearch.search` is a pure function of the
product list and the current filter state.
"""
import math
from typing import Any, Callable, Iterable, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field


SortKey = Literal["newest", "price-asc", "price-desc", "rating", "name", "popular"]
Product = Mapping[str, Any]


class FilterState(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    category: str = "all"
    min_price: float | None = None
    max_price: float | None = None
    rating: float | None = None
    in_stock: bool = False
    on_sale: bool = False
    featured: bool = False
    brands: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    sort: SortKey = "newest"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1)


class SearchResult(BaseModel):
    products: list[dict[str, Any]]
    total: int
    page: int
    total_pages: int
    has_more: bool


class PriceRange(BaseModel):
    min: float
    max: float


class FilterOptions(BaseModel):
    brands: list[str]
    categories: list[str]
    colors: list[str]
    sizes: list[str]
    price_range: PriceRange


FilterListener = Callable[[FilterState], None]


def _num(product: Product, key: str) -> float:
    return product.get(key) or 0


def _variant_values(product: Product, key: str) -> list[Any]:
    return [v.get(key) for v in product.get("variants") or []]


def _matches_query(product: Product, needle: str) -> bool:
    fields = [product.get("name"), product.get("description"), product.get("brand")]
    if any(f and needle in str(f).lower() for f in fields):
        return True
    return any(needle in str(tag).lower() for tag in product.get("tags") or [])


def _distinct(values: Iterable[Any]) -> list[Any]:
    # first-seen order
    return list(dict.fromkeys(v for v in values if v))


class ProductSearch:
    """
    Stateful filter over a product list.

    Holds a mutable FilterState; `update_filters` and `reset_filters`
    notify every subscriber with the new state.
    """

    def __init__(self, filters: FilterState | None = None):
        self.filters = filters or FilterState()
        self._listeners: list[FilterListener] = []

    # ---- subscriptions ----

    def subscribe(self, listener: FilterListener) -> Callable[[], None]:
        """Register `listener`; call the returned function to unregister."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.filters)

    def update_filters(self, **changes: Any) -> FilterState:
        self.filters = FilterState.model_validate(
            {**self.filters.model_dump(), **changes}
        )
        self._notify()
        return self.filters

    def reset_filters(self) -> FilterState:
        self.filters = FilterState()
        self._notify()
        return self.filters

    # ---- querying ----

    def search(self, products: Iterable[Product], query: str = "") -> SearchResult:
        """
        Text match, then every active filter (AND), then sort, then page.
        """
        items = list(products)

        needle = query.strip().lower()
        if needle:
            items = [p for p in items if _matches_query(p, needle)]

        items = self.apply_filters(items)
        items = self.apply_sorting(items)

        f = self.filters
        total = len(items)
        start = (f.page - 1) * f.limit
        end = start + f.limit

        return SearchResult(
            products=[dict(p) for p in items[start:end]],
            total=total,
            page=f.page,
            total_pages=math.ceil(total / f.limit),
            has_more=end < total,
        )

    def apply_filters(self, products: list[Product]) -> list[Product]:
        f = self.filters
        out = products

        if f.category and f.category != "all":
            out = [p for p in out if p.get("category") == f.category]
        if f.min_price is not None:
            out = [p for p in out if _num(p, "final_price") >= f.min_price]
        if f.max_price is not None:
            out = [p for p in out if _num(p, "final_price") <= f.max_price]
        if f.rating is not None:
            out = [p for p in out if _num(p, "rating") >= f.rating]
        if f.in_stock:
            out = [p for p in out if _num(p, "stock_quantity") > 0]
        if f.on_sale:
            out = [p for p in out if _num(p, "discount_percent") > 0]
        if f.featured:
            out = [p for p in out if p.get("is_featured")]

        # multi-select dimensions: OR within, AND across
        if f.brands:
            wanted = set(f.brands)
            out = [p for p in out if p.get("brand") in wanted]
        if f.colors:
            wanted = set(f.colors)
            out = [p for p in out if wanted.intersection(_variant_values(p, "color"))]
        if f.sizes:
            wanted = set(f.sizes)
            out = [p for p in out if wanted.intersection(_variant_values(p, "size"))]

        return list(out)

    def apply_sorting(self, products: list[Product]) -> list[Product]:
        # sorted() is stable, including with reverse=True
        sort = self.filters.sort
        if sort == "price-asc":
            return sorted(products, key=lambda p: _num(p, "final_price"))
        if sort == "price-desc":
            return sorted(products, key=lambda p: _num(p, "final_price"), reverse=True)
        if sort == "rating":
            return sorted(products, key=lambda p: _num(p, "rating"), reverse=True)
        if sort == "name":
            return sorted(products, key=lambda p: str(p.get("name") or "").casefold())
        if sort == "popular":
            return sorted(products, key=lambda p: _num(p, "review_count"), reverse=True)
        return sorted(products, key=lambda p: _num(p, "id"), reverse=True)

    def filter_options(self, products: Iterable[Product]) -> FilterOptions:
        """Distinct facet values plus a price range rounded out to thousands."""
        items = list(products)

        prices = [_num(p, "final_price") for p in items]
        if prices:
            price_range = PriceRange(
                min=math.floor(min(prices) / 1000) * 1000,
                max=math.ceil(max(prices) / 1000) * 1000,
            )
        else:
            price_range = PriceRange(min=0, max=0)

        return FilterOptions(
            brands=_distinct(p.get("brand") for p in items),
            categories=["all", *_distinct(p.get("category") for p in items)],
            colors=_distinct(c for p in items for c in _variant_values(p, "color")),
            sizes=_distinct(s for p in items for s in _variant_values(p, "size")),
            price_range=price_range,
        )
