"""Product catalog lookups and FAQ matching for a business profile."""

import logging
from typing import Iterable, Optional

from chatcommerce.schemas.business_schema import FAQ, Product
from chatcommerce.utils import compile_patterns

logger = logging.getLogger(__name__)


class ProductCatalog:
    """Resolves free-text product mentions against the shop's catalog."""

    def __init__(self, products: Iterable[Product], faqs: Iterable[FAQ] = ()) -> None:
        self._products = list(products)
        self._faqs = [(faq, compile_patterns(faq.keywords)) for faq in faqs if faq.keywords]

    @property
    def products(self) -> list[Product]:
        return list(self._products)

    def get(self, product_id: str) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def _mentions(self, lower: str, product: Product) -> bool:
        if product.name.lower() in lower:
            return True
        if any(keyword.lower() in lower for keyword in product.keywords):
            return True
        return bool(product.category) and product.category.lower() in lower

    def find_mentioned(self, text: str) -> list[Product]:
        """Products whose name, keyword or category appears in text, in catalog order."""
        lower = text.lower()
        return [p for p in self._products if self._mentions(lower, p)]

    def match_names(self, names: Iterable[str]) -> list[Product]:
        """Match analyzer-reported product names, tolerating partial names either way."""
        wanted = [n.lower().strip() for n in names if n and n.strip()]
        matched = []
        for product in self._products:
            name = product.name.lower()
            if any(name in w or w in name for w in wanted):
                matched.append(product)
        return matched

    def resolve(self, text: str, names: Iterable[str] = ()) -> list[Product]:
        """Union of analyzer-reported names and text mentions, de-duplicated in catalog order."""
        found = {p.id for p in self.match_names(names)}
        found.update(p.id for p in self.find_mentioned(text))
        resolved = [p for p in self._products if p.id in found]
        if resolved:
            logger.debug("Resolved products: %s", [p.id for p in resolved])
        return resolved

    def find_faq(self, text: str) -> Optional[FAQ]:
        """Return the FAQ with the most keyword hits, or None."""
        best: Optional[FAQ] = None
        best_hits = 0
        for faq, pattern in self._faqs:
            hits = len(pattern.findall(text))
            if hits > best_hits:
                best, best_hits = faq, hits
        return best
