"""Product repository - subscription products from the catalog.

Loads from config/catalog.yaml and provides lookup by plan name.
"""

from typing import Dict, List, Optional

from revcat_bridge.config import Config
from revcat_bridge.models import PlanName, ProductDefinition


class ProductRepository:
    """Repository of the storefront's subscription products.

    Read-only after loading; safe to share between requests.
    """

    def __init__(self, config: Config):
        """Initialize product repository.

        Args:
            config: Configuration holding the catalog
        """
        self._config = config
        self._products_by_name: Dict[PlanName, ProductDefinition] = {}
        self._load_products()

    def _load_products(self) -> None:
        self._products_by_name = {product.name: product for product in self._config.products}

    def get_sub_product(self, name: PlanName) -> Optional[ProductDefinition]:
        """Get the subscription product for a plan name.

        Args:
            name: Plan name (e.g., PlanName.MONTHLY or "monthly")

        Returns:
            ProductDefinition if the plan is in the catalog, None otherwise
        """
        try:
            return self._products_by_name.get(PlanName(name))
        except ValueError:
            return None

    def get_all(self) -> List[ProductDefinition]:
        return list(self._products_by_name.values())

    def reload(self) -> None:
        """Reload product definitions from configuration."""
        self._config.reload()
        self._load_products()

    def __len__(self) -> int:
        return len(self._products_by_name)

    def __contains__(self, name: object) -> bool:
        try:
            return PlanName(name) in self._products_by_name
        except ValueError:
            return False

    def __repr__(self) -> str:
        return f"ProductRepository(products={len(self._products_by_name)})"
