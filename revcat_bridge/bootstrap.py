"""Wires configuration, storefront, ledger and controller together.

``Bridge`` owns the service container and the hook registry. The HTTP layer
fires the configured action on the registry; the integrations subscriber
forwards it to the RevenueCat controller.
"""

import threading
from typing import Dict, Hashable, Iterable, Optional, Type

from revcat_bridge.config import Config, get_config
from revcat_bridge.container import Container, Definer, Factory, Subscriber
from revcat_bridge.hooks import HookRegistry
from revcat_bridge.logging_config import get_logger
from revcat_bridge.models import DispatchOutcome
from revcat_bridge.repositories.event_ledger import EventLedger
from revcat_bridge.repositories.memory_storefront import InMemoryStorefront
from revcat_bridge.repositories.product_repository import ProductRepository
from revcat_bridge.repositories.storefront import Storefront
from revcat_bridge.services.integrations_subscriber import IntegrationsSubscriber
from revcat_bridge.services.revenuecat_controller import RevenueCatController

logger = get_logger(__name__)


class BridgeDefiner(Definer):
    """Default service definitions."""

    def define(self) -> Dict[Hashable, Factory]:
        return {
            ProductRepository: lambda c: ProductRepository(c.get(Config)),
            Storefront: lambda c: InMemoryStorefront(),
            EventLedger: lambda c: EventLedger(retention=c.get(Config).settings.event_retention),
            RevenueCatController: lambda c: RevenueCatController(
                storefront=c.get(Storefront),
                product_repository=c.get(ProductRepository),
                event_ledger=c.get(EventLedger),
                settings=c.get(Config).settings,
            ),
        }


class Bridge:
    """Bootstrapped bridge: container, hooks and registered subscribers."""

    def __init__(
        self,
        config: Optional[Config] = None,
        definers: Optional[Iterable[Definer]] = None,
        subscribers: Optional[Iterable[Type[Subscriber]]] = None,
    ):
        """Build the container and register subscribers.

        Args:
            config: Configuration (defaults to the global instance)
            definers: Service definers, applied in order (later ones override)
            subscribers: Subscriber classes to register
        """
        self.config = config or get_config()
        self.hooks = HookRegistry()
        self.container = Container()
        self.container.set(Config, self.config)
        self.container.set(HookRegistry, self.hooks)

        for definer in definers if definers is not None else [BridgeDefiner()]:
            self.container.add_definitions(definer)

        for subscriber_class in subscribers if subscribers is not None else [IntegrationsSubscriber]:
            subscriber_class(self.container).register()

        logger.info(
            "bridge_bootstrapped",
            hook_name=self.config.hook_name,
            products=len(self.config.products),
        )

    @property
    def storefront(self) -> Storefront:
        return self.container.get(Storefront)

    @property
    def ledger(self) -> EventLedger:
        return self.container.get(EventLedger)

    @property
    def products(self) -> ProductRepository:
        return self.container.get(ProductRepository)

    def dispatch(self, event: dict) -> Optional[DispatchOutcome]:
        """Fire the webhook action and return the controller's outcome, if any listener gave one."""
        results = self.hooks.do_action(self.config.hook_name, event)
        return next((r for r in reversed(results) if isinstance(r, DispatchOutcome)), None)


# Global bridge instance
_bridge_instance: Optional[Bridge] = None
_bridge_lock = threading.Lock()


def get_bridge() -> Bridge:
    """Get global bridge instance (singleton)."""
    global _bridge_instance
    if _bridge_instance is None:
        with _bridge_lock:
            if _bridge_instance is None:
                _bridge_instance = Bridge()
    return _bridge_instance


def reset_bridge() -> None:
    """Drop the global bridge (all storefront and ledger state with it)."""
    global _bridge_instance
    with _bridge_lock:
        _bridge_instance = None
