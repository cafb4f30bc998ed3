"""Binds the RevenueCat controller to the webhook hook."""

from typing import Any, Mapping

from revcat_bridge.config import Config
from revcat_bridge.container import Subscriber
from revcat_bridge.hooks import HookRegistry
from revcat_bridge.models import DispatchOutcome
from revcat_bridge.services.revenuecat_controller import RevenueCatController


class IntegrationsSubscriber(Subscriber):
    """Listens for RevenueCat events on the configured action."""

    def register(self) -> None:
        hooks: HookRegistry = self.container.get(HookRegistry)
        config: Config = self.container.get(Config)
        hooks.add_action(config.hook_name, self.receive_revenuecat_event, 10, 1)

    def receive_revenuecat_event(self, event: Mapping[str, Any]) -> DispatchOutcome:
        return self.container.get(RevenueCatController).receive_webhook(event)
