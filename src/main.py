"""
Application wiring for the CrateDB Cloud reconciliation engine.

This module builds the engine once at startup: configuration, the shared
gateway, the kind registry and one Reconciler and DataSource per kind. Hosts
(such as the ctl command line) obtain everything they need from the
Application instead of from module globals.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from config import Config, LoggingConfig, get_config
from datasources import DataSource, list_organizations
from gateway import ControlPlaneGateway, HTTPGateway
from reconciler import Reconciler
from resources.registry import KindRegistry, register_builtin_kinds

logger = logging.getLogger(__name__)


def configure_logging(logging_config: LoggingConfig) -> None:
    """Configure root logging from the logging configuration."""
    logging.basicConfig(
        level=getattr(logging, logging_config.log_level, logging.INFO),
        format=logging_config.log_format,
    )


class Application:
    """Main application that wires the gateway, kinds and reconcilers."""

    def __init__(
        self,
        explicit: Optional[Mapping[str, Any]] = None,
        gateway: Optional[ControlPlaneGateway] = None,
    ):
        self.config = Config.from_env(explicit) if explicit else get_config()
        self.gateway = gateway
        self.registry: Optional[KindRegistry] = None
        self.reconcilers: Dict[str, Reconciler] = {}
        self.data_sources: Dict[str, DataSource] = {}

    def initialize(self) -> "Application":
        """Initialize all components."""
        configure_logging(self.config.logging)
        logger.info("Initializing CrateDB Cloud engine")

        self.registry = register_builtin_kinds()

        if self.gateway is None:
            self.gateway = HTTPGateway(self.config.provider, self.config.gateway)
            logger.info(f"Using CrateDB Cloud API at {self.config.provider.url}")

        for name in self.registry.list_kinds():
            kind = self.registry.get_kind(name)
            self.reconcilers[name] = Reconciler(kind, self.gateway)
            self.data_sources[name] = DataSource(kind, self.gateway)

        logger.info(
            f"All components initialized "
            f"(kinds: {', '.join(self.registry.list_kinds())})"
        )
        return self

    def reconciler(self, kind: str) -> Reconciler:
        """
        Get the reconciler for a kind.

        Raises:
            ValueError: If the kind is not registered
        """
        if self.registry is None:
            self.initialize()
        # Raises with the list of available kinds
        self.registry.get_kind(kind)
        return self.reconcilers[kind]

    def data_source(self, kind: str) -> DataSource:
        """Get the data source for a kind."""
        if self.registry is None:
            self.initialize()
        self.registry.get_kind(kind)
        return self.data_sources[kind]

    async def organizations(self):
        """List every organization visible to the configured API key."""
        if self.registry is None:
            self.initialize()
        return await list_organizations(self.gateway)
