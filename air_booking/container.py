"""Dependency injection container.

This module provides a simple DI container without external frameworks.
It allows registering and resolving dependencies for the application.

Design principles:
1. No magic - explicit registration and resolution
2. Testable - easy to swap implementations
3. Lazy loading - adapters instantiated on first use
4. Thread-safe - for server contexts
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .config import AppConfig, get_config
from .domain.errors import ConfigurationError
from .ports.terminal import TerminalFactory, TerminalSessionPort


def unconfigured_terminal() -> TerminalSessionPort:
    """Terminal factory used until a real one is registered."""
    raise ConfigurationError(
        "No terminal factory configured",
        setting_name="terminal_factory",
    )


@dataclass
class Container:
    """Dependency injection container.

    Usage:
        # Production
        container = Container.create_default(terminal_factory=open_session)
        workflow = container.resolve(AirWorkflowService)

        # Testing
        container = Container()
        container.register(AirServicePort, lambda: MagicMock())
        air = container.resolve(AirServicePort)

    Attributes:
        config: Application configuration
    """

    config: AppConfig = field(default_factory=get_config)

    _factories: Dict[type[Any], Callable[[], Any]] = field(
        default_factory=dict, repr=False
    )
    _singletons: Dict[type[Any], Any] = field(default_factory=dict, repr=False)
    _singleton_types: set[type[Any]] = field(default_factory=set, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(
        self,
        port_type: type[Any],
        factory: Callable[[], Any],
        singleton: bool = True,
    ) -> None:
        """Register a factory for a port type.

        Args:
            port_type: The type (usually a Protocol) to register.
            factory: A callable that creates instances of the type.
            singleton: If True, only one instance is created.
        """
        with self._lock:
            self._factories[port_type] = factory
            self._singletons.pop(port_type, None)
            if singleton:
                self._singleton_types.add(port_type)
            else:
                self._singleton_types.discard(port_type)

    def resolve(self, port_type: type[Any]) -> Any:
        """Resolve an instance of a port type.

        Raises:
            KeyError: If the type is not registered.
        """
        with self._lock:
            if port_type not in self._factories:
                raise KeyError(f"Type not registered: {port_type}")

            if port_type in self._singleton_types:
                if port_type not in self._singletons:
                    self._singletons[port_type] = self._factories[port_type]()
                return self._singletons[port_type]

            return self._factories[port_type]()

    def is_registered(self, port_type: type[Any]) -> bool:
        return port_type in self._factories

    def clear_singletons(self) -> None:
        """Clear all cached singletons.

        Call this in tests to ensure fresh instances.
        """
        with self._lock:
            self._singletons.clear()

    def clear_all(self) -> None:
        with self._lock:
            self._factories.clear()
            self._singletons.clear()
            self._singleton_types.clear()

    @classmethod
    def create_default(
        cls,
        config: Optional[AppConfig] = None,
        terminal_factory: Optional[TerminalFactory] = None,
    ) -> Container:
        """Create a container with default bindings.

        Args:
            config: Optional configuration override.
            terminal_factory: Opens host terminal sessions. Workflows that
                need the terminal fail with ConfigurationError without one.

        Returns:
            A configured Container instance.
        """
        from .adapters.transport import FixtureTransport
        from .adapters.uapi import UapiAirGateway
        from .classification.classifier import ErrorClassifier
        from .parsing.fields import ParseContext
        from .parsing.normalizer import ResponseNormalizer
        from .ports.air import AirServicePort
        from .ports.transport import TransportPort
        from .services import AirWorkflowService

        config = config or get_config()
        container = cls(config=config)
        schema_version = config.vendor_schema.version

        # Vendor exchange
        container.register(TransportPort, lambda: FixtureTransport(config.transport))
        container.register(ErrorClassifier, lambda: ErrorClassifier(schema_version))
        container.register(
            ResponseNormalizer,
            lambda: ResponseNormalizer(
                context=ParseContext(schema_version),
                classifier=container.resolve(ErrorClassifier),
            ),
        )
        container.register(
            AirServicePort,
            lambda: UapiAirGateway(
                transport=container.resolve(TransportPort),
                normalizer=container.resolve(ResponseNormalizer),
            ),
        )

        # Host terminal
        terminal = terminal_factory or unconfigured_terminal
        container.register(TerminalFactory, lambda: terminal)

        # Main service
        def create_workflow() -> AirWorkflowService:
            return AirWorkflowService(
                air=container.resolve(AirServicePort),
                terminal_factory=container.resolve(TerminalFactory),
                config=config,
            )

        container.register(AirWorkflowService, create_workflow)

        return container


# Global default container (lazy initialized)
_default_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get the default application container.

    Returns:
        The default Container instance (creates one if needed).
    """
    global _default_container
    if _default_container is None:
        with _container_lock:
            if _default_container is None:
                _default_container = Container.create_default()
    return _default_container


def reset_container() -> None:
    """Reset the default container.

    Call this in tests to ensure a fresh container.
    """
    global _default_container
    with _container_lock:
        if _default_container is not None:
            _default_container.clear_all()
        _default_container = None
