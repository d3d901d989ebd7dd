"""
Router backend registry.

Maps backend names (as used in configuration) to backend classes and owns
the lifecycle of the active backend.
"""

from typing import Dict, List, Type, Optional, Any
import logging

from yip.routers.base import RouterBackend
from yip.routers.http import HttpRouter
from yip.routers.memory import MemoryRouter

logger = logging.getLogger(__name__)


class RouterRegistry:
    """
    Central registry for router backends.

    Responsibilities:
    - Backend class registration by name
    - Instantiation of the configured backend
    - Lifecycle management (start/stop)
    - Health reporting
    """

    def __init__(self):
        self._backend_classes: Dict[str, Type[RouterBackend]] = {}
        self._active: Optional[RouterBackend] = None

    def register_backend_class(self, name: str, backend_class: Type[RouterBackend]) -> None:
        """
        Register a backend class for later instantiation.

        Raises:
            ValueError: If backend name already registered
        """
        if name in self._backend_classes:
            raise ValueError(f"Router backend '{name}' already registered")

        self._backend_classes[name] = backend_class
        logger.info(f"Registered router backend: {name}")

    def create_backend(self, name: str, config: Dict[str, Any]) -> RouterBackend:
        """
        Create the active backend instance.

        Args:
            name: Backend name (must be registered)
            config: Backend configuration

        Returns:
            Created backend instance

        Raises:
            ValueError: If backend class not registered or config invalid
        """
        if name not in self._backend_classes:
            raise ValueError(
                f"Router backend '{name}' not registered. "
                f"Available: {self.backend_names}"
            )

        try:
            backend = self._backend_classes[name](name=name, config=config)
        except Exception as e:
            logger.error(f"Failed to create router backend '{name}': {e}")
            raise

        self._active = backend
        logger.info(f"Created router backend: {name}")
        return backend

    @property
    def active(self) -> Optional[RouterBackend]:
        """The backend created last, if any."""
        return self._active

    def start(self) -> None:
        """Start the active backend."""
        if self._active is None:
            raise ValueError("No router backend created")
        if not self._active.is_started:
            logger.info(f"Starting router backend: {self._active.name}")
            self._active.start()

    def stop(self) -> None:
        """Stop the active backend. Errors are logged, not raised."""
        if self._active is None or not self._active.is_started:
            return
        try:
            logger.info(f"Stopping router backend: {self._active.name}")
            self._active.stop()
        except Exception as e:
            logger.error(f"Error stopping router backend '{self._active.name}': {e}")

    def health(self) -> Dict[str, Any]:
        """
        Health of the active backend.

        A backend whose health() raises is reported as unhealthy.
        """
        if self._active is None:
            return {"status": "unhealthy", "message": "No router backend created", "details": {}}

        try:
            health = self._active.health()
        except Exception as e:
            logger.error(f"Health check failed for '{self._active.name}': {e}")
            return {"status": "unhealthy", "message": f"Health check error: {e}", "details": {}}

        if not self._active.is_started:
            health = {**health, "status": "unhealthy", "message": "Router backend not started"}
        return {"backend": self._active.name, **health}

    @property
    def backend_names(self) -> List[str]:
        """Registered backend names."""
        return list(self._backend_classes.keys())


def default_registry() -> RouterRegistry:
    registry = RouterRegistry()
    registry.register_backend_class("memory", MemoryRouter)
    registry.register_backend_class("http", HttpRouter)
    return registry
