"""Lifespan management with event-based architecture for minihttpd."""

from abc import ABC, abstractmethod
from typing import Any

from minihttpd.core.logger import LogIcon, logger
from minihttpd.core.settings import Settings, settings as st


class State:
    """Mutable server state container with attribute access."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        object.__setattr__(self, "_data", {})

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"State has no attribute '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def __repr__(self) -> str:
        return f"State({self._data})"

    def clear(self) -> None:
        self._data.clear()


class BaseEvent[T](ABC):
    """Abstract base class for lifespan events."""

    name: str
    state: State
    settings: Settings

    @abstractmethod
    def startup(self) -> T:
        """Initialize and return the event instance."""
        ...

    def shutdown(self, instance: T) -> None:  # noqa: B027
        """Optional cleanup. Override if cleanup is needed."""

    @classmethod
    def has_shutdown(cls) -> bool:
        """Check if shutdown was overridden."""
        return cls.shutdown is not BaseEvent.shutdown


class Lifespan:
    """Runs registered events on server start and tears them down on stop."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or st
        self._event_classes: list[type[BaseEvent[Any]]] = []
        self._events: list[BaseEvent[Any]] = []
        self._state: State | None = None

    def register(self, event_cls: type[BaseEvent[Any]]) -> "Lifespan":
        """Register an event class. Returns self for chaining."""
        self._event_classes.append(event_cls)
        return self

    @property
    def state(self) -> State | None:
        """Access to state after startup execution."""
        return self._state

    @property
    def events(self) -> list[BaseEvent[Any]]:
        """Access to instantiated events after startup."""
        return self._events

    def startup(self) -> State:
        logger.info("Starting server lifespan", icon=LogIcon.START, version=self._settings.API_VERSION)
        self._state = State()
        self._events = []

        for event_cls in self._event_classes:
            event = event_cls()
            event.state = self._state
            event.settings = self._settings

            logger.info(f"Starting event: {event.name}", icon=LogIcon.PROCESSING)
            instance = event.startup()
            setattr(self._state, event.name, instance)
            logger.info(f"Event ready: {event.name}", icon=LogIcon.SUCCESS)

            self._events.append(event)

        logger.info("Server state ready", icon=LogIcon.COMPLETE)
        return self._state

    def shutdown(self) -> None:
        logger.info("Cleaning up server state", icon=LogIcon.TOOL)

        if not self._state:
            logger.info("No state to cleanup", icon=LogIcon.WARNING)
            return

        for event in reversed(self._events):
            if event.has_shutdown() and event.name in self._state:
                logger.info(f"Shutting down: {event.name}", icon=LogIcon.PROCESSING)
                instance = getattr(self._state, event.name)
                event.shutdown(instance)
                logger.info(f"Shutdown complete: {event.name}", icon=LogIcon.SUCCESS)

        self._state.clear()
        logger.info("Cleanup complete", icon=LogIcon.COMPLETE)


def create_lifespan(settings: Settings | None = None) -> Lifespan:
    """Create lifespan manager for event registration."""
    return Lifespan(settings)
