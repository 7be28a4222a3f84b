"""Event bus for installation-status notifications.

Events are declared with a Pydantic properties model. Publishing is
synchronous and fire-and-forget: a failing subscriber is logged and never
propagates into the operation that published the event.

Example:
    unsubscribe = Bus.subscribe(InstallationStatusChanged, on_status)
    notify_status("jdtls", InstallationStatus.DOWNLOADING, "1.40.0")
    unsubscribe()
"""

from contextvars import ContextVar, Token
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

# util.log imports core, so the logger is created on first use
_log: Optional[Any] = None


def _get_log():
    global _log
    if _log is None:
        from ..util.log import Log
        _log = Log.create({"service": "bus"})
    return _log


class BusEvent(Generic[T]):
    """An event type name bound to the model its properties must match."""

    def __init__(self, event_type: str, properties_type: type[T]):
        self.type = event_type
        self.properties_type = properties_type

    @staticmethod
    def define(event_type: str, properties_type: type[T]) -> "BusEvent[T]":
        return BusEvent(event_type, properties_type)


class EventPayload(BaseModel):
    """What subscribers receive: the event type and its JSON-ready properties."""
    type: str
    properties: Dict[str, Any]


SubscriptionCallback = Callable[[EventPayload], None]

_bus_var: ContextVar["Bus"] = ContextVar("_bus_var")


class Bus:
    """Subscriber registry.

    The active bus is held in a ContextVar; when none is bound a process-wide
    default is used, so library callers never have to set one up.
    """

    _default: Optional["Bus"] = None

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[SubscriptionCallback]] = {}

    @classmethod
    def _current(cls) -> "Bus":
        bus = _bus_var.get(None)
        if bus is not None:
            return bus
        if cls._default is None:
            cls._default = Bus()
        return cls._default

    @classmethod
    def provide(cls, bus: "Bus") -> Token["Bus"]:
        return _bus_var.set(bus)

    @classmethod
    def restore(cls, token: Token["Bus"]) -> None:
        _bus_var.reset(token)

    @classmethod
    def publish(cls, event: BusEvent[T], properties: T) -> None:
        if not isinstance(properties, event.properties_type):
            raise TypeError(f"{event.type} expects {event.properties_type.__name__} properties")

        payload = EventPayload(type=event.type, properties=properties.model_dump(mode="json"))
        for callback in list(cls._current()._subscriptions.get(event.type, [])):
            try:
                callback(payload)
            except Exception as e:
                _get_log().error("subscriber failed", {"type": event.type, "error": str(e)})

    @classmethod
    def subscribe(cls, event: BusEvent[T], callback: SubscriptionCallback) -> Callable[[], None]:
        """Register ``callback`` on the active bus; returns an unsubscribe function."""
        callbacks = cls._current()._subscriptions.setdefault(event.type, [])
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe


class InstallationStatus(str, Enum):
    """Installation phases reported to the host editor."""
    CHECKING_FOR_UPDATE = "checking-for-update"
    DOWNLOADING = "downloading"
    NONE = "none"
    FAILED = "failed"


class InstallationStatusProps(BaseModel):
    """Properties for the artifact.status event."""
    artifact: str
    status: InstallationStatus
    detail: Optional[str] = None


InstallationStatusChanged = BusEvent.define("artifact.status", InstallationStatusProps)


def notify_status(artifact: str, status: InstallationStatus, detail: Optional[str] = None) -> None:
    """Publish an installation status change; never raises."""
    try:
        Bus.publish(
            InstallationStatusChanged,
            InstallationStatusProps(artifact=artifact, status=status, detail=detail),
        )
    except Exception as e:
        _get_log().warn("failed to publish installation status", {"artifact": artifact, "error": str(e)})
