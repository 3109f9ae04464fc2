"""Event bus for user-facing notices and activation events.

A ``Bus`` is bound to the current context with ``Bus.provide``; the class
methods act on whichever bus is bound. Components never print: they publish
``ToolNotice`` and the command line decides how to show it.

Example:
    token = Bus.provide(Bus())
    unsubscribe = Bus.subscribe(ToolNotice, lambda payload: print(payload.properties))
    await Bus.publish(ToolNotice, ToolNoticeProps(message="Installed ruff"))
    unsubscribe()
    Bus.restore(token)
"""

import traceback
from collections import defaultdict
from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

ALL_EVENTS = "*"

# util.log imports core, so the logger is created on first use
_log: Optional[Any] = None


def _get_log():
    global _log
    if _log is None:
        from ..util.log import Log
        _log = Log.create({"service": "bus"})
    return _log


@dataclass(frozen=True)
class BusEvent(Generic[T]):
    """Event type name plus the Pydantic model of its properties."""
    type: str
    properties_type: type

    def parse(self, properties: Union[T, Dict[str, Any]]) -> T:
        if isinstance(properties, self.properties_type):
            return properties
        if isinstance(properties, dict):
            return self.properties_type(**properties)
        raise TypeError(f"Properties must be instance of {self.properties_type.__name__}")


class EventPayload(BaseModel):
    """What subscribers receive."""
    type: str
    properties: Dict[str, Any]


SubscriptionCallback = Callable[[EventPayload], Union[None, Awaitable[None]]]

_bus_var: ContextVar["Bus"] = ContextVar("_bus_var")


class Bus:
    """Context-bound publish/subscribe bus."""

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[SubscriptionCallback]] = defaultdict(list)

    @classmethod
    def _current(cls) -> "Bus":
        bus = _bus_var.get(None)
        if bus is None:
            raise RuntimeError("No Bus is bound to the current context")
        return bus

    @classmethod
    def bound(cls) -> bool:
        return _bus_var.get(None) is not None

    @classmethod
    def provide(cls, bus: "Bus") -> Token["Bus"]:
        return _bus_var.set(bus)

    @classmethod
    def restore(cls, token: Token["Bus"]) -> None:
        _bus_var.reset(token)

    @classmethod
    async def publish(cls, event: BusEvent[T], properties: Union[T, Dict[str, Any]]) -> None:
        """Deliver to the event's subscribers, then to catch-all subscribers.

        A failing subscriber is logged and does not stop delivery.
        """
        payload = EventPayload(type=event.type, properties=event.parse(properties).model_dump())
        bus = cls._current()

        for callback in [*bus._subscriptions[event.type], *bus._subscriptions[ALL_EVENTS]]:
            try:
                result = callback(payload)
                if hasattr(result, "__await__"):
                    await result
            except Exception as e:
                _get_log().error("subscriber failed", {
                    "type": event.type,
                    "error": e,
                    "traceback": traceback.format_exc(),
                })

    @classmethod
    def subscribe(cls, event: BusEvent[T], callback: SubscriptionCallback) -> Callable[[], None]:
        return cls._current()._add(event.type, callback)

    @classmethod
    def subscribe_all(cls, callback: SubscriptionCallback) -> Callable[[], None]:
        return cls._current()._add(ALL_EVENTS, callback)

    def _add(self, event_type: str, callback: SubscriptionCallback) -> Callable[[], None]:
        callbacks = self._subscriptions[event_type]
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe


NoticeLevel = Literal["debug", "info", "warn", "error"]


class ToolNoticeProps(BaseModel):
    """A user-facing message about tool work.

    Attributes:
        message: Text shown to the user, without the tool prefix
        level: Severity of the notice
    """
    message: str
    level: NoticeLevel = "info"


class ServerEnabledProps(BaseModel):
    name: str


ToolNotice = BusEvent("mise_tools.notice", ToolNoticeProps)
ServerEnabled = BusEvent("mise_tools.enabled", ServerEnabledProps)


async def notify(message: str, level: NoticeLevel = "info") -> None:
    """Log a notice and publish it on the bound bus, if any."""
    getattr(_get_log(), level)(message)
    if Bus.bound():
        await Bus.publish(ToolNotice, ToolNoticeProps(message=message, level=level))
