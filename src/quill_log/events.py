"""Per-level publish/subscribe for log events.

Every `QuillLogger` owns its own `EventBus`; there is no process-wide emitter.
Channels are still namespaced so that level names can never collide with any
other channel kept on the same bus.
"""

from collections.abc import Callable
from typing import Any, Final, NamedTuple

CHANNEL_PREFIX: Final = "quill:"


class LogEvent(NamedTuple):
    """A single log call, as seen by listeners.

    Listeners receive the fields positionally, in this order.

    Attributes:
        level:              Level name
        message:            Message as passed to ``log`` (before interpolation)
        optional_params:    Positional arguments passed to ``log``
        timestamp:          Seconds since the epoch
        formatted_message:  Rendered template, without the level color
    """

    level: str
    message: Any
    optional_params: tuple[Any, ...]
    timestamp: float
    formatted_message: str


LogListener = Callable[[str, Any, tuple[Any, ...], float, str], None]


class _Subscription(NamedTuple):
    listener: LogListener
    once: bool


class EventBus:
    """Synchronous, per-level event dispatch.

    Listeners run on the publishing thread, in registration order. An error
    raised by a listener propagates to the publisher and the remaining
    listeners of that event are skipped.
    """

    def __init__(self) -> None:
        self._channels: dict[str, list[_Subscription]] = {}

    @staticmethod
    def channel(level: str) -> str:
        return f"{CHANNEL_PREFIX}{level}"

    def subscribe(self, level: str, listener: LogListener) -> LogListener:
        """Call `listener` for every event published on `level`.

        Returns:
            The listener, usable as a handle for `unsubscribe`
        """
        self._channels.setdefault(self.channel(level), []).append(_Subscription(listener, once=False))
        return listener

    def subscribe_once(self, level: str, listener: LogListener) -> LogListener:
        """Call `listener` for the next event published on `level` only.

        The listener is removed before it is invoked, so it is removed even
        if it raises.

        Returns:
            The listener, usable as a handle for `unsubscribe`
        """
        self._channels.setdefault(self.channel(level), []).append(_Subscription(listener, once=True))
        return listener

    def unsubscribe(self, level: str, listener: LogListener) -> None:
        """Remove the most recent registration of `listener` on `level`.

        Unknown listeners are ignored.
        """
        channel = self.channel(level)
        subscriptions = self._channels.get(channel)
        if not subscriptions:
            return

        for index in range(len(subscriptions) - 1, -1, -1):
            if subscriptions[index].listener == listener:
                del subscriptions[index]
                break

        if not subscriptions:
            del self._channels[channel]

    def publish(self, level: str, event: LogEvent) -> None:
        """Dispatch `event` to the listeners of `level`.

        Args:
            level:  Level channel to publish on
            event:  Event passed positionally to every listener
        """
        channel = self.channel(level)
        subscriptions = self._channels.get(channel)
        if not subscriptions:
            return

        for subscription in list(subscriptions):
            if subscription.once:
                self._discard(channel, subscription)
            subscription.listener(*event)

    def listener_count(self, level: str) -> int:
        return len(self._channels.get(self.channel(level), ()))

    def clear(self) -> None:
        self._channels.clear()

    def _discard(self, channel: str, subscription: _Subscription) -> None:
        subscriptions = self._channels.get(channel, [])
        # Identity check: the same listener may be registered more than once
        for index, candidate in enumerate(subscriptions):
            if candidate is subscription:
                del subscriptions[index]
                break
        if not subscriptions:
            self._channels.pop(channel, None)
