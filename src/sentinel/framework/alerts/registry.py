"""Channel registry: the set of places an alert fans out to."""

from __future__ import annotations

from collections.abc import Iterator

from sentinel.framework.alerts.protocol import Alert, AlertChannel, ChannelType, DeliveryResult
from sentinel.framework.logging import get_logger

log = get_logger(__name__)


class AlertRegistry:
    """
    Named channels, dispatched to in registration order.

    ``dispatch`` isolates channels from each other: an unexpected exception
    in one channel becomes a failed result for that channel only.
    """

    def __init__(self) -> None:
        self._channels: dict[str, AlertChannel] = {}

    def register(self, channel: AlertChannel) -> None:
        if channel.name in self._channels:
            raise ValueError(f"Channel already registered: {channel.name}")
        self._channels[channel.name] = channel

    def unregister(self, name: str) -> None:
        self._channels.pop(name, None)

    def get(self, name: str) -> AlertChannel | None:
        return self._channels.get(name)

    def names(self) -> list[str]:
        return list(self._channels)

    def of_type(self, channel_type: ChannelType) -> list[str]:
        return [name for name, ch in self._channels.items() if ch.channel_type == channel_type]

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[AlertChannel]:
        return iter(self._channels.values())

    def dispatch(self, alert: Alert) -> list[DeliveryResult]:
        """Deliver to every channel that accepts the alert."""
        results = []
        for channel in self._channels.values():
            if not channel.accepts(alert):
                continue
            try:
                results.append(channel.deliver(alert))
            except Exception as exc:
                log.error("alerts.channel_crashed", channel=channel.name, error_type=type(exc).__name__, exc_info=True)
                results.append(DeliveryResult.failed(channel.name, exc))
        return results
