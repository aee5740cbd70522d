"""Webhook alert channel.

POSTs ``Alert.to_dict()`` as JSON, so chat bridges and paging tools can
subscribe without a dedicated channel.
"""

from __future__ import annotations

import json
import urllib.request
from typing import Any

from sentinel.framework.alerts.base import BaseChannel
from sentinel.framework.alerts.protocol import Alert, AlertSeverity, ChannelType


class WebhookChannel(BaseChannel):
    channel_type = ChannelType.WEBHOOK

    def __init__(
        self,
        name: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        min_severity: AlertSeverity = AlertSeverity.WARNING,
        **kwargs: Any,
    ):
        super().__init__(name, min_severity=min_severity, **kwargs)
        self.url = url
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._timeout = timeout

    def _send(self, alert: Alert) -> str:
        payload = json.dumps(alert.to_dict(), ensure_ascii=False).encode("utf-8")
        request = urllib.request.Request(self.url, data=payload, headers=self._headers, method="POST")
        # URLError and HTTPError are OSError subclasses
        with urllib.request.urlopen(request, timeout=self._timeout) as response:
            return f"HTTP {response.status}"
