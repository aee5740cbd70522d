"""Email (SMTP) alert channel."""

from __future__ import annotations

import smtplib
from email.mime.text import MIMEText
from email.utils import formatdate
from typing import Any

from sentinel.framework.alerts.base import BaseChannel
from sentinel.framework.alerts.protocol import Alert, ChannelType


class EmailChannel(BaseChannel):
    """
    Sends each alert as one plain-text UTF-8 mail.

    The alert's own recipients are used; ``default_recipients`` only
    applies to alerts that carry none.
    """

    channel_type = ChannelType.EMAIL
    transport_errors = (smtplib.SMTPException, OSError)

    def __init__(
        self,
        name: str,
        smtp_host: str,
        from_address: str,
        default_recipients: list[str] | None = None,
        *,
        smtp_port: int = 587,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
        **kwargs: Any,
    ):
        super().__init__(name, **kwargs)
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.from_address = from_address
        self.default_recipients = list(default_recipients or [])
        self._smtp_user = smtp_user
        self._smtp_password = smtp_password
        self._use_tls = use_tls
        self._timeout = timeout

    def build_message(self, alert: Alert, recipients: list[str]) -> MIMEText:
        footer = f"\n\n--\n{alert.severity.value} · {alert.check} · {alert.created_at:%Y-%m-%d %H:%M:%S}\n"
        msg = MIMEText(alert.body + footer, "plain", "utf-8")
        msg["Subject"] = alert.title
        msg["From"] = self.from_address
        msg["To"] = ", ".join(recipients)
        msg["Date"] = formatdate(localtime=True)
        return msg

    def _send(self, alert: Alert) -> str:
        recipients = list(alert.recipients) or self.default_recipients
        if not recipients:
            raise ValueError("No email recipients for alert")

        message = self.build_message(alert, recipients)
        server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self._timeout)
        try:
            if self._use_tls:
                server.starttls()
            if self._smtp_user and self._smtp_password:
                server.login(self._smtp_user, self._smtp_password)
            server.sendmail(self.from_address, recipients, message.as_string())
        finally:
            try:
                server.quit()
            except (smtplib.SMTPException, OSError):
                # session already dropped; the send error (if any) is the one to report
                server.close()
        return f"mailed {len(recipients)} recipient(s)"
