"""
Delivery of the daily summary to a chat.
"""

import json
import logging
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from pathlib import Path

from wachturm.exceptions import NotificationError

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class Notifier(ABC):
    """Delivers a text message to a configured destination."""

    @abstractmethod
    def send(self, message: str) -> None:
        """Deliver message. Raises NotificationError."""

    def send_summary(self, summary_path: Path) -> None:
        """Send the contents of a summary file."""
        try:
            content = Path(summary_path).read_text()
        except OSError as e:
            raise NotificationError(f"failed to read summary file: {e}") from e
        self.send(content)


class TelegramNotifier(Notifier):
    """Sends messages through the Telegram Bot API."""

    def __init__(self, token: str, chat_id: str, base_url: str = TELEGRAM_API_URL, timeout: int = 10):
        self.token = token
        self.chat_id = chat_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def send(self, message: str) -> None:
        url = f"{self.base_url}/bot{self.token}/sendMessage"
        payload = json.dumps({"chat_id": self.chat_id, "text": message}).encode("utf-8")
        req = urllib.request.Request(
            url,
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                status = response.status
        except urllib.error.HTTPError as e:
            raise NotificationError(f"unexpected status code: {e.code}") from e
        except (urllib.error.URLError, OSError) as e:
            raise NotificationError(f"failed to send Telegram notification: {e}") from e

        if status != 200:
            raise NotificationError(f"unexpected status code: {status}")
        logger.info("Telegram notification sent")
