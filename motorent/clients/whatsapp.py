from typing import Optional, Tuple

import requests
from loguru import logger
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from motorent.config.settings import Settings
from motorent.core.circuit_breaker import CircuitBreakerConfig


def normalize_number(number: str) -> str:
    """Local ``08xx`` numbers become ``628xx``; other digits pass through."""
    digits = "".join(ch for ch in number if ch.isdigit())
    if not digits:
        raise ValueError(f"Invalid WhatsApp number: {number!r}")
    if digits.startswith("0"):
        digits = "62" + digits[1:]
    return digits


class WhatsAppClient:
    def __init__(self, settings: Settings):
        self._session = self._build_session(settings)
        self._timeout = settings.http_timeout_sec
        self._gateway_url = settings.whatsapp_gateway_url

        self._cb_config = CircuitBreakerConfig(settings)
        self._breaker = self._cb_config.get_whatsapp_breaker()

    @property
    def enabled(self) -> bool:
        return bool(self._gateway_url)

    def _build_session(self, settings: Settings) -> requests.Session:
        session = requests.Session()
        retries = Retry(
            total=3,
            connect=3,
            read=2,
            backoff_factor=0.3,
            status_forcelist=(502, 503, 504),
            allowed_methods=frozenset({"POST"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retries)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({"User-Agent": "motorent/1.0"})
        if settings.whatsapp_api_key:
            session.headers.update({"Authorization": f"Bearer {settings.whatsapp_api_key}"})
        return session

    def _post(self, payload: dict) -> dict:
        response = self._session.post(
            self._gateway_url, json=payload, timeout=self._timeout
        )
        response.raise_for_status()
        return response.json() if response.content else {}

    def send_message(self, number: str, message: str) -> Tuple[bool, Optional[str]]:
        if not self.enabled:
            logger.debug(f"WhatsApp gateway not configured, skipping message to {number}")
            return False, "WhatsApp gateway not configured"

        @self._breaker
        def _send():
            self._post({"number": normalize_number(number), "message": message})
            logger.debug(f"WhatsApp message sent to {number}")
            return True, None

        try:
            return _send()
        except Exception as e:
            error_msg = str(e)
            logger.warning(f"Failed to send WhatsApp message to {number}: {error_msg}")
            return False, error_msg

    def get_circuit_breaker_stats(self):
        return self._cb_config.get_breaker_stats()
