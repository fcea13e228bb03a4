"""HTTP delivery of encoded payloads."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import requests

from .. import __version__
from ..errors import ConfigError, DeliveryError
from .base import EncodedPayload

logger = logging.getLogger(__name__)


class Pusher:
    """POSTs payloads to a fixed endpoint.

    Any 2xx status is success. Other statuses and transport failures raise
    :class:`DeliveryError`. The response body is never read and nothing is
    retried.
    """

    def __init__(
        self,
        url: str,
        timeout: float | None = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"endpoint must be an absolute http(s) URL, got {url!r}")
        self.url = url
        # 0 or None means wait forever.
        self.timeout = timeout or None
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = f"ethtool-stats/{__version__}"

    def push(self, payload: EncodedPayload) -> int:
        """Deliver *payload* and return the HTTP status code."""
        try:
            response = self._session.post(
                self.url,
                data=payload.body,
                headers=payload.headers,
                timeout=self.timeout,
                stream=True,
            )
        except requests.exceptions.Timeout as exc:
            raise DeliveryError(f"request to {self.url} timed out: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise DeliveryError(f"request to {self.url} failed: {exc}") from exc

        status = response.status_code
        response.close()
        if not 200 <= status < 300:
            raise DeliveryError(
                f"unexpected status code {status} from {self.url}", status_code=status
            )
        logger.debug(
            "Pushed %d bytes of %s to %s (HTTP %d)",
            len(payload.body), payload.content_type, self.url, status,
        )
        return status

    def close(self) -> None:
        self._session.close()
