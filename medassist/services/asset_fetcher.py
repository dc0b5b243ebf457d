"""Resolve sender logo/signature/stamp URLs to embeddable image bytes.

Every failure mode (empty reference, HTTP error, wrong content type, oversize
body, undecodable image, network error) yields ``None`` so the document falls
back to a placeholder for that asset alone.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from typing import Any

import requests
from reportlab.lib.utils import ImageReader

from medassist.core.config import get_config
from medassist.pdf.layout import InvoiceAssets

logger = logging.getLogger(__name__)


class AssetFetcher:
    def __init__(
        self,
        timeout: float | None = None,
        max_bytes: int | None = None,
        http: Any = None,
    ) -> None:
        config = get_config()
        self.timeout = timeout or config.ASSET_FETCH_TIMEOUT_SECONDS
        self.max_bytes = max_bytes or config.ASSET_MAX_BYTES
        self.http = http or requests

    def _reject(self, url: str, reason: str) -> None:
        logger.warning("asset.fetch.failed", extra={"event": "asset.fetch.failed", "url": url, "reason": reason})
        return None

    def fetch_as_image(self, url: str | None) -> bytes | None:
        if not url or not url.strip():
            return None
        url = url.strip()
        try:
            response = self.http.get(url, timeout=(2, self.timeout))
        except requests.exceptions.RequestException as exc:
            return self._reject(url, str(exc))

        if not response.ok:
            return self._reject(url, f"http {response.status_code}")
        content_type = (response.headers.get("Content-Type") or "").split(";")[0].strip().lower()
        if not content_type.startswith("image/"):
            return self._reject(url, f"content type {content_type or 'missing'}")
        data = response.content
        if not data:
            return self._reject(url, "empty body")
        if len(data) > self.max_bytes:
            return self._reject(url, f"{len(data)} bytes exceeds limit")
        try:
            ImageReader(BytesIO(data)).getSize()
        except Exception as exc:
            return self._reject(url, f"undecodable image: {exc}")
        return data

    def fetch_sender_assets(self, sender: Any) -> InvoiceAssets:
        """Fetch the three sender images in parallel and join before rendering."""
        urls = {
            "logo": getattr(sender, "logo_url", None),
            "signature": getattr(sender, "signature_url", None),
            "stamp": getattr(sender, "stamp_url", None),
        }
        wanted = {name: url for name, url in urls.items() if url}
        if not wanted:
            return InvoiceAssets()

        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="asset-fetch") as pool:
            futures = {name: pool.submit(self.fetch_as_image, url) for name, url in wanted.items()}
            resolved = {name: future.result() for name, future in futures.items()}
        return InvoiceAssets(**resolved)
