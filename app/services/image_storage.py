"""Image hosting: upload bytes to Cloudinary, get back a public HTTPS URL."""
from __future__ import annotations

import hashlib
import logging
import time
from typing import Optional

import httpx

from app.core.config import settings
from app.core.errors import ServerError

logger = logging.getLogger(__name__)


def _signature(params: dict, secret: str) -> str:
    # Cloudinary: sha1 of the sorted "k=v&k=v" params followed by the API secret
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1((to_sign + secret).encode()).hexdigest()


class CloudinaryStorage:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    async def upload_image(self, data: bytes, filename: str = "upload") -> str:
        params = {"timestamp": int(time.time())}
        url = f"https://api.cloudinary.com/v1_1/{settings.CLOUDINARY_CLOUD_NAME}/image/upload"
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                resp = await client.post(
                    url,
                    data={
                        **params,
                        "api_key": settings.CLOUDINARY_API_KEY,
                        "signature": _signature(params, settings.CLOUDINARY_API_SECRET),
                    },
                    files={"file": (filename, data)},
                )
            resp.raise_for_status()
            secure_url = resp.json().get("secure_url")
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Image upload failed: %s", exc)
            raise ServerError("Image upload failed.") from exc
        if not secure_url:
            logger.error("Image upload returned no secure_url")
            raise ServerError("Image upload failed.")
        return secure_url


_storage: Optional[CloudinaryStorage] = None


def get_image_storage() -> CloudinaryStorage:
    global _storage
    if _storage is None:
        _storage = CloudinaryStorage()
    return _storage
