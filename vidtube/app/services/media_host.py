"""
services/media_host.py — Client for the remote media host.

Avatars and cover images are staged on local disk by the upload middleware,
then pushed to a Cloudinary-compatible upload API. The staged copy is always
deleted after an upload attempt, whether or not the remote accepted it.

Failures never raise: upload() returns None and the calling service decides
which AppError that means.
"""

from __future__ import annotations

import hashlib
import logging
import os
import time
from typing import Any

import requests
from flask import Flask, current_app


logger = logging.getLogger(__name__)


class MediaHostClient:

    def __init__(
            self,
            base_url: str,
            cloud_name: str,
            api_key: str,
            api_secret: str,
            timeout: int = 30,
            max_retries: int = 2,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self._session = requests.Session()
        self._adapter = requests.adapters.HTTPAdapter(max_retries=max_retries)
        self._session.mount("https://", self._adapter)
        self._session.mount("http://", self._adapter)

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}/{self.cloud_name}/auto/upload"

    def _signature(self, timestamp: int) -> str:
        to_sign = f"timestamp={timestamp}{self.api_secret}"
        return hashlib.sha1(to_sign.encode("utf-8")).hexdigest()

    def upload(self, local_path: str | None) -> dict[str, Any] | None:
        """
        Uploads a staged file and returns the host's decoded response.

        `url` in the result points at the HTTPS copy when the host reports
        one. Returns None for a falsy path, a transport error, a non-2xx
        status, an undecodable body or a body without a URL.
        """
        if not local_path:
            return None
        timestamp = int(time.time())
        try:
            with open(local_path, "rb") as handle:
                response = self._session.post(
                    self.upload_url,
                    data={
                        "api_key": self.api_key,
                        "timestamp": timestamp,
                        "signature": self._signature(timestamp),
                    },
                    files={"file": handle},
                    timeout=self.timeout,
                )
        except (OSError, requests.exceptions.RequestException) as exc:
            logger.warning("Upload of %s failed: %s", local_path, exc)
            return None
        finally:
            self.discard(local_path)

        if not response.ok:
            logger.warning("Media host responded with status %s", response.status_code)
            return None
        try:
            data: dict[str, Any] = response.json()
        except ValueError:
            logger.warning("Media host response could not be decoded")
            return None
        if data.get("secure_url"):
            data["url"] = data["secure_url"]
        if not data.get("url"):
            logger.warning("Media host response carried no url")
            return None
        logger.debug("Uploaded %s to %s", local_path, data["url"])
        return data

    def discard(self, *paths: str | None) -> None:
        """Removes staged files; already-missing ones are ignored."""
        for path in paths:
            if not path:
                continue
            try:
                os.remove(path)
            except FileNotFoundError:
                pass


# ── Flask wiring ───────────────────────────────────────────────────────────

def init_app(app: Flask) -> None:
    """Builds the app's media host client from its config."""
    app.extensions["media_host"] = MediaHostClient(
        base_url=app.config["MEDIA_HOST_BASE_URL"],
        cloud_name=app.config["MEDIA_HOST_CLOUD_NAME"],
        api_key=app.config["MEDIA_HOST_API_KEY"],
        api_secret=app.config["MEDIA_HOST_API_SECRET"],
        timeout=app.config.get("MEDIA_HOST_TIMEOUT", 30),
    )


def current_client() -> MediaHostClient:
    return current_app.extensions["media_host"]
