"""
Object storage for uploaded PDFs.

Two backends behind one interface:
    LocalFileStorage       - writes under UPLOAD_FOLDER, served by /uploads/<name>
    CloudinaryFileStorage  - signed raw upload to Cloudinary

Both return a StoredFile with a retrieval URL and a public id.
"""

from __future__ import annotations

import hashlib
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import requests
from werkzeug.utils import secure_filename

from .exceptions import StorageError


@dataclass(frozen=True)
class StoredFile:
    url: str
    public_id: str


class FileStorage(ABC):
    """Stores a blob and returns where it can be fetched from."""

    @abstractmethod
    def upload(self, data: bytes, filename: str) -> StoredFile:
        """
        Store ``data`` under a name derived from ``filename``.

        Raises:
            StorageError: If the blob could not be stored
        """


class LocalFileStorage(FileStorage):
    """Stores files on disk with a timestamp prefix to avoid collisions."""

    def __init__(self, upload_folder: str | Path, public_base_url: str):
        self._folder = Path(upload_folder)
        self._base_url = public_base_url.rstrip("/")
        self._logger = logging.getLogger("print_vend.core.file_storage")

    @property
    def folder(self) -> Path:
        return self._folder

    def upload(self, data: bytes, filename: str) -> StoredFile:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
        stored_name = f"{timestamp}_{secure_filename(filename) or 'upload.pdf'}"

        try:
            self._folder.mkdir(parents=True, exist_ok=True)
            (self._folder / stored_name).write_bytes(data)
        except OSError as e:
            self._logger.error(f"Failed to write {stored_name}: {e}")
            raise StorageError(details={"file": stored_name, "reason": str(e)}) from e

        self._logger.info(f"Stored upload locally: {stored_name} ({len(data)} bytes)")
        return StoredFile(url=f"{self._base_url}/uploads/{stored_name}", public_id=stored_name)


class CloudinaryFileStorage(FileStorage):
    """
    Uploads raw files to Cloudinary using a signed request.

    The signature is SHA-1 over the sorted, '&'-joined upload parameters
    followed by the API secret.
    """

    UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/raw/upload"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "vending-print",
        timeout_seconds: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        if not (cloud_name and api_key and api_secret):
            raise ValueError("Cloudinary storage requires cloud name, API key and API secret")

        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._folder = folder
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._logger = logging.getLogger("print_vend.core.file_storage")

    def _sign(self, params: dict) -> str:
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self._api_secret}".encode("utf-8")).hexdigest()

    def upload(self, data: bytes, filename: str) -> StoredFile:
        params = {
            "folder": self._folder,
            "timestamp": str(int(time.time())),
        }
        form = dict(params, api_key=self._api_key, signature=self._sign(params))
        url = self.UPLOAD_URL.format(cloud_name=self._cloud_name)

        try:
            response = self._session.post(
                url,
                data=form,
                files={"file": (filename, data, "application/pdf")},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            self._logger.error(f"Cloudinary upload failed for {filename}: {e}")
            raise StorageError(details={"file": filename, "reason": str(e)}) from e

        if not response.ok:
            self._logger.error(
                f"Cloudinary rejected {filename}: HTTP {response.status_code} {response.text[:200]}"
            )
            raise StorageError(details={"file": filename, "http_status": response.status_code})

        try:
            result = response.json()
            stored = StoredFile(url=result["secure_url"], public_id=result["public_id"])
        except (ValueError, KeyError) as e:
            raise StorageError(details={"file": filename, "reason": "unexpected response"}) from e

        self._logger.info(f"Uploaded {filename} to Cloudinary as {stored.public_id}")
        return stored
