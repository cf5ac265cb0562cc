import logging
import posixpath

import requests
from flask import current_app

logger = logging.getLogger(__name__)

API_BASE = "https://cloud-api.yandex.net/v1/disk"
REQUEST_TIMEOUT = 30
CHUNK_SIZE = 64 * 1024

# Everything this service writes lives under this folder, and the proxy
# serves nothing outside it
UPLOAD_DIR = "uploads"


class StorageError(Exception):
    """Raised when the storage provider is unreachable or refuses a call."""


class StorageFileNotFound(StorageError):
    """Raised when the requested file does not exist on the provider."""


def _auth_headers():
    token = current_app.config.get('YANDEX_OAUTH_TOKEN')
    if not token:
        raise StorageError("YANDEX_OAUTH_TOKEN is not configured")
    return {"Authorization": f"OAuth {token}"}

def _call(method, url, expected=(200,), **kwargs):
    """Issue one provider request, translating transport and HTTP failures"""
    kwargs.setdefault('timeout', REQUEST_TIMEOUT)
    try:
        response = requests.request(method, url, **kwargs)
    except requests.RequestException as e:
        logger.error("[Storage] %s %s failed: %s", method, url, e)
        raise StorageError(str(e)) from e

    if response.status_code in expected:
        return response
    if response.status_code == 404:
        raise StorageFileNotFound(url)
    logger.error("[Storage] %s %s returned %s: %s", method, url, response.status_code, response.text)
    raise StorageError(f"{method} {url} returned {response.status_code}")

def stored_path(file_name):
    """Map a file name onto its location inside the upload folder.

    Rejects names that are empty, absolute or climb out of the folder.
    """
    name = (file_name or "").strip()
    if not name or name.startswith("/") or "\\" in name:
        raise StorageFileNotFound(file_name)
    if any(part in ("", ".", "..") for part in name.split("/")):
        raise StorageFileNotFound(file_name)
    return posixpath.join(UPLOAD_DIR, name)

def _ensure_upload_dir(headers):
    # 409 means the folder already exists
    _call("PUT", f"{API_BASE}/resources", expected=(201, 409), headers=headers,
          params={"path": UPLOAD_DIR})

def upload_file(file_name, stream):
    """Upload a file into the upload folder, publish it and return its URLs"""
    headers = _auth_headers()
    path = stored_path(file_name)

    logger.info("[Storage] Uploading %s...", path)
    _ensure_upload_dir(headers)
    link = _call("GET", f"{API_BASE}/resources/upload", headers=headers,
                 params={"path": path, "overwrite": "true"}).json()
    href = link.get("href")
    if not href:
        raise StorageError(f"No upload link returned for {path}")

    _call("PUT", href, expected=(200, 201, 202), data=stream)
    _call("PUT", f"{API_BASE}/resources/publish", headers=headers, params={"path": path})

    meta = _call("GET", f"{API_BASE}/resources", headers=headers, params={"path": path}).json()
    public_url = meta.get("public_url")

    direct_url = None
    if public_url:
        download = _call("GET", f"{API_BASE}/public/resources/download",
                         params={"public_key": public_url}).json()
        direct_url = download.get("href")

    logger.info("[Storage] Uploaded %s (public: %s)", path, public_url)
    return {
        "fileName": file_name,
        "publicUrl": public_url,
        "directUrl": direct_url,
    }

def _stream(response):
    try:
        yield from response.iter_content(chunk_size=CHUNK_SIZE)
    finally:
        response.close()

def open_file(file_name):
    """Start streaming a file from the upload folder.

    Returns a (content_type, chunk iterator) pair. The provider connection is
    released once the iterator is exhausted or closed.
    """
    path = stored_path(file_name)
    headers = _auth_headers()
    link = _call("GET", f"{API_BASE}/resources/download", headers=headers,
                 params={"path": path}).json()
    href = link.get("href")
    if not href:
        raise StorageError(f"No download link returned for {path}")

    response = _call("GET", href, stream=True)
    content_type = response.headers.get("Content-Type", "application/octet-stream")
    return content_type, _stream(response)
