import importlib.metadata
import logging
import http.client
import os
import socket
import typing as t
import urllib.parse
import urllib.request
from urllib.error import URLError

import urllib3
from urllib3.exceptions import HTTPError

from rinth import fs
from rinth.baseUtils import read_with_progress
from rinth.errors import DownloadError
from rinth.errors import NetworkError
from rinth.modmeta import Artifact


logger = logging.getLogger(__name__)


try:
    _version = importlib.metadata.version("rinth")
except importlib.metadata.PackageNotFoundError:
    _version = "dev"

_global_headers = {
    "User-Agent": f"rinth/{_version}",
}


class URLResponse(t.Protocol):
    url: str
    headers: t.MutableMapping[str, str]

    def read(self, length=...) -> bytes:
        ...

    def close(self) -> None:
        ...


def open_url(
    url: str,
    *,
    method="GET",
    headers: t.Optional[t.MutableMapping[str, str]] = None,
    fields: t.Optional[t.Mapping[str, str]] = None,
    pool_manager: t.Optional[urllib3.PoolManager] = None,
    timeout: t.Optional[urllib3.Timeout] = None,
) -> URLResponse:
    """Send a request to a URL and return a generic, unread response.

    :raises NetworkError: if the request fails or the response status is not 2xx.
    """
    full_url = url
    scheme = urllib.parse.urlsplit(url).scheme.lower()
    if fields:
        full_url += "?" + urllib.parse.urlencode(fields)
    headers = {**_global_headers, **(headers or {})}
    timeout = timeout or urllib3.Timeout(connect=3, read=10)

    try:
        pool = pool_manager or urllib3.PoolManager()
        response = pool.request(
            method,
            full_url,
            headers=headers,
            preload_content=False,
            timeout=timeout,
        )
    except HTTPError as e:
        logger.debug(f"HTTP Error from urllib3: {e}")
        if scheme in ("http", "https"):
            raise NetworkError(full_url, e)
        try:
            # fall back on urlopen for schemes urllib3 does not handle, such as file://
            logger.debug("Attempting to fall back on urlopen.")
            fallback = urllib.request.urlopen(
                urllib.request.Request(full_url, headers=headers, method=method),
                timeout=fallback_timeout(timeout),
            )
        except (URLError, OSError, ValueError):
            raise NetworkError(full_url, e)
        fallback.url = full_url
        return t.cast(URLResponse, fallback)

    if not 200 <= response.status < 300:
        response.release_conn()
        raise NetworkError(full_url, f"HTTP {response.status} {response.reason}")

    response = t.cast(URLResponse, response)
    response.url = full_url
    return response


def fallback_timeout(timeout: urllib3.Timeout) -> t.Optional[float]:
    """Single socket timeout for `urlopen`, taken from the read timeout."""
    read = timeout.read_timeout
    if isinstance(read, (int, float)):
        return read
    return socket.getdefaulttimeout()


def release_response(response: URLResponse):
    """Hand a pooled connection back to its pool, or close the response."""
    if isinstance(response, urllib3.HTTPResponse):
        response.release_conn()
    else:
        response.close()


def content_length(response: URLResponse) -> t.Optional[int]:
    """Expected size of the response body, if the server reported it."""
    try:
        return int(response.headers.get("Content-Length", None) or 0) or None
    except ValueError:
        return None


def download_with_progress(
    src: t.Union[str, URLResponse],
    dest: str,
    label: t.Optional[str] = None,
    atomic=False,
    clear=False,
    *,
    pool_manager: t.Optional[urllib3.PoolManager] = None,
    timeout: t.Optional[urllib3.Timeout] = None,
):
    """Stream :param:`src` into the file :param:`dest`.

    The progress bar is determinate only when the response has a
    `Content-Length`.

    :param atomic: Write to a temporary file next to :param:`dest` and only
        replace :param:`dest` once the whole body has been read.
    :returns: The number of bytes written.
    """
    if isinstance(src, str):
        response = open_url(src, pool_manager=pool_manager, timeout=timeout)
    else:
        response = src

    size = content_length(response)
    try:
        if not atomic:
            with open(dest, "wb") as io:
                return read_with_progress(
                    response, io, size, label=label, clear_progress=clear
                )

        with fs.temporary_file(dir=os.path.dirname(os.path.abspath(dest))) as file:
            with open(file, "wb") as io:
                written = read_with_progress(
                    response, io, size, label=label, clear_progress=clear
                )
            fs.replace_file(file, dest)
        return written
    finally:
        if isinstance(src, str):
            release_response(response)


def download_artifact(
    artifact: Artifact,
    directory: str,
    atomic=True,
    *,
    pool_manager: t.Optional[urllib3.PoolManager] = None,
    timeout: t.Optional[urllib3.Timeout] = None,
) -> str:
    """Download :param:`artifact` into :param:`directory`.

    :returns: The path of the downloaded file.
    :raises DownloadError: if the file could not be fetched or written.
    """
    try:
        dest = fs.child_path(directory, artifact.filename)
        logger.debug(f"Downloading {artifact.url} to '{dest}'.")
        download_with_progress(
            artifact.url,
            dest,
            f"downloading {artifact.filename}",
            atomic=atomic,
            clear=True,
            pool_manager=pool_manager,
            timeout=timeout,
        )
    except (
        NetworkError, HTTPError, http.client.HTTPException, OSError, ValueError
    ) as e:
        raise DownloadError(artifact.filename, e) from e
    return dest
