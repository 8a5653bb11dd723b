"""GitHub folder download via the repository contents API.

Only the files directly inside the referenced folder are fetched; nested
directories in the listing are skipped.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

import httpx

from pipekit.pipes.errors import (
    InvalidApiResponseError,
    InvalidUrlFormatError,
    PipeFetchError,
    PipeIOError,
)
from pipekit.pipes.naming import is_hidden_file

logger = logging.getLogger(__name__)

GITHUB_HOST = "github.com"
GITHUB_API = "https://api.github.com"
USER_AGENT = "pipekit"


@dataclass
class GithubFolder:
    """A github.com/<owner>/<repo>/tree/<branch>/<path> folder reference."""

    owner: str
    repo: str
    branch: str
    path: str

    @property
    def api_url(self) -> str:
        return f"{GITHUB_API}/repos/{self.owner}/{self.repo}/contents/{self.path}?ref={self.branch}"


def parse_github_folder_url(url: str) -> GithubFolder:
    """Split a folder URL into owner, repo, branch and path.

    Raises:
        InvalidUrlFormatError: If the URL is not a github.com tree link with
            at least owner/repo/tree/branch/path segments.
    """
    parsed = urlparse(url)
    if parsed.hostname == GITHUB_HOST:
        segments = parsed.path.lstrip("/").split("/")
        if len(segments) >= 5 and segments[2] == "tree":
            return GithubFolder(
                owner=segments[0],
                repo=segments[1],
                branch=segments[3],
                path="/".join(segments[4:]),
            )
    raise InvalidUrlFormatError(f"Invalid GitHub URL format: {url}")


def get_github_api_url(url: str) -> str:
    """Convert a GitHub folder URL into its contents API URL."""
    logger.info(f"Attempting to get GitHub API URL for: {url}")
    api_url = parse_github_folder_url(url).api_url
    logger.info(f"Converted to GitHub API URL: {api_url}")
    return api_url


def _github_token(token: Optional[str] = None) -> Optional[str]:
    """Return the explicit token, else GH_TOKEN / GITHUB_TOKEN, else None."""
    return ((token or os.getenv("GH_TOKEN") or os.getenv("GITHUB_TOKEN") or "").strip()) or None


def _github_headers(token: Optional[str] = None) -> Dict[str, str]:
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": USER_AGENT,
    }
    token = _github_token(token)
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _get(client: httpx.Client, url: str, headers: Dict[str, str]) -> httpx.Response:
    try:
        response = client.get(url, headers=headers, timeout=30, follow_redirects=True)
    except httpx.HTTPError as e:
        raise PipeFetchError(f"request to {url} failed: {e}") from e
    return response


def _validate_listing(data: Any) -> List[Dict[str, Any]]:
    """Check the decoded listing at the boundary.

    Every entry needs a string name; download_url is a string for files and
    null for directories.
    """
    if not isinstance(data, list):
        detail = ""
        if isinstance(data, dict) and isinstance(data.get("message"), str):
            detail = f": {data['message']}"
        raise InvalidApiResponseError(f"invalid response from github api{detail}")

    for item in data:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise InvalidApiResponseError(f"github api entry without a name: {item!r}")
        download_url = item.get("download_url")
        if download_url is not None and not isinstance(download_url, str):
            raise InvalidApiResponseError(
                f"github api entry {item['name']} has an invalid download_url: {download_url!r}"
            )
    return data


def list_github_folder(
    url: str,
    client: Optional[httpx.Client] = None,
    token: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Fetch and validate the contents listing for a folder URL.

    Raises:
        InvalidUrlFormatError: If the URL is not a folder reference.
        PipeFetchError: If the request fails or returns a non-JSON error status.
        InvalidApiResponseError: If the body is not a listing.
    """
    if client is None:
        with httpx.Client() as client:
            return _list_folder(client, url, token)
    return _list_folder(client, url, token)


def _list_folder(client: httpx.Client, url: str, token: Optional[str]) -> List[Dict[str, Any]]:
    api_url = get_github_api_url(url)
    response = _get(client, api_url, _github_headers(token))

    try:
        data = response.json()
    except ValueError as e:
        if response.is_error:
            raise PipeFetchError(
                f"GitHub API returned {response.status_code} for {api_url}"
            ) from e
        raise InvalidApiResponseError(
            f"failed to parse github api response: {e}\nRaw (truncated 400): {response.text[:400]}"
        ) from e

    return _validate_listing(data)


def download_github_folder(
    url: str,
    dest_dir: Union[str, Path],
    client: Optional[httpx.Client] = None,
    token: Optional[str] = None,
) -> List[Path]:
    """Download every visible file of a GitHub folder into dest_dir.

    Args:
        url: Folder URL, e.g. https://github.com/owner/repo/tree/main/pipes/foo
        dest_dir: Existing destination directory.
        client: Optional httpx client. When omitted, one is opened and closed
            around the whole listing and download.
        token: Optional GitHub token; falls back to GH_TOKEN / GITHUB_TOKEN.

    Returns:
        Paths of the files written, in listing order.
    """
    if client is None:
        with httpx.Client() as client:
            return _download_folder(client, url, Path(dest_dir), token)
    return _download_folder(client, url, Path(dest_dir), token)


def _download_folder(
    client: httpx.Client, url: str, dest_dir: Path, token: Optional[str]
) -> List[Path]:
    written = []
    headers = _github_headers(token)

    for item in _list_folder(client, url, token):
        file_name = item["name"]
        if is_hidden_file(file_name):
            logger.info(f"skipping hidden file: {file_name}")
            continue

        download_url = item.get("download_url")
        if download_url is None:
            logger.info(f"skipping directory: {file_name}")
            continue

        response = _get(client, download_url, headers)
        if response.is_error:
            raise PipeFetchError(f"Download failed with {response.status_code} for {download_url}")

        file_path = dest_dir / file_name
        try:
            file_path.write_bytes(response.content)
        except OSError as e:
            raise PipeIOError(f"failed to write {file_path}: {e}") from e
        logger.info(f"downloaded: {file_path}")
        written.append(file_path)

    return written
