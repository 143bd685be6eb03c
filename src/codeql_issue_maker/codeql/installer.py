"""CodeQL CLI discovery and installation.

The CLI is looked up in this order, first hit wins:

    1. ``CODEQL_CLI`` environment variable (set by ``github/codeql-action/init``)
    2. ``codeql`` on ``PATH``
    3. Known runner locations (tool cache, home directory, workspace)
    4. Download: the latest CodeQL bundle release, falling back to the
       pinned standalone CLI archive
"""

from __future__ import annotations

import glob
import os
import re
import shutil
import stat
import sys
import tarfile
import time
import zipfile
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

import requests

from ..exceptions import CodeQLInstallError, CommandError
from ..file_ops import ensure_directory_exists
from ..logging_config import get_logger
from .runner import run_command

logger = get_logger(__name__)

DEFAULT_CODEQL_VERSION = "2.22.3"

BUNDLE_RELEASE_API = "{api_url}/repos/github/codeql-action/releases/latest"
CLI_DOWNLOAD_URL = (
    "https://github.com/github/codeql-cli-binaries/releases/download/"
    "v{version}/codeql-{platform}.zip"
)

COMMON_PATHS = (
    "/opt/hostedtoolcache/CodeQL/*/x64/codeql/codeql",
    "/opt/hostedtoolcache/CodeQL/*/x64/codeql",
    "/home/runner/codeql/codeql",
    "./codeql/codeql",
)

DOWNLOAD_RETRIES = 3
RETRY_DELAY_SECONDS = 2
MIN_FILE_SIZE = 1000
HTTP_TIMEOUT = 60
CHUNK_SIZE = 1024 * 1024


def get_platform_identifier(platform: Optional[str] = None) -> str:
    """Platform suffix used in CodeQL release asset names."""
    platform = platform or sys.platform
    if platform == "darwin":
        return "osx64"
    if platform.startswith("win"):
        return "win64"
    return "linux64"


def _binary_name() -> str:
    return "codeql.exe" if get_platform_identifier() == "win64" else "codeql"


def find_bundle_asset(
    assets: Sequence[Mapping[str, Any]], platform: str
) -> Optional[Mapping[str, Any]]:
    """Choose the bundle archive for ``platform`` from a release's assets.

    ``.tar.gz`` is preferred because it extracts without external tools;
    ``.tar.zst`` is used when it is the only format published.
    """
    by_name = {asset.get("name"): asset for asset in assets}
    for extension in (".tar.gz", ".tar.zst"):
        asset = by_name.get(f"codeql-bundle-{platform}{extension}")
        if asset is not None:
            return asset
    return None


def _is_file(path: Union[str, Path]) -> bool:
    return Path(path).is_file()


def _version_key(path: str) -> tuple[tuple[int, ...], str]:
    """Order tool-cache paths by the numbers in their directories, so 2.22.3 beats 2.9.4."""
    numbers = tuple(int(n) for n in re.findall(r"\d+", str(Path(path).parent)))
    return numbers, path


def locate_codeql(
    env: Optional[Mapping[str, str]] = None,
    common_paths: Sequence[str] = COMMON_PATHS,
) -> Optional[str]:
    """Find an installed CLI without downloading anything."""
    environ = os.environ if env is None else env

    from_env = environ.get("CODEQL_CLI", "").strip()
    if from_env and _is_file(from_env):
        logger.info(f"Using CodeQL from environment: {from_env}")
        return from_env

    on_path = shutil.which("codeql", path=environ.get("PATH"))
    if on_path:
        logger.info("CodeQL found in system PATH")
        return on_path
    logger.info("CodeQL not found in PATH")

    for pattern in common_paths:
        # Newest tool-cache version first
        for candidate in sorted(glob.glob(pattern), key=_version_key, reverse=True):
            if _is_file(candidate):
                logger.info(f"Found CodeQL at: {candidate}")
                return candidate

    return None


def download_file(
    url: str,
    destination: Union[str, Path],
    session: Optional[requests.Session] = None,
    retries: int = DOWNLOAD_RETRIES,
    delay: float = RETRY_DELAY_SECONDS,
) -> Path:
    """Stream ``url`` to ``destination`` with a fixed number of retries.

    Raises:
        CodeQLInstallError: If every attempt fails or the file is too small
    """
    destination = Path(destination)
    http = session or requests.Session()
    last_error: Optional[Exception] = None

    for attempt in range(1, retries + 1):
        try:
            with http.get(url, stream=True, timeout=HTTP_TIMEOUT, allow_redirects=True) as response:
                response.raise_for_status()
                with open(destination, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
            break
        except (requests.RequestException, OSError) as e:
            last_error = e
            logger.warning(f"Download attempt {attempt}/{retries} failed: {e}")
            if attempt < retries:
                time.sleep(delay)
    else:
        raise CodeQLInstallError(f"{url}: {last_error}")

    size = destination.stat().st_size
    if size < MIN_FILE_SIZE:
        raise CodeQLInstallError(f"file too small ({size} bytes)")

    logger.info(f"Downloaded {size} bytes")
    return destination


def extract_archive(archive: Union[str, Path], target_dir: Union[str, Path]) -> Path:
    """Unpack a ``.tar.gz``, ``.zip`` or ``.tar.zst`` archive into ``target_dir``."""
    archive = Path(archive)
    target = ensure_directory_exists(target_dir)
    name = archive.name

    if name.endswith(".tar.gz") or name.endswith(".tgz"):
        with tarfile.open(archive, "r:gz") as tar:
            if hasattr(tarfile, "data_filter"):
                tar.extractall(target, filter="data")
            else:
                tar.extractall(target)
    elif name.endswith(".zip"):
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                extracted = Path(zf.extract(info, target))
                # zipfile drops unix permissions; the CLI ships helper executables
                mode = (info.external_attr >> 16) & 0o777
                if mode and not info.is_dir():
                    extracted.chmod(mode)
    elif name.endswith(".tar.zst"):
        try:
            run_command(["tar", "--zstd", "-xf", str(archive), "-C", str(target)])
        except CommandError as e:
            raise CodeQLInstallError(f"cannot extract {name}: {e}") from e
    else:
        raise CodeQLInstallError(f"unsupported archive format: {name}")

    return target


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _latest_bundle_asset(
    session: requests.Session, api_url: str, platform: str
) -> Optional[Mapping[str, Any]]:
    url = BUNDLE_RELEASE_API.format(api_url=api_url.rstrip("/"))
    try:
        response = session.get(url, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
        assets = response.json().get("assets", [])
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Could not query CodeQL bundle release: {e}")
        return None
    return find_bundle_asset(assets, platform)


def download_codeql(
    install_dir: Union[str, Path],
    version: str = DEFAULT_CODEQL_VERSION,
    api_url: str = "https://api.github.com",
    token: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> Path:
    """Download and unpack the CLI into ``install_dir``.

    Returns:
        Path of the ``codeql`` executable

    Raises:
        CodeQLInstallError: If no archive could be downloaded and unpacked
    """
    http = session or requests.Session()
    if token:
        http.headers.setdefault("Authorization", f"Bearer {token}")

    install_root = ensure_directory_exists(install_dir)
    platform = get_platform_identifier()

    sources: list[tuple[str, str]] = []
    asset = _latest_bundle_asset(http, api_url, platform)
    if asset is not None:
        sources.append((asset["browser_download_url"], asset["name"]))
    else:
        logger.info("No CodeQL bundle asset found, using standalone CLI archive")
    sources.append(
        (CLI_DOWNLOAD_URL.format(version=version, platform=platform), f"codeql-{platform}.zip")
    )

    errors: list[str] = []
    for url, archive_name in sources:
        logger.info(f"Downloading CodeQL from: {url}")
        archive = install_root / archive_name
        try:
            download_file(url, archive, session=http)
            extract_archive(archive, install_root)
        except CodeQLInstallError as e:
            logger.warning(f"Failed to install CodeQL from {archive_name}: {e.reason}")
            errors.append(e.reason)
            continue
        finally:
            if archive.exists():
                archive.unlink()

        binary = install_root / "codeql" / _binary_name()
        if not binary.is_file():
            errors.append(f"CodeQL binary not found after extracting {archive_name}")
            continue

        _make_executable(binary)
        logger.info("CodeQL downloaded and extracted successfully")
        return binary

    raise CodeQLInstallError("; ".join(errors) or "no download source available")


def initialize_codeql(
    install_dir: Optional[Union[str, Path]] = None,
    version: str = DEFAULT_CODEQL_VERSION,
    api_url: str = "https://api.github.com",
    token: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Return a usable CodeQL executable, downloading it as a last resort.

    Raises:
        CodeQLInstallError: If the CLI is neither installed nor downloadable
    """
    located = locate_codeql(env=env)
    if located:
        return located

    logger.info("CodeQL not found, attempting to download...")
    target = Path(install_dir) if install_dir is not None else Path.cwd()
    return str(download_codeql(target, version=version, api_url=api_url, token=token))
