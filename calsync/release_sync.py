"""Generate release event files from the Quarkus platform BOM listing on Maven Central."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

import requests
import yaml
from bs4 import BeautifulSoup

from .errors import EventFileError
from .loader import parse_release, read_event_file
from .versions import PlatformVersion

MAVEN_REPO_URL = "https://repo1.maven.org/maven2/io/quarkus/platform/quarkus-bom/"
MIN_VERSION = "3.20.0"
FILE_PREFIX = "quarkus-platform-"
FILE_SUFFIX = "-release.yaml"

TIMESTAMP_REGEX = re.compile(r"(\d{4}-\d{2}-\d{2})\s+\d{2}:\d{2}")
CR_SUFFIX_REGEX = re.compile(r"-cr(\d*)$")


@dataclass
class ReleaseSyncResult:
    created: int = 0
    updated: int = 0
    unchanged: int = 0


def fetch_listing(url: str = MAVEN_REPO_URL, timeout: float = 30) -> str:
    logging.info("Fetching platform versions from %s", url)
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text


def parse_versions_from_html(html: str) -> List[PlatformVersion]:
    soup = BeautifulSoup(html, "lxml")
    versions: List[PlatformVersion] = []
    for link in soup.find_all("a", href=True):
        href = link["href"]
        if not href.endswith("/") or href.startswith(".."):
            continue
        version = href.rstrip("/")
        trailer = link.next_sibling
        match = TIMESTAMP_REGEX.search(str(trailer)) if trailer else None
        if not match:
            continue
        try:
            released = date.fromisoformat(match.group(1))
        except ValueError:
            logging.warning("Failed to parse date for version %s: %s", version, match.group(1))
            continue
        versions.append(PlatformVersion(version, released))
    return versions


def normalize_version_for_filename(version: str) -> str:
    normalized = version.lower()
    if normalized.endswith(".final"):
        return normalized[: -len(".final")]
    return normalized.replace(".cr", "-cr")


def version_from_filename(filename: str) -> Optional[str]:
    if not (filename.startswith(FILE_PREFIX) and filename.endswith(FILE_SUFFIX)):
        return None
    version = filename[len(FILE_PREFIX): -len(FILE_SUFFIX)]
    match = CR_SUFFIX_REGEX.search(version)
    if match:
        return f"{version[: match.start()]}.CR{match.group(1)}"
    if version.endswith("-final"):
        return version[: -len("-final")] + ".Final"
    return version + ".Final"


def release_title(version: str) -> str:
    if "CR" in version.upper():
        return f"Quarkus Platform {version} Pre-Release"
    return f"Quarkus Platform {version} Release"


def release_file_path(releases_dir: Path, version: str) -> Path:
    return releases_dir / f"{FILE_PREFIX}{normalize_version_for_filename(version)}{FILE_SUFFIX}"


def load_existing_releases(releases_dir: Path) -> Dict[str, date]:
    releases: Dict[str, date] = {}
    if not releases_dir.is_dir():
        logging.warning("Directory %s does not exist, will create it", releases_dir)
        releases_dir.mkdir(parents=True, exist_ok=True)
        return releases
    for path in sorted(releases_dir.rglob(f"{FILE_PREFIX}*{FILE_SUFFIX}")):
        version = version_from_filename(path.name)
        if version is None:
            continue
        try:
            releases[version] = read_event_file(path, parse_release).date
        except EventFileError as exc:
            logging.warning("Failed to parse existing file %s", exc)
    return releases


def _canonical(version: str) -> str:
    # "3.24.1" and "3.24.1.Final" name the same release file
    return version_from_filename(release_file_path(Path("."), version).name) or version


def write_release_file(releases_dir: Path, version: PlatformVersion) -> Path:
    path = release_file_path(releases_dir, version.version)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(
            {"title": release_title(version.version), "date": version.date},
            handle,
            sort_keys=False,
            allow_unicode=True,
        )
    return path


def sync_releases(releases_dir, versions: List[PlatformVersion], min_version: str = MIN_VERSION) -> ReleaseSyncResult:
    releases_dir = Path(releases_dir)
    selected = sorted(v for v in versions if v.is_at_least(min_version))
    logging.info("Processing %d of %d versions >= %s", len(selected), len(versions), min_version)

    existing = load_existing_releases(releases_dir)
    result = ReleaseSyncResult()
    for version in selected:
        existing_date = existing.get(_canonical(version.version))
        if existing_date is None:
            write_release_file(releases_dir, version)
            result.created += 1
            logging.info("Created: %s (%s)", version.version, version.date)
        elif existing_date != version.date:
            write_release_file(releases_dir, version)
            result.updated += 1
            logging.warning("Updated: %s (date changed from %s to %s)", version.version, existing_date, version.date)
        else:
            result.unchanged += 1

    logging.info(
        "Summary: %d created, %d updated, %d unchanged", result.created, result.updated, result.unchanged
    )
    return result


def run_release_sync(releases_dir, url: str = MAVEN_REPO_URL) -> ReleaseSyncResult:
    versions = parse_versions_from_html(fetch_listing(url))
    logging.info("Found %d total versions", len(versions))
    return sync_releases(releases_dir, versions)
