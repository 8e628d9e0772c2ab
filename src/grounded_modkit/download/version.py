"""
Version Resolution for the grounded-modkit Dependency Subsystem

This module extracts semantic versions from release tags and archive file
names and compares them with semantic-versioning precedence. Resolution never
fails: when nothing can be extracted the sentinel "0.0.0" is returned, which
callers must read as "unknown".
"""

import ntpath
import re
from typing import Iterable, Optional

import semver

from grounded_modkit.constants import UNKNOWN_VERSION
from grounded_modkit.log_utils import logger

from .interfaces import Asset, Download
from .requirements import PluginRequirement


class VersionResolver:
    """
    Parses, coerces, and compares semantic version strings.

    Versions are compared with semantic-versioning rules rather than PEP 440:
    UE4SS build versions such as `3.0.1-394-g437a8ff` are prereleases of
    `3.0.1`, not post-releases.
    """

    COERCE_RX = re.compile(
        r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])"
    )

    def valid(self, version: Optional[str]) -> Optional[str]:
        """
        Return the cleaned version if it is a valid semantic version, else None.

        Surrounding whitespace and a single leading "v" or "=" are ignored.
        """
        if not isinstance(version, str):
            return None
        cleaned = version.strip()
        if cleaned[:1] in ("v", "V", "="):
            cleaned = cleaned[1:]
        return cleaned if semver.Version.is_valid(cleaned) else None

    def coerce(self, value: Optional[str]) -> Optional[str]:
        """
        Extract the first `major[.minor[.patch]]` run from arbitrary text.

        Missing components default to 0, so `"v3"` coerces to `"3.0.0"` and
        `"v3.0.1-394-g437a8ff"` to `"3.0.1"`. Text without digits yields None.
        """
        if not isinstance(value, str):
            return None
        match = self.COERCE_RX.search(value)
        if not match:
            return None
        major, minor, patch = (int(part or 0) for part in match.groups())
        return f"{major}.{minor}.{patch}"

    def resolve_version(
        self,
        tag_name: Optional[str],
        file_name: Optional[str],
        requirement: PluginRequirement,
    ) -> str:
        """
        Resolve the version of a release asset.

        Parameters:
            tag_name (Optional[str]): Tag of the owning release.
            file_name (Optional[str]): Asset file name.
            requirement (PluginRequirement): Supplies the file-name version pattern.

        Returns:
            str: The coerced tag version; else the version captured from the
            file name by the requirement's pattern; else "0.0.0".
        """
        version = self.valid(self.coerce(tag_name))
        if version is None and requirement.file_version_pattern is not None and file_name:
            match = requirement.file_version_pattern.search(file_name)
            if match and match.groups():
                version = self.valid(match.group(1))
        if version is None:
            logger.debug(
                f"No version found for tag '{tag_name}' / file '{file_name}'; using {UNKNOWN_VERSION}"
            )
        return version or UNKNOWN_VERSION

    def resolve_asset_version(
        self, asset: Optional[Asset], requirement: PluginRequirement
    ) -> str:
        """Resolve an asset's version from its attached release tag and its name."""
        if asset is None:
            return UNKNOWN_VERSION
        tag_name = asset.release.tag_name if asset.release is not None else None
        return self.resolve_version(tag_name, asset.name, requirement)

    def resolve_version_from_downloads(
        self, downloads: Iterable[Download], requirement: PluginRequirement
    ) -> str:
        """
        Return the highest version found among download file names.

        Files the requirement's version pattern does not match, or whose
        captured text is not a semantic version, are ignored. Starts from "0.0.0".
        """
        latest = UNKNOWN_VERSION
        if requirement.file_version_pattern is None:
            return latest
        for download in downloads:
            match = requirement.file_version_pattern.search(
                ntpath.basename(download.local_path)
            )
            if not match or not match.groups():
                continue
            candidate = self.valid(match.group(1))
            if candidate is not None and self.compare_versions(candidate, latest) > 0:
                latest = candidate
        return latest

    def _parse(self, version: str) -> semver.Version:
        return semver.Version.parse(self.valid(version) or UNKNOWN_VERSION)

    def compare_versions(self, version1: str, version2: str) -> int:
        """
        Compare two semantic versions by precedence.

        Invalid input is treated as "0.0.0" so comparisons never fail.

        Returns:
            int: 1 if version1 > version2, 0 if equal, -1 if version1 < version2
        """
        return self._parse(version1).compare(self._parse(version2))


def is_unknown_version(version: Optional[str]) -> bool:
    """Return True for the "0.0.0" sentinel (or no version at all)."""
    return not version or version == UNKNOWN_VERSION
