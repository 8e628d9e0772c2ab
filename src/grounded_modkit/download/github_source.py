"""
GitHub Release Source

This module fetches a companion tool's release by tag from the GitHub API and
selects the release asset matching a plugin requirement.
"""

import dataclasses
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests  # type: ignore[import-untyped]

from grounded_modkit.constants import DEFAULT_RELEASE_TAG
from grounded_modkit.exceptions import APIError, RateLimitError, RequirementConfigError
from grounded_modkit.log_utils import logger
from grounded_modkit.utils import make_github_api_request

from .interfaces import Asset, ModHost, Release
from .requirements import PluginRequirement, ResolutionOverride, apply_override

_MIN_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)


def parse_github_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub ISO 8601 timestamp (`2024-05-01T12:00:00Z`) into an aware datetime."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_millis(value: Optional[str]) -> Optional[int]:
    """Convert a GitHub timestamp into milliseconds since the epoch."""
    parsed = parse_github_timestamp(value)
    return int(parsed.timestamp() * 1000) if parsed is not None else None


def create_asset_from_github_data(asset_data: Dict[str, Any]) -> Optional[Asset]:
    """
    Create an Asset from GitHub API asset data.

    Returns:
        Optional[Asset]: The asset, or None when the name or size is missing/invalid.
    """
    asset_name = asset_data.get("name")
    if not isinstance(asset_name, str) or not asset_name.strip():
        logger.warning("Skipping asset with invalid name")
        return None
    try:
        asset_size = int(asset_data.get("size"))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.warning(f"Skipping asset {asset_name} with invalid size")
        return None
    return Asset(
        name=asset_name,
        download_url=asset_data.get("browser_download_url") or "",
        size=asset_size,
        created_at=asset_data.get("created_at"),
        updated_at=asset_data.get("updated_at"),
        content_type=asset_data.get("content_type"),
    )


def create_release_from_github_data(release_data: Dict[str, Any]) -> Optional[Release]:
    """
    Create a Release object from GitHub API release data.

    Malformed assets are skipped; a release keeps an empty asset list when none
    are usable.

    Returns:
        Optional[Release]: A Release populated with assets, or None when the tag is missing/invalid.
    """
    tag_name = release_data.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        logger.warning("Skipping release with missing or invalid tag_name")
        return None

    release = Release(
        tag_name=tag_name,
        prerelease=bool(release_data.get("prerelease", False)),
        published_at=release_data.get("published_at"),
        name=release_data.get("name"),
        body=release_data.get("body"),
    )

    assets_data = release_data.get("assets")
    if not isinstance(assets_data, list):
        logger.warning(f"Release {tag_name} has an invalid assets field")
        return release

    for asset_data in assets_data:
        if not isinstance(asset_data, dict):
            logger.warning(f"Skipping malformed asset for release {tag_name}")
            continue
        asset = create_asset_from_github_data(asset_data)
        if asset is not None:
            release.assets.append(asset)

    return release


def select_asset(
    release: Release,
    requirement: PluginRequirement,
    override: Optional[ResolutionOverride] = None,
) -> Optional[Asset]:
    """
    Pick the release asset matching a requirement.

    Assets are filtered by the archive pattern when the (overridden)
    requirement has one, otherwise by exact file name. Among the remaining
    assets the most recently updated one wins; on equal timestamps the first
    in release order is kept. The owning release is attached to the result.

    Returns:
        Optional[Asset]: A copy of the selected asset, or None if nothing matches.

    Raises:
        RequirementConfigError: If the requirement has neither an archive pattern nor a file name.
    """
    effective = apply_override(requirement, override)

    if effective.file_archive_pattern is not None:
        pattern = effective.file_archive_pattern
        candidates = [asset for asset in release.assets if pattern.search(asset.name)]
    elif effective.archive_file_name:
        candidates = [
            asset for asset in release.assets if asset.name == effective.archive_file_name
        ]
    else:
        raise RequirementConfigError(
            f"{effective.name}: file_archive_pattern or archive_file_name is required."
        )

    selected: Optional[Asset] = None
    selected_time = _MIN_TIMESTAMP
    for asset in candidates:
        updated = parse_github_timestamp(asset.updated_at) or _MIN_TIMESTAMP
        if selected is None or updated > selected_time:
            selected, selected_time = asset, updated

    if selected is None:
        logger.warning(
            f"No asset of release {release.tag_name} matches {effective.name}"
        )
        return None
    return dataclasses.replace(selected, release=release)


class GithubReleaseSource:
    """
    Fetches releases of one requirement's repository.

    Usage:
        source = GithubReleaseSource(PLUGIN_REQUIREMENT_UE4SS, config)
        asset = source.get_latest_asset(tag="experimental", host=host)
    """

    def __init__(
        self, requirement: PluginRequirement, config: Optional[Dict[str, Any]] = None
    ):
        """
        Parameters:
            requirement (PluginRequirement): Supplies the repository URL and asset matching rules.
            config (Optional[Dict[str, Any]]): Configuration with GITHUB_TOKEN / ALLOW_ENV_TOKEN / RELEASE_TAG.
        """
        self.requirement = requirement
        self.config = config or {}

    @property
    def release_tag(self) -> str:
        return self.config.get("RELEASE_TAG") or DEFAULT_RELEASE_TAG

    def fetch_release_by_tag(self, tag: str) -> Optional[Release]:
        """
        Fetch and parse the release published under `tag`.

        Raises:
            RateLimitError: When GitHub refuses the request for lack of quota.
            APIError: For other non-2xx responses.
            requests.RequestException: For network failures.
            ValueError: If the body is not JSON.
        """
        url = f"{self.requirement.github_url}/releases/tags/{tag}"
        response = make_github_api_request(
            url,
            self.config.get("GITHUB_TOKEN"),
            allow_env_token=self.config.get("ALLOW_ENV_TOKEN", True),
        )
        release_data = response.json()
        if not isinstance(release_data, dict):
            logger.error(f"Invalid release data received from {url}")
            return None
        return create_release_from_github_data(release_data)

    def get_latest_asset(
        self,
        tag: Optional[str] = None,
        host: Optional[ModHost] = None,
        override: Optional[ResolutionOverride] = None,
    ) -> Optional[Asset]:
        """
        Fetch the release under `tag` and select the requirement's asset.

        Fetch failures other than rate limiting are reported through the
        host's error notification (when a host is given) and yield None.

        Raises:
            RateLimitError: When GitHub's rate limit is exhausted.
        """
        tag = tag or self.release_tag
        try:
            release = self.fetch_release_by_tag(tag)
        except RateLimitError:
            raise
        except (
            APIError,
            requests.RequestException,
            ValueError,
            json.JSONDecodeError,
        ) as exc:
            logger.error(
                f"Error fetching the latest release url for {self.requirement.name}: {exc}"
            )
            if host is not None:
                host.show_error_notification(
                    "Error fetching the latest release url for {{repName}}",
                    exc,
                    {"allowReport": False, "replace": {"repName": self.requirement.name}},
                )
            return None

        if release is None or not release.assets:
            logger.warning(f"Release '{tag}' of {self.requirement.name} has no assets")
            return None
        try:
            return select_asset(release, self.requirement, override)
        except RequirementConfigError as exc:
            logger.error(f"{exc}")
            return None
