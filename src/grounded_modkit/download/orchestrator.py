"""
Companion Dependency Orchestrator

This module keeps a companion tool (UE4SS) current inside the host mod
manager: it compares the installed copy against the latest release, and
installs a release by disabling conflicting copies, downloading, installing,
stamping metadata, and enabling the new mod, in that order.

Callers must serialize install() per requirement; two concurrent installs of
the same requirement may both start downloads.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import requests  # type: ignore[import-untyped]

from grounded_modkit.constants import (
    GAME_ID,
    MOD_STATE_INSTALLED,
    NOTIFICATION_ID_INSTALLING,
    UE4SS_SOURCE,
)
from grounded_modkit.exceptions import DependencyError, ModkitError
from grounded_modkit.log_utils import logger

from .github_source import GithubReleaseSource, timestamp_millis
from .interfaces import Asset, Mod, ModHost
from .mods import find_latest_mod_by_file, find_mods_by_file
from .requirements import PLUGIN_REQUIREMENT_UE4SS, PluginRequirement, ResolutionOverride
from .version import VersionResolver, is_unknown_version


class DependencyState(Enum):
    NOT_INSTALLED = "not_installed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    UPDATE_AVAILABLE = "update_available"


class InstallStep(Enum):
    """Steps of an install, in execution order."""

    NOTIFY = "notify"
    DISABLE_CONFLICTS = "disable_conflicts"
    SELECT_ASSET = "select_asset"
    DOWNLOAD = "download"
    INSTALL = "install"
    STAMP_ATTRIBUTES = "stamp_attributes"
    ENABLE = "enable"
    DISMISS = "dismiss"


@dataclass
class InstallReport:
    """What an install() call did."""

    steps: List[InstallStep] = field(default_factory=list)
    """Completed steps in the order they ran"""

    disabled_mod_ids: List[str] = field(default_factory=list)
    asset: Optional[Asset] = None
    download_id: Optional[str] = None
    mod_id: Optional[str] = None
    version: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and InstallStep.ENABLE in self.steps


class DependencyOrchestrator:
    """
    Drives version checks and installs of one plugin requirement through a ModHost.

    Conflicting copies are only ever disabled, never deleted, and they are not
    re-enabled when a later step fails.
    """

    def __init__(
        self,
        host: ModHost,
        requirement: PluginRequirement = PLUGIN_REQUIREMENT_UE4SS,
        config: Optional[Dict[str, Any]] = None,
        source: Optional[GithubReleaseSource] = None,
        game_id: str = GAME_ID,
    ):
        """
        Parameters:
            host (ModHost): The mod manager owning mods, profiles and downloads.
            requirement (PluginRequirement): The dependency to manage.
            config (Optional[Dict[str, Any]]): Configuration passed to the release source.
            source (Optional[GithubReleaseSource]): Release source; built from the requirement when omitted.
            game_id (str): The game this orchestrator serves.
        """
        self.host = host
        self.requirement = requirement
        self.config = config or {}
        self.source = source or GithubReleaseSource(requirement, self.config)
        self.version_resolver = VersionResolver()
        self.game_id = game_id
        self._installing = False

    def find_installed_mod(self) -> Optional[Mod]:
        """Return the most recently updated installed copy of the requirement, if any."""
        if self.requirement.find_mod is not None:
            return self.requirement.find_mod(self.host)
        if not self.requirement.assembly_file_name:
            return None
        return find_latest_mod_by_file(
            self.host, self.requirement.mod_type, self.requirement.assembly_file_name
        )

    def get_state(self) -> DependencyState:
        if self._installing:
            return DependencyState.INSTALLING
        mod = self.find_installed_mod()
        if mod is None:
            return DependencyState.NOT_INSTALLED
        version = mod.attributes.get("version")
        newest = mod.attributes.get("newestVersion")
        if newest and not is_unknown_version(newest) and newest != version:
            return DependencyState.UPDATE_AVAILABLE
        return DependencyState.INSTALLED

    def check_version(self, game_id: str) -> Optional[str]:
        """
        Record a newer release on the installed mod, without updating it.

        Does nothing for another game or when the requirement is not installed.
        An unknown ("0.0.0") latest version is never recorded.

        Returns:
            Optional[str]: The version written to `newestVersion`, or None if nothing was written.

        Raises:
            RateLimitError: When GitHub's rate limit is exhausted.
        """
        if game_id != self.game_id:
            return None
        mod = self.find_installed_mod()
        if mod is None:
            return None

        asset = self.source.get_latest_asset(host=self.host)
        if asset is None:
            logger.info(f"No release asset found for {self.requirement.name}")
            return None

        latest = self.version_resolver.resolve_asset_version(asset, self.requirement)
        installed = mod.attributes.get("version")
        if is_unknown_version(latest):
            logger.warning(
                f"Could not determine the version of {asset.name}; not flagging an update"
            )
            return None
        if not installed or installed == latest:
            logger.debug(f"{self.requirement.name} {installed} is current")
            return None

        logger.info(f"{self.requirement.name} {latest} is available (installed: {installed})")
        self.host.set_mod_attribute(game_id, mod.id, "newestVersion", latest)
        return latest

    def update(self) -> Optional[InstallReport]:
        """
        Install the version recorded in `newestVersion` on the installed mod.

        Returns:
            Optional[InstallReport]: The install report, or None when nothing is installed or it is already current.
        """
        mod = self.find_installed_mod()
        if mod is None:
            return None

        version = mod.attributes.get("version")
        newest = mod.attributes.get("newestVersion")
        if version == newest:
            logger.warning(
                f"{self.requirement.name} will not be updated. version ({version}) = newestVersion ({newest})."
            )
            return None
        return self.install(newest)

    def _download_info(self) -> Dict[str, Any]:
        name = self.requirement.name
        return {
            "game": self.game_id,
            "name": name,
            "modName": name,
            "logicalFileName": name,
            "customFileName": name,
            "author": self.requirement.author,
            "source": UE4SS_SOURCE,
            "sourceURI": self.requirement.source_uri,
        }

    def _mod_attributes(self, asset: Asset, version: str) -> Dict[str, Any]:
        info = self._download_info()
        return {
            "version": version,
            "author": info["author"],
            "source": info["source"],
            "name": info["name"],
            "logicalFileName": info["logicalFileName"],
            "modName": info["name"],
            "sourceURI": info["sourceURI"],
            "customFileName": info["customFileName"],
            "modId": info["name"],
            "updatedTimestamp": timestamp_millis(asset.updated_at),
            "uploadedTimestamp": timestamp_millis(asset.created_at),
        }

    def _disable_conflicts(self, profile_id: Optional[str], report: InstallReport) -> None:
        if not self.requirement.assembly_file_name:
            return
        for mod in find_mods_by_file(
            self.host, self.requirement.mod_type, self.requirement.assembly_file_name
        ):
            if mod.state == MOD_STATE_INSTALLED:
                self.host.set_mod_enabled(profile_id, mod.id, False)
                report.disabled_mod_ids.append(mod.id)
        if report.disabled_mod_ids:
            logger.info(
                f"Disabled {len(report.disabled_mod_ids)} existing {self.requirement.name} mod(s)"
            )

    def install(self, version: Optional[str] = None) -> InstallReport:
        """
        Download and install a release of the requirement.

        With `version` the exact archive for that version is selected; otherwise
        the newest asset matching the requirement's pattern is used. Failures are
        logged and recorded on the report; nothing is raised past this method.
        The progress notification is dismissed in every case.

        Returns:
            InstallReport: Completed steps and their results.
        """
        report = InstallReport()
        override = (
            ResolutionOverride.for_version(self.requirement, version)
            if version and self.requirement.archive_file_template
            else None
        )
        if self._installing:
            logger.warning(f"{self.requirement.name} is already being installed")

        self._installing = True
        try:
            self.host.send_notification(
                {
                    "id": NOTIFICATION_ID_INSTALLING,
                    "message": f"Installing {self.requirement.name}...",
                    "type": "activity",
                    "noDismiss": True,
                    "allowSuppress": False,
                }
            )
            report.steps.append(InstallStep.NOTIFY)

            profile_id = self.host.get_active_profile_id()

            self._disable_conflicts(profile_id, report)
            report.steps.append(InstallStep.DISABLE_CONFLICTS)

            asset = self.source.get_latest_asset(host=self.host, override=override)
            if asset is None:
                raise DependencyError(
                    f"No release asset found for {self.requirement.name}",
                    details=override.archive_file_name if override else None,
                )
            report.asset = asset
            report.version = self.version_resolver.resolve_asset_version(
                asset, self.requirement
            )
            report.steps.append(InstallStep.SELECT_ASSET)

            report.download_id = self.host.start_download(
                [asset.download_url], self._download_info()
            )
            report.steps.append(InstallStep.DOWNLOAD)

            report.mod_id = self.host.start_install(
                report.download_id, {"allowAutoEnable": False}
            )
            report.steps.append(InstallStep.INSTALL)

            for key, value in self._mod_attributes(asset, report.version).items():
                self.host.set_mod_attribute(self.game_id, report.mod_id, key, value)
            report.steps.append(InstallStep.STAMP_ATTRIBUTES)

            self.host.set_mods_enabled(
                profile_id,
                [report.mod_id],
                True,
                {"allowAutoDeploy": True, "installed": True},
            )
            report.steps.append(InstallStep.ENABLE)
            logger.info(f"Installed {self.requirement.name} {report.version}")
        except (
            ModkitError,
            requests.RequestException,
            OSError,
            ValueError,
            TypeError,
        ) as exc:
            logger.error(f"Failed to download {self.requirement.name}: {exc}")
            report.error = str(exc)
        finally:
            self.host.dismiss_notification(NOTIFICATION_ID_INSTALLING)
            report.steps.append(InstallStep.DISMISS)
            self._installing = False

        return report
