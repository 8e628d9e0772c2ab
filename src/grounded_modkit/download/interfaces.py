"""
Core Interfaces for the grounded-modkit Dependency Subsystem

This module defines the release-feed records, the host's mod and download
records, and the ModHost contract through which the orchestrator talks to the
mod manager that owns installed mods, profiles, and downloads.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Release:
    """Represents a release from the companion tool's GitHub repository."""

    tag_name: str
    """The release tag (e.g., 'experimental' or 'v3.0.1')"""

    prerelease: bool = False
    """Whether this is a prerelease version"""

    published_at: Optional[str] = None
    """ISO 8601 timestamp when the release was published"""

    name: Optional[str] = None
    """Human readable release title"""

    body: Optional[str] = None
    """Release notes/markdown content"""

    assets: List["Asset"] = field(default_factory=list)
    """List of downloadable assets for this release"""


@dataclass
class Asset:
    """Represents a downloadable asset from a release."""

    name: str
    """The filename of the asset"""

    download_url: str
    """Direct URL to download the asset"""

    size: int
    """File size in bytes"""

    created_at: Optional[str] = None
    """ISO 8601 timestamp when the asset was uploaded"""

    updated_at: Optional[str] = None
    """ISO 8601 timestamp when the asset was last updated"""

    content_type: Optional[str] = None
    """MIME type of the asset"""

    release: Optional[Release] = field(default=None, repr=False, compare=False)
    """Owning release, attached once the asset has been selected"""


@dataclass
class Mod:
    """A mod as recorded by the host mod manager."""

    id: str
    state: str = "installed"
    type: str = ""
    installation_path: str = ""
    """Folder name of the mod inside the host's install path"""

    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Download:
    """A finished or pending download known to the host."""

    id: str
    local_path: str
    state: str = "finished"


class ModHost(ABC):
    """
    Abstract boundary to the mod manager hosting this extension.

    The host owns the mod store, profiles, downloads and notifications. Every
    method is a request to the host; nothing is cached on this side between
    calls.
    """

    @abstractmethod
    def get_mods(self) -> List[Mod]:
        """Return every mod installed for the game."""

    @abstractmethod
    def get_install_path(self) -> str:
        """Return the directory that holds installed mod folders."""

    @abstractmethod
    def get_active_profile_id(self) -> Optional[str]:
        """Return the last active profile for the game, or None if there is none."""

    @abstractmethod
    def is_enabled(self, profile_id: Optional[str], mod_id: str) -> bool:
        """Return whether the mod is enabled in the given profile."""

    @abstractmethod
    def get_downloads(self) -> Dict[str, Download]:
        """Return known downloads keyed by download id."""

    @abstractmethod
    def start_download(self, urls: List[str], metadata: Dict[str, Any]) -> str:
        """
        Start downloading the given URLs and wait for completion.

        Returns:
            str: The download id.

        Raises:
            DownloadError: If the transport fails.
        """

    @abstractmethod
    def start_install(self, download_id: str, options: Dict[str, Any]) -> str:
        """
        Install a finished download.

        Returns:
            str: The id of the newly installed mod.

        Raises:
            InstallError: If the installation fails.
        """

    @abstractmethod
    def set_mod_attribute(self, game_id: str, mod_id: str, key: str, value: Any) -> None:
        """Set one attribute on an installed mod."""

    @abstractmethod
    def set_mod_enabled(self, profile_id: Optional[str], mod_id: str, enabled: bool) -> None:
        """Enable or disable one mod in a profile."""

    @abstractmethod
    def set_mods_enabled(
        self,
        profile_id: Optional[str],
        mod_ids: List[str],
        enabled: bool,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Enable or disable several mods in a profile at once."""

    @abstractmethod
    def send_notification(self, notification: Dict[str, Any]) -> None:
        """Show a notification; `notification["id"]` identifies it."""

    @abstractmethod
    def dismiss_notification(self, notification_id: str) -> None:
        """Remove a notification previously sent."""

    @abstractmethod
    def show_error_notification(
        self, message: str, error: Any, options: Optional[Dict[str, Any]] = None
    ) -> None:
        """Report a non-fatal error to the user."""
