from pathlib import Path

import platformdirs
import pytest
import requests

from grounded_modkit.download.interfaces import Download, Mod, ModHost

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used across the test suite.

    Parameters:
        config: pytest.Config
            The pytest configuration object used to register markers.
    """
    config.addinivalue_line("markers", "unit: fast isolated unit tests")
    config.addinivalue_line(
        "markers", "installers: archive classification and instruction tests"
    )
    config.addinivalue_line(
        "markers", "core_downloads: release resolution and dependency install tests"
    )


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and the grounded_modkit configuration at a temporary directory.

    Sets XDG_CONFIG_HOME, patches platformdirs.user_config_dir, and updates
    grounded_modkit.setup_config CONFIG_DIR / CONFIG_FILE so no test touches the
    real user configuration.
    """
    base = tmp_path_factory.mktemp("grounded-modkit")
    config_dir = base / "config"
    config_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )

    import grounded_modkit.setup_config as setup_config

    monkeypatch.setattr(setup_config, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(
        setup_config,
        "CONFIG_FILE",
        str(Path(config_dir) / "config.yaml"),
    )


@pytest.fixture(autouse=True)
def _reset_rate_limit_tracking():
    """Clear the rate-limit state tracked by grounded_modkit.utils between tests."""
    from grounded_modkit import utils

    utils.clear_rate_limit_info()
    yield
    utils.clear_rate_limit_info()


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


class FakeHost(ModHost):
    """
    In-memory ModHost used by the mod lookup and orchestrator tests.

    Mods are backed by real folders under `install_path` so file lookups walk
    an actual tree. Every host call is appended to `calls` as (name, args).
    """

    def __init__(self, install_path):
        self.install_path = str(install_path)
        self.profile_id = "profile-1"
        self.mods = {}
        self.downloads = {}
        self.enabled = {}
        self.calls = []
        self.next_download_id = "dl-1"
        self.next_mod_id = "UE4SS v3-new"
        self.download_error = None
        self.install_error = None

    def add_mod(
        self,
        mod_id,
        files=(),
        mod_type="",
        state="installed",
        attributes=None,
        enabled=True,
    ):
        mod_dir = Path(self.install_path) / mod_id
        mod_dir.mkdir(parents=True, exist_ok=True)
        for relative in files:
            target = mod_dir.joinpath(*relative.split("\\"))
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("x", encoding="utf-8")
        mod = Mod(
            id=mod_id,
            state=state,
            type=mod_type,
            installation_path=mod_id,
            attributes=dict(attributes or {}),
        )
        self.mods[mod_id] = mod
        self.enabled[mod_id] = enabled
        return mod

    def add_download(self, download_id, local_path):
        self.downloads[download_id] = Download(id=download_id, local_path=local_path)

    def call_names(self):
        return [name for name, _ in self.calls]

    # ModHost
    def get_mods(self):
        return list(self.mods.values())

    def get_install_path(self):
        return self.install_path

    def get_active_profile_id(self):
        return self.profile_id

    def is_enabled(self, profile_id, mod_id):
        return self.enabled.get(mod_id, False)

    def get_downloads(self):
        return dict(self.downloads)

    def start_download(self, urls, metadata):
        self.calls.append(("start_download", (urls, metadata)))
        if self.download_error is not None:
            raise self.download_error
        return self.next_download_id

    def start_install(self, download_id, options):
        self.calls.append(("start_install", (download_id, options)))
        if self.install_error is not None:
            raise self.install_error
        return self.next_mod_id

    def set_mod_attribute(self, game_id, mod_id, key, value):
        self.calls.append(("set_mod_attribute", (game_id, mod_id, key, value)))
        if mod_id in self.mods:
            self.mods[mod_id].attributes[key] = value

    def set_mod_enabled(self, profile_id, mod_id, enabled):
        self.calls.append(("set_mod_enabled", (profile_id, mod_id, enabled)))
        self.enabled[mod_id] = enabled

    def set_mods_enabled(self, profile_id, mod_ids, enabled, options=None):
        self.calls.append(("set_mods_enabled", (profile_id, mod_ids, enabled, options)))
        for mod_id in mod_ids:
            self.enabled[mod_id] = enabled

    def send_notification(self, notification):
        self.calls.append(("send_notification", (notification,)))

    def dismiss_notification(self, notification_id):
        self.calls.append(("dismiss_notification", (notification_id,)))

    def show_error_notification(self, message, error, options=None):
        self.calls.append(("show_error_notification", (message, error, options)))


@pytest.fixture
def fake_host(tmp_path):
    """Provide a FakeHost whose install path is a fresh temporary directory."""
    install_path = tmp_path / "mods"
    install_path.mkdir()
    return FakeHost(install_path)
