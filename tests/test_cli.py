import json
import zipfile

import pytest

from grounded_modkit import cli, log_utils, setup_config
from grounded_modkit.download.interfaces import Asset, Release
from grounded_modkit.exceptions import RateLimitError

pytestmark = [pytest.mark.unit]


@pytest.fixture
def quiet_logger(mocker):
    """Detach console handlers so stdout only carries command output."""
    mocker.patch.object(log_utils.logger, "handlers", [])


@pytest.fixture
def mock_logger(mocker):
    return mocker.patch("grounded_modkit.log_utils.logger")


def _make_zip(path, entries):
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return str(path)


def test_read_archive_listing_zip(tmp_path):
    archive = _make_zip(
        tmp_path / "mod.zip", {"ModA/Scripts/main.lua": "", "ModA/readme.txt": ""}
    )
    assert cli.read_archive_listing(archive) == [
        "ModA\\Scripts\\main.lua",
        "ModA\\readme.txt",
    ]


def test_read_archive_listing_text(tmp_path):
    listing = tmp_path / "files.txt"
    listing.write_text("LogicMods/Cool/Cool.pak\n\nreadme.txt\n", encoding="utf-8")
    assert cli.read_archive_listing(str(listing)) == [
        "LogicMods\\Cool\\Cool.pak",
        "readme.txt",
    ]


class TestClassifyCommand:
    def test_json_output(self, tmp_path, mocker, capsys, quiet_logger):
        archive = _make_zip(
            tmp_path / "mod.zip", {"ModA/Scripts/main.lua": "", "ModA/readme.txt": ""}
        )
        mocker.patch("sys.argv", ["grounded-modkit", "classify", archive, "--json"])

        cli.main()

        result = json.loads(capsys.readouterr().out)
        assert result["archetype"] == "grounded-ue4ss_lua"
        assert result["requiresUE4SS"] is True
        assert result["instructions"][0] == {
            "type": "copy",
            "source": "ModA\\Scripts\\main.lua",
            "destination": "Maine\\Binaries\\Win64\\ue4ss\\Mods\\ModA\\Scripts\\main.lua",
        }

    def test_ue4ss_archive_reads_settings_from_zip(
        self, tmp_path, mocker, capsys, quiet_logger
    ):
        archive = _make_zip(
            tmp_path / "UE4SS_v3.0.1.zip",
            {
                "ue4ss/UE4SS.dll": "bin",
                "ue4ss/UE4SS-settings.ini": "GraphicsAPI = opengl\n",
                "ue4ss/Mods/mods.txt": "Keybinds : 1\n",
            },
        )
        mocker.patch("sys.argv", ["grounded-modkit", "classify", archive, "--json"])

        cli.main()

        instructions = json.loads(capsys.readouterr().out)["instructions"]
        assert {"type": "generatefile", "data": "GraphicsAPI = dx11\n",
                "destination": "Maine\\Binaries\\Win64\\ue4ss\\UE4SS-settings.ini"} in instructions
        assert {"type": "generatefile", "data": "Keybinds : 1\n",
                "destination": "Maine\\Binaries\\Win64\\ue4ss\\Mods\\mods.txt.original"} in instructions
        assert instructions[-1] == {"type": "setmodtype", "value": ""}

    def test_text_listing_with_store(self, tmp_path, mocker, mock_logger):
        listing = tmp_path / "files.txt"
        listing.write_text("ModA\\Scripts\\main.lua\n", encoding="utf-8")
        mocker.patch(
            "sys.argv",
            ["grounded-modkit", "classify", str(listing), "--store", "xbox"],
        )

        cli.main()

        mock_logger.info.assert_any_call("Archetype: grounded-ue4ss_lua")
        mock_logger.info.assert_any_call(
            "copy ModA\\Scripts\\main.lua -> "
            "Maine\\Binaries\\WinGDK\\ue4ss\\Mods\\ModA\\Scripts\\main.lua"
        )

    def test_store_from_config(self, tmp_path, mocker, mock_logger):
        setup_config.save_config({"GAME_STORE": "xbox"})
        listing = tmp_path / "files.txt"
        listing.write_text("ModA\\Scripts\\main.lua\n", encoding="utf-8")
        mocker.patch("sys.argv", ["grounded-modkit", "classify", str(listing)])

        cli.main()

        mock_logger.info.assert_any_call(
            "copy ModA\\Scripts\\main.lua -> "
            "Maine\\Binaries\\WinGDK\\ue4ss\\Mods\\ModA\\Scripts\\main.lua"
        )

    def test_missing_archive(self, tmp_path, mocker, mock_logger):
        mocker.patch(
            "sys.argv", ["grounded-modkit", "classify", str(tmp_path / "nope.zip")]
        )
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1
        mock_logger.error.assert_called_once()


class TestLatestCommand:
    @pytest.fixture
    def mock_source(self, mocker):
        return mocker.patch("grounded_modkit.cli.GithubReleaseSource").return_value

    def test_reports_update(self, mocker, mock_source, mock_logger):
        mock_source.get_latest_asset.return_value = Asset(
            name="UE4SS_v3.0.1-400-gabcdef0.zip",
            download_url="https://example.invalid/a.zip",
            size=2048,
            release=Release(tag_name="experimental"),
        )
        mocker.patch("sys.argv", ["grounded-modkit", "latest", "--installed", "3.0.0"])

        cli.main()

        mock_logger.info.assert_any_call(
            "Latest asset: UE4SS_v3.0.1-400-gabcdef0.zip (2 KB)"
        )
        mock_logger.info.assert_any_call("Update available: 3.0.0 -> 3.0.1-400-gabcdef0")

    def test_current_version(self, mocker, mock_source, mock_logger):
        mock_source.get_latest_asset.return_value = Asset(
            name="UE4SS_v3.0.0.zip", download_url="", size=1
        )
        mocker.patch("sys.argv", ["grounded-modkit", "latest", "--installed", "v3.0.0"])

        cli.main()

        mock_logger.info.assert_any_call("Installed version v3.0.0 is current.")

    def test_rate_limit_exits_2(self, mocker, mock_source, mock_logger):
        mock_source.get_latest_asset.side_effect = RateLimitError()
        mocker.patch("sys.argv", ["grounded-modkit", "latest"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 2
        mock_logger.error.assert_called_once_with(
            "GitHub API rate limit exceeded. Resets at unknown."
        )

    def test_no_asset_exits_1(self, mocker, mock_source, mock_logger):
        mock_source.get_latest_asset.return_value = None
        mock_source.release_tag = "experimental"
        mocker.patch("sys.argv", ["grounded-modkit", "latest"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1


def test_setup_command_writes_config(mocker, mock_logger):
    mocker.patch(
        "sys.argv",
        [
            "grounded-modkit",
            "setup",
            "--token",
            "abc",
            "--store",
            "steam",
            "--game-path",
            "D:\\Games\\Grounded",
            "--log-level",
            "debug",
        ],
    )

    cli.main()

    config = setup_config.load_config()
    assert config["GITHUB_TOKEN"] == "abc"
    assert config["GAME_STORE"] == "steam"
    assert config["GAME_PATH"] == "D:\\Games\\Grounded"
    assert config["LOG_LEVEL"] == "DEBUG"


def test_invalid_config_exits(mocker, mock_logger):
    with open(setup_config.CONFIG_FILE, "w", encoding="utf-8") as f:
        f.write("LOG_LEVEL: [broken")
    mocker.patch("sys.argv", ["grounded-modkit", "latest"])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()
    assert exc_info.value.code == 1


def test_version_command(mocker, mock_logger):
    mocker.patch("grounded_modkit.cli.get_package_version", return_value="1.2.3")
    mocker.patch("sys.argv", ["grounded-modkit", "version"])

    cli.main()

    mock_logger.info.assert_called_once_with("grounded-modkit 1.2.3")


def test_no_command_prints_help(mocker, capsys):
    mocker.patch("sys.argv", ["grounded-modkit"])
    cli.main()
    assert "classify" in capsys.readouterr().out
