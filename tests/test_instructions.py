import os

import pytest

from grounded_modkit.installers.instructions import (
    CopyInstruction,
    GenerateFileInstruction,
    SetModTypeInstruction,
    build_copy_instructions,
    instructions_to_dicts,
    rebase_destination,
)
from grounded_modkit.installers.ue4ss_files import (
    make_ue4ss_rewriter,
    patch_settings,
    read_staged_file_content,
    staged_path,
)

pytestmark = [pytest.mark.unit, pytest.mark.installers]


class TestRebaseDestination:
    def test_strips_prefix_and_joins_under_target(self):
        assert (
            rebase_destination("Maine\\Content\\Paks", "Mods\\Cool\\Cool.pak", 5)
            == "Maine\\Content\\Paks\\Cool\\Cool.pak"
        )

    def test_empty_target_keeps_relative_path(self):
        assert (
            rebase_destination("", "Grounded\\Maine\\x.txt", len("Grounded\\"))
            == "Maine\\x.txt"
        )

    def test_zero_strip_keeps_whole_path(self):
        assert rebase_destination("Root", "a\\b.txt", 0) == "Root\\a\\b.txt"


class TestBuildCopyInstructions:
    def test_preserves_listing_order(self):
        files = ["b.txt", "a.txt"]
        result = build_copy_instructions(files, "Root", 0)
        assert result == [
            CopyInstruction(source="b.txt", destination="Root\\b.txt"),
            CopyInstruction(source="a.txt", destination="Root\\a.txt"),
        ]

    def test_rewriter_can_replace_or_skip(self):
        def rewriter(source, destination):
            if source == "skip.txt":
                return []
            if source == "gen.txt":
                return [GenerateFileInstruction(content="hi", destination=destination)]
            return None

        result = build_copy_instructions(["skip.txt", "gen.txt", "copy.txt"], "R", 0, rewriter)
        assert result == [
            GenerateFileInstruction(content="hi", destination="R\\gen.txt"),
            CopyInstruction(source="copy.txt", destination="R\\copy.txt"),
        ]


def test_instruction_wire_shapes():
    instructions = [
        CopyInstruction(source="a", destination="b"),
        GenerateFileInstruction(content="data", destination="c"),
        SetModTypeInstruction(),
    ]
    assert instructions_to_dicts(instructions) == [
        {"type": "copy", "source": "a", "destination": "b"},
        {"type": "generatefile", "data": "data", "destination": "c"},
        {"type": "setmodtype", "value": ""},
    ]


class TestUE4SSFiles:
    def test_patch_settings_replaces_every_known_setting(self):
        content = (
            "bUseUObjectArrayCache = true\n"
            "GraphicsAPI = opengl\n"
            "DumpOffsetsAndSizes = 1\n"
            "ConsoleEnabled = 1\n"
            "GuiConsoleEnabled = 1\n"
        )
        patched = patch_settings(content)
        assert "bUseUObjectArrayCache = false" in patched
        assert "GraphicsAPI = dx11" in patched
        assert "DumpOffsetsAndSizes = 0" in patched
        assert "ConsoleEnabled = 0" in patched
        # literal substitution also hits longer keys ending in the same text
        assert "GuiConsoleEnabled = 0" in patched

    def test_patch_settings_replaces_all_occurrences(self):
        content = "GraphicsAPI = opengl\n; GraphicsAPI = opengl\n"
        assert patch_settings(content).count("GraphicsAPI = dx11") == 2

    def test_patch_settings_leaves_other_content(self):
        assert patch_settings("[Overrides]\nModsFolderPath =\n") == "[Overrides]\nModsFolderPath =\n"

    def test_staged_path_uses_platform_separator(self):
        assert staged_path("/stage", "ue4ss\\Mods\\mods.txt") == os.path.join(
            "/stage", "ue4ss", "Mods", "mods.txt"
        )

    def test_read_staged_file_content(self, tmp_path):
        target = tmp_path / "UE4SS-settings.ini"
        target.write_text("GraphicsAPI = opengl", encoding="utf-8")
        assert read_staged_file_content(str(target)) == "GraphicsAPI = opengl"

    def test_mods_list_becomes_backup(self):
        reads = []

        def reader(path):
            reads.append(path)
            return "Keybinds : 1\n"

        rewrite = make_ue4ss_rewriter("/stage", reader)
        result = rewrite(
            "ue4ss\\Mods\\mods.txt", "Maine\\Binaries\\Win64\\ue4ss\\Mods\\mods.txt"
        )
        assert result == [
            GenerateFileInstruction(
                content="Keybinds : 1\n",
                destination="Maine\\Binaries\\Win64\\ue4ss\\Mods\\mods.txt.original",
            )
        ]
        assert reads == [os.path.join("/stage", "ue4ss", "Mods", "mods.txt")]

    def test_settings_file_is_patched(self):
        rewrite = make_ue4ss_rewriter("/stage", lambda _path: "GraphicsAPI = opengl")
        result = rewrite("ue4ss\\UE4SS-settings.ini", "Dest\\ue4ss\\UE4SS-settings.ini")
        assert result == [
            GenerateFileInstruction(
                content="GraphicsAPI = dx11",
                destination="Dest\\ue4ss\\UE4SS-settings.ini",
            )
        ]

    def test_other_files_fall_back_to_copy(self, mocker):
        reader = mocker.Mock()
        rewrite = make_ue4ss_rewriter("/stage", reader)
        assert rewrite("ue4ss\\UE4SS.dll", "Dest\\ue4ss\\UE4SS.dll") is None
        reader.assert_not_called()
