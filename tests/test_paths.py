import pytest

from grounded_modkit.installers.paths import (
    BP_LOGIC_MODS,
    PAK_FILE,
    UE4SS_CPP,
    UE4SS_INJECTOR,
    UE4SS_LUA,
    UE4SS_SHARED,
    filter_under_root,
    find_first_match,
    generic_root,
    has_match,
    is_directory_entry,
    root_prefix,
)

pytestmark = [pytest.mark.unit, pytest.mark.installers]


@pytest.mark.parametrize(
    "path,expected",
    [
        ("ModA\\", True),
        ("ModA/", True),
        ("ModA\\main.lua", False),
        ("", False),
    ],
)
def test_is_directory_entry(path, expected):
    assert is_directory_entry(path) is expected


class TestStructuralPatterns:
    def test_injector_matches_at_root_and_below_a_folder(self):
        assert UE4SS_INJECTOR.anchor("ue4ss\\UE4SS.dll") == 0
        assert UE4SS_INJECTOR.anchor("Release\\ue4ss\\UE4SS.dll") == len("Release\\")

    def test_injector_requires_folder_boundary(self):
        assert UE4SS_INJECTOR.anchor("myue4ss\\UE4SS.dll") is None
        assert UE4SS_INJECTOR.anchor("ue4ss\\UE4SS.dll.bak") is None

    def test_lua_anchor_is_start_of_mod_folder(self):
        path = "Archive\\ModA\\Scripts\\main.lua"
        assert UE4SS_LUA.anchor(path) == len("Archive\\")

    def test_cpp_shape(self):
        assert UE4SS_CPP.matches("ModB\\dlls\\main.dll")
        assert not UE4SS_CPP.matches("ModB\\main.dll")

    def test_shared_shape(self):
        assert UE4SS_SHARED.anchor("shared\\Types.lua") == 0
        assert UE4SS_SHARED.anchor("Mods\\shared\\Types.lua") == len("Mods\\")
        assert not UE4SS_SHARED.matches("notshared\\Types.lua")

    def test_logicmods_shape(self):
        assert BP_LOGIC_MODS.anchor("Foo\\LogicMods\\Cool\\Cool.pak") == len("Foo\\")
        assert not BP_LOGIC_MODS.matches("LogicMods\\Cool\\readme.txt")

    def test_pak_anchor_is_basename_and_case_insensitive(self):
        assert PAK_FILE.anchor("MyMod\\Paks\\MyMod_P.PAK") == len("MyMod\\Paks\\")
        assert PAK_FILE.anchor("MyMod_P.pak") == 0

    def test_pak_ignores_directories_and_other_extensions(self):
        assert PAK_FILE.anchor("odd.pak\\") is None
        assert PAK_FILE.anchor("MyMod_P.utoc") is None


class TestFindFirstMatch:
    def test_returns_first_in_listing_order(self):
        files = ["b\\Scripts\\main.lua", "a\\Scripts\\main.lua"]
        match = find_first_match(files, UE4SS_LUA)
        assert match is not None
        assert match.path == "b\\Scripts\\main.lua"
        assert match.anchor == 0

    def test_no_match(self):
        assert find_first_match(["readme.txt"], UE4SS_LUA) is None
        assert not has_match([], PAK_FILE)

    def test_parent_is_text_before_anchor(self):
        match = find_first_match(["Top\\LogicMods\\X\\X.pak"], BP_LOGIC_MODS)
        assert match.parent == "Top\\"


def test_root_prefix_strips_known_suffix():
    assert root_prefix("Foo\\ModA\\Scripts\\main.lua", "\\Scripts\\main.lua") == "Foo\\ModA"
    assert root_prefix("ue4ss\\UE4SS.dll", "ue4ss\\UE4SS.dll") == ""


def test_root_prefix_without_suffix_returns_path():
    assert root_prefix("ModA\\init.lua", "\\Scripts\\main.lua") == "ModA\\init.lua"


class TestFilterUnderRoot:
    def test_keeps_substring_matches_and_drops_directories(self):
        files = [
            "ModA\\",
            "ModA\\Scripts\\main.lua",
            "ModAB\\notes.txt",
            "Other\\file.txt",
        ]
        assert filter_under_root(files, "ModA") == [
            "ModA\\Scripts\\main.lua",
            "ModAB\\notes.txt",
        ]

    def test_empty_root_keeps_every_file(self):
        files = ["a.txt", "dir\\", "dir\\b.txt"]
        assert filter_under_root(files, "") == ["a.txt", "dir\\b.txt"]

    def test_is_idempotent(self):
        files = ["ModA\\", "ModA\\x.lua", "y.txt"]
        once = filter_under_root(files, "ModA")
        assert filter_under_root(once, "ModA") == once


class TestGenericRoot:
    def test_grounded_folder_is_stripped(self):
        assert generic_root(["Grounded\\Maine\\Content\\x.txt"]) == "Grounded\\"

    def test_nested_grounded_folder(self):
        assert generic_root(["Pack\\Grounded\\Maine\\x.txt"]) == "Pack\\Grounded\\"

    def test_no_grounded_folder_gives_empty_root(self):
        assert generic_root(["Maine\\Content\\x.txt"]) == ""

    def test_uses_first_file_entry(self):
        assert generic_root(["Grounded\\", "Grounded\\a.txt"]) == "Grounded\\"

    def test_directories_only(self):
        assert generic_root(["a\\", "b\\"]) == ""
