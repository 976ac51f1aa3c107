import os

import pytest

from rinth import clickExt
from rinth.commands import mods


@pytest.fixture
def sodium(registry):
    registry.publish(
        "AANobbMI",
        "Sodium",
        (["1.20", "1.20.1"], "sodium-0.5.jar"),
        (["1.19.4"], "sodium-0.4.jar"),
    )


@pytest.fixture
def tty(monkeypatch):
    monkeypatch.setattr(clickExt, "is_tty", lambda: True)


def test_search(registry, sodium, runner_result):
    registry.publish("gvQqBUqZ", "Lithium", (["1.20.1"], "lithium.jar"))
    with runner_result(["search", "sodium"]) as result:
        assert result.exit_code == 0
        assert "Sodium" in result.output
        assert "AANobbMI" in result.output
        assert "Lithium" not in result.output


def test_search_no_results(registry, runner_result):
    with runner_result(["s", "nothing"]) as result:
        assert result.exit_code == 0
        assert "No mods found." in result.output


def test_install(registry, sodium, manifest_file, read_manifest, runner_result, mods_dir):
    manifest_file()
    with runner_result(["install", "sodium"]) as result:
        assert result.exit_code == 0
        assert "downloaded sodium-0.5.jar" in result.output

    assert read_manifest() == {
        "version": "1.20.1",
        "mods": [
            {
                "id": "AANobbMI",
                "url": "https://cdn.test/sodium-0.5.jar",
                "filename": "sodium-0.5.jar",
            }
        ],
    }
    assert os.path.isfile(os.path.join(mods_dir, "sodium-0.5.jar"))


def test_install_alias(registry, sodium, manifest_file, runner_result):
    manifest_file()
    with runner_result(["i", "sodium"]) as result:
        assert result.exit_code == 0
        assert registry.downloaded == ["sodium-0.5.jar"]


def test_install_prompts_query(registry, sodium, manifest_file, runner_result):
    manifest_file()
    with runner_result(["install"], input="sodium\n") as result:
        assert result.exit_code == 0
        assert registry.downloaded == ["sodium-0.5.jar"]


def test_install_first_run(registry, sodium, read_manifest, runner_result, mods_dir):
    with runner_result(["install", "sodium"], input="1.20\n1.20.1\n") as result:
        assert result.exit_code == 0
        assert "minecraft version" in result.output
        assert "i said *exact* version" in result.output

    manifest = read_manifest()
    assert manifest["version"] == "1.20.1"
    assert [mod["id"] for mod in manifest["mods"]] == ["AANobbMI"]


def test_install_already_installed(registry, sodium, manifest_file, runner_result):
    manifest_file(mods=[("AANobbMI", "sodium-0.5.jar")], installed=["sodium-0.5.jar"])
    with runner_result(["install", "sodium"]) as result:
        assert result.exit_code == 0
        assert "already installed!" in result.output
        assert registry.downloaded == []


def test_install_missing_file(registry, sodium, manifest_file, read_manifest, runner_result):
    manifest_file(mods=[("AANobbMI", "sodium-0.5.jar")])
    with runner_result(["install", "sodium"]) as result:
        assert result.exit_code == 0
        assert registry.downloaded == ["sodium-0.5.jar"]
    assert len(read_manifest()["mods"]) == 1


def test_install_no_hits(registry, manifest_file, runner_result):
    manifest_file()
    with runner_result(["install", "nothing"]) as result:
        assert result.exit_code == 1
        assert "no mods found" in result.output


def test_install_not_found(registry, manifest_file, read_manifest, runner_result):
    registry.publish("AANobbMI", "Sodium", (["1.19.4"], "sodium-0.4.jar"))
    manifest_file()
    with runner_result(["install", "sodium"]) as result:
        assert result.exit_code == 1
        assert (
            "could not find version of AANobbMI that satisfies target 1.20.1 and fabric loader"
            in result.output
        )
    assert read_manifest()["mods"] == []


def test_install_download_failure(registry, sodium, manifest_file, read_manifest, runner_result):
    registry.broken.add("https://cdn.test/sodium-0.5.jar")
    manifest_file()
    with runner_result(["install", "sodium"]) as result:
        assert result.exit_code == 1
        assert "could not download sodium-0.5.jar" in result.output
    assert read_manifest()["mods"] == []


@pytest.fixture
def ambiguous(registry):
    registry.publish("PtjYWJkn", "Sodium Extra", (["1.20.1"], "sodium-extra.jar"))
    registry.publish("Bh37bMuy", "Reese's Sodium Options", (["1.20.1"], "reeses.jar"))


def test_install_ambiguous(registry, ambiguous, tty, manifest_file, runner_result):
    manifest_file()
    with runner_result(["install", "sodium"], input="n\ny\n") as result:
        assert result.exit_code == 0
        assert "install Sodium Extra?" in result.output
        assert "what about Reese's Sodium Options?" in result.output
        assert registry.downloaded == ["reeses.jar"]


def test_install_ambiguous_declined(registry, ambiguous, tty, manifest_file, runner_result):
    manifest_file()
    with runner_result(["install", "sodium"], input="n\nn\n") as result:
        assert result.exit_code == 1
        assert "no mods found" in result.output
        assert registry.downloaded == []


def test_install_ambiguous_no_tty(registry, ambiguous, manifest_file, runner_result):
    manifest_file()
    with runner_result(["install", "sodium"]) as result:
        assert result.exit_code == 1
        assert "not a tty" in result.output


def test_install_ambiguous_exact_title(registry, ambiguous, sodium, manifest_file, runner_result):
    manifest_file()
    with runner_result(["install", "SODIUM"]) as result:
        assert result.exit_code == 0
        assert registry.downloaded == ["sodium-0.5.jar"]


def test_remove(manifest_file, read_manifest, runner_result, mods_dir):
    manifest_file(
        mods=[("AANobbMI", "sodium-0.5.jar"), ("gvQqBUqZ", "lithium-0.11.jar")],
        installed=["sodium-0.5.jar", "lithium-0.11.jar"],
    )
    with runner_result(["rm", "SODIUM"]) as result:
        assert result.exit_code == 0
        assert "removed sodium-0.5.jar" in result.output

    assert [mod["id"] for mod in read_manifest()["mods"]] == ["gvQqBUqZ"]
    assert not os.path.exists(os.path.join(mods_dir, "sodium-0.5.jar"))
    assert os.path.exists(os.path.join(mods_dir, "lithium-0.11.jar"))


def test_remove_missing_file(manifest_file, read_manifest, runner_result):
    manifest_file(mods=[("AANobbMI", "sodium-0.5.jar")])
    with runner_result(["remove", "sodium"]) as result:
        assert result.exit_code == 0
        assert "can't find the file sodium-0.5.jar" in result.output
    assert read_manifest()["mods"] == []


def test_remove_no_match(manifest_file, read_manifest, runner_result):
    manifest_file(mods=[("AANobbMI", "sodium-0.5.jar")], installed=["sodium-0.5.jar"])
    with runner_result(["remove", "iris"]) as result:
        assert result.exit_code == 1
        assert "can't find a mod matching 'iris'" in result.output
    assert len(read_manifest()["mods"]) == 1


def test_update(registry, sodium, manifest_file, read_manifest, runner_result, mods_dir):
    registry.publish("gvQqBUqZ", "Lithium", (["1.20.1"], "lithium-0.11.jar"))
    registry.unreachable.add("YL57xq9U")
    manifest_file(
        mods=[
            ("AANobbMI", "sodium-0.4.jar"),
            ("gvQqBUqZ", "lithium-0.11.jar"),
            ("YL57xq9U", "iris-1.6.jar"),
        ],
        installed=["sodium-0.4.jar", "lithium-0.11.jar", "iris-1.6.jar"],
    )
    with runner_result(["update"]) as result:
        assert result.exit_code == 0
        assert "1 mod will be updated:" in result.output
        assert "AANobbMI: sodium-0.4.jar -> sodium-0.5.jar" in result.output
        assert "Could not check YL57xq9U" in result.output
        assert registry.downloaded == ["sodium-0.5.jar"]

    assert [mod["filename"] for mod in read_manifest()["mods"]] == [
        "sodium-0.5.jar",
        "lithium-0.11.jar",
        "iris-1.6.jar",
    ]
    assert sorted(os.listdir(mods_dir)) == [
        "iris-1.6.jar",
        "lithium-0.11.jar",
        "mods.json",
        "sodium-0.5.jar",
    ]


def test_update_download_failure(registry, sodium, manifest_file, read_manifest, runner_result):
    registry.broken.add("https://cdn.test/sodium-0.5.jar")
    manifest_file(mods=[("AANobbMI", "sodium-0.4.jar")], installed=["sodium-0.4.jar"])
    with runner_result(["u"]) as result:
        assert result.exit_code == 0
        assert "Could not update AANobbMI" in result.output
        assert "1 mod failed, 0 updated." in result.output
    assert read_manifest()["mods"][0]["filename"] == "sodium-0.4.jar"


def test_update_up_to_date(registry, sodium, manifest_file, runner_result):
    manifest_file(mods=[("AANobbMI", "sodium-0.5.jar")], installed=["sodium-0.5.jar"])
    with runner_result(["update"]) as result:
        assert result.exit_code == 0
        assert "All mods up to date." in result.output
        assert registry.downloaded == []


def test_update_empty(registry, manifest_file, runner_result):
    manifest_file()
    with runner_result(["update"]) as result:
        assert result.exit_code == 0
        assert "No mods to update." in result.output


def test_pack(registry, manifest_file, read_manifest, runner_result):
    registry.broken.add("https://cdn.test/iris-1.6.jar")
    manifest_file(
        mods=[
            ("AANobbMI", "sodium-0.5.jar"),
            ("gvQqBUqZ", "lithium-0.11.jar"),
            ("YL57xq9U", "iris-1.6.jar"),
        ],
        installed=["lithium-0.11.jar"],
    )
    before = read_manifest()
    with runner_result(["pack"]) as result:
        assert result.exit_code == 0
        assert "downloaded sodium-0.5.jar" in result.output
        assert "Could not download YL57xq9U" in result.output
        assert "1 mod failed, 1 installed." in result.output
        assert registry.downloaded == ["sodium-0.5.jar"]
    assert read_manifest() == before


def test_pack_empty(registry, manifest_file, runner_result):
    manifest_file()
    with runner_result(["p"]) as result:
        assert result.exit_code == 0
        assert "No mods in pack!" in result.output


def test_list(manifest_file, runner_result):
    manifest_file(
        mods=[("AANobbMI", "sodium-0.5.jar"), ("gvQqBUqZ", "lithium-0.11.jar")],
        installed=["sodium-0.5.jar"],
    )
    with runner_result(["ls"]) as result:
        assert result.exit_code == 0
        assert "Target version: 1.20.1" in result.output
        lines = result.output.splitlines()
        assert any("AANobbMI" in line and "sodium-0.5.jar" in line for line in lines)
        assert any("gvQqBUqZ" in line and "missing" in line for line in lines)


def test_corrupt_manifest(mods_dir, runner_result):
    path = os.path.join(mods_dir, "mods.json")
    with open(path, "w") as file:
        file.write("{not json")
    with runner_result(["list"]) as result:
        assert result.exit_code == 1
        assert "could not decode" in result.output
    with open(path) as file:
        assert file.read() == "{not json"


def test_unknown_command(runner_result):
    with runner_result(["frobnicate"]) as result:
        assert result.exit_code == 2


def test_unhandled_exception(monkeypatch, manifest_file, runner_result):
    def broken_search(*args, **kwargs):
        raise RuntimeError("registry on fire")

    monkeypatch.setattr(mods, "fetch_mod_search", broken_search)
    manifest_file()
    with runner_result(["search", "sodium"]) as result:
        assert result.exit_code == 1
        assert "An unhandled exception has occurred" in result.output
        assert "registry on fire" in result.output


def test_quiet(manifest_file, runner_result):
    manifest_file(mods=[("AANobbMI", "sodium-0.5.jar")])
    with runner_result(["--quiet", "remove", "sodium"]) as result:
        assert result.exit_code == 0
        assert "can't find the file" not in result.output


def test_debug(manifest_file, runner_result):
    manifest_file()
    with runner_result(["list", "--debug"]) as result:
        assert result.exit_code == 0
        assert "debug: Manifest loaded from" in result.output
