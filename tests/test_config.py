import pytest

from blitgen.compiler.config import (
    BlitgenConfig, ConfigError, get_effective_cwd, load_config, load_config_from_string,
)


def test_defaults():
    config = load_config_from_string("")
    assert config.sources == []
    assert config.output == "generated"
    assert (config.accessors, config.registry, config.llvm, config.manifest) == (True, True, False, False)
    assert config.registry_namespace == "IsBlittableGenerator"
    assert config.registry_class == "BlittableTypes"
    assert config.newline == "lf"


def test_full_config(tmp_path):
    text = """
[project]
sources = ["interop/**/*.cs"]
output = "gen"

[emit]
accessors = false
llvm = true
manifest = true
registry_namespace = "Demo.Generated"
registry_class = "Verdicts"
newline = "crlf"
"""
    config = load_config_from_string(text, base_dir=tmp_path)
    assert config.sources == ["interop/**/*.cs"]
    assert config.output_dir == tmp_path / "gen"
    assert config.accessors is False
    assert config.llvm is True and config.manifest is True
    assert config.registry_namespace == "Demo.Generated"
    assert config.registry_class == "Verdicts"
    assert config.newline == "crlf"


def test_single_source_string_is_accepted():
    assert load_config_from_string('[project]\nsources = "*.cs"\n').sources == ["*.cs"]


@pytest.mark.parametrize("text, message", [
    ('[emit]\nnewline = "cr"\n', "newline"),
    ('[emit]\nregistry_class = "Not Valid"\n', "registry_class"),
    ('[emit]\nregistry_namespace = "1Bad"\n', "registry_namespace"),
    ('[emit]\nllvm = "yes"\n', "llvm"),
    ('[emit]\ncolour = true\n', "colour"),
    ('[project]\nsources = [1, 2]\n', "sources"),
    ('[project]\noutput = ""\n', "output"),
    ("[project\n", "at line 1"),
    ('[project]\nsources = [""]\n', "empty glob pattern"),
    ('[project]\nsources = ["*.cs", "  "]\n', "empty glob pattern"),
])
def test_invalid_config(text, message):
    with pytest.raises(ConfigError, match=message):
        load_config_from_string(text)


def test_empty_registry_namespace_is_allowed():
    assert load_config_from_string('[emit]\nregistry_namespace = ""\n').registry_namespace == ""


def test_source_paths(tmp_path):
    (tmp_path / "interop" / "sub").mkdir(parents=True)
    (tmp_path / "interop" / "b.cs").write_text("")
    (tmp_path / "interop" / "a.cs").write_text("")
    (tmp_path / "interop" / "sub" / "c.cs").write_text("")
    (tmp_path / "interop" / "notes.txt").write_text("")

    config = BlitgenConfig(sources=["interop/*.cs", "interop/**/*.cs"], base_dir=tmp_path)
    names = [p.relative_to(tmp_path).as_posix() for p in config.source_paths()]
    assert names == ["interop/a.cs", "interop/b.cs", "interop/sub/c.cs"]


def test_load_config_from_effective_cwd(tmp_path, monkeypatch):
    (tmp_path / "blitgen.toml").write_text('[project]\noutput = "out"\n')
    monkeypatch.setenv("BLITGEN_CWD", str(tmp_path))
    assert get_effective_cwd() == tmp_path
    config = load_config()
    assert config.output_dir == tmp_path.resolve() / "out"


def test_missing_default_config_is_none(tmp_path, monkeypatch):
    monkeypatch.setenv("BLITGEN_CWD", str(tmp_path))
    assert load_config() is None


def test_missing_explicit_config_is_an_error(tmp_path):
    with pytest.raises(ConfigError, match="No config file"):
        load_config(tmp_path / "missing.toml")


def test_effective_cwd_defaults_to_process_cwd(tmp_path, monkeypatch):
    monkeypatch.delenv("BLITGEN_CWD", raising=False)
    monkeypatch.chdir(tmp_path)
    assert get_effective_cwd() == tmp_path


def test_source_paths_with_absolute_pattern(tmp_path):
    (tmp_path / "interop").mkdir()
    (tmp_path / "interop" / "a.cs").write_text("")
    (tmp_path / "interop" / "notes.txt").write_text("")

    config = BlitgenConfig(sources=[(tmp_path / "interop" / "*.cs").as_posix()], base_dir=tmp_path / "elsewhere")
    config.validate()
    assert config.source_paths() == [tmp_path / "interop" / "a.cs"]


def test_root_only_pattern_is_rejected():
    with pytest.raises(ConfigError, match="empty glob pattern"):
        load_config_from_string('[project]\nsources = ["/"]\n')
