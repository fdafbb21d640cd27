import pytest
from pydantic import ValidationError

from coreason_runner.config import RunnerConfig
from coreason_runner.exceptions import UnknownLanguageError
from coreason_runner.languages import Language, LanguageRegistry


@pytest.fixture
def registry() -> LanguageRegistry:
    return LanguageRegistry.default()


def test_nine_languages(registry: LanguageRegistry) -> None:
    assert sorted(registry.languages()) == sorted(lang.value for lang in Language)
    assert len(registry.languages()) == 9


def test_compiled_and_interpreted(registry: LanguageRegistry) -> None:
    compiled = {lang for lang in registry.languages() if registry.profile_for(lang).is_compiled}
    assert compiled == {"typescript", "java", "cpp", "c", "go"}


def test_markup_languages_echo_source(registry: LanguageRegistry) -> None:
    assert registry.profile_for("html").run_command == ("cat", "/workspace/code.html")
    assert registry.profile_for("css").run_command == ("cat", "/workspace/code.css")


def test_java_source_name_matches_class(registry: LanguageRegistry) -> None:
    profile = registry.profile_for(Language.JAVA)
    assert profile.source_file_name == "Main.java"
    assert profile.run_command == ("java", "-cp", "/workspace", "Main")


def test_typescript_runs_compiled_output(registry: LanguageRegistry) -> None:
    profile = registry.profile_for("typescript")
    assert profile.image == "code-executor-node"
    assert profile.compile_command == ("tsc", "--outDir", "/workspace", "/workspace/code.ts")
    assert profile.run_command == ("node", "/workspace/code.js")


def test_profiles_take_config_defaults() -> None:
    config = RunnerConfig(execution_timeout_ms=8000, memory_limit="512m", image_prefix="registry.local/exec")
    profile = LanguageRegistry.default(config).profile_for("cpp")

    assert profile.timeout_ms == 8000
    assert profile.memory_limit == "512m"
    assert profile.image == "registry.local/exec-cpp"


def test_unknown_language(registry: LanguageRegistry) -> None:
    assert "rust" not in registry
    with pytest.raises(UnknownLanguageError, match="Invalid language: rust"):
        registry.profile_for("rust")


def test_enum_and_string_lookups_agree(registry: LanguageRegistry) -> None:
    assert Language.GO in registry
    assert registry.profile_for(Language.GO) is registry.profile_for("go")


def test_registry_is_read_only(registry: LanguageRegistry) -> None:
    with pytest.raises(TypeError):
        registry._profiles["rust"] = registry.profile_for("c")  # type: ignore[index]

    profile = registry.profile_for("python")
    with pytest.raises(ValidationError):
        profile.timeout_ms = 1  # type: ignore[misc]
