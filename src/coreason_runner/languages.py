# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

from enum import Enum
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from coreason_runner.config import RunnerConfig
from coreason_runner.exceptions import UnknownLanguageError

WORKSPACE = "/workspace"


class Language(str, Enum):
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    JAVA = "java"
    CPP = "cpp"
    C = "c"
    GO = "go"
    HTML = "html"
    CSS = "css"


class LanguageProfile(BaseModel):
    """Toolchain profile for one language.

    Commands are argument vectors executed inside the sandbox; they reference
    the source through the workspace mount, never through a shell.
    """

    model_config = ConfigDict(frozen=True)

    image: str
    source_file_name: str
    compile_command: tuple[str, ...] | None = None
    run_command: tuple[str, ...]
    timeout_ms: int = Field(gt=0)
    memory_limit: str
    environment: dict[str, str] = Field(default_factory=dict)

    @property
    def is_compiled(self) -> bool:
        return self.compile_command is not None


def _ws(name: str) -> str:
    return f"{WORKSPACE}/{name}"


class LanguageRegistry:
    """
    Read-only lookup from a language identifier to its LanguageProfile.
    """

    def __init__(self, profiles: Mapping[str, LanguageProfile]):
        self._profiles: Mapping[str, LanguageProfile] = MappingProxyType(dict(profiles))

    @classmethod
    def default(cls, config: RunnerConfig | None = None) -> "LanguageRegistry":
        """Build the registry of the nine supported languages."""
        config = config or RunnerConfig()
        prefix = config.image_prefix

        def profile(
            image: str,
            source: str,
            run: tuple[str, ...],
            compile_: tuple[str, ...] | None = None,
            environment: dict[str, str] | None = None,
        ) -> LanguageProfile:
            return LanguageProfile(
                image=f"{prefix}-{image}",
                source_file_name=source,
                compile_command=compile_,
                run_command=run,
                timeout_ms=config.execution_timeout_ms,
                memory_limit=config.memory_limit,
                environment=environment or {},
            )

        table = {
            Language.PYTHON: profile("python", "code.py", ("python3", _ws("code.py"))),
            Language.JAVASCRIPT: profile("node", "code.js", ("node", _ws("code.js"))),
            Language.TYPESCRIPT: profile(
                "node",
                "code.ts",
                ("node", _ws("code.js")),
                compile_=("tsc", "--outDir", WORKSPACE, _ws("code.ts")),
            ),
            # javac binds the public class name to the file name
            Language.JAVA: profile(
                "java",
                "Main.java",
                ("java", "-cp", WORKSPACE, "Main"),
                compile_=("javac", "-d", WORKSPACE, _ws("Main.java")),
            ),
            Language.CPP: profile(
                "cpp", "code.cpp", (_ws("program"),), compile_=("g++", "-o", _ws("program"), _ws("code.cpp"))
            ),
            Language.C: profile(
                "c", "code.c", (_ws("program"),), compile_=("gcc", "-o", _ws("program"), _ws("code.c"))
            ),
            Language.GO: profile(
                "go",
                "code.go",
                (_ws("program"),),
                compile_=("go", "build", "-o", _ws("program"), _ws("code.go")),
                # Root filesystem is read-only; the build cache lives on the tmpfs
                environment={"HOME": "/tmp", "GOCACHE": "/tmp/go-build"},
            ),
            Language.HTML: profile("node", "code.html", ("cat", _ws("code.html"))),
            Language.CSS: profile("node", "code.css", ("cat", _ws("code.css"))),
        }
        return cls({lang.value: p for lang, p in table.items()})

    def profile_for(self, language: str) -> LanguageProfile:
        """Return the profile for `language`.

        Raises:
            UnknownLanguageError: If the language is not registered.
        """
        if isinstance(language, Language):
            language = language.value
        try:
            return self._profiles[language]
        except KeyError:
            raise UnknownLanguageError(
                f"Invalid language: {language}. Supported languages: {', '.join(self.languages())}"
            ) from None

    def __contains__(self, language: object) -> bool:
        if isinstance(language, Language):
            language = language.value
        return language in self._profiles

    def languages(self) -> list[str]:
        return list(self._profiles)
