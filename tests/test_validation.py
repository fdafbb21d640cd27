import hashlib

import pytest

from coreason_runner.config import RunnerConfig
from coreason_runner.exceptions import (
    CodeTooLargeError,
    EmptyCodeError,
    RequestValidationError,
    UnknownLanguageError,
)
from coreason_runner.languages import LanguageRegistry
from coreason_runner.models import ExecutionRequest
from coreason_runner.validation import RequestValidator, scan_dangerous_patterns


@pytest.fixture
def validator() -> RequestValidator:
    config = RunnerConfig(max_code_size=20)
    return RequestValidator(LanguageRegistry.default(config), config)


def test_valid_request(validator: RequestValidator) -> None:
    result = validator.validate(ExecutionRequest(code="print(1)", language="python"))

    assert result.ok
    assert result.error is None
    assert result.code_hash == hashlib.sha256(b"print(1)").hexdigest()
    result.raise_for_error()


@pytest.mark.parametrize("code", ["", "   ", "\n\t\n"])
def test_empty_code(validator: RequestValidator, code: str) -> None:
    result = validator.validate(ExecutionRequest(code=code, language="python"))

    assert not result.ok
    assert result.error == "EmptyCode"
    with pytest.raises(EmptyCodeError, match="non-empty"):
        result.raise_for_error()


def test_size_is_measured_in_bytes(validator: RequestValidator) -> None:
    # 10 characters, 30 bytes
    result = validator.validate(ExecutionRequest(code="€" * 10, language="python"))

    assert result.error == "CodeTooLarge"
    with pytest.raises(CodeTooLargeError, match="20 bytes"):
        result.raise_for_error()


def test_size_ceiling_is_inclusive(validator: RequestValidator) -> None:
    assert validator.validate(ExecutionRequest(code="x" * 20, language="python")).ok


def test_unknown_language(validator: RequestValidator) -> None:
    result = validator.validate(ExecutionRequest(code="print(1)", language="Python"))

    assert result.error == "UnknownLanguage"
    with pytest.raises(UnknownLanguageError, match="Supported languages: python"):
        result.raise_for_error()


def test_empty_code_wins_over_unknown_language(validator: RequestValidator) -> None:
    assert validator.validate(ExecutionRequest(code=" ", language="cobol")).error == "EmptyCode"


def test_validation_errors_are_value_errors() -> None:
    assert issubclass(RequestValidationError, ValueError)
    assert UnknownLanguageError.kind == "UnknownLanguage"


def test_dangerous_patterns_are_flagged_not_blocked(validator: RequestValidator) -> None:
    result = validator.validate(ExecutionRequest(code="eval ('1')", language="python"))

    assert result.ok
    assert result.flags == ["eval"]


def test_pattern_scan() -> None:
    code = "import subprocess\nos.system('ls')\n__import__('os')\nexec(x)"
    assert scan_dangerous_patterns(code) == ["exec", "system", "import_os", "subprocess"]
    assert scan_dangerous_patterns("print('hello')") == []
