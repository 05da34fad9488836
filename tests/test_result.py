"""Tests for the shell result type."""

from python2go.result import ErrorKind, ErrorResult, SuccessResult, error_result, success_result, unsupported_platform


class TestSuccessResult:
    def test_output_is_trimmed(self) -> None:
        result = success_result("  hello\n")
        assert isinstance(result, SuccessResult)
        assert result.success is True
        assert result.output == "hello"
        assert result.warnings is None

    def test_warnings_kept(self) -> None:
        result = success_result("ok", "deprecated flag", exit_code=0)
        assert result.warnings == "deprecated flag"
        assert result.exit_code == 0

    def test_truthy(self) -> None:
        assert bool(success_result(""))


class TestErrorResult:
    def test_defaults(self) -> None:
        result = error_result("boom")
        assert isinstance(result, ErrorResult)
        assert result.success is False
        assert result.error == "boom"
        assert result.output is None
        assert result.kind is ErrorKind.NON_ZERO_EXIT
        assert not result

    def test_partial_output_trimmed(self) -> None:
        assert error_result("boom", output=" partial \n").output == "partial"
        assert error_result("boom", output="   ").output is None

    def test_unsupported_platform(self) -> None:
        result = unsupported_platform("emscripten")
        assert result.kind is ErrorKind.UNSUPPORTED_PLATFORM
        assert "unsupported platform" in result.error
        assert "emscripten" in result.error
