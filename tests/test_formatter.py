"""Tests for the dynamic completion wire format."""

import pytest

from shellcomp.completions.candidates import Candidate, CandidateResult
from shellcomp.completions.formatter import ShellFormatOptions, format_for_shell
from shellcomp.models import Directive, UnsupportedShellError

RESULT = CandidateResult(
    candidates=[
        Candidate("build", "Build the project", "subcommand"),
        Candidate("remote", "Manage remotes: add, list", "subcommand"),
        Candidate("bare"),
    ],
    directive=Directive.FILTER_PREFIX,
)


class TestTrailer:
    def test_trailer_is_last_line(self):
        for shell in ("bash", "zsh", "fish"):
            lines = format_for_shell(RESULT, ShellFormatOptions(shell, "")).split("\n")
            assert lines[-1] == ":4"

    def test_empty_result(self):
        assert format_for_shell(CandidateResult(), ShellFormatOptions("fish")) == ":0"

    def test_combined_directive(self):
        result = CandidateResult([Candidate("a")], Directive.FILTER_PREFIX | Directive.NO_FILE_COMPLETION)
        assert format_for_shell(result, ShellFormatOptions("zsh")).endswith("\n:6")


class TestShells:
    def test_fish(self):
        output = format_for_shell(RESULT, ShellFormatOptions("fish", "b"))
        assert output == "build\tBuild the project\nremote\tManage remotes: add, list\nbare\n:4"

    def test_zsh_escapes_colons(self):
        output = format_for_shell(RESULT, ShellFormatOptions("zsh", ""))
        assert output.split("\n")[1] == "remote:Manage remotes\\: add, list"
        assert output.split("\n")[2] == "bare"

    def test_zsh_value_colon(self):
        result = CandidateResult([Candidate("host:8080", "port")])
        assert format_for_shell(result, ShellFormatOptions("zsh")) == "host\\:8080:port\n:0"

    def test_bash_filters_by_prefix(self):
        output = format_for_shell(RESULT, ShellFormatOptions("bash", "b"))
        assert output == "build\nbare\n:4"

    def test_bash_without_filter_flag(self):
        result = CandidateResult([Candidate("x"), Candidate("y")])
        assert format_for_shell(result, ShellFormatOptions("bash", "z")) == "x\ny\n:0"

    def test_bash_inline_prefix(self):
        result = CandidateResult([Candidate("json"), Candidate("yaml")], Directive.FILTER_PREFIX)
        output = format_for_shell(result, ShellFormatOptions("bash", "--format=j", inline_prefix="--format="))
        assert output == "--format=json\n:4"

    def test_bash_inline_prefix_is_idempotent(self):
        result = CandidateResult([Candidate("--format=json")], Directive.FILTER_PREFIX)
        output = format_for_shell(result, ShellFormatOptions("bash", "--format=", inline_prefix="--format="))
        assert output == "--format=json\n:4"

    def test_multiline_description(self):
        result = CandidateResult([Candidate("a", "first line\n  second\tline")])
        assert format_for_shell(result, ShellFormatOptions("fish")) == "a\tfirst line second line\n:0"

    def test_unsupported_shell(self):
        with pytest.raises(UnsupportedShellError):
            format_for_shell(RESULT, ShellFormatOptions("powershell"))


class TestMetadata:
    def test_extensions(self):
        result = CandidateResult(file_extensions=["json", "yaml"])
        assert format_for_shell(result, ShellFormatOptions("bash")) == "@ext:json\n@ext:yaml\n:0"

    def test_matchers(self):
        result = CandidateResult(file_matchers=["*.tar.gz"])
        for shell in ("bash", "zsh", "fish"):
            assert format_for_shell(result, ShellFormatOptions(shell)) == "@matcher:*.tar.gz\n:0"


def test_formatting_is_pure():
    """Same input, same output, input untouched."""
    options = ShellFormatOptions("bash", "b", inline_prefix="--x=")
    first = format_for_shell(RESULT, options)
    assert format_for_shell(RESULT, options) == first
    assert [c.value for c in RESULT.candidates] == ["build", "remote", "bare"]
