"""Tests for the static completion script generators.

Scripts are validated with real shells when available; the bash script is
also run against sample command lines.
"""

from __future__ import annotations

import re
import shutil
import subprocess
from pathlib import Path

import pytest

from shellcomp.commands.models import Choices, CommandNode, LazyCommand, OptionMeta, OptionType, PositionalMeta
from shellcomp.commands.tree import iter_static_tree
from shellcomp.completions.generators import (
    CompletionOptions,
    generate_bash,
    generate_completion,
    generate_dynamic_script,
    generate_fish,
    generate_zsh,
    get_install_instructions,
    get_supported_shells,
)
from shellcomp.completions.handlers import add_completion_commands
from shellcomp.models import ShellType, UnsupportedShellError

SHELLS = ("bash", "zsh", "fish")


def _script(tree: CommandNode, shell: str, program: str = "mycli") -> str:
    return generate_completion(tree, CompletionOptions(shell=shell, program_name=program)).script


@pytest.fixture
def full_tree(sample_tree) -> CommandNode:
    "Sample tree with the completion commands"
    return add_completion_commands(sample_tree, "mycli")


@pytest.fixture
def tricky_tree() -> CommandNode:
    "Choices and descriptions full of shell metacharacters"
    return CommandNode(
        name="tricky",
        options=(
            OptionMeta(
                "price",
                description='Say "hi" for $5 and `date`',
                value_completion=Choices(('say "hi"', "$5", "`date`", "back\\slash")),
            ),
        ),
        subcommands={"run": CommandNode(name="run", description='Run "now" for $HOME')},
    )


# --- Syntax validation with real shells ---


@pytest.mark.skipif(not shutil.which("zsh"), reason="zsh not installed")
class TestZshSyntax:
    """Test zsh completion script syntax."""

    @pytest.mark.parametrize("tree_name", ["full_tree", "flat_tree", "tricky_tree"])
    def test_syntax_valid(self, tree_name: str, request: pytest.FixtureRequest) -> None:
        """Zsh completion script should have valid syntax."""
        script = _script(request.getfixturevalue(tree_name), "zsh")
        result = subprocess.run(["zsh", "-n", "-c", script], capture_output=True, text=True)
        assert result.returncode == 0, f"Zsh syntax error: {result.stderr}"


@pytest.mark.skipif(not shutil.which("bash"), reason="bash not installed")
class TestBashSyntax:
    """Test bash completion script syntax."""

    @pytest.mark.parametrize("tree_name", ["full_tree", "flat_tree", "tricky_tree"])
    def test_syntax_valid(self, tree_name: str, request: pytest.FixtureRequest) -> None:
        """Bash completion script should have valid syntax."""
        script = _script(request.getfixturevalue(tree_name), "bash")
        result = subprocess.run(["bash", "-n", "-c", script], capture_output=True, text=True)
        assert result.returncode == 0, f"Bash syntax error: {result.stderr}"


@pytest.mark.skipif(not shutil.which("fish"), reason="fish not installed")
class TestFishSyntax:
    """Test fish completion script syntax."""

    @pytest.mark.parametrize("tree_name", ["full_tree", "flat_tree", "tricky_tree"])
    def test_syntax_valid(self, tree_name: str, request: pytest.FixtureRequest, tmp_path: Path) -> None:
        """Fish completion script should have valid syntax."""
        script_file = tmp_path / "completions.fish"
        script_file.write_text(_script(request.getfixturevalue(tree_name), "fish"))
        result = subprocess.run(["fish", "--no-execute", str(script_file)], capture_output=True, text=True)
        assert result.returncode == 0, f"Fish syntax error: {result.stderr}"


# --- Bash behavior ---


def _bash_complete(script: str, line: str) -> list[str]:
    driver = f'{script}\nCOMP_LINE={line!r}\nCOMP_POINT=${{#COMP_LINE}}\n_mycli_completions\nprintf "%s\\n" "${{COMPREPLY[@]}}"\n'
    result = subprocess.run(["bash", "-c", driver], capture_output=True, text=True, check=True)
    return [value for value in result.stdout.split("\n") if value]


@pytest.mark.skipif(not shutil.which("bash"), reason="bash not installed")
class TestBashBehavior:
    """The bash script makes the same decisions as the dynamic parser."""

    @pytest.fixture
    def script(self, full_tree: CommandNode) -> str:
        return _script(full_tree, "bash")

    def test_subcommands(self, script: str) -> None:
        assert _bash_complete(script, "mycli ") == ["build", "remote", "deploy", "plugin", "broken", "completion"]

    def test_subcommand_prefix(self, script: str) -> None:
        assert _bash_complete(script, "mycli re") == ["remote"]

    def test_nested_subcommands(self, script: str) -> None:
        assert _bash_complete(script, "mycli remote ") == ["add", "list"]

    def test_subcommand_options_only(self, script: str) -> None:
        assert _bash_complete(script, "mycli -v build --") == ["--watch", "--target", "--token", "--help"]

    def test_used_options_excluded(self, script: str) -> None:
        options = _bash_complete(script, "mycli -v --format json --")
        assert "--verbose" not in options
        assert "--format" not in options
        assert "--tags" in options

    def test_array_option_kept(self, script: str) -> None:
        assert _bash_complete(script, "mycli --tags a --tags b --ta") == ["--tags"]

    def test_choices(self, script: str) -> None:
        assert _bash_complete(script, "mycli --format ") == ["json", "yaml"]
        assert _bash_complete(script, "mycli -f y") == ["yaml"]

    def test_command_values(self, script: str) -> None:
        assert _bash_complete(script, "mycli build --target r") == ["release"]

    def test_positional_choices(self, script: str) -> None:
        assert _bash_complete(script, "mycli deploy p") == ["production"]

    def test_completion_shells(self, script: str) -> None:
        assert _bash_complete(script, "mycli completion ") == ["bash", "zsh", "fish"]


# --- Content ---


class TestContent:
    """Every backend carries the whole tree."""

    @pytest.mark.parametrize("shell", SHELLS)
    def test_all_names_present(self, full_tree: CommandNode, shell: str) -> None:
        script = _script(full_tree, shell)
        for path, node in iter_static_tree(full_tree):
            if path:
                assert path[-1] in script
            for option in node.options:
                assert f"--{option.cli_name}" in script

    @pytest.mark.parametrize("shell", SHELLS)
    def test_hidden_command_absent(self, full_tree: CommandNode, shell: str) -> None:
        script = _script(full_tree, shell)
        assert "__complete" not in script
        assert "completion" in script

    def test_used_options_reset_on_descent(self, full_tree: CommandNode) -> None:
        assert '_used_opts=()\n            _scope="$_scope/$_w"' in _script(full_tree, "bash")
        assert '_used_opts=()\n            _scope="$_scope/$_w"' in _script(full_tree, "zsh")
        assert 'set _used_opts\n            set _scope "$_scope/$_w"' in _script(full_tree, "fish")

    @pytest.mark.parametrize("shell", SHELLS)
    def test_array_options_never_filtered(self, full_tree: CommandNode, shell: str) -> None:
        script = _script(full_tree, shell)
        assert re.search(r'not_used.*"--verbose"', script)
        assert not re.search(r'not_used.*"--tags"', script)

    @pytest.mark.parametrize("shell", ["bash", "zsh"])
    def test_escaping_posix(self, tricky_tree: CommandNode, shell: str) -> None:
        script = _script(tricky_tree, shell)
        assert '"say \\"hi\\""' in script
        assert '"\\$5"' in script
        assert '"\\`date\\`"' in script
        assert '"back\\\\slash"' in script
        assert '"$5"' not in script

    def test_escaping_zsh_descriptions(self, tricky_tree: CommandNode) -> None:
        script = _script(tricky_tree, "zsh")
        assert 'Say \\"hi\\" for \\$5 and \\`date\\`' in script
        assert 'Run \\"now\\" for \\$HOME' in script

    def test_escaping_fish(self, tricky_tree: CommandNode) -> None:
        script = _script(tricky_tree, "fish")
        assert '"say \\"hi\\""' in script
        assert '"\\$5"' in script
        assert '"`date`"' in script
        assert 'Say \\"hi\\" for \\$5 and `date`' in script
        assert 'Run \\"now\\" for \\$HOME' in script

    @pytest.mark.parametrize("shell", SHELLS)
    def test_flat_command(self, flat_tree: CommandNode, shell: str) -> None:
        """Root options and positionals are wired without subcommands."""
        script = _script(flat_tree, shell, "flat")
        assert "--level" in script
        assert "--quiet" in script
        assert '"low"' in script

    def test_flat_bash_has_no_subcommand_case(self, flat_tree: CommandNode) -> None:
        script = _script(flat_tree, "bash", "flat")
        assert "__flat_is_subcmd() {\n    return 1\n}" in script

    @pytest.mark.parametrize("shell", ["bash", "zsh"])
    def test_no_empty_branches(self, full_tree: CommandNode, shell: str) -> None:
        script = _script(full_tree, shell)
        assert not re.search(r"\)\s*\n\s*;;", script)
        assert not re.search(r"\bthen\s*\n\s*(fi|else|elif)\b", script)

    def test_no_empty_fish_branches(self, full_tree: CommandNode) -> None:
        script = _script(full_tree, "fish")
        assert not re.search(r"\n\s*case [^\n]*\n\s*(case|end)\b", script)

    @pytest.mark.parametrize("shell", SHELLS)
    def test_deterministic(self, full_tree: CommandNode, shell: str) -> None:
        assert _script(full_tree, shell) == _script(full_tree, shell)

    def test_file_filters(self, full_tree: CommandNode) -> None:
        assert '"*.json" "*.yaml"' in _script(full_tree, "bash")
        assert '_files -g "*.(json|yaml)"' in _script(full_tree, "zsh")
        assert '_files -g "*.tar.gz"' in _script(full_tree, "zsh")
        assert "_files -/" in _script(full_tree, "zsh")
        assert "__fish_complete_directories" in _script(full_tree, "fish")

    def test_registration(self, full_tree: CommandNode) -> None:
        assert "complete -o default -F _mycli_completions mycli" in _script(full_tree, "bash")
        zsh = _script(full_tree, "zsh")
        assert zsh.startswith("#compdef mycli")
        assert "compdef _mycli mycli" in zsh
        assert "complete -c mycli -f -a '(__mycli_complete)'" in _script(full_tree, "fish")

    def test_registration_quotes_program_name(self, sample_tree: CommandNode) -> None:
        assert 'complete -o default -F _my_cli_completions "my cli"' in _script(sample_tree, "bash", "my cli")
        assert 'compdef _my_cli "my cli"' in _script(sample_tree, "zsh", "my cli")
        fish = _script(sample_tree, "fish", "my cli")
        assert 'complete -c "my cli" -e' in fish
        assert "complete -c \"my cli\" -f -a '(__my_cli_complete)'" in fish

    def test_fish_case_labels_are_literal(self) -> None:
        tree = CommandNode(
            name="globby",
            subcommands={
                "a*": CommandNode(
                    name="a*",
                    options=(OptionMeta("level", cli_name="x?", value_completion=Choices(("lo", "hi"))),),
                ),
            },
        )
        script = _script(tree, "fish", "globby")
        assert 'case "/a\\\\*"' in script
        assert 'case "x--x\\\\?"' in script
        assert 'case "/a*"' not in script

    def test_descriptions_can_be_left_out(self, full_tree: CommandNode) -> None:
        options = CompletionOptions(shell="zsh", program_name="mycli", include_descriptions=False)
        assert "Build the project" not in generate_completion(full_tree, options).script
        assert "Build the project" in _script(full_tree, "zsh")


class TestLazyPlaceholders:
    """Deferred commands show up as leaves unless metadata is provided."""

    @pytest.mark.parametrize("generate", [generate_bash, generate_zsh, generate_fish])
    def test_placeholder_leaf(self, sample_tree: CommandNode, generate) -> None:
        script = generate(sample_tree, "mycli")
        assert "plugin" in script
        assert "install" not in script
        assert "--force" not in script

    def test_loader_never_called(self) -> None:
        def loader() -> CommandNode:
            raise AssertionError("loaded during static generation")

        tree = CommandNode(name="t", subcommands={"lazy": LazyCommand(loader=loader)})
        for shell in SHELLS:
            assert "lazy" in _script(tree, shell, "t")

    def test_metadata_is_used(self) -> None:
        meta = CommandNode(
            name="lazy",
            description="Lazy with meta",
            options=(OptionMeta("deep", type=OptionType.BOOLEAN),),
            positionals=(PositionalMeta("item"),),
        )
        tree = CommandNode(name="t", subcommands={"lazy": LazyCommand(loader=lambda: meta, meta=meta)})
        for shell in SHELLS:
            assert "--deep" in _script(tree, shell, "t")


class TestGenerateCompletion:
    def test_result(self, full_tree: CommandNode) -> None:
        result = generate_completion(full_tree, CompletionOptions(shell="fish", program_name="mycli"))
        assert result.shell == ShellType.FISH
        assert "mycli completion fish" in result.install_instructions
        assert "~/.config/fish/config.fish" in result.install_instructions

    def test_unsupported_shell(self, full_tree: CommandNode) -> None:
        with pytest.raises(UnsupportedShellError) as excinfo:
            generate_completion(full_tree, CompletionOptions(shell="tcsh", program_name="mycli"))
        assert isinstance(excinfo.value, ValueError)
        assert excinfo.value.shell == "tcsh"

    def test_validation_problems_are_logged(self, mocker) -> None:
        logger = mocker.patch("shellcomp.completions.generators.get_logger").return_value
        tree = CommandNode(name="t", options=(OptionMeta("x", value_completion=Choices(())),))
        script = generate_completion(tree, CompletionOptions(shell="bash", program_name="t")).script
        assert "--x" in script
        logger.warning.assert_called()
        assert "empty choice list" in logger.warning.call_args.args[1]

    def test_supported_shells(self) -> None:
        assert get_supported_shells() == ["bash", "zsh", "fish"]


class TestInstallInstructions:
    @pytest.mark.parametrize(
        ("shell", "rc_file", "target"),
        [
            ("bash", "~/.bashrc", "~/.local/share/bash-completion/completions/mycli"),
            ("zsh", "~/.zshrc", "~/.zsh/completions/_mycli"),
            ("fish", "~/.config/fish/config.fish", "~/.config/fish/completions/mycli.fish"),
        ],
    )
    def test_mentions_startup_file(self, shell: str, rc_file: str, target: str) -> None:
        text = get_install_instructions(shell, "mycli")
        assert rc_file in text
        assert target in text
        assert f"mycli completion {shell}" in text

    def test_unsupported(self) -> None:
        with pytest.raises(UnsupportedShellError):
            get_install_instructions("csh", "mycli")


class TestDynamicScripts:
    """Glue scripts forwarding requests to `__complete`."""

    @pytest.mark.parametrize("shell", SHELLS)
    def test_calls_complete(self, shell: str) -> None:
        script = generate_dynamic_script(shell, "mycli")
        assert f"mycli __complete --shell {shell} --" in script

    def test_registration(self) -> None:
        assert "complete -o default -F _mycli_dynamic mycli" in generate_dynamic_script("bash", "mycli")
        assert "compdef _mycli mycli" in generate_dynamic_script("zsh", "mycli")
        assert "complete -c mycli -f -a '(__mycli_dynamic)'" in generate_dynamic_script("fish", "mycli")

    @pytest.mark.parametrize("shell", SHELLS)
    def test_program_name_with_space(self, shell: str) -> None:
        script = generate_dynamic_script(shell, "my cli")
        assert f'"my cli" __complete --shell {shell} --' in script
        assert "_my_cli" in script

    @pytest.mark.parametrize("shell", SHELLS)
    def test_metadata_lines_understood(self, shell: str) -> None:
        script = generate_dynamic_script(shell, "mycli")
        assert "@ext:" in script
        assert "@matcher:" in script

    def test_unsupported(self) -> None:
        with pytest.raises(UnsupportedShellError):
            generate_dynamic_script("tcsh", "mycli")

    @pytest.mark.parametrize(
        ("shell", "command"),
        [("bash", ["bash", "-n", "-c"]), ("zsh", ["zsh", "-n", "-c"])],
    )
    def test_posix_syntax(self, shell: str, command: list[str]) -> None:
        if not shutil.which(shell):
            pytest.skip(f"{shell} not installed")
        result = subprocess.run([*command, generate_dynamic_script(shell, "mycli")], capture_output=True, text=True)
        assert result.returncode == 0, f"{shell} syntax error: {result.stderr}"

    @pytest.mark.skipif(not shutil.which("fish"), reason="fish not installed")
    def test_fish_syntax(self, tmp_path: Path) -> None:
        script_file = tmp_path / "dynamic.fish"
        script_file.write_text(generate_dynamic_script("fish", "mycli"))
        result = subprocess.run(["fish", "--no-execute", str(script_file)], capture_output=True, text=True)
        assert result.returncode == 0, f"Fish syntax error: {result.stderr}"
