"""Fish completion script generator.

All the logic lives in one function printing `value<TAB>description` lines,
registered with `complete -c <prog> -f -a '(...)'`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...commands.models import Choices, CommandCompletion, DirectoryCompletion, FileCompletion, NoCompletion
from .common import collect_scopes, dq, function_name, option_specs, shell_word, subcommand_entries

if TYPE_CHECKING:
    from ...commands.models import CommandNode, ValueCompletion
    from .common import Scope

__all__ = ["generate_fish"]

_HELPERS = """\
function __{fn}_not_used
    set -l i (contains -i -- -- $argv)
    set -l names $argv[1..(math $i - 1)]
    set -e argv[1..$i]
    for name in $names
        contains -- $name $argv; and return 1
    end
    return 0
end

function __{fn}_files_glob
    set -l word $argv[1]
    set -l prefix $argv[2]
    set -e argv[1..2]
    for f in (__fish_complete_path "$word")
        set -l p (string replace -r '\\t.*' '' -- $f)
        set -l base (string replace -r '.*/' '' -- $p)
        if test -d "$p"
            string join '' -- "$prefix" "$f"
            continue
        end
        for g in $argv
            if string match -q -- "$g" "$base"
                string join '' -- "$prefix" "$f"
                break
            end
        end
    end
end
"""

_MAIN_HEAD = """\
function __{fn}_complete
    set -l words (commandline -opc)
    set -l cur (commandline -ct)
    set -e words[1]
    set -l _scope ""
    set -l _used_opts
    set -l _pending ""
    set -l _value_opt ""
    set -l _inline ""
    set -l _key ""
    set -l _kind ""
    set -l _after_dd 0
    set -l _pos_count 0

    for _w in $words
        if test -n "$_pending"
            set _pending ""
            continue
        end
        if test $_after_dd -eq 0; and __{fn}_is_subcmd "$_scope" "$_w"
            set _used_opts
            set _scope "$_scope/$_w"
            set _pos_count 0
            continue
        end
        if test $_after_dd -eq 0; and test "x$_w" = "x--"
            set _after_dd 1
            continue
        end
        if test $_after_dd -eq 0; and string match -q -- '-?*' "$_w"
            if string match -q -- '--*' "$_w"
                set _key (string replace -r '=.*$' '' -- "$_w")
            else
                set _key (string sub -l 2 -- "$_w")
            end
            set _kind (__{fn}_opt_kind "$_scope" "$_key")
            if contains -- "$_kind" flag value
                set -a _used_opts "$_key"
            end
            if contains -- "$_kind" value array; and test "x$_w" = "x$_key"
                set _pending "$_key"
            end
            continue
        end
        set _pos_count (math $_pos_count + 1)
    end

    if test -n "$_pending"
        set _value_opt "$_pending"
    else if test $_after_dd -eq 0; and string match -q -- '--*=*' "$cur"
        set _key (string replace -r '=.*$' '' -- "$cur")
        set _kind (__{fn}_opt_kind "$_scope" "$_key")
        if contains -- "$_kind" value array
            set _value_opt "$_key"
            set _inline "$_key="
        end
    end
    set -l _word "$cur"
    if test -n "$_inline"
        set _word (string sub -s (math (string length -- "$_inline") + 1) -- "$cur")
    end

    switch "$_scope"
"""

_MAIN_TAIL = """\
    end
end
"""


def _indent(lines: list[str], level: int) -> list[str]:
    pad = "    " * level
    return [pad + line if line else line for line in lines]


def _q(text: str) -> str:
    return dq(text, fish=True)


def _case(text: str) -> str:
    """Quote text as a literal `case` label; fish reads `*` and `?` there as wildcards."""
    for char in ("\\", "*", "?"):
        text = text.replace(char, "\\" + char)
    return _q(text)


def _print_lines(entries: list[tuple[str, str]], include_descriptions: bool) -> list[str]:
    """Output lines for (value, description) entries."""
    lines = []
    for value, description in entries:
        if include_descriptions and description:
            lines.append(f"string join \\t -- {_q(value)} {_q(description)}")
        else:
            lines.append(f"string join '' -- {_q(value)}")
    return lines


def _value_lines(completion: ValueCompletion | None, fn: str) -> list[str]:
    """Fish lines printing the matches of one value completion."""
    match completion:
        case Choices(values=values) if values:
            return [f"for _v in {' '.join(_q(value) for value in values)}", "    string join '' -- \"$_inline\" $_v", "end"]
        case FileCompletion(extensions=extensions) if extensions:
            patterns = " ".join(_q("*." + ext) for ext in extensions)
            return [f'__{fn}_files_glob "$_word" "$_inline" {patterns}']
        case FileCompletion(matcher=matcher) if matcher:
            patterns = " ".join(_q(pattern) for pattern in matcher)
            return [f'__{fn}_files_glob "$_word" "$_inline" {patterns}']
        case FileCompletion():
            return ["__fish_complete_path \"$_word\" | string replace -r -- '^' \"$_inline\""]
        case DirectoryCompletion():
            return ["__fish_complete_directories \"$_word\" | string replace -r -- '^' \"$_inline\""]
        case CommandCompletion(shell_command=command) if command.strip():
            return [
                f"for _v in (sh -c {_q(command.strip())} 2>/dev/null | string trim)",
                '    test -n "$_v"; and string join \'\' -- "$_inline" "$_v"',
                "end",
            ]
        case Choices() | CommandCompletion() | NoCompletion():
            return ["return 0"]
    return ["__fish_complete_path \"$_word\" | string replace -r -- '^' \"$_inline\""]


def _is_subcmd_function(scopes: list[Scope], fn: str) -> list[str]:
    lines = [f"function __{fn}_is_subcmd"]
    branches = [(scope, subcommand_entries(scope.node)) for scope in scopes if subcommand_entries(scope.node)]
    if branches:
        lines.append('    switch "$argv[1]"')
        for scope, entries in branches:
            lines.append(f"        case {_case(scope.key)}")
            lines.append(f"            contains -- $argv[2] {' '.join(_q(name) for name, _ in entries)}; and return 0")
        lines.append("    end")
    lines.extend(["    return 1", "end"])
    return lines


def _opt_kind_function(scopes: list[Scope], fn: str) -> list[str]:
    lines = [f"function __{fn}_opt_kind", '    switch "$argv[1]"']
    for scope in scopes:
        lines.append(f"        case {_case(scope.key)}")
        by_kind: dict[str, list[str]] = {}
        for spec in option_specs(scope.node):
            by_kind.setdefault(spec.kind, []).extend(_q(flag) for flag in spec.flags)
        lines.extend(
            f"            contains -- $argv[2] {' '.join(flags)}; and echo {kind}; and return 0"
            for kind, flags in by_kind.items()
        )
    lines.extend(["    end", "end"])
    return lines


def _scope_body(scope: Scope, fn: str, include_descriptions: bool) -> list[str]:
    node = scope.node
    specs = option_specs(node)
    body: list[str] = ['if test -n "$_value_opt"']

    valued = [(spec, spec.option.value_completion) for spec in specs if spec.option and spec.option.value_completion]
    if valued:
        body.append('    switch "x$_value_opt"')
        for spec, completion in valued:
            body.append(f"        case {' '.join(_case('x' + flag) for flag in spec.flags)}")
            body.extend(_indent(_value_lines(completion, fn), 3))
        body.extend(["        case '*'", *_indent(_value_lines(None, fn), 3), "    end"])
    else:
        body.extend(_indent(_value_lines(None, fn), 1))
    body.extend(["    return 0", "end", ""])

    body.append("if test $_after_dd -eq 0; and string match -q -- '-*' \"$cur\"")
    for spec in specs:
        printer = _print_lines([(spec.flag, spec.description)], include_descriptions)[0]
        if spec.kind == "array":
            body.append(f"    {printer}")
        else:
            names = " ".join(_q(flag) for flag in spec.flags)
            body.append(f"    __{fn}_not_used {names} -- $_used_opts; and {printer}")
    body.extend(["    return 0", "end", ""])

    subcommands = subcommand_entries(node)
    if subcommands:
        names = " ".join(_q(name) for name, _ in subcommands)
        condition = "test $_after_dd -eq 0 -a $_pos_count -eq 0"
        if node.positionals:
            condition += f'; and begin; test -z "$cur"; or string match -q -- "$cur*" {names}; end'
        body.append(f"if {condition}")
        body.extend(_indent(_print_lines(subcommands, include_descriptions), 1))
        body.extend(["    return 0", "end", ""])

    if node.positionals:
        body.append("switch $_pos_count")
        last = len(node.positionals) - 1
        for index, positional in enumerate(node.positionals):
            pattern = "'*'" if index == last and positional.variadic else str(index)
            body.append(f"    case {pattern}")
            body.extend(_indent(_value_lines(positional.value_completion, fn), 2))
        if not node.positionals[last].variadic:
            body.extend(["    case '*'", *_indent(_value_lines(None, fn), 2)])
        body.append("end")
    else:
        body.extend(_value_lines(None, fn))
    return body


def generate_fish(root: CommandNode, program_name: str, *, include_descriptions: bool = True) -> str:
    """Generate fish completion script content.

    Args:
        root: The command tree
        program_name: Name the completion is registered for
        include_descriptions: Show option and subcommand descriptions

    Returns:
        The fish completion script content
    """
    fn = function_name(program_name)
    scopes = collect_scopes(root, program_name)

    lines = [
        f"# fish completion for {program_name}",
        f"# Generated by: {program_name} completion fish",
        "",
        _HELPERS.format(fn=fn),
        *_is_subcmd_function(scopes, fn),
        "",
        *_opt_kind_function(scopes, fn),
        "",
        _MAIN_HEAD.format(fn=fn).rstrip("\n"),
    ]
    for scope in scopes:
        lines.append(f"        case {_case(scope.key)}")
        lines.extend(_indent(_scope_body(scope, fn, include_descriptions), 3))
    lines.append(_MAIN_TAIL.rstrip("\n"))
    lines.extend(
        [
            "",
            f"complete -c {shell_word(program_name, fish=True)} -e",
            f"complete -c {shell_word(program_name, fish=True)} -f -a '(__{fn}_complete)'",
        ]
    )
    return "\n".join(lines) + "\n"
