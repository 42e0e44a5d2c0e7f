"""Zsh completion script generator.

The script scans `$words` itself rather than relying on `_arguments`, so
the word scan matches the dynamic parser exactly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...commands.models import Choices, CommandCompletion, DirectoryCompletion, FileCompletion, NoCompletion
from .common import collect_scopes, dq, function_name, option_specs, shell_word, subcommand_entries

if TYPE_CHECKING:
    from ...commands.models import CommandNode, ValueCompletion
    from .common import Scope

__all__ = ["generate_zsh"]

_HELPERS = """\
__{fn}_not_used() {{
    (( ${{_used_opts[(Ie)$1]}} )) && return 1
    [[ -n "$2" ]] && (( ${{_used_opts[(Ie)$2]}} )) && return 1
    return 0
}}
"""

_MAIN = """\
_{fn}() {{
    local cur="${{words[CURRENT]}}"
    local _scope="" _w _key _pending="" _value_opt="" _opt_kind=""
    local -a _used_opts
    _used_opts=()
    integer _i _after_dd=0 _pos_count=0

    for (( _i = 2; _i < CURRENT; _i++ )); do
        _w="${{words[_i]}}"
        if [[ -n "$_pending" ]]; then
            _pending=""
            continue
        fi
        if (( ! _after_dd )) && __{fn}_is_subcmd "$_scope" "$_w"; then
            _used_opts=()
            _scope="$_scope/$_w"
            _pos_count=0
            continue
        fi
        if (( ! _after_dd )) && [[ "$_w" == "--" ]]; then
            _after_dd=1
            continue
        fi
        if (( ! _after_dd )) && [[ "$_w" == -?* ]]; then
            if [[ "$_w" == --* ]]; then
                _key="${{_w%%=*}}"
            else
                _key="${{_w[1,2]}}"
            fi
            __{fn}_opt_kind "$_scope" "$_key"
            if [[ "$_opt_kind" == flag || "$_opt_kind" == value ]]; then
                _used_opts+=("$_key")
            fi
            if [[ "$_opt_kind" == value || "$_opt_kind" == array ]] && [[ "$_w" == "$_key" ]]; then
                _pending="$_key"
            fi
            continue
        fi
        (( _pos_count += 1 ))
    done

    if [[ -n "$_pending" ]]; then
        _value_opt="$_pending"
    elif (( ! _after_dd )) && [[ "$cur" == --*=* ]]; then
        __{fn}_opt_kind "$_scope" "${{cur%%=*}}"
        if [[ "$_opt_kind" == value || "$_opt_kind" == array ]]; then
            _value_opt="${{cur%%=*}}"
            compset -P '*='
        fi
    fi

    case "$_scope" in
{dispatch}
    esac
}}
"""


def _indent(lines: list[str], level: int) -> list[str]:
    pad = "    " * level
    return [pad + line if line else line for line in lines]


def _describe_entry(value: str, description: str, include_descriptions: bool) -> str:
    """Entry of a `_describe` array: colons in the value are escaped."""
    value = value.replace(":", "\\:")
    if include_descriptions and description:
        return dq(f"{value}:{description}")
    return dq(value)


def _glob_alternatives(patterns: list[str]) -> str:
    if len(patterns) == 1:
        return patterns[0]
    return "(" + "|".join(patterns) + ")"


def _value_lines(completion: ValueCompletion | None) -> list[str]:
    """Shell lines adding the matches of one value completion."""
    match completion:
        case Choices(values=values) if values:
            return [f"compadd -- {' '.join(dq(value) for value in values)}"]
        case FileCompletion(extensions=extensions) if extensions:
            return [f"_files -g {dq('*.' + _glob_alternatives(list(extensions)))}"]
        case FileCompletion(matcher=matcher) if matcher:
            return [f"_files -g {dq(_glob_alternatives(list(matcher)))}"]
        case FileCompletion():
            return ["_files"]
        case DirectoryCompletion():
            return ["_files -/"]
        case CommandCompletion(shell_command=command) if command.strip():
            return [
                "local -a _vals",
                "_vals=(${(f)\"$({",
                *_indent(command.strip().splitlines(), 1),
                '} 2>/dev/null)"})',
                "compadd -a _vals",
            ]
        case Choices() | CommandCompletion() | NoCompletion():
            return ["return 1"]
    return ["_files"]


def _is_subcmd_function(scopes: list[Scope], fn: str) -> list[str]:
    patterns = [
        "|".join(dq(f"{scope.key}:{name}") for name, _ in subcommand_entries(scope.node))
        for scope in scopes
        if subcommand_entries(scope.node)
    ]
    lines = [f"__{fn}_is_subcmd() {{"]
    if patterns:
        lines.append('    case "$1:$2" in')
        lines.extend(f"        ({pattern}) return 0 ;;" for pattern in patterns)
        lines.append("    esac")
    lines.extend(["    return 1", "}"])
    return lines


def _opt_kind_function(scopes: list[Scope], fn: str) -> list[str]:
    lines = [f"__{fn}_opt_kind() {{", '    _opt_kind=""', '    case "$1:$2" in']
    for scope in scopes:
        by_kind: dict[str, list[str]] = {}
        for spec in option_specs(scope.node):
            by_kind.setdefault(spec.kind, []).extend(dq(f"{scope.key}:{flag}") for flag in spec.flags)
        lines.extend(f"        ({'|'.join(patterns)}) _opt_kind={kind} ;;" for kind, patterns in by_kind.items())
    lines.extend(["    esac", "}"])
    return lines


def _scope_function(scope: Scope, fn: str, include_descriptions: bool) -> list[str]:
    node = scope.node
    specs = option_specs(node)
    body: list[str] = ['if [[ -n "$_value_opt" ]]; then']

    valued = [(spec, spec.option.value_completion) for spec in specs if spec.option and spec.option.value_completion]
    if valued:
        body.append('    case "$_value_opt" in')
        for spec, completion in valued:
            body.append(f"        ({'|'.join(dq(flag) for flag in spec.flags)})")
            body.extend(_indent(_value_lines(completion), 3))
            body.append("            ;;")
        body.extend(["        (*)", "            _files", "            ;;", "    esac"])
    else:
        body.append("    _files")
    body.extend(["    return", "fi", ""])

    body.extend(['if (( ! _after_dd )) && [[ "$cur" == -* ]]; then', "    local -a _opts", "    _opts=()"])
    for spec in specs:
        entry = _describe_entry(spec.flag, spec.description, include_descriptions)
        if spec.kind == "array":
            body.append(f"    _opts+=({entry})")
        else:
            names = " ".join(dq(flag) for flag in spec.flags)
            body.append(f"    __{fn}_not_used {names} && _opts+=({entry})")
    body.extend(["    _describe -t options 'option' _opts", "    return", "fi", ""])

    subcommands = subcommand_entries(node)
    if subcommands:
        body.extend(["if (( ! _after_dd && _pos_count == 0 )); then", "    local -a _cmds", "    _cmds=("])
        body.extend(
            f"        {_describe_entry(name, description, include_descriptions)}" for name, description in subcommands
        )
        body.append("    )")
        if node.positionals:
            body.append("    _describe -t commands 'command' _cmds && return 0")
        else:
            body.extend(["    _describe -t commands 'command' _cmds", "    return"])
        body.extend(["fi", ""])

    if node.positionals:
        body.append("case $_pos_count in")
        last = len(node.positionals) - 1
        for index, positional in enumerate(node.positionals):
            pattern = "*" if index == last and positional.variadic else str(index)
            body.append(f"    ({pattern})")
            body.extend(_indent(_value_lines(positional.value_completion), 2))
            body.append("        ;;")
        if not node.positionals[last].variadic:
            body.extend(["    (*)", "        _files", "        ;;"])
        body.append("esac")
    else:
        body.append("_files")

    return [f"{scope.function}() {{", *_indent(body, 1), "}"]


def generate_zsh(root: CommandNode, program_name: str, *, include_descriptions: bool = True) -> str:
    """Generate zsh completion script content.

    Args:
        root: The command tree
        program_name: Name the completion is registered for
        include_descriptions: Show option and subcommand descriptions

    Returns:
        The zsh completion script content
    """
    fn = function_name(program_name)
    scopes = collect_scopes(root, program_name)

    parts = [
        f"#compdef {program_name}",
        f"# zsh completion for {program_name}",
        f"# Generated by: {program_name} completion zsh",
        "",
        _HELPERS.format(fn=fn),
        "\n".join(_is_subcmd_function(scopes, fn)),
        "",
        "\n".join(_opt_kind_function(scopes, fn)),
        "",
    ]
    for scope in scopes:
        parts.extend(["\n".join(_scope_function(scope, fn, include_descriptions)), ""])

    dispatch = "\n".join(f"        ({dq(scope.key)}) {scope.function} ;;" for scope in scopes)
    parts.append(_MAIN.format(fn=fn, dispatch=dispatch))
    parts.append(f'if [[ "$funcstack[1]" == "_{fn}" ]]; then')
    parts.append(f'    _{fn} "$@"')
    parts.append("else")
    parts.append(f"    compdef _{fn} {shell_word(program_name)}")
    parts.append("fi")
    return "\n".join(parts) + "\n"
