"""Bash completion script generator.

The script re-splits `COMP_LINE` on whitespace instead of using `COMP_WORDS`,
so `--name=value` stays one word whatever `COMP_WORDBREAKS` holds.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...commands.models import Choices, CommandCompletion, DirectoryCompletion, FileCompletion, NoCompletion
from .common import collect_scopes, dq, function_name, option_specs, shell_word, subcommand_entries

if TYPE_CHECKING:
    from ...commands.models import CommandNode, ValueCompletion
    from .common import Scope

__all__ = ["generate_bash"]

_HELPERS = """\
__{fn}_filter() {{
    local _c
    for _c in "$@"; do
        [[ -n "$_c" && "$_c" == "$cur"* ]] && COMPREPLY+=("$_c")
    done
    return 0
}}

__{fn}_files() {{
    compopt -o filenames 2>/dev/null
    mapfile -t COMPREPLY < <(compgen "$1" -- "$cur")
}}

__{fn}_files_glob() {{
    local _f _g
    compopt -o filenames 2>/dev/null
    while IFS= read -r _f; do
        if [[ -d "$_f" ]]; then
            COMPREPLY+=("$_f")
            continue
        fi
        for _g in "$@"; do
            if [[ "${{_f##*/}}" == $_g ]]; then
                COMPREPLY+=("$_f")
                break
            fi
        done
    done < <(compgen -f -- "$cur")
}}

__{fn}_not_used() {{
    local _u
    for _u in "${{_used_opts[@]}}"; do
        [[ "$_u" == "$1" ]] && return 1
        [[ -n "$2" && "$_u" == "$2" ]] && return 1
    done
    return 0
}}
"""

_MAIN = """\
_{fn}_completions() {{
    local _line="${{COMP_LINE:0:COMP_POINT}}"
    local -a _words=()
    read -ra _words <<< "$_line"
    if [[ -z "$_line" || "$_line" == *[[:space:]] ]]; then
        _words+=("")
    fi
    local _n=${{#_words[@]}}
    local cur="${{_words[_n-1]}}"
    local _scope="" _w _key _pending="" _value_opt="" _inline="" _opt_kind=""
    local -a _used_opts=()
    local _i _after_dd=0 _pos_count=0

    compopt +o default 2>/dev/null
    COMPREPLY=()

    for (( _i = 1; _i < _n - 1; _i++ )); do
        _w="${{_words[_i]}}"
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
                _key="${{_w:0:2}}"
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
        _pos_count=$((_pos_count + 1))
    done

    if [[ -n "$_pending" ]]; then
        _value_opt="$_pending"
    elif (( ! _after_dd )) && [[ "$cur" == --*=* ]]; then
        __{fn}_opt_kind "$_scope" "${{cur%%=*}}"
        if [[ "$_opt_kind" == value || "$_opt_kind" == array ]]; then
            _value_opt="${{cur%%=*}}"
            _inline="$_value_opt="
            cur="${{cur#*=}}"
        fi
    fi

    case "$_scope" in
{dispatch}
    esac

    if [[ -n "$_inline" && "$COMP_WORDBREAKS" != *=* ]]; then
        COMPREPLY=("${{COMPREPLY[@]/#/$_inline}}")
    fi
    return 0
}}
"""


def _indent(lines: list[str], level: int) -> list[str]:
    pad = "    " * level
    return [pad + line if line else line for line in lines]


def _value_lines(completion: ValueCompletion | None, fn: str) -> list[str]:
    """Shell lines filling COMPREPLY for one value completion."""
    match completion:
        case Choices(values=values) if values:
            return [f"__{fn}_filter {' '.join(dq(value) for value in values)}"]
        case FileCompletion(extensions=extensions) if extensions:
            return [f"__{fn}_files_glob {' '.join(dq('*.' + ext) for ext in extensions)}"]
        case FileCompletion(matcher=matcher) if matcher:
            return [f"__{fn}_files_glob {' '.join(dq(pattern) for pattern in matcher)}"]
        case FileCompletion():
            return [f"__{fn}_files -f"]
        case DirectoryCompletion():
            return [f"__{fn}_files -d"]
        case CommandCompletion(shell_command=command) if command.strip():
            return [
                "local -a _vals=()",
                "mapfile -t _vals < <({",
                *_indent(command.strip().splitlines(), 1),
                "} 2>/dev/null)",
                f'__{fn}_filter "${{_vals[@]}}"',
            ]
        case Choices() | CommandCompletion() | NoCompletion():
            return ["COMPREPLY=()"]
    return ["compopt -o default 2>/dev/null"]


def _is_subcmd_function(scopes: list[Scope], fn: str) -> list[str]:
    patterns = [
        "|".join(dq(f"{scope.key}:{name}") for name, _ in subcommand_entries(scope.node))
        for scope in scopes
        if subcommand_entries(scope.node)
    ]
    lines = [f"__{fn}_is_subcmd() {{"]
    if patterns:
        lines.append('    case "$1:$2" in')
        lines.extend(f"        {pattern}) return 0 ;;" for pattern in patterns)
        lines.append("    esac")
    lines.extend(["    return 1", "}"])
    return lines


def _opt_kind_function(scopes: list[Scope], fn: str) -> list[str]:
    lines = [f"__{fn}_opt_kind() {{", '    _opt_kind=""', '    case "$1:$2" in']
    for scope in scopes:
        by_kind: dict[str, list[str]] = {}
        for spec in option_specs(scope.node):
            by_kind.setdefault(spec.kind, []).extend(dq(f"{scope.key}:{flag}") for flag in spec.flags)
        lines.extend(f"        {'|'.join(patterns)}) _opt_kind={kind} ;;" for kind, patterns in by_kind.items())
    lines.extend(["    esac", "}"])
    return lines


def _scope_function(scope: Scope, fn: str) -> list[str]:
    node = scope.node
    specs = option_specs(node)
    body: list[str] = ['if [[ -n "$_value_opt" ]]; then']

    valued = [(spec, spec.option.value_completion) for spec in specs if spec.option and spec.option.value_completion]
    if valued:
        body.append('    case "$_value_opt" in')
        for spec, completion in valued:
            body.append(f"        {'|'.join(dq(flag) for flag in spec.flags)})")
            body.extend(_indent(_value_lines(completion, fn), 3))
            body.append("            ;;")
        body.extend(["        *)", "            compopt -o default 2>/dev/null", "            ;;", "    esac"])
    else:
        body.append("    compopt -o default 2>/dev/null")
    body.extend(["    return 0", "fi", ""])

    body.extend(['if (( ! _after_dd )) && [[ "$cur" == -* ]]; then', "    local -a _opts=()"])
    for spec in specs:
        if spec.kind == "array":
            body.append(f"    _opts+=({dq(spec.flag)})")
        else:
            names = " ".join(dq(flag) for flag in spec.flags)
            body.append(f"    __{fn}_not_used {names} && _opts+=({dq(spec.flag)})")
    body.extend([f'    __{fn}_filter "${{_opts[@]}}"', "    return 0", "fi", ""])

    subcommands = subcommand_entries(node)
    if subcommands:
        body.append("if (( ! _after_dd && _pos_count == 0 )); then")
        body.append(f"    __{fn}_filter {' '.join(dq(name) for name, _ in subcommands)}")
        body.append("    (( ${#COMPREPLY[@]} )) && return 0" if node.positionals else "    return 0")
        body.extend(["fi", ""])

    if node.positionals:
        body.append('case "$_pos_count" in')
        last = len(node.positionals) - 1
        for index, positional in enumerate(node.positionals):
            pattern = "*" if index == last and positional.variadic else str(index)
            body.append(f"    {pattern})")
            body.extend(_indent(_value_lines(positional.value_completion, fn), 2))
            body.append("        ;;")
        if not node.positionals[last].variadic:
            body.extend(["    *)", "        compopt -o default 2>/dev/null", "        ;;"])
        body.append("esac")
    else:
        body.append("compopt -o default 2>/dev/null")

    return [f"{scope.function}() {{", *_indent(body, 1), "}"]


def generate_bash(root: CommandNode, program_name: str, *, include_descriptions: bool = True) -> str:
    """Generate bash completion script content.

    Args:
        root: The command tree
        program_name: Name the completion is registered for
        include_descriptions: Unused, bash cannot display descriptions

    Returns:
        The bash completion script content
    """
    del include_descriptions
    fn = function_name(program_name)
    scopes = collect_scopes(root, program_name)

    parts = [
        f"# bash completion for {program_name}",
        f"# Generated by: {program_name} completion bash",
        "",
        _HELPERS.format(fn=fn),
        "\n".join(_is_subcmd_function(scopes, fn)),
        "",
        "\n".join(_opt_kind_function(scopes, fn)),
        "",
    ]
    for scope in scopes:
        parts.extend(["\n".join(_scope_function(scope, fn)), ""])

    dispatch = "\n".join(f"        {dq(scope.key)}) {scope.function} ;;" for scope in scopes)
    parts.append(_MAIN.format(fn=fn, dispatch=dispatch))
    parts.append(f"complete -o default -F _{fn}_completions {shell_word(program_name)}")
    return "\n".join(parts) + "\n"
