"""Dynamic completion glue.

These scripts ask the program itself for candidates on every keystroke through
the hidden `__complete` command, then apply the directive trailer.
"""

from __future__ import annotations

from ...constants import COMPLETE_COMMAND
from ...models import Directive, ShellType, UnsupportedShellError
from .common import function_name, shell_word

__all__ = ["generate_dynamic_script"]

_BASH = """\
# bash dynamic completion for {prog}
# Generated by: {prog} completion bash --dynamic

_{fn}_dynamic() {{
    local _line="${{COMP_LINE:0:COMP_POINT}}"
    local -a _words=() _out=() _globs=()
    read -ra _words <<< "$_line"
    if [[ -z "$_line" || "$_line" == *[[:space:]] ]]; then
        _words+=("")
    fi
    local cur="${{_words[${{#_words[@]}}-1]}}"
    local _fcur="$cur" _l _f _g _i _directive

    mapfile -t _out < <({cmd} {complete} --shell bash -- "${{_words[@]:1}}" 2>/dev/null)
    (( ${{#_out[@]}} )) || return 0
    _directive="${{_out[${{#_out[@]}}-1]#:}}"
    [[ "$_directive" =~ ^[0-9]+$ ]] || _directive=0
    [[ "$cur" == --*=* ]] && _fcur="${{cur#*=}}"

    COMPREPLY=()
    for (( _i = 0; _i < ${{#_out[@]}} - 1; _i++ )); do
        _l="${{_out[_i]}}"
        case "$_l" in
            @ext:*) _globs+=("*.${{_l#@ext:}}") ;;
            @matcher:*) _globs+=("${{_l#@matcher:}}") ;;
            *) COMPREPLY+=("$_l") ;;
        esac
    done

    if (( _directive & {directory} )); then
        compopt -o filenames 2>/dev/null
        mapfile -t COMPREPLY < <(compgen -d -- "$_fcur")
    elif (( _directive & {file} )); then
        compopt -o filenames 2>/dev/null
        mapfile -t COMPREPLY < <(compgen -f -- "$_fcur")
    elif (( ${{#_globs[@]}} )); then
        compopt -o filenames 2>/dev/null
        while IFS= read -r _f; do
            if [[ -d "$_f" ]]; then
                COMPREPLY+=("$_f")
                continue
            fi
            for _g in "${{_globs[@]}}"; do
                if [[ "${{_f##*/}}" == $_g ]]; then
                    COMPREPLY+=("$_f")
                    break
                fi
            done
        done < <(compgen -f -- "$_fcur")
    elif [[ "$cur" == --*=* && "$COMP_WORDBREAKS" == *=* ]]; then
        COMPREPLY=("${{COMPREPLY[@]#*=}}")
    fi

    (( _directive & {no_space} )) && compopt -o nospace 2>/dev/null
    (( _directive & {no_file} )) && compopt +o default 2>/dev/null
    return 0
}}

complete -o default -F _{fn}_dynamic {cmd}
"""

_ZSH = """\
#compdef {prog}
# zsh dynamic completion for {prog}
# Generated by: {prog} completion zsh --dynamic

_{fn}() {{
    local -a _out _cands _exts _matchers _flags
    local _l _directive

    _out=("${{(@f)$({cmd} {complete} --shell zsh -- "${{(@)words[2,CURRENT]}}" 2>/dev/null)}}")
    (( ${{#_out}} )) || return 1
    _directive="${{_out[-1]#:}}"
    [[ "$_directive" == <-> ]] || _directive=0

    for _l in "${{(@)_out[1,-2]}}"; do
        case "$_l" in
            (@ext:*) _exts+=("${{_l#@ext:}}") ;;
            (@matcher:*) _matchers+=("${{_l#@matcher:}}") ;;
            (?*) _cands+=("$_l") ;;
        esac
    done

    if (( _directive & {directory} )); then
        _files -/
        return
    elif (( _directive & {file} )); then
        _files
        return
    elif (( ${{#_exts}} )); then
        _files -g "*.(${{(j:|:)_exts}})"
        return
    elif (( ${{#_matchers}} )); then
        _files -g "(${{(j:|:)_matchers}})"
        return
    fi

    if (( ${{#_cands}} )); then
        (( _directive & {no_space} )) && _flags=(-S '')
        _describe -t values 'value' _cands "${{_flags[@]}}"
        return
    fi
    (( _directive & {no_file} )) || _files
}}

if [[ "$funcstack[1]" == "_{fn}" ]]; then
    _{fn} "$@"
else
    compdef _{fn} {cmd}
fi
"""

_FISH = """\
# fish dynamic completion for {prog}
# Generated by: {prog} completion fish --dynamic

function __{fn}_dynamic
    set -l args (commandline -opc)
    set -e args[1]
    set -l cur (commandline -ct)
    set -l out ({fish_cmd} {complete} --shell fish -- $args "$cur" 2>/dev/null)
    test (count $out) -gt 0; or return 0

    set -l directive (string replace -- ':' '' $out[-1])
    string match -qr -- '^[0-9]+$' "$directive"; or set directive 0
    set -e out[-1]

    set -l globs
    set -l found 0
    for l in $out
        switch $l
            case '@ext:*'
                set -a globs "*."(string replace -- '@ext:' '' $l)
            case '@matcher:*'
                set -a globs (string replace -- '@matcher:' '' $l)
            case '*'
                set found 1
                string join '' -- $l
        end
    end

    if test (math "bitand($directive, {directory})") -ne 0
        __fish_complete_directories "$cur"
    else if test (math "bitand($directive, {file})") -ne 0
        __fish_complete_path "$cur"
    else if test (count $globs) -gt 0
        for f in (__fish_complete_path "$cur")
            set -l p (string replace -r '\\t.*' '' -- $f)
            set -l base (string replace -r '.*/' '' -- $p)
            if test -d "$p"
                string join '' -- $f
                continue
            end
            for g in $globs
                if string match -q -- "$g" "$base"
                    string join '' -- $f
                    break
                end
            end
        end
    else if test $found -eq 0; and test (math "bitand($directive, {no_file})") -eq 0
        __fish_complete_path "$cur"
    end
end

complete -c {fish_cmd} -e
complete -c {fish_cmd} -f -a '(__{fn}_dynamic)'
"""

_TEMPLATES = {ShellType.BASH: _BASH, ShellType.ZSH: _ZSH, ShellType.FISH: _FISH}


def generate_dynamic_script(shell: str, program_name: str) -> str:
    """Generate the script forwarding every completion request to the program.

    Args:
        shell: Target shell
        program_name: Program answering `__complete`

    Returns:
        The script content

    Raises:
        UnsupportedShellError: if the shell is not bash, zsh or fish
    """
    if shell not in _TEMPLATES:
        raise UnsupportedShellError(shell)
    return _TEMPLATES[ShellType(shell)].format(
        prog=program_name,
        cmd=shell_word(program_name),
        fish_cmd=shell_word(program_name, fish=True),
        fn=function_name(program_name),
        complete=COMPLETE_COMMAND,
        no_space=int(Directive.NO_SPACE),
        no_file=int(Directive.NO_FILE_COMPLETION),
        file=int(Directive.FILE_COMPLETION),
        directory=int(Directive.DIRECTORY_COMPLETION),
    )
