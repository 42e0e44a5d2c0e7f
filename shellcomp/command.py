"""shellcomp command line: completion scripts for a command tree described in TOML."""

import sys

from . import VERSION
from .completions.handlers import add_completion_commands, handle_complete, handle_completion
from .config import Configuration, load_configuration
from .constants import COMPLETE_COMMAND, COMPLETION_COMMAND, DEFAULT_COMMAND_TIMEOUT, SUPPORTED_SHELLS
from .loader import load_command_tree
from .logging_setup import get_logger, init_logger
from .models import ExitCode, ShellCompError, TreeLoadError

__all__ = ["main", "run", "use_param"]

USAGE = f"""Usage: shellcomp [--debug FILE] --tree FILE.toml [--program NAME] <command> [args...]

Commands:
  {COMPLETION_COMMAND} [{"|".join(SUPPORTED_SHELLS)}] [default|PATH] [-i] [--dynamic]
  {COMPLETE_COMMAND} --shell <{"|".join(SUPPORTED_SHELLS)}> -- <words...>"""


def use_param(txt: str, args: list[str]) -> str:
    """Check if parameter `txt` is in args.

    if found, removes it from args & returns the argument value
    """
    v = ""
    if txt in args:
        i = args.index(txt)
        if i + 1 < len(args):
            v = args[i + 1]
        del args[i : i + 2]
    return v


def _write(text: str) -> None:
    sys.stdout.write(text if text.endswith("\n") else text + "\n")


def run(args: list[str], config: Configuration | None = None) -> ExitCode:
    """Run a command, `args` being the command line without the program name and `--debug`.

    Settings are read from the environment unless `config` is given.
    """
    log = get_logger("startup")
    if args and args[0] == "--version":
        _write(VERSION)
        return ExitCode.SUCCESS

    tree_file = use_param("--tree", args)
    program_name = use_param("--program", args)
    if not tree_file or not args or args[0] not in (COMPLETION_COMMAND, COMPLETE_COMMAND):
        log.error(USAGE)
        return ExitCode.USAGE_ERROR

    if config is None:
        config = load_configuration(log)
    try:
        root = load_command_tree(tree_file)
        program_name = program_name or root.name
        root = add_completion_commands(root, program_name)
        command, rest = args[0], args[1:]
        if command == COMPLETE_COMMAND:
            timeout = config.get_float("command_timeout", DEFAULT_COMMAND_TIMEOUT)
            code, text = handle_complete(root, rest, timeout=timeout)
        else:
            include_descriptions = config.get_bool("include_descriptions", True)
            code, text = handle_completion(root, rest, program_name, include_descriptions=include_descriptions)
    except TreeLoadError as e:
        log.critical("%s", e)
        return ExitCode.LOAD_ERROR
    except ShellCompError as e:
        log.critical("Command failed: %s", e)
        return ExitCode.COMMAND_ERROR

    if code == ExitCode.SUCCESS:
        _write(text)
    else:
        log.error(text)
    return code


def main() -> None:
    """Run the command."""
    args = sys.argv[1:]
    debug_flag = use_param("--debug", args)
    config = load_configuration(get_logger("startup"))
    init_logger(filename=debug_flag or None, force_debug=bool(debug_flag) or config.get_bool("debug"))
    log = get_logger("startup")

    code = ExitCode.COMMAND_ERROR
    try:
        code = run(args, config)
    except KeyboardInterrupt:
        pass
    except Exception:  # pylint: disable=W0718
        log.critical("Unhandled exception:", exc_info=True)
    sys.exit(int(code))


if __name__ == "__main__":
    main()
