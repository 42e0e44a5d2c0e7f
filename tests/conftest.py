"""Generic fixtures."""

import logging

import pytest

from shellcomp.commands.models import (
    Choices,
    CommandCompletion,
    CommandNode,
    DirectoryCompletion,
    FileCompletion,
    LazyCommand,
    NoCompletion,
    OptionMeta,
    OptionType,
    PositionalMeta,
)


def pytest_configure():
    "Runs once before all"
    from shellcomp.logging_setup import init_logger

    init_logger("/dev/null", force_debug=True)


def _plugin_loader() -> CommandNode:
    return CommandNode(
        name="plugin",
        description="Manage plugins",
        options=(OptionMeta("force", type=OptionType.BOOLEAN, description="Force the operation"),),
        subcommands={"install": CommandNode(name="install", description="Install a plugin")},
    )


def _broken_loader() -> CommandNode:
    raise RuntimeError("cannot load")


def make_sample_tree() -> CommandNode:
    """A tree using every kind of option, positional and subcommand."""
    return CommandNode(
        name="mycli",
        description="Sample CLI",
        version="1.2.3",
        options=(
            OptionMeta("verbose", alias="v", type=OptionType.BOOLEAN, description="Verbose output"),
            OptionMeta(
                "format",
                alias="f",
                type=OptionType.ENUM,
                description="Output format",
                value_completion=Choices(("json", "yaml")),
            ),
            OptionMeta("tags", type=OptionType.ARRAY, description="Tags to apply"),
            OptionMeta("config", description="Config file", value_completion=FileCompletion(extensions=("json", "yaml"))),
            OptionMeta("outputDir", description="Output directory", value_completion=DirectoryCompletion()),
        ),
        subcommands={
            "build": CommandNode(
                name="build",
                description="Build the project",
                options=(
                    OptionMeta("watch", alias="w", type=OptionType.BOOLEAN, description="Watch for changes"),
                    OptionMeta(
                        "target",
                        description="Build target",
                        value_completion=CommandCompletion("printf 'debug\\nrelease\\n'"),
                    ),
                    OptionMeta("token", description="API token", value_completion=NoCompletion()),
                ),
                positionals=(PositionalMeta("entry", description="Entry file", value_completion=FileCompletion()),),
            ),
            "remote": CommandNode(
                name="remote",
                description="Manage remotes",
                subcommands={
                    "add": CommandNode(
                        name="add",
                        description="Add a remote",
                        positionals=(
                            PositionalMeta("name", description="Remote name"),
                            PositionalMeta("url", description="Remote URL"),
                        ),
                    ),
                    "list": CommandNode(name="list", description="List remotes"),
                },
            ),
            "deploy": CommandNode(
                name="deploy",
                description="Deploy artifacts",
                positionals=(
                    PositionalMeta("env", value_completion=Choices(("staging", "production"))),
                    PositionalMeta("files", variadic=True, value_completion=FileCompletion(matcher=("*.tar.gz",))),
                ),
            ),
            "plugin": LazyCommand(loader=_plugin_loader, description="Manage plugins"),
            "broken": LazyCommand(loader=_broken_loader),
        },
    )


@pytest.fixture
def test_logger():
    "A logger for objects requiring one"
    return logging.getLogger("shellcomp.tests")


@pytest.fixture
def sample_tree() -> CommandNode:
    "The sample command tree"
    return make_sample_tree()


@pytest.fixture
def flat_tree() -> CommandNode:
    "A command without subcommands"
    return CommandNode(
        name="flat",
        description="Single command",
        options=(
            OptionMeta("level", alias="l", description="Level", value_completion=Choices(("low", "high"))),
            OptionMeta("quiet", alias="q", type=OptionType.BOOLEAN, description="Quiet"),
        ),
        positionals=(PositionalMeta("input", description="Input file", value_completion=FileCompletion()),),
    )
