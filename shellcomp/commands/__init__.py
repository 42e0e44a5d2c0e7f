"""Command tree model consumed by the completion engine.

This package provides:
- models: Data structures (CommandNode, LazyCommand, OptionMeta, PositionalMeta, value completions)
- fields: Building options and positionals from resolved field metadata
- tree: Lazy resolution, visibility rules and option lookup
"""
