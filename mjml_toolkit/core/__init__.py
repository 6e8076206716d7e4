"""GUI-agnostic core: block model, registry, parser, tree operations and services."""
