"""Core, GUI-agnostic logic of MJML Toolkit: models, tree operations,
serialization, parsing and services."""
