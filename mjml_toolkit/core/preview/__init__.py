"""Rendering of MJML documents to HTML."""

from .mjml_compiler import CliMjmlCompiler, CompileResult, MjmlCompiler, strip_locked_attributes

__all__ = ["CliMjmlCompiler", "CompileResult", "MjmlCompiler", "strip_locked_attributes"]
