import subprocess
from types import SimpleNamespace

from mjml_toolkit.core.models import HeadSettings
from mjml_toolkit.core.preview import mjml_compiler
from mjml_toolkit.core.preview.mjml_compiler import CliMjmlCompiler, CompileResult, MjmlCompiler, strip_locked_attributes
from mjml_toolkit.core.services.preview_service import PreviewResult, PreviewService


class FakeCompiler(MjmlCompiler):
    def __init__(self, result):
        self.result = result
        self.calls = []

    def compile(self, markup):
        self.calls.append(markup)
        return self.result


def test_compile_document_success(context, schema):
    compiler = FakeCompiler(CompileResult("<html>ok</html>"))
    service = PreviewService(compiler, schema)
    context.head_settings = HeadSettings(title="Preview me")

    result = service.compile_document(context)

    assert isinstance(result, PreviewResult)
    assert result.success
    assert result.content == "<html>ok</html>"
    assert result.message == "Compiled."
    assert "<mj-title>Preview me</mj-title>" in compiler.calls[0]
    assert result.details["mjml"] == compiler.calls[0]
    assert result.details["diagnostics"] == []


def test_diagnostics_with_html_are_advisory(context, schema):
    compiler = FakeCompiler(CompileResult("<html/>", ["Line 3: unknown attribute"]))
    result = PreviewService(compiler, schema).compile_document(context)
    assert result.success
    assert result.message == "Compiled with 1 warning(s)."
    assert result.details["diagnostics"] == ["Line 3: unknown attribute"]


def test_no_html_is_a_failure(context, schema):
    compiler = FakeCompiler(CompileResult("", ["compiler exploded"]))
    result = PreviewService(compiler, schema).compile_document(context)
    assert not result.success
    assert result.content is None
    assert result.message == "compiler exploded"


def test_generate_markup_matches_document(context, schema):
    markup = PreviewService(FakeCompiler(CompileResult("")), schema).generate_markup(context)
    assert markup.startswith("<mjml>")
    assert '<mj-button href="#">Go</mj-button>' in markup


# ---------------------------
# CLI compiler
# ---------------------------

def test_strip_locked_attributes():
    markup = '<mj-section data-locked="true" padding="0"></mj-section>'
    assert strip_locked_attributes(markup) == '<mj-section padding="0"></mj-section>'


def test_cli_compiler_missing_executable(monkeypatch):
    monkeypatch.setattr(mjml_compiler.shutil, "which", lambda name: None)
    result = CliMjmlCompiler(executable="mjml-nope").compile("<mjml></mjml>")
    assert result.html == ""
    assert "not found" in result.errors[0]


def test_cli_compiler_runs_process(monkeypatch):
    captured = {}

    def fake_run(cmd, **kwargs):
        captured["cmd"] = cmd
        captured["input"] = kwargs["input"]
        return SimpleNamespace(returncode=0, stdout="<html></html>", stderr="warn one\n\n")

    monkeypatch.setattr(mjml_compiler.shutil, "which", lambda name: "/usr/bin/mjml")
    monkeypatch.setattr(mjml_compiler.subprocess, "run", fake_run)

    compiler = CliMjmlCompiler(validation_level="strict")
    result = compiler.compile('<mj-section data-locked="true"></mj-section>')

    assert captured["cmd"] == ["/usr/bin/mjml", "-i", "-s", "--config.validationLevel=strict"]
    assert captured["input"] == "<mj-section></mj-section>"
    assert result.html == "<html></html>"
    assert result.errors == ["warn one"]
    assert not result.ok


def test_cli_compiler_exit_status_without_stderr(monkeypatch):
    monkeypatch.setattr(mjml_compiler.shutil, "which", lambda name: "/usr/bin/mjml")
    monkeypatch.setattr(
        mjml_compiler.subprocess,
        "run",
        lambda cmd, **kwargs: SimpleNamespace(returncode=2, stdout="", stderr=""),
    )
    result = CliMjmlCompiler().compile("<mjml></mjml>")
    assert result.errors == ["MJML compiler exited with status 2."]


def test_cli_compiler_timeout(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(mjml_compiler.shutil, "which", lambda name: "/usr/bin/mjml")
    monkeypatch.setattr(mjml_compiler.subprocess, "run", fake_run)
    result = CliMjmlCompiler(timeout=2).compile("<mjml></mjml>")
    assert result.errors == ["MJML compiler timed out after 2s."]


def test_cli_compiler_defaults_from_config():
    compiler = CliMjmlCompiler()
    assert compiler.executable == "mjml"
    assert compiler.validation_level == "soft"
    assert compiler.timeout == 30.0
