from __future__ import annotations

"""MJML to HTML compilation.

The toolkit does not render MJML itself; it delegates to the reference
``mjml`` command-line compiler (``npm install -g mjml``).  Compilation is
advisory: every problem (compiler missing, timeout, validation messages)
comes back as a diagnostic in :class:`CompileResult`, never as an exception.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
import re
import shutil
import subprocess
from typing import List, Optional, Sequence

from mjml_toolkit.config import ConfigManager

__all__ = [
    "CompileResult",
    "MjmlCompiler",
    "CliMjmlCompiler",
    "strip_locked_attributes",
]

logger = logging.getLogger(__name__)

_LOCKED_ATTR_RE = re.compile(r'\s+data-locked="true"')


@dataclass
class CompileResult:
    """Compiled HTML plus the compiler's diagnostics (possibly both)."""
    html: str
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.html) and not self.errors


def strip_locked_attributes(markup: str) -> str:
    """Remove editor-only ``data-locked`` attributes the compiler would reject."""
    return _LOCKED_ATTR_RE.sub("", markup)


class MjmlCompiler(ABC):
    """Interface of anything able to turn MJML into HTML."""

    @abstractmethod
    def compile(self, markup: str) -> CompileResult:
        """Compile *markup*; problems are reported in ``errors``."""


class CliMjmlCompiler(MjmlCompiler):
    """Runs the ``mjml`` executable with the markup on stdin.

    Parameters
    ----------
    executable
        Program name or path; defaults to ``compiler.executable`` in
        ``editor.yml``.
    validation_level
        ``strict``, ``soft`` or ``skip``; defaults to ``compiler.validation_level``.
    timeout
        Seconds before the compiler is abandoned.
    """

    def __init__(
        self,
        executable: Optional[str] = None,
        validation_level: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        cfg = ConfigManager()
        self.executable = executable or cfg.get_editor_value("compiler", "executable", "mjml")
        self.validation_level = validation_level or cfg.get_editor_value("compiler", "validation_level", "soft")
        self.timeout = float(timeout or cfg.get_editor_value("compiler", "timeout_seconds", 30))

    def build_command(self, resolved: str) -> Sequence[str]:
        return [resolved, "-i", "-s", f"--config.validationLevel={self.validation_level}"]

    def compile(self, markup: str) -> CompileResult:
        resolved = shutil.which(self.executable)
        if resolved is None:
            logger.warning("MJML compiler not found: %s", self.executable)
            return CompileResult("", [f"MJML compiler '{self.executable}' not found on PATH."])

        cmd = self.build_command(resolved)
        try:
            proc = subprocess.run(
                cmd,
                input=strip_locked_attributes(markup),
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning("MJML compiler timed out after %.1fs", self.timeout)
            return CompileResult("", [f"MJML compiler timed out after {self.timeout:g}s."])
        except OSError as exc:
            logger.error("Could not run MJML compiler %s: %s", resolved, exc)
            return CompileResult("", [f"Could not run MJML compiler: {exc}"])

        errors = [line.strip() for line in (proc.stderr or "").splitlines() if line.strip()]
        if proc.returncode != 0 and not errors:
            errors.append(f"MJML compiler exited with status {proc.returncode}.")
        logger.debug("MJML compile: rc=%s html=%d chars diagnostics=%d", proc.returncode, len(proc.stdout or ""), len(errors))
        return CompileResult(proc.stdout or "", errors)
