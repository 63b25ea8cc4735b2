"""Host real para los helpers del template (subprocess + os.environ).

Decisión:
- El proceso hijo recibe un stdin vacío (`DEVNULL`): el stream de entrada ya
  se consumió para leer el template.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Sequence

logger = logging.getLogger(__name__)


class SubprocessHost:
    """Implementación de `core.interfaces.host.TemplateHost`."""

    def __init__(self, *, timeout: float | None = None, environ: dict[str, str] | None = None) -> None:
        self._timeout = timeout
        self._environ = environ

    def run_process(self, argv: Sequence[str]) -> str:
        if not argv:
            raise ValueError("exec requires at least a command name")
        logger.debug("template exec: %s", " ".join(argv))
        completed = subprocess.run(
            list(argv),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=self._timeout,
            check=False,
        )
        if completed.returncode != 0:
            raise subprocess.CalledProcessError(
                completed.returncode,
                list(argv),
                output=completed.stdout,
                stderr=completed.stderr,
            )
        return completed.stdout.decode("utf-8", errors="replace")

    def getenv(self, name: str) -> str | None:
        environ = self._environ if self._environ is not None else os.environ
        return environ.get(name)
