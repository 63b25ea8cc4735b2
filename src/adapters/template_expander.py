"""Expansión de templates de request (Jinja2).

Responsabilidad:
- Convertir el input (template) en el body literal que se envía.
- Exponer helpers mínimos al template: `exec`, `lines`, `env`.

Ejemplo:

    <Id>{{ env("CUSTOMER_ID") }}</Id>
    {% for host in exec("cat", "hosts.txt") | lines %}<Host>{{ host }}</Host>{% endfor %}

Por qué Jinja2:
- Es el motor de templates que ya usa el proyecto para renderizar texto.
- `StrictUndefined` convierte helpers/variables desconocidos en error en vez
  de expandirlos a vacío.
"""

from __future__ import annotations

import re
import subprocess
from typing import Callable

from jinja2 import Environment, StrictUndefined
from jinja2 import TemplateError as JinjaTemplateError

from core.domain.errors import TemplateError
from core.interfaces.host import TemplateHost

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> list[str]:
    """Divide en líneas (LF, CRLF o CR) sin los terminadores."""

    parts = _LINE_BREAK.split(str(text))
    if parts and parts[-1] == "":
        parts.pop()
    return parts


def _build_env(host: TemplateHost) -> Environment:
    env = Environment(
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )

    def exec_helper(*argv: object) -> str:
        return host.run_process([str(a) for a in argv])

    def env_helper(name: str, default: str = "") -> str:
        value = host.getenv(str(name))
        return default if value is None else value

    helpers: dict[str, Callable[..., object]] = {
        "exec": exec_helper,
        "lines": split_lines,
        "env": env_helper,
    }
    env.globals.update(helpers)
    env.filters["lines"] = split_lines
    return env


def _describe_process_error(exc: subprocess.CalledProcessError) -> str:
    cmd = exc.cmd if isinstance(exc.cmd, str) else " ".join(str(c) for c in exc.cmd)
    stderr = exc.stderr
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
    return f"command {cmd!r} exited with status {exc.returncode}{detail}"


def expand_template(template: str, host: TemplateHost) -> str:
    """Expande `template` en una sola pasada.

    Lanza `TemplateError` ante errores de sintaxis, helpers o variables no
    definidos, procesos con exit code distinto de cero o que no se pueden
    lanzar.
    """

    env = _build_env(host)
    try:
        return env.from_string(template).render()
    except subprocess.CalledProcessError as exc:
        raise TemplateError(_describe_process_error(exc)) from exc
    except subprocess.SubprocessError as exc:
        raise TemplateError(f"command failed: {exc}") from exc
    except OSError as exc:
        raise TemplateError(f"could not launch command: {exc}") from exc
    except JinjaTemplateError as exc:
        raise TemplateError(f"{type(exc).__name__}: {exc}") from exc
    except ValueError as exc:
        raise TemplateError(str(exc)) from exc
