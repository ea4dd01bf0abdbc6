"""Adapters around the external flow diagram renderer."""

from __future__ import annotations

import base64
import binascii
import json
import subprocess
from dataclasses import dataclass, field
from typing import Any, List, Protocol

from .models import QualifiedName

DEFAULT_COMMAND = "flowdoc-render"
DEFAULT_IMAGE_FORMAT = "svg"


class RenderError(RuntimeError):
    """Raised when a flow description cannot be turned into a diagram."""


@dataclass
class RenderResult:
    """Diagram bytes plus the identifiers the flow refers to."""

    image: bytes
    components: List[QualifiedName] = field(default_factory=list)
    data_types: List[QualifiedName] = field(default_factory=list)
    info: str = ""


class FlowRenderer(Protocol):
    image_format: str

    def render(self, flow: str, name: str) -> RenderResult:
        """Convert a flow description into a diagram."""


class CommandRenderer:
    """Executes an external renderer binary.

    The flow text is passed on stdin. The program must print a JSON object
    with ``image`` (base64), ``components`` and ``data`` (lists of
    ``{"package": ..., "name": ...}``) and an optional ``info`` string.
    """

    def __init__(
        self,
        *,
        executable: str | None = None,
        image_format: str | None = None,
    ) -> None:
        self.executable = executable or DEFAULT_COMMAND
        self.image_format = image_format or DEFAULT_IMAGE_FORMAT

    def render(self, flow: str, name: str) -> RenderResult:
        args = [self.executable, "--name", name, "--format", self.image_format]
        try:
            completed = subprocess.run(
                args,
                input=flow,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise RenderError(
                f"Unable to locate flow renderer executable '{self.executable}'."
            ) from exc
        except subprocess.CalledProcessError as exc:
            message = (exc.stderr or "").strip() or (exc.stdout or "").strip() or str(exc.returncode)
            raise RenderError(f"Flow renderer failed for '{name}': {message}") from exc

        return parse_render_output(completed.stdout, name)


def parse_render_output(output: str, name: str) -> RenderResult:
    try:
        payload = json.loads(output)
    except json.JSONDecodeError as exc:
        raise RenderError(f"Flow renderer returned invalid JSON for '{name}': {exc}") from exc
    if not isinstance(payload, dict):
        raise RenderError(f"Flow renderer output for '{name}' must be a JSON object")

    image_data = payload.get("image")
    if not isinstance(image_data, str):
        raise RenderError(f"Flow renderer returned no image for '{name}'")
    try:
        image = base64.b64decode(image_data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise RenderError(f"Flow renderer returned a malformed image for '{name}'") from exc

    info = payload.get("info")
    return RenderResult(
        image=image,
        components=_names_from(payload.get("components"), name),
        data_types=_names_from(payload.get("data"), name),
        info=info if isinstance(info, str) else "",
    )


def _names_from(value: Any, name: str) -> List[QualifiedName]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise RenderError(f"Flow renderer returned a malformed identifier list for '{name}'")
    names: List[QualifiedName] = []
    for entry in value:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise RenderError(f"Flow renderer returned a malformed identifier for '{name}'")
        package = entry.get("package")
        names.append(
            QualifiedName(
                module_path=package if isinstance(package, str) else "",
                local_name=entry["name"],
            )
        )
    return names


__all__ = [
    "CommandRenderer",
    "DEFAULT_COMMAND",
    "DEFAULT_IMAGE_FORMAT",
    "FlowRenderer",
    "RenderError",
    "RenderResult",
    "parse_render_output",
]
