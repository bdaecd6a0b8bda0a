"""Synthetic template used when starting from scratch."""

from __future__ import annotations

import io
import json
import tarfile
import time

from registry.models import Template

START_POINT_CONFIGURATION = b"""{
\t"name": "devscaffold default",
\t"image": "mcr.microsoft.com/devcontainers/base:${templateOption:imageVariant}"
}
"""

START_POINT_MANIFEST = {
    "id": "devscaffold-base-template",
    "version": "1.0.0",
    "name": "Base Template (devscaffold)",
    "options": {
        "imageVariant": {
            "type": "string",
            "default": "jammy",
            "proposals": ["bookworm", "bullseye", "jammy", "focal"],
        }
    },
    "type": "image",
    "fileCount": 2,
    "owner": "devscaffold",
}


def _tar_info(name: str, mode: int, mtime: int) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name)
    info.mode = mode
    info.uid = 1000
    info.gid = 1000
    info.mtime = mtime
    return info


def create_empty_start_point() -> tuple[bytes, Template]:
    """Build a minimal image template in memory.

    Returns:
        The uncompressed tar stream and its parsed template declaration.
    """
    manifest = json.dumps(START_POINT_MANIFEST, indent=2).encode("utf-8")
    mtime = int(time.time())
    buffer = io.BytesIO()

    with tarfile.open(fileobj=buffer, mode="w", format=tarfile.GNU_FORMAT) as tar:
        directory = _tar_info(".devcontainer/", 0o775, mtime)
        directory.type = tarfile.DIRTYPE
        tar.addfile(directory)

        for name, content in (
            (".devcontainer/devcontainer.json", START_POINT_CONFIGURATION),
            ("devcontainer-template.json", manifest),
        ):
            info = _tar_info(name, 0o664, mtime)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))

    return buffer.getvalue(), Template.model_validate(START_POINT_MANIFEST)
