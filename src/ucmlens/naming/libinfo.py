"""Lib-dependency detection and version parsing for FQNs.

Dependencies live under ``lib.{segment}.path.to.item`` where the segment is
``{project}`` optionally followed by ``_{version}``:

- ``unison_cloud_23_0_0`` -> "unison_cloud", version "23.0.0"
- ``base_1_0_0``          -> "base", version "1.0.0"
- ``json_main``           -> "json", branch "main"
- ``base``                -> "base", unversioned

Lib names may themselves contain underscores, so a trailing ``_word`` is only
taken as a branch when it looks like one.
"""

from __future__ import annotations

import re

from ucmlens.models import LibInfo, ResolvedDefinition

LIB_NAMESPACE = "lib"

# Checked in this order: "base_1_0_0" must be semver 1.0.0, never a branch.
_SEMVER_SUFFIX_RE = re.compile(r"^(.+?)_(\d+(?:_\d+){1,2})$")
_BRANCH_SUFFIX_RE = re.compile(r"^(.+)_([a-zA-Z][a-zA-Z0-9_-]*)$")
_BRANCH_PREFIX_RE = re.compile(r"^(main|master|develop|release|feature|hotfix|bugfix)")
MAX_SHORT_BRANCH_LEN = 10


def is_lib_fqn(fqn: str) -> bool:
    return fqn.startswith(LIB_NAMESPACE + ".")


def parse_lib_info(fqn: str) -> LibInfo | None:
    """Parse lib info from an FQN. Returns None if it is not a lib dependency."""
    if not is_lib_fqn(fqn):
        return None

    parts = fqn.split(".")
    if len(parts) < 3:
        return None

    lib_segment = parts[1]
    path_in_lib = ".".join(parts[2:])

    semver = _SEMVER_SUFFIX_RE.match(lib_segment)
    if semver:
        return LibInfo(
            lib_name=semver.group(1),
            version=semver.group(2).replace("_", "."),
            is_semantic_version=True,
            path_in_lib=path_in_lib,
            raw_lib_segment=lib_segment,
        )

    branch = _BRANCH_SUFFIX_RE.match(lib_segment)
    if branch:
        version = branch.group(2)
        if _BRANCH_PREFIX_RE.match(version) or len(version) <= MAX_SHORT_BRANCH_LEN:
            return LibInfo(
                lib_name=branch.group(1),
                version=version,
                is_semantic_version=False,
                path_in_lib=path_in_lib,
                raw_lib_segment=lib_segment,
            )

    return LibInfo(
        lib_name=lib_segment,
        path_in_lib=path_in_lib,
        raw_lib_segment=lib_segment,
    )


def get_display_name(resolved: ResolvedDefinition) -> str:
    """User-facing name: "libName.pathInLib" for lib deps, else the FQN."""
    if resolved.lib_info:
        return f"{resolved.lib_info.lib_name}.{resolved.lib_info.path_in_lib}"
    return resolved.fqn


def get_version_badge(resolved: ResolvedDefinition) -> str | None:
    """Version text for a lib dependency, or None."""
    if resolved.lib_info and resolved.lib_info.version:
        return resolved.lib_info.version
    return None
