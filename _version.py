"""
Adaptive Optimizer Version Information

Follow Semantic Versioning 2.0.0 (https://semver.org/)

Version History:
- 1.1.0: Resource usage monitor with threshold alerts, YAML/env configuration
- 1.0.0: Capability probe, tier derivation, feedback loop and settings publisher
"""

from __future__ import annotations

__version__ = "1.1.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

__release_date__ = "2026-10-19"
__release_name__ = "Adaptive Optimizer"

# Populated by CI/CD when available
__git_sha__ = None


def get_version() -> str:
    return __version__


def get_full_version() -> str:
    """Version string including the git sha when known."""
    version = __version__
    if __git_sha__:
        version += f"+{__git_sha__[:7]}"
    return version


def get_version_dict() -> dict[str, str | tuple[int, ...] | None]:
    return {
        "version": __version__,
        "version_info": __version_info__,
        "release_date": __release_date__,
        "release_name": __release_name__,
        "git_sha": __git_sha__,
    }
