from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class VersionUpgrade(Enum):
    NONE = 'none'
    PATCH = 'patch'
    MINOR = 'minor'
    MAJOR = 'major'


@dataclass(frozen=True)
class TokenListDiff:
    added: tuple[dict[str, Any], ...]
    removed: tuple[dict[str, Any], ...]
    changed: tuple[tuple[dict[str, Any], dict[str, Any]], ...]


def _token_key(token: dict[str, Any]) -> tuple[Any, str]:
    return token.get('chainId'), str(token.get('address', '')).lower()


def _keyed(tokens: Any) -> dict[tuple[Any, str], dict[str, Any]]:
    if not isinstance(tokens, list):
        return {}
    return {_token_key(token): token for token in tokens if isinstance(token, dict)}


def diff_tokens(base: list[dict[str, Any]], current: list[dict[str, Any]]) -> TokenListDiff:
    before = _keyed(base)
    after = _keyed(current)

    added = tuple(token for key, token in after.items() if key not in before)
    removed = tuple(token for key, token in before.items() if key not in after)
    changed = tuple(
        (before[key], token)
        for key, token in after.items()
        if key in before and before[key] != token
    )
    return TokenListDiff(added=added, removed=removed, changed=changed)


def min_version_bump(base: list[dict[str, Any]], current: list[dict[str, Any]]) -> VersionUpgrade:
    diff = diff_tokens(base, current)
    if diff.removed:
        return VersionUpgrade.MAJOR
    if diff.added:
        return VersionUpgrade.MINOR
    if diff.changed:
        return VersionUpgrade.PATCH
    return VersionUpgrade.NONE


def bump_version(version: dict[str, int], upgrade: VersionUpgrade) -> dict[str, int]:
    major = int(version.get('major', 0))
    minor = int(version.get('minor', 0))
    patch = int(version.get('patch', 0))

    if upgrade is VersionUpgrade.MAJOR:
        return {'major': major + 1, 'minor': 0, 'patch': 0}
    if upgrade is VersionUpgrade.MINOR:
        return {'major': major, 'minor': minor + 1, 'patch': 0}
    if upgrade is VersionUpgrade.PATCH:
        return {'major': major, 'minor': minor, 'patch': patch + 1}
    return {'major': major, 'minor': minor, 'patch': patch}


def next_version(base: dict[str, Any], current: dict[str, Any]) -> dict[str, int]:
    """Version for ``current`` given the previously published ``base`` list."""
    upgrade = min_version_bump(base.get('tokens', []), current.get('tokens', []))
    return bump_version(base.get('version') or {}, upgrade)
