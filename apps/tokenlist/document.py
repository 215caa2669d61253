from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .schema import (
    TAG_DESCRIPTION_PATTERN,
    TAG_IDENTIFIER_PATTERN,
    TAG_NAME_PATTERN,
    TokenInfo,
    token_to_dict,
)

LOGGER = logging.getLogger('tokenlist.document')


class TokenListEditError(ValueError):
    pass


def load_document(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as exc:
        raise TokenListEditError(f'{path} is not valid JSON: {exc}') from exc
    if not isinstance(payload, dict):
        raise TokenListEditError(f'{path} does not contain a token list object')
    return payload


def save_document(path: Path, document: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + '\n', encoding='utf-8')
    LOGGER.info('wrote token list path=%s tokens=%s', path, len(document.get('tokens', [])))


def now_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _touched(document: dict[str, Any]) -> dict[str, Any]:
    updated = copy.deepcopy(document)
    updated['timestamp'] = now_timestamp()
    return updated


def _tokens(document: dict[str, Any]) -> list[dict[str, Any]]:
    tokens = document.get('tokens')
    if not isinstance(tokens, list):
        return []
    return [token for token in tokens if isinstance(token, dict)]


def _same_token(token: dict[str, Any], chain_id: int, address: str) -> bool:
    return (
        token.get('chainId') == chain_id
        and str(token.get('address', '')).lower() == address.lower()
    )


def find_tokens(document: dict[str, Any], search: str) -> list[dict[str, Any]]:
    needle = search.strip().lower()
    return [token for token in _tokens(document) if needle in str(token.get('symbol', '')).lower()]


def add_token(document: dict[str, Any], token: dict[str, Any]) -> dict[str, Any]:
    try:
        parsed = TokenInfo.model_validate(token)
    except ValidationError as exc:
        details = '; '.join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise TokenListEditError(f'invalid token: {details}') from exc

    for existing in _tokens(document):
        if _same_token(existing, parsed.chain_id, parsed.address):
            raise TokenListEditError(
                f'token {parsed.address} already listed on chain {parsed.chain_id}'
            )

    known_tags = document.get('tags') or {}
    unknown = [tag for tag in parsed.tags or () if tag not in known_tags]
    if unknown:
        raise TokenListEditError(f"unknown tags: {', '.join(unknown)}")

    updated = _touched(document)
    updated.setdefault('tokens', []).append(token_to_dict(parsed))
    LOGGER.info('token added chain_id=%s symbol=%s', parsed.chain_id, parsed.symbol)
    return updated


def remove_token(document: dict[str, Any], chain_id: int, address: str) -> dict[str, Any]:
    tokens = document.get('tokens') or []
    remaining = [
        token for token in tokens
        if not (isinstance(token, dict) and _same_token(token, chain_id, address))
    ]
    if len(remaining) == len(tokens):
        raise TokenListEditError(f'token {address} is not listed on chain {chain_id}')

    updated = _touched(document)
    updated['tokens'] = copy.deepcopy(remaining)
    LOGGER.info('token removed chain_id=%s address=%s', chain_id, address)
    return updated


def add_tag(document: dict[str, Any], tag_id: str, name: str, description: str) -> dict[str, Any]:
    if not TAG_IDENTIFIER_PATTERN.search(tag_id):
        raise TokenListEditError(
            'Tag identifier must be 1-10 characters long and contain only letters, numbers, and underscores'
        )
    if not TAG_NAME_PATTERN.search(name):
        raise TokenListEditError(
            'Name must be 1-20 characters and contain only letters, numbers, underscores, and spaces'
        )
    if not TAG_DESCRIPTION_PATTERN.search(description):
        raise TokenListEditError(
            'Description must be 1-200 characters and contain only letters, numbers, '
            'underscores, spaces, periods, commas, and colons'
        )
    if tag_id in (document.get('tags') or {}):
        raise TokenListEditError(f'tag {tag_id} already exists')

    updated = _touched(document)
    tags = updated.get('tags')
    if not isinstance(tags, dict):
        tags = {}
        updated['tags'] = tags
    tags[tag_id] = {'name': name, 'description': description}
    LOGGER.info('tag added tag=%s', tag_id)
    return updated


def remove_tags(document: dict[str, Any], tag_ids: Iterable[str]) -> dict[str, Any]:
    existing = document.get('tags') or {}
    if not existing:
        raise TokenListEditError('no tags exist to remove')

    to_remove = [tag_id for tag_id in dict.fromkeys(tag_ids) if tag_id in existing]
    if not to_remove:
        raise TokenListEditError('none of the selected tags exist')

    updated = _touched(document)
    for tag_id in to_remove:
        del updated['tags'][tag_id]

    for token in _tokens(updated):
        if isinstance(token.get('tags'), list):
            token['tags'] = [tag for tag in token['tags'] if tag not in to_remove]

    LOGGER.info('tags removed tags=%s', ','.join(to_remove))
    return updated
