from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache

from .config import get_settings, resolve_path
from .index import TokenIndex, build_index
from .schema import SchemaInvalid, TokenListDocument, validate_document


class RegistryUnavailableError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


@dataclass(frozen=True)
class Registry:
    document: TokenListDocument
    index: TokenIndex


@lru_cache(maxsize=1)
def load_registry() -> Registry:
    settings = get_settings()
    path = resolve_path(settings.tokenlist_path)
    if not path.exists():
        raise RegistryUnavailableError(503, f'token list not found at {path}')

    try:
        payload = json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as exc:
        raise RegistryUnavailableError(503, f'token list at {path} is not valid JSON') from exc

    result = validate_document(payload)
    if isinstance(result, SchemaInvalid):
        raise RegistryUnavailableError(
            503,
            f'token list failed schema validation with {len(result.violations)} violation(s)'
        )
    return Registry(document=result.document, index=build_index(result.document.tokens))
