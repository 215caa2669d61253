from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel
from web3 import Web3

from .index import TokenIndex
from .schema import ADDRESS_PATTERN, TokenInfo


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_loose_address(value: Any) -> bool:
    return isinstance(value, str) and bool(ADDRESS_PATTERN.search(value))


def _token_fields(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return value
    return None


def is_address_equal(a: Any, b: Any) -> bool:
    """Compare two hex addresses case-insensitively; malformed input is never equal."""
    return _is_loose_address(a) and _is_loose_address(b) and a.lower() == b.lower()


def is_token(value: Any) -> bool:
    fields = _token_fields(value)
    if fields is None:
        return False
    return (
        _is_number(fields.get('chainId'))
        and _is_loose_address(fields.get('address'))
        and isinstance(fields.get('name'), str)
        and isinstance(fields.get('symbol'), str)
        and _is_number(fields.get('decimals'))
    )


def is_token_equal(a: Any, b: Any) -> bool:
    if not (is_token(a) and is_token(b)):
        return False
    fields_a = _token_fields(a)
    fields_b = _token_fields(b)
    return (
        fields_a['chainId'] == fields_b['chainId']
        and is_address_equal(fields_a['address'], fields_b['address'])
    )


def is_listed_token(index: TokenIndex, value: Any) -> bool:
    if not is_token(value):
        return False
    fields = _token_fields(value)
    chain_symbols = index.by_symbol.get(fields['chainId'])
    return chain_symbols is not None and fields['symbol'] in chain_symbols


def get_token_by_address(index: TokenIndex, chain_id: Any, address: Any) -> TokenInfo | None:
    if not _is_number(chain_id) or not _is_loose_address(address):
        return None
    chain_tokens = index.by_address.get(chain_id)
    if chain_tokens is None:
        return None
    return chain_tokens.get(Web3.to_checksum_address(address))


def get_token_by_address_curried(index: TokenIndex, chain_id: Any) -> Callable[[Any], TokenInfo | None]:
    def lookup(address: Any) -> TokenInfo | None:
        return get_token_by_address(index, chain_id, address)

    return lookup


def get_token_by_symbol(index: TokenIndex, chain_id: Any, symbol: Any) -> TokenInfo | None:
    if not _is_number(chain_id) or not isinstance(symbol, str):
        return None
    chain_tokens = index.by_symbol.get(chain_id)
    if chain_tokens is None:
        return None
    return chain_tokens.get(symbol)


def get_token_by_symbol_curried(index: TokenIndex, chain_id: Any) -> Callable[[Any], TokenInfo | None]:
    def lookup(symbol: Any) -> TokenInfo | None:
        return get_token_by_symbol(index, chain_id, symbol)

    return lookup


def get_chain_token_list(
    index: TokenIndex,
    chain_id: Any,
    tags: Iterable[str] = ()
) -> list[TokenInfo]:
    """Tokens of one chain in document order, optionally limited to any of ``tags``."""
    if not _is_number(chain_id) or chain_id not in index.by_symbol:
        return []

    if isinstance(tags, str):
        tags = (tags,)
    elif tags is None:
        tags = ()
    elif not isinstance(tags, Iterable):
        return []

    requested = list(tags)
    wanted = {tag for tag in requested if isinstance(tag, str)}
    return [
        token
        for token in index.tokens
        if token.chain_id == chain_id
        and (not requested or any(tag in wanted for tag in token.tags or ()))
    ]
