from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from web3 import Web3

from .schema import TokenInfo

LOGGER = logging.getLogger('tokenlist.index')

AddressIndex = Mapping[int, Mapping[str, TokenInfo]]
SymbolIndex = Mapping[int, Mapping[str, TokenInfo]]


@dataclass(frozen=True)
class TokenIndex:
    """Read-only lookup tables derived from one validated token sequence.

    ``by_address`` maps chain id -> checksummed address -> token and
    ``by_symbol`` maps chain id -> symbol (verbatim) -> token. ``tokens`` keeps
    the source order for chain listings. Colliding keys keep the last token seen.
    """

    by_address: AddressIndex
    by_symbol: SymbolIndex
    tokens: tuple[TokenInfo, ...]


def _freeze(tables: dict[int, dict[str, TokenInfo]]) -> Mapping[int, Mapping[str, TokenInfo]]:
    return MappingProxyType({chain_id: MappingProxyType(table) for chain_id, table in tables.items()})


def build_index(tokens: Iterable[TokenInfo]) -> TokenIndex:
    ordered = tuple(tokens)
    by_address: dict[int, dict[str, TokenInfo]] = {}
    by_symbol: dict[int, dict[str, TokenInfo]] = {}
    collisions = 0

    for token in ordered:
        address = Web3.to_checksum_address(token.address)
        chain_addresses = by_address.setdefault(token.chain_id, {})
        if address in chain_addresses:
            collisions += 1
        chain_addresses[address] = token
        by_symbol.setdefault(token.chain_id, {})[token.symbol] = token

    if collisions:
        LOGGER.warning('duplicate (chain_id, address) entries replaced count=%s', collisions)

    LOGGER.debug('built token index tokens=%s chains=%s', len(ordered), len(by_address))
    return TokenIndex(by_address=_freeze(by_address), by_symbol=_freeze(by_symbol), tokens=ordered)
