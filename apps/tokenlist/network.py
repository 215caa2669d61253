from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import Any, Protocol

from web3 import AsyncWeb3

LOGGER = logging.getLogger('tokenlist.network')

ERC20_META_ABI = [
    {
        'inputs': [],
        'name': 'name',
        'outputs': [{'internalType': 'string', 'name': '', 'type': 'string'}],
        'stateMutability': 'view',
        'type': 'function'
    },
    {
        'inputs': [],
        'name': 'symbol',
        'outputs': [{'internalType': 'string', 'name': '', 'type': 'string'}],
        'stateMutability': 'view',
        'type': 'function'
    },
    {
        'inputs': [],
        'name': 'decimals',
        'outputs': [{'internalType': 'uint8', 'name': '', 'type': 'uint8'}],
        'stateMutability': 'view',
        'type': 'function'
    }
]

CHAIN_SPECS: list[dict[str, Any]] = [
    {
        'chain_id': 1,
        'chain_key': 'ethereum',
        'name': 'Ethereum',
        'default_rpc_url': 'https://ethereum-rpc.publicnode.com'
    },
    {
        'chain_id': 10,
        'chain_key': 'optimism',
        'name': 'OP Mainnet',
        'default_rpc_url': 'https://optimism-rpc.publicnode.com'
    },
    {
        'chain_id': 56,
        'chain_key': 'bnb',
        'name': 'BNB Smart Chain',
        'default_rpc_url': 'https://bsc-rpc.publicnode.com'
    },
    {
        'chain_id': 97,
        'chain_key': 'bnb-testnet',
        'name': 'BNB Chain Testnet',
        'default_rpc_url': 'https://bsc-testnet-rpc.publicnode.com'
    },
    {
        'chain_id': 100,
        'chain_key': 'gnosis',
        'name': 'Gnosis',
        'default_rpc_url': 'https://gnosis-rpc.publicnode.com'
    },
    {
        'chain_id': 137,
        'chain_key': 'polygon',
        'name': 'Polygon',
        'default_rpc_url': 'https://polygon-bor-rpc.publicnode.com'
    },
    {
        'chain_id': 8453,
        'chain_key': 'base',
        'name': 'Base',
        'default_rpc_url': 'https://base-rpc.publicnode.com'
    },
    {
        'chain_id': 42161,
        'chain_key': 'arbitrum',
        'name': 'Arbitrum One',
        'default_rpc_url': 'https://arbitrum-one-rpc.publicnode.com'
    },
    {
        'chain_id': 43114,
        'chain_key': 'avalanche',
        'name': 'Avalanche C-Chain',
        'default_rpc_url': 'https://avalanche-c-chain-rpc.publicnode.com'
    },
    {
        'chain_id': 11155111,
        'chain_key': 'ethereum-sepolia',
        'name': 'Ethereum Sepolia',
        'default_rpc_url': 'https://ethereum-sepolia-rpc.publicnode.com'
    }
]


class ContractReadClient(Protocol):
    async def symbol(self, address: str) -> str: ...

    async def decimals(self, address: str) -> int: ...


ClientFactory = Callable[[int], 'ContractReadClient | None']


class Web3ContractReadClient:
    def __init__(self, chain_id: int, rpc_url: str) -> None:
        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self.web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

    def _contract(self, address: str) -> Any:
        return self.web3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=ERC20_META_ABI)

    async def name(self, address: str) -> str:
        return str(await self._contract(address).functions.name().call())

    async def symbol(self, address: str) -> str:
        return str(await self._contract(address).functions.symbol().call())

    async def decimals(self, address: str) -> int:
        return int(await self._contract(address).functions.decimals().call())


def rpc_url_for_chain(chain_id: int) -> str | None:
    override = os.getenv(f'RPC_URL_{chain_id}', '').strip()
    if override:
        return override
    for spec in CHAIN_SPECS:
        if spec['chain_id'] == chain_id:
            return str(spec['default_rpc_url'])
    return None


_clients: dict[int, Web3ContractReadClient] = {}


def get_static_client(chain_id: int) -> Web3ContractReadClient | None:
    client = _clients.get(chain_id)
    if client is not None:
        return client

    rpc_url = rpc_url_for_chain(chain_id)
    if rpc_url is None:
        LOGGER.warning('no rpc endpoint configured chain_id=%s', chain_id)
        return None

    client = Web3ContractReadClient(chain_id, rpc_url)
    _clients[chain_id] = client
    return client


def clear_clients() -> None:
    _clients.clear()
