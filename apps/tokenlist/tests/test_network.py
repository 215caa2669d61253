import unittest
from unittest.mock import patch

from apps.tokenlist.network import (
    CHAIN_SPECS,
    Web3ContractReadClient,
    clear_clients,
    get_static_client,
    rpc_url_for_chain,
)


class StaticClientTests(unittest.TestCase):
    def setUp(self) -> None:
        clear_clients()

    def tearDown(self) -> None:
        clear_clients()

    def test_chain_ids_are_unique(self) -> None:
        chain_ids = [spec['chain_id'] for spec in CHAIN_SPECS]
        self.assertEqual(len(chain_ids), len(set(chain_ids)))

    def test_default_rpc_url(self) -> None:
        with patch.dict('os.environ', {}, clear=False) as environ:
            environ.pop('RPC_URL_1', None)
            self.assertEqual(rpc_url_for_chain(1), 'https://ethereum-rpc.publicnode.com')

    def test_env_override(self) -> None:
        with patch.dict('os.environ', {'RPC_URL_137': 'http://localhost:8545'}, clear=False):
            self.assertEqual(rpc_url_for_chain(137), 'http://localhost:8545')

            client = get_static_client(137)

        self.assertIsInstance(client, Web3ContractReadClient)
        self.assertEqual(client.rpc_url, 'http://localhost:8545')

    def test_unknown_chain_has_no_client(self) -> None:
        with patch.dict('os.environ', {}, clear=False) as environ:
            environ.pop('RPC_URL_424242', None)
            self.assertIsNone(rpc_url_for_chain(424242))
            self.assertIsNone(get_static_client(424242))

    def test_clients_are_memoised_per_chain(self) -> None:
        first = get_static_client(1)

        self.assertIs(get_static_client(1), first)
        self.assertIsNot(get_static_client(10), first)

        clear_clients()
        self.assertIsNot(get_static_client(1), first)


if __name__ == '__main__':
    unittest.main()
