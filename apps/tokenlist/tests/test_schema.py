import copy
import unittest

from apps.tokenlist.schema import (
    SchemaInvalid,
    SchemaValid,
    TokenInfo,
    document_to_dict,
    validate_document,
)

USDC = '0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48'
DAI = '0x6B175474E89094C44Da98b954EedeAC495271d0F'


def _token(**overrides) -> dict:
    token = {
        'chainId': 1,
        'address': USDC,
        'decimals': 6,
        'name': 'USD Coin',
        'symbol': 'USDC'
    }
    token.update(overrides)
    return token


def _document(**overrides) -> dict:
    document = {
        'name': 'T',
        'timestamp': '2025-02-26T13:10:54.357Z',
        'version': {'major': 0, 'minor': 0, 'patch': 1},
        'tokens': [_token()]
    }
    document.update(overrides)
    return document


class SchemaValidatorTests(unittest.TestCase):
    def _violation_paths(self, value) -> list[str]:
        result = validate_document(value)
        self.assertIsInstance(result, SchemaInvalid)
        self.assertFalse(result.success)
        return [violation.path for violation in result.violations]

    def test_accepts_minimal_document(self) -> None:
        result = validate_document(_document())

        self.assertIsInstance(result, SchemaValid)
        self.assertTrue(result.success)
        token = result.document.tokens[0]
        self.assertIsInstance(token, TokenInfo)
        self.assertEqual(token.chain_id, 1)
        self.assertEqual(token.symbol, 'USDC')

    def test_accepts_full_document(self) -> None:
        document = _document(
            keywords=['stable', 'defi tokens'],
            logoURI='https://example.com/list.png',
            tags={'stablecoin': {'name': 'Stablecoin', 'description': 'Pegged to an asset, e.g. the US dollar'}},
            tokenMap={f'1_{USDC}': _token()},
            tokens=[
                _token(
                    logoURI='https://example.com/usdc.png',
                    tags=['stablecoin'],
                    extensions={'bridgeInfo': {'10': {'tokenAddress': DAI}}, 'audited': True, 'rank': 3}
                )
            ]
        )

        self.assertIsInstance(validate_document(document), SchemaValid)

    def test_rejects_decimals_out_of_range(self) -> None:
        paths = self._violation_paths(_document(tokens=[_token(decimals=256)]))
        self.assertEqual(paths, ['tokens.0.decimals'])

    def test_rejects_too_many_tokens(self) -> None:
        tokens = [_token(address=f'0x{index:040x}') for index in range(10001)]
        paths = self._violation_paths(_document(tokens=tokens))
        self.assertIn('tokens', paths)

    def test_rejects_empty_token_array(self) -> None:
        self.assertIn('tokens', self._violation_paths(_document(tokens=[])))

    def test_rejects_unknown_top_level_field(self) -> None:
        self.assertEqual(self._violation_paths(_document(homepage='https://example.com')), ['homepage'])

    def test_rejects_unknown_token_field(self) -> None:
        paths = self._violation_paths(_document(tokens=[_token(coingeckoId='usd-coin')]))
        self.assertEqual(paths, ['tokens.0.coingeckoId'])

    def test_rejects_missing_required_fields(self) -> None:
        document = _document()
        del document['timestamp']
        del document['version']
        self.assertEqual(sorted(self._violation_paths(document)), ['timestamp', 'version'])

    def test_reports_every_violation(self) -> None:
        document = _document(
            name='bad-name!',
            tokens=[_token(decimals=256), _token(address='0x1234', chainId=0)]
        )

        paths = self._violation_paths(document)

        self.assertIn('name', paths)
        self.assertIn('tokens.0.decimals', paths)
        self.assertIn('tokens.1.address', paths)
        self.assertIn('tokens.1.chainId', paths)

    def test_rejects_non_iso_timestamp(self) -> None:
        self.assertEqual(self._violation_paths(_document(timestamp='yesterday')), ['timestamp'])
        self.assertEqual(self._violation_paths(_document(timestamp='2025-13-40T99:00:00Z')), ['timestamp'])

    def test_timestamp_offsets_must_be_real(self) -> None:
        for timestamp in ('2024-01-01T00:00:00+99:99', '2024-01-01T00:00:00+01:60', '2024-01-01T00:00:00-24:00'):
            with self.subTest(timestamp=timestamp):
                self.assertEqual(self._violation_paths(_document(timestamp=timestamp)), ['timestamp'])

        for timestamp in ('2024-01-01T00:00:00+05:30', '2024-02-29T23:59:59.1234567-08:00', '2024-01-01T00:00:00.5Z'):
            with self.subTest(timestamp=timestamp):
                self.assertIsInstance(validate_document(_document(timestamp=timestamp)), SchemaValid)

    def test_whole_number_floats_count_as_integers(self) -> None:
        result = validate_document(
            _document(version={'major': 1.0, 'minor': 0, 'patch': 2.0}, tokens=[_token(chainId=1.0, decimals=6.0)])
        )

        self.assertIsInstance(result, SchemaValid)
        token = result.document.tokens[0]
        self.assertEqual((token.chain_id, token.decimals), (1, 6))
        self.assertIsInstance(token.decimals, int)
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(decimals=6.5)])),
            ['tokens.0.decimals']
        )

    def test_rejects_negative_version(self) -> None:
        paths = self._violation_paths(_document(version={'major': -1, 'minor': 0, 'patch': 0}))
        self.assertEqual(paths, ['version.major'])

    def test_does_not_coerce_types(self) -> None:
        paths = self._violation_paths(_document(tokens=[_token(decimals=True, chainId='1')]))
        self.assertEqual(sorted(paths), ['tokens.0.chainId', 'tokens.0.decimals'])

    def test_token_name_and_symbol_rules(self) -> None:
        self.assertIsInstance(validate_document(_document(tokens=[_token(name='', symbol='')])), SchemaValid)
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(symbol='USDC ')])),
            ['tokens.0.symbol']
        )
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(symbol='S' * 21)])),
            ['tokens.0.symbol']
        )
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(name='N' * 61)])),
            ['tokens.0.name']
        )
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(name='USD\nCoin')])),
            ['tokens.0.name']
        )
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(symbol='USDC\u00a0')])),
            ['tokens.0.symbol']
        )
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(name='USD\u2028Coin')])),
            ['tokens.0.name']
        )
        self.assertIsInstance(validate_document(_document(tokens=[_token(symbol='USDC\u20ae')])), SchemaValid)

    def test_keywords_must_be_unique(self) -> None:
        self.assertEqual(self._violation_paths(_document(keywords=['defi', 'defi'])), ['keywords'])

    def test_keywords_limit_and_charset(self) -> None:
        self.assertEqual(
            self._violation_paths(_document(keywords=[f'k{index}' for index in range(21)])),
            ['keywords']
        )
        self.assertEqual(self._violation_paths(_document(keywords=['no-dashes'])), ['keywords.0'])

    def test_token_map_keys(self) -> None:
        paths = self._violation_paths(_document(tokenMap={'ethereum_usdc': _token()}))
        self.assertTrue(paths)
        self.assertTrue(all(path.startswith('tokenMap') for path in paths))
        self.assertEqual(self._violation_paths(_document(tokenMap={})), ['tokenMap'])

    def test_list_tag_definitions(self) -> None:
        tags = {f'tag{index}': {'name': 'Tag', 'description': 'A tag'} for index in range(21)}
        self.assertEqual(self._violation_paths(_document(tags=tags)), ['tags'])

        paths = self._violation_paths(
            _document(tags={'stable': {'name': 'Stable', 'description': 'Pegged!'}})
        )
        self.assertEqual(paths, ['tags.stable.description'])

    def test_token_tags(self) -> None:
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(tags=['waytoolongtag'])])),
            ['tokens.0.tags.0']
        )
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(tags=[f't{index}' for index in range(11)])])),
            ['tokens.0.tags']
        )

    def test_token_tags_need_not_be_defined(self) -> None:
        document = _document(tokens=[_token(tags=['undefined'])])
        self.assertIsInstance(validate_document(document), SchemaValid)

    def test_extension_depth_is_bounded(self) -> None:
        three_levels = {'a': {'b': {'c': 1}}}
        four_levels = {'a': {'b': {'c': {'d': 1}}}}

        self.assertIsInstance(validate_document(_document(tokens=[_token(extensions=three_levels)])), SchemaValid)
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(extensions=four_levels)])),
            ['tokens.0.extensions']
        )

    def test_extension_entries_and_values(self) -> None:
        too_many = {f'key{index}': index for index in range(11)}
        nested_too_many = {'outer': {f'key{index}': index for index in range(11)}}
        long_value = {'note': 'x' * 43}
        bad_identifier = {'bad-key': 1}

        for extensions in (too_many, nested_too_many, long_value, bad_identifier):
            with self.subTest(extensions=extensions):
                self.assertEqual(
                    self._violation_paths(_document(tokens=[_token(extensions=extensions)])),
                    ['tokens.0.extensions']
                )

    def test_rejects_invalid_urls(self) -> None:
        self.assertEqual(self._violation_paths(_document(logoURI='not a url')), ['logoURI'])
        self.assertEqual(
            self._violation_paths(_document(tokens=[_token(logoURI='logo.png')])),
            ['tokens.0.logoURI']
        )

    def test_never_raises_for_arbitrary_input(self) -> None:
        for value in (None, 42, 'tokenlist', [], [_document()], {'tokens': 'all'}):
            with self.subTest(value=value):
                self.assertIsInstance(validate_document(value), SchemaInvalid)

    def test_violation_messages_are_readable(self) -> None:
        result = validate_document(_document(tokens=[_token(address='0xnothex')]))

        self.assertIsInstance(result, SchemaInvalid)
        violation = result.violations[0]
        self.assertIn('40-character hexadecimal address', violation.message)
        self.assertEqual(str(violation), f'tokens.0.address: {violation.message}')

    def test_dump_round_trips_document(self) -> None:
        document = _document(
            tags={'stablecoin': {'name': 'Stablecoin', 'description': 'Pegged'}},
            tokens=[_token(tags=['stablecoin'], extensions={'exampleExtension': 'some value'})]
        )
        original = copy.deepcopy(document)

        result = validate_document(document)

        self.assertIsInstance(result, SchemaValid)
        self.assertEqual(document_to_dict(result.document), original)


if __name__ == '__main__':
    unittest.main()
