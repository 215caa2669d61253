#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from apps.tokenlist.config import get_settings, resolve_path
from apps.tokenlist.document import (
    TokenListEditError,
    add_tag,
    add_token,
    find_tokens,
    load_document,
    remove_tags,
    remove_token,
    save_document,
)
from apps.tokenlist.network import get_static_client
from apps.tokenlist.reconcile import validate_tokenlist
from apps.tokenlist.schema import SchemaInvalid, validate_document
from apps.tokenlist.versioning import next_version

LOGGER = logging.getLogger('tokenlist.cli')


async def fetch_token_details(chain_id: int, address: str) -> dict[str, Any]:
    client = get_static_client(chain_id)
    if client is None:
        raise TokenListEditError(f'Chain ID {chain_id} not supported')
    name, symbol, decimals = await asyncio.gather(
        client.name(address),
        client.symbol(address),
        client.decimals(address)
    )
    return {'name': name, 'symbol': symbol, 'decimals': decimals}


def _cmd_add_token(args: argparse.Namespace, path: Path) -> int:
    document = load_document(path)
    details: dict[str, Any] = {}
    if args.name is None or args.symbol is None or args.decimals is None:
        try:
            details = asyncio.run(fetch_token_details(args.chain_id, args.address))
        except Exception as exc:
            LOGGER.warning('could not fetch token details chain_id=%s error=%s', args.chain_id, exc)

    token: dict[str, Any] = {
        'chainId': args.chain_id,
        'address': args.address,
        'name': args.name if args.name is not None else details.get('name'),
        'symbol': args.symbol if args.symbol is not None else details.get('symbol'),
        'decimals': args.decimals if args.decimals is not None else details.get('decimals')
    }
    missing = [key for key, value in token.items() if value is None]
    if missing:
        raise TokenListEditError(f"could not determine {', '.join(missing)}; pass them explicitly")
    if args.logo_uri:
        token['logoURI'] = args.logo_uri
    if args.tag:
        token['tags'] = args.tag

    save_document(path, add_token(document, token))
    print(f"added {token['symbol']} on chain {args.chain_id}")
    return 0


def _cmd_remove_token(args: argparse.Namespace, path: Path) -> int:
    save_document(path, remove_token(load_document(path), args.chain_id, args.address))
    print(f'removed {args.address} on chain {args.chain_id}')
    return 0


def _cmd_find(args: argparse.Namespace, path: Path) -> int:
    matches = find_tokens(load_document(path), args.symbol)
    if not matches:
        print('no matching tokens found')
        return 1
    for token in matches:
        print(f"{token.get('symbol')} ({token.get('name')}) - chain {token.get('chainId')} {token.get('address')}")
    return 0


def _cmd_add_tag(args: argparse.Namespace, path: Path) -> int:
    save_document(path, add_tag(load_document(path), args.tag_id, args.name, args.description))
    print(f'added tag {args.tag_id}')
    return 0


def _cmd_remove_tags(args: argparse.Namespace, path: Path) -> int:
    save_document(path, remove_tags(load_document(path), args.tag_ids))
    print(f"removed tags {', '.join(args.tag_ids)}")
    return 0


def _cmd_validate(args: argparse.Namespace, path: Path) -> int:
    document = load_document(path)
    if args.schema_only:
        result = validate_document(document)
        if isinstance(result, SchemaInvalid):
            print(f'tokenlist schema is invalid\n{result.message()}')
            return 1
        print('tokenlist schema is valid')
        return 0

    outcome = asyncio.run(validate_tokenlist(document))
    if not outcome.ok:
        print(f'tokenlist is invalid\n{outcome.message()}')
        return 1
    if outcome.report is not None and outcome.report.invalid_logos:
        print(outcome.report.logo_message())
    print('tokenlist is valid')
    return 0


def _cmd_build(args: argparse.Namespace, path: Path) -> int:
    status = _cmd_validate(args, path)
    if status != 0:
        return status

    document = load_document(path)
    out_path = Path(args.out) if args.out else resolve_path(get_settings().tokenlist_build_path)
    if out_path.exists():
        previous = load_document(out_path)
        if isinstance(validate_document(previous), SchemaInvalid):
            LOGGER.warning('previous build at %s is not a valid token list; keeping current version', out_path)
        else:
            document['version'] = next_version(previous, document)

    save_document(out_path, document)
    version = document['version']
    print(f"built {out_path} version={version['major']}.{version['minor']}.{version['patch']}")
    return 0


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Edit, validate and build the token list')
    parser.add_argument('--path', default=None, help='Token list JSON file (defaults to TOKENLIST_PATH)')
    sub = parser.add_subparsers(dest='command', required=True)

    add_token_cmd = sub.add_parser('add-token', help='Add a token; missing metadata is read on-chain')
    add_token_cmd.add_argument('--chain-id', type=int, required=True)
    add_token_cmd.add_argument('--address', required=True)
    add_token_cmd.add_argument('--name')
    add_token_cmd.add_argument('--symbol')
    add_token_cmd.add_argument('--decimals', type=int)
    add_token_cmd.add_argument('--logo-uri', default='')
    add_token_cmd.add_argument('--tag', action='append', default=[])
    add_token_cmd.set_defaults(handler=_cmd_add_token)

    remove_token_cmd = sub.add_parser('remove-token', help='Remove a token by chain id and address')
    remove_token_cmd.add_argument('--chain-id', type=int, required=True)
    remove_token_cmd.add_argument('--address', required=True)
    remove_token_cmd.set_defaults(handler=_cmd_remove_token)

    find_cmd = sub.add_parser('find', help='Search tokens by (part of) their symbol')
    find_cmd.add_argument('symbol')
    find_cmd.set_defaults(handler=_cmd_find)

    add_tag_cmd = sub.add_parser('add-tag', help='Define a new tag')
    add_tag_cmd.add_argument('tag_id')
    add_tag_cmd.add_argument('--name', required=True)
    add_tag_cmd.add_argument('--description', required=True)
    add_tag_cmd.set_defaults(handler=_cmd_add_tag)

    remove_tags_cmd = sub.add_parser('remove-tags', help='Delete tags and strip them from every token')
    remove_tags_cmd.add_argument('tag_ids', nargs='+')
    remove_tags_cmd.set_defaults(handler=_cmd_remove_tags)

    for name, handler, help_text in (
        ('validate', _cmd_validate, 'Validate schema, on-chain metadata and logo URIs'),
        ('build', _cmd_build, 'Validate, bump the version against the last build and write it')
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument('--schema-only', action='store_true', help='Skip on-chain and logo checks')
        if name == 'build':
            cmd.add_argument('--out', default=None, help='Output file (defaults to TOKENLIST_BUILD_PATH)')
        cmd.set_defaults(handler=handler)

    return parser


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    args = _parser().parse_args(argv)
    path = Path(args.path) if args.path else resolve_path(settings.tokenlist_path)

    try:
        return args.handler(args, path)
    except (TokenListEditError, OSError) as exc:
        print(f'error: {exc}', file=sys.stderr)
        return 1


if __name__ == '__main__':
    raise SystemExit(main())
