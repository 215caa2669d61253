from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Collection, Sequence
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from .config import get_settings
from .network import ClientFactory, get_static_client
from .schema import SchemaInvalid, SchemaViolation, TokenInfo, TokenListDocument, validate_document

LOGGER = logging.getLogger('tokenlist.reconcile')

LOGO_SUCCESS = 'success'
LOGO_ERROR = 'error'

LogoFetcher = Callable[[str], Awaitable[int]]


@dataclass(frozen=True)
class TokenMatch:
    chain_id: int
    address: str
    success: bool
    local_symbol: str
    onchain_symbol: str | None
    local_decimals: int
    onchain_decimals: int | None

    @property
    def symbol_mismatch(self) -> bool:
        return self.success and self.local_symbol != self.onchain_symbol

    @property
    def decimals_mismatch(self) -> bool:
        return self.success and self.local_decimals != self.onchain_decimals


@dataclass(frozen=True)
class LogoProbe:
    key: str
    status: str

    @property
    def ok(self) -> bool:
        return self.status == LOGO_SUCCESS


@dataclass(frozen=True)
class ReconciliationReport:
    matches: tuple[TokenMatch, ...]
    logo_probes: tuple[LogoProbe, ...]

    @property
    def missing_contracts(self) -> list[TokenMatch]:
        return [match for match in self.matches if not match.success]

    @property
    def symbol_mismatches(self) -> list[TokenMatch]:
        return [match for match in self.matches if match.symbol_mismatch]

    @property
    def decimals_mismatches(self) -> list[TokenMatch]:
        return [match for match in self.matches if match.decimals_mismatch]

    @property
    def invalid_logos(self) -> list[LogoProbe]:
        return [probe for probe in self.logo_probes if not probe.ok]

    @property
    def ok(self) -> bool:
        return not (self.missing_contracts or self.symbol_mismatches or self.decimals_mismatches)

    def message(self) -> str:
        """Failure summary: missing contracts, then symbols, then decimals.

        Empty sections are left out; every offending token gets one ``-\\t`` line.
        """
        sections: list[str] = []

        missing = self.missing_contracts
        if missing:
            lines = [f'-\t{match.chain_id}:{match.local_symbol} ({match.address})' for match in missing]
            sections.append('\n'.join(['Missing token contracts:', *lines]))

        symbols = self.symbol_mismatches
        if symbols:
            lines = [
                f'-\t{match.chain_id}:{match.local_symbol} (local) vs. {match.onchain_symbol} (onchain)'
                for match in symbols
            ]
            sections.append('\n'.join(['Mismatching symbols:', *lines]))

        decimals = self.decimals_mismatches
        if decimals:
            lines = [
                f'-\t{match.chain_id}:{match.local_symbol}:{match.local_decimals} (local) '
                f'vs. {match.onchain_symbol}:{match.onchain_decimals} (onchain)'
                for match in decimals
            ]
            sections.append('\n'.join(['Mismatching decimals:', *lines]))

        return '\n'.join(sections)

    def logo_message(self) -> str:
        invalid = self.invalid_logos
        if not invalid:
            return ''
        return f"{', '.join(probe.key for probe in invalid)} have invalid logoURI's."


@dataclass(frozen=True)
class ValidationOutcome:
    violations: tuple[SchemaViolation, ...] = ()
    report: ReconciliationReport | None = None
    document: TokenListDocument | None = field(default=None, repr=False)

    @property
    def schema_ok(self) -> bool:
        return not self.violations

    @property
    def ok(self) -> bool:
        return self.schema_ok and self.report is not None and self.report.ok

    def message(self) -> str:
        if self.violations:
            lines = [f'-\t{violation}' for violation in self.violations]
            return '\n'.join(['Schema violations:', *lines])
        if self.report is not None:
            return self.report.message()
        return ''


async def fetch_status(url: str, session: aiohttp.ClientSession) -> int:
    async with session.get(url) as response:
        return response.status


async def _match_token(
    token: TokenInfo,
    *,
    client_factory: ClientFactory,
    exemptions: Collection[str],
    semaphore: asyncio.Semaphore
) -> TokenMatch:
    if token.symbol in exemptions:
        LOGGER.info('%s is exempt from onchain validation', token.symbol)
        return TokenMatch(
            chain_id=token.chain_id,
            address=token.address,
            success=True,
            local_symbol=token.symbol,
            onchain_symbol=token.symbol,
            local_decimals=token.decimals,
            onchain_decimals=token.decimals
        )

    try:
        client = client_factory(token.chain_id)
        if client is None:
            raise LookupError(f'chain {token.chain_id} not supported')
        async with semaphore:
            symbol = await client.symbol(token.address)
            decimals = await client.decimals(token.address)
    except Exception as exc:
        LOGGER.warning(
            'contract read failed chain_id=%s symbol=%s address=%s error=%s',
            token.chain_id,
            token.symbol,
            token.address,
            exc
        )
        return TokenMatch(
            chain_id=token.chain_id,
            address=token.address,
            success=False,
            local_symbol=token.symbol,
            onchain_symbol=None,
            local_decimals=token.decimals,
            onchain_decimals=None
        )

    return TokenMatch(
        chain_id=token.chain_id,
        address=token.address,
        success=True,
        local_symbol=token.symbol,
        onchain_symbol=symbol,
        local_decimals=token.decimals,
        onchain_decimals=decimals
    )


async def match_tokens(
    tokens: Sequence[TokenInfo],
    *,
    client_factory: ClientFactory = get_static_client,
    exemptions: Collection[str] = (),
    max_concurrency: int = 16,
    semaphore: asyncio.Semaphore | None = None
) -> list[TokenMatch]:
    if semaphore is None:
        semaphore = asyncio.Semaphore(max(1, max_concurrency))
    return list(
        await asyncio.gather(
            *(
                _match_token(token, client_factory=client_factory, exemptions=exemptions, semaphore=semaphore)
                for token in tokens
            )
        )
    )


async def _probe_logo(token: TokenInfo, fetcher: LogoFetcher, semaphore: asyncio.Semaphore) -> LogoProbe:
    failed = LogoProbe(key=f'{token.chain_id}:{token.symbol}', status=LOGO_ERROR)
    if not token.logo_uri:
        return failed

    try:
        async with semaphore:
            status = await fetcher(token.logo_uri)
    except Exception as exc:
        LOGGER.debug('logo probe failed url=%s error=%s', token.logo_uri, exc)
        return failed

    if status == 200:
        return LogoProbe(key=token.symbol, status=LOGO_SUCCESS)
    LOGGER.debug('logo probe returned status=%s url=%s', status, token.logo_uri)
    return failed


async def match_logo_uris(
    tokens: Sequence[TokenInfo],
    *,
    fetcher: LogoFetcher | None = None,
    max_concurrency: int = 16,
    semaphore: asyncio.Semaphore | None = None
) -> list[LogoProbe]:
    if semaphore is None:
        semaphore = asyncio.Semaphore(max(1, max_concurrency))
    if fetcher is not None:
        return list(await asyncio.gather(*(_probe_logo(token, fetcher, semaphore) for token in tokens)))

    async with aiohttp.ClientSession() as session:

        async def session_fetcher(url: str) -> int:
            return await fetch_status(url, session)

        return list(
            await asyncio.gather(*(_probe_logo(token, session_fetcher, semaphore) for token in tokens))
        )


async def reconcile(
    document: TokenListDocument,
    *,
    client_factory: ClientFactory = get_static_client,
    exemptions: Collection[str] | None = None,
    fetcher: LogoFetcher | None = None,
    max_concurrency: int | None = None
) -> ReconciliationReport:
    settings = get_settings()
    if exemptions is None:
        exemptions = settings.validation_exceptions
    if max_concurrency is None:
        max_concurrency = settings.reconcile_max_concurrency

    # contract reads and logo probes share one in-flight budget
    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    matches, probes = await asyncio.gather(
        match_tokens(
            document.tokens,
            client_factory=client_factory,
            exemptions=exemptions,
            semaphore=semaphore
        ),
        match_logo_uris(document.tokens, fetcher=fetcher, semaphore=semaphore)
    )
    return ReconciliationReport(matches=tuple(matches), logo_probes=tuple(probes))


async def validate_tokenlist(raw: Any, **kwargs: Any) -> ValidationOutcome:
    """Schema check, then on-chain reconciliation and logo probes.

    Schema failure short-circuits; network failures never raise and end up in
    the report instead.
    """
    result = validate_document(raw)
    if isinstance(result, SchemaInvalid):
        LOGGER.error('tokenlist schema is invalid violations=%s', len(result.violations))
        return ValidationOutcome(violations=result.violations)

    LOGGER.info('tokenlist schema is valid tokens=%s', len(result.document.tokens))
    report = await reconcile(result.document, **kwargs)

    if report.ok:
        LOGGER.info('all token contracts found, symbols and decimals match')
    else:
        LOGGER.error(
            'tokenlist reconciliation failed missing=%s symbols=%s decimals=%s',
            len(report.missing_contracts),
            len(report.symbol_mismatches),
            len(report.decimals_mismatches)
        )
    if report.invalid_logos:
        LOGGER.info('%s', report.logo_message())
    LOGGER.info('token logoURIs checked probes=%s', len(report.logo_probes))

    return ValidationOutcome(report=report, document=result.document)
