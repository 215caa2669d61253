from __future__ import annotations

import logging
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_client import Counter, make_asgi_app

from .config import get_settings
from .registry import Registry, RegistryUnavailableError, load_registry
from .schema import SchemaInvalid, token_to_dict, validate_document
from .toolkit import get_chain_token_list, get_token_by_address, get_token_by_symbol

settings = get_settings()
logger = logging.getLogger(__name__)

TOKEN_LOOKUPS_TOTAL = Counter(
    'tokenlist_token_lookups_total',
    'Token lookups served by the registry API',
    ['kind', 'result']
)
SCHEMA_VALIDATIONS_TOTAL = Counter(
    'tokenlist_schema_validations_total',
    'Documents checked through the schema endpoint',
    ['result']
)

app = FastAPI(title=settings.app_name, default_response_class=ORJSONResponse)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[x.strip() for x in settings.cors_origins.split(',') if x.strip()],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*']
)
app.mount('/metrics', make_asgi_app())


def _registry() -> Registry:
    try:
        return load_registry()
    except RegistryUnavailableError as exc:
        logger.warning('registry unavailable: %s', exc.detail)
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@app.get('/health')
async def health() -> dict[str, str]:
    return {'status': 'ok'}


@app.get('/tokens/{chain_id}')
async def chain_tokens(chain_id: int, tags: list[str] = Query(default=[])) -> dict[str, Any]:
    registry = _registry()
    tokens = get_chain_token_list(registry.index, chain_id, tags)
    return {
        'chain_id': chain_id,
        'version': registry.document.version.model_dump(),
        'tokens': [token_to_dict(token) for token in tokens]
    }


@app.get('/tokens/{chain_id}/address/{address}')
async def token_by_address(chain_id: int, address: str) -> dict[str, Any]:
    token = get_token_by_address(_registry().index, chain_id, address)
    if token is None:
        TOKEN_LOOKUPS_TOTAL.labels(kind='address', result='miss').inc()
        raise HTTPException(status_code=404, detail=f'token {address} not listed on chain_id={chain_id}')
    TOKEN_LOOKUPS_TOTAL.labels(kind='address', result='hit').inc()
    return token_to_dict(token)


@app.get('/tokens/{chain_id}/symbol/{symbol}')
async def token_by_symbol(chain_id: int, symbol: str) -> dict[str, Any]:
    token = get_token_by_symbol(_registry().index, chain_id, symbol)
    if token is None:
        TOKEN_LOOKUPS_TOTAL.labels(kind='symbol', result='miss').inc()
        raise HTTPException(status_code=404, detail=f'symbol {symbol} not listed on chain_id={chain_id}')
    TOKEN_LOOKUPS_TOTAL.labels(kind='symbol', result='hit').inc()
    return token_to_dict(token)


@app.post('/schema/validate')
async def schema_validate(payload: Any = Body(...)) -> dict[str, Any]:
    result = validate_document(payload)
    if isinstance(result, SchemaInvalid):
        SCHEMA_VALIDATIONS_TOTAL.labels(result='invalid').inc()
        return {
            'valid': False,
            'violations': [
                {'path': violation.path, 'message': violation.message}
                for violation in result.violations
            ]
        }
    SCHEMA_VALIDATIONS_TOTAL.labels(result='valid').inc()
    return {'valid': True, 'violations': []}
