from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from apps.tokenlist.config import get_settings, resolve_path
from apps.tokenlist.document import load_document
from apps.tokenlist.reconcile import ValidationOutcome, validate_tokenlist

LOGGER = logging.getLogger('tokenlist.validator')


async def run(path: Path) -> ValidationOutcome:
    LOGGER.info('validating token list path=%s', path)
    return await validate_tokenlist(load_document(path))


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    outcome = asyncio.run(run(resolve_path(settings.tokenlist_path)))
    if not outcome.ok:
        LOGGER.error('tokenlist is invalid\n%s', outcome.message())
        raise SystemExit(1)
    LOGGER.info('tokenlist is valid')


if __name__ == '__main__':
    main()
