from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, Union

from pydantic import (
    AfterValidator,
    AnyUrl,
    BeforeValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
)

# Patterns are searched, so anchors use \A / \Z (``$`` also matches before a trailing newline).
# \w is ASCII-only; \s and \S keep their Unicode meaning.
ADDRESS_PATTERN = re.compile(r'\A0x[a-fA-F0-9]{40}\Z')
LIST_NAME_PATTERN = re.compile(r'\A[\w ]{1,30}\Z', re.ASCII)
KEYWORD_PATTERN = re.compile(r'\A[\w ]{1,20}\Z', re.ASCII)
TOKEN_MAP_KEY_PATTERN = re.compile(r'\A\d+_0x[a-fA-F0-9]{40}\Z', re.ASCII)
TOKEN_NAME_PATTERN = re.compile(r'\A\Z|\A[ \S]+\Z')
TOKEN_SYMBOL_PATTERN = re.compile(r'\A\Z|\S\Z')
TAG_IDENTIFIER_PATTERN = re.compile(r'\A\w{1,10}\Z', re.ASCII)
TAG_NAME_PATTERN = re.compile(r'\A[ \w]{1,20}\Z', re.ASCII)
TAG_DESCRIPTION_PATTERN = re.compile(r'\A[ A-Za-z0-9_.,:\s]{1,200}\Z')
EXTENSION_IDENTIFIER_PATTERN = re.compile(r'\A\w{1,40}\Z', re.ASCII)
TIMESTAMP_PATTERN = re.compile(
    r'\A\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-](?:[01]\d|2[0-3]):[0-5]\d)\Z', re.ASCII
)

MAX_TOKENS = 10000
MAX_KEYWORDS = 20
MAX_LIST_TAGS = 20
MAX_TOKEN_TAGS = 10
MAX_EXTENSION_ENTRIES = 10
MAX_EXTENSION_DEPTH = 3
MAX_EXTENSION_STRING = 42

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _matching(pattern: re.Pattern[str], message: str) -> AfterValidator:
    def check(value: str) -> str:
        if not pattern.search(value):
            raise ValueError(message)
        return value

    return AfterValidator(check)


def _check_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError:
        raise ValueError('Must be a valid URL') from None
    return value


def _check_timestamp(value: str) -> str:
    match = TIMESTAMP_PATTERN.fullmatch(value)
    if not match:
        raise ValueError('Timestamp must be a valid ISO 8601 date-time string')
    fraction, offset = match.groups()
    # before 3.11 fromisoformat only takes 3 or 6 fractional digits and no 'Z'
    micros = f'.{fraction[1:7]:0<6}' if fraction else ''
    normalized = value[:19] + micros + ('+00:00' if offset == 'Z' else offset)
    try:
        datetime.fromisoformat(normalized)
    except ValueError:
        raise ValueError('Timestamp must be a valid ISO 8601 date-time string') from None
    return value


def _check_unique(values: tuple[str, ...]) -> tuple[str, ...]:
    if len(set(values)) != len(values):
        raise ValueError('Keywords must be unique')
    return values


def _whole_number(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _is_extension_primitive(value: Any) -> bool:
    if value is None or isinstance(value, (bool, int, float)):
        return True
    return isinstance(value, str) and 1 <= len(value) <= MAX_EXTENSION_STRING


def _extension_problems(value: dict[Any, Any], path: str, depth: int) -> list[str]:
    problems: list[str] = []
    if len(value) > MAX_EXTENSION_ENTRIES:
        label = path or 'ExtensionMap'
        problems.append(f'{label} cannot have more than {MAX_EXTENSION_ENTRIES} properties')

    for key, item in value.items():
        item_path = f'{path}.{key}' if path else str(key)
        if not isinstance(key, str) or not EXTENSION_IDENTIFIER_PATTERN.fullmatch(key):
            problems.append(
                f'{item_path}: extension identifier must be 1-40 letters, numbers or underscores'
            )
        if isinstance(item, dict):
            if depth >= MAX_EXTENSION_DEPTH:
                problems.append(
                    f'{item_path}: extensions cannot be nested more than {MAX_EXTENSION_DEPTH} levels'
                )
            else:
                problems.extend(_extension_problems(item, item_path, depth + 1))
        elif not _is_extension_primitive(item):
            problems.append(
                f'{item_path}: value must be a string of 1-42 characters, a boolean, a number or null'
            )
    return problems


def _check_extensions(value: dict[str, Any]) -> dict[str, Any]:
    problems = _extension_problems(value, '', 1)
    if problems:
        raise ValueError('; '.join(problems))
    return value


Address = Annotated[
    StrictStr,
    _matching(
        ADDRESS_PATTERN,
        'Address must be a valid 40-character hexadecimal address prefixed with 0x'
    )
]
Url = Annotated[StrictStr, AfterValidator(_check_url)]
TagIdentifier = Annotated[
    StrictStr,
    _matching(
        TAG_IDENTIFIER_PATTERN,
        'Tag identifier must be 1-10 characters long and contain only letters, numbers, and underscores'
    )
]
TokenMapKey = Annotated[
    StrictStr,
    _matching(TOKEN_MAP_KEY_PATTERN, "Token map key must be in format 'chainId_tokenAddress'")
]
Keyword = Annotated[
    StrictStr,
    _matching(
        KEYWORD_PATTERN,
        'Keyword must be 1-20 characters and contain only letters, numbers, underscores, and spaces'
    )
]
ExtensionMap = Annotated[dict[StrictStr, Any], AfterValidator(_check_extensions)]
# JSON has one number type, so 6.0 is the integer 6; bools and strings stay rejected.
WholeInt = Annotated[StrictInt, BeforeValidator(_whole_number)]


class _Model(BaseModel):
    model_config = ConfigDict(extra='forbid', frozen=True)


class Version(_Model):
    major: WholeInt = Field(ge=0)
    minor: WholeInt = Field(ge=0)
    patch: WholeInt = Field(ge=0)


class TagDefinition(_Model):
    name: Annotated[
        StrictStr,
        _matching(
            TAG_NAME_PATTERN,
            'Name must be 1-20 characters and contain only letters, numbers, underscores, and spaces'
        )
    ]
    description: Annotated[
        StrictStr,
        _matching(
            TAG_DESCRIPTION_PATTERN,
            'Description must be 1-200 characters and contain only letters, numbers, '
            'underscores, spaces, periods, commas, and colons'
        )
    ]


class TokenInfo(_Model):
    chain_id: WholeInt = Field(alias='chainId', ge=1)
    address: Address
    decimals: WholeInt = Field(ge=0, le=255)
    name: Annotated[
        StrictStr,
        Field(max_length=60),
        _matching(TOKEN_NAME_PATTERN, 'Name must be either empty or contain non-whitespace characters')
    ]
    symbol: Annotated[
        StrictStr,
        Field(max_length=20),
        _matching(TOKEN_SYMBOL_PATTERN, 'Symbol must be either empty or contain non-whitespace characters')
    ]
    logo_uri: Url | None = Field(default=None, alias='logoURI')
    tags: Annotated[tuple[TagIdentifier, ...], Field(max_length=MAX_TOKEN_TAGS)] | None = None
    extensions: ExtensionMap | None = None


class TokenListDocument(_Model):
    name: Annotated[
        StrictStr,
        _matching(
            LIST_NAME_PATTERN,
            'Name must be 1-30 characters and contain only letters, numbers, underscores, and spaces'
        )
    ]
    timestamp: Annotated[StrictStr, AfterValidator(_check_timestamp)]
    version: Version
    tokens: Annotated[tuple[TokenInfo, ...], Field(min_length=1, max_length=MAX_TOKENS)]
    token_map: Annotated[
        dict[TokenMapKey, TokenInfo],
        Field(min_length=1, max_length=MAX_TOKENS)
    ] | None = Field(default=None, alias='tokenMap')
    keywords: Annotated[
        tuple[Keyword, ...],
        Field(max_length=MAX_KEYWORDS),
        AfterValidator(_check_unique)
    ] | None = None
    tags: Annotated[dict[TagIdentifier, TagDefinition], Field(max_length=MAX_LIST_TAGS)] | None = None
    logo_uri: Url | None = Field(default=None, alias='logoURI')


@dataclass(frozen=True)
class SchemaViolation:
    path: str
    message: str

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f'{self.path}: {self.message}'


@dataclass(frozen=True)
class SchemaValid:
    document: TokenListDocument
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class SchemaInvalid:
    violations: tuple[SchemaViolation, ...]
    success: bool = field(default=False, init=False)

    def message(self) -> str:
        return '\n'.join(f'-\t{violation}' for violation in self.violations)


SchemaResult = Union[SchemaValid, SchemaInvalid]


def _violation(error: dict[str, Any]) -> SchemaViolation:
    path = '.'.join(str(part) for part in error.get('loc', ()))
    message = str(error.get('msg', 'invalid value'))
    if message.startswith('Value error, '):
        message = message[len('Value error, '):]
    return SchemaViolation(path=path, message=message)


def validate_document(value: Any) -> SchemaResult:
    try:
        document = TokenListDocument.model_validate(value)
    except ValidationError as exc:
        return SchemaInvalid(violations=tuple(_violation(error) for error in exc.errors()))
    return SchemaValid(document=document)


def token_to_dict(token: TokenInfo) -> dict[str, Any]:
    return token.model_dump(mode='json', by_alias=True, exclude_unset=True)


def document_to_dict(document: TokenListDocument) -> dict[str, Any]:
    return document.model_dump(mode='json', by_alias=True, exclude_unset=True)
