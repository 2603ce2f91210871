"""Canonicalization of schema representations for comparison.

Different snapshot producers spell the same schema differently: the
database reports ``ARRAY`` + ``_text`` where an ORM says ``text[]``, a
sequence default ``nextval('users_id_seq'::regclass)`` where the ORM says
``serial``, ``(status = ANY (ARRAY['a'::text]))`` where the ORM says
``status IN ('a')``.  The functions here rewrite both sides into one
canonical text so the comparator can use plain equality.

Pure logic -- no I/O.  Normalization is heuristic text rewriting, not
parsing; anything it cannot handle is returned unchanged.

Usage:
    from pg_schema_diff.schema.normalizer import (
        normalize_data_type,
        normalize_default,
        normalize_sql_expression,
    )

    normalize_data_type("ARRAY", "_text")            # 'text[]'
    normalize_default("'{}'::jsonb", "jsonb")        # "'{}'"
    normalize_sql_expression("(x IS NOT NULL)")      # 'x IS NOT NULL'
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)


SERIAL_SENTINEL = "<serial>"

SERIAL_TYPES: dict[str, str] = {
    "smallserial": "smallint",
    "serial": "integer",
    "bigserial": "bigint",
}

BOOLEAN_TYPES = frozenset({"boolean", "bool"})

# Type names whose casts are stripped from expressions.  Matched
# case-insensitively, longest first.
POSTGRES_TYPES: tuple[str, ...] = (
    "text",
    "integer",
    "int",
    "int2",
    "int4",
    "int8",
    "bigint",
    "smallint",
    "boolean",
    "bool",
    "double precision",
    "real",
    "float4",
    "float8",
    "numeric",
    "decimal",
    "timestamp",
    "timestamp without time zone",
    "timestamp with time zone",
    "timestamptz",
    "date",
    "time",
    "time without time zone",
    "time with time zone",
    "interval",
    "json",
    "jsonb",
    "uuid",
    "bytea",
    "inet",
    "cidr",
    "macaddr",
    "character varying",
    "varchar",
    "char",
    "character",
    "regclass",
)

SQL_KEYWORDS = frozenset(
    {
        "CASE",
        "WHEN",
        "THEN",
        "ELSE",
        "END",
        "AND",
        "OR",
        "NOT",
        "IS",
        "NULL",
        "IN",
        "LIKE",
        "ILIKE",
        "BETWEEN",
    }
)

SQL_FUNCTIONS = frozenset(
    {
        "floor",
        "random",
        "lpad",
        "now",
        "current_timestamp",
        "gen_random_uuid",
        "coalesce",
        "nullif",
        "greatest",
        "least",
        "concat",
        "substring",
        "length",
        "lower",
        "upper",
        "trim",
    }
)

_TYPE_PATTERN = "|".join(
    re.sub(r"\s+", r"\\s+", t) for t in sorted(POSTGRES_TYPES, key=len, reverse=True)
)

_WHITESPACE_RE = re.compile(r"\s+")
_STRING_LITERAL_RE = re.compile(r"'(?:[^']|'')*'")
_LITERAL_PLACEHOLDER_RE = re.compile(r"'\x00(\d+)\x00'")
_SEQUENCE_DEFAULT_RE = re.compile(r"^nextval\('[^']+'(?:::regclass)?\)$", re.IGNORECASE)
_TRAILING_CAST_RE = re.compile(r"::[a-zA-Z0-9_\s\[\]]+$")
_JSON_LITERAL_RE = re.compile(r"^'(\[.*\]|\{.*\})'$", re.DOTALL)
_QUOTED_BOOLEAN_RE = re.compile(r"^'?(true|false)'?$", re.IGNORECASE)

# Longest operators first so ``!~~*`` is not eaten by ``~~``.
_LIKE_OPERATORS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\s*!~~\*\s*"), " NOT ILIKE "),
    (re.compile(r"\s*!~~\s*"), " NOT LIKE "),
    (re.compile(r"\s*~~\*\s*"), " ILIKE "),
    (re.compile(r"\s*~~\s*"), " LIKE "),
)

_QUOTED_QUALIFIER_RE = re.compile(r'"[^"]+"\."([^"]+)"')
_QUALIFIER_RE = re.compile(r"\b[A-Za-z_]\w*\.([A-Za-z_]\w*)\b")
_NOT_IN_ARRAY_RE = re.compile(r"(\w+)\s*<>\s*ALL\s*\(\s*ARRAY\s*\[([^\]]+)\]\s*\)", re.IGNORECASE)
_IN_ARRAY_RE = re.compile(r"(\w+)\s*=\s*ANY\s*\(\s*ARRAY\s*\[([^\]]+)\]\s*\)", re.IGNORECASE)
_STRING_CAST_RE = re.compile(rf"'([^']*)'\s*::\s*(?:{_TYPE_PATTERN})", re.IGNORECASE)
_PAREN_CAST_RE = re.compile(rf"\)\s*::\s*(?:{_TYPE_PATTERN})", re.IGNORECASE)
_EXPR_CAST_RE = re.compile(rf"(\w+)\s*::\s*(?:{_TYPE_PATTERN})(?=\s|$|,|\))", re.IGNORECASE)
_IS_NULL_GROUP_RE = re.compile(r"\((\w+\s+IS\s+(?:NOT\s+)?NULL)\)", re.IGNORECASE)
_TRUE_RE = re.compile(r"\bTRUE\b", re.IGNORECASE)
_FALSE_RE = re.compile(r"\bFALSE\b", re.IGNORECASE)
_KEYWORD_RE = re.compile(r"\b(" + "|".join(sorted(SQL_KEYWORDS)) + r")\b", re.IGNORECASE)
_FUNCTION_RE = re.compile(r"\b(" + "|".join(sorted(SQL_FUNCTIONS)) + r")\b", re.IGNORECASE)


# ------------------------------------------------------------------
# Expressions
# ------------------------------------------------------------------


def _strip_grouping_parens(sql: str) -> str:
    """Remove grouping parentheses, keeping function-call parentheses.

    An opening paren directly preceded by a word character is a function
    call; it and its matching close paren are kept.  All other parens are
    dropped.  Unbalanced input is returned unchanged.
    """
    keep: list[bool] = []
    out: list[str] = []
    for i, ch in enumerate(sql):
        if ch == "(":
            is_call = i > 0 and (sql[i - 1].isalnum() or sql[i - 1] == "_")
            keep.append(is_call)
            if is_call:
                out.append(ch)
        elif ch == ")":
            if not keep:
                return sql
            if keep.pop():
                out.append(ch)
        else:
            out.append(ch)
    if keep:
        return sql
    return "".join(out)


def _mask_literals(sql: str) -> tuple[str, list[str]]:
    """Replace each ``'...'`` literal with a quoted numbered placeholder.

    The placeholder keeps the surrounding quotes so ``'...'::type`` casts
    still match, but contains no word, paren or dot characters the
    rewrites below could touch.
    """
    literals: list[str] = []

    def stash(match: re.Match[str]) -> str:
        literals.append(match.group(0))
        return f"'\x00{len(literals) - 1}\x00'"

    return _STRING_LITERAL_RE.sub(stash, sql), literals


def _unmask_literals(sql: str, literals: list[str]) -> str:
    return _LITERAL_PLACEHOLDER_RE.sub(lambda m: literals[int(m.group(1))], sql)


def normalize_sql_expression(sql: str) -> str:
    """Normalize a SQL expression for comparison.

    Used for CHECK predicates, partial-index predicates, generated-column
    expressions, and default values.  Text inside ``'...'`` literals is
    left as written.

    Args:
        sql: Raw SQL expression text.

    Returns:
        Canonical expression text.

    Examples:
        >>> normalize_sql_expression("(x IS NOT NULL)")
        'x IS NOT NULL'
        >>> normalize_sql_expression("(status = ANY (ARRAY['a'::text, 'b'::text]))")
        "status IN 'a', 'b'"
        >>> normalize_sql_expression("name ~~* 'x%'")
        "name ILIKE 'x%'"
    """
    normalized, literals = _mask_literals(sql)
    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()

    for pattern, replacement in _LIKE_OPERATORS:
        normalized = pattern.sub(replacement, normalized)

    normalized = _QUOTED_QUALIFIER_RE.sub(r"\1", normalized)
    normalized = _QUALIFIER_RE.sub(r"\1", normalized)

    normalized = _NOT_IN_ARRAY_RE.sub(r"\1 NOT IN (\2)", normalized)
    normalized = _IN_ARRAY_RE.sub(r"\1 IN (\2)", normalized)

    normalized = _STRING_CAST_RE.sub(r"'\1'", normalized)
    normalized = _PAREN_CAST_RE.sub(")", normalized)
    normalized = _EXPR_CAST_RE.sub(r"\1", normalized)

    normalized = _IS_NULL_GROUP_RE.sub(r"\1", normalized)

    normalized = _TRUE_RE.sub("true", normalized)
    normalized = _FALSE_RE.sub("false", normalized)

    normalized = _KEYWORD_RE.sub(lambda m: m.group(1).upper(), normalized)
    normalized = _FUNCTION_RE.sub(lambda m: m.group(1).lower(), normalized)

    normalized = _strip_grouping_parens(normalized)
    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()

    return _unmask_literals(normalized, literals)


# ------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------


def is_serial_column(data_type: str | None, default: str | None) -> bool:
    """True if the column is autoincrementing via a sequence.

    Either the type is a serial pseudo-type (ORM reflection) or the
    default is ``nextval('..._seq'::regclass)`` (database introspection).
    """
    if data_type is not None and data_type.lower() in SERIAL_TYPES:
        return True
    if default is not None and _SEQUENCE_DEFAULT_RE.match(default.strip()):
        return True
    return False


def _normalize_json_literal(value: str) -> str:
    match = _JSON_LITERAL_RE.match(value)
    if not match:
        return value
    try:
        parsed = json.loads(match.group(1))
    except ValueError:
        logger.debug("Default %r is not valid JSON; compared as text", value)
        return value
    return "'" + json.dumps(parsed, separators=(",", ":"), ensure_ascii=False) + "'"


def normalize_default(default: str | None, data_type: str | None = None) -> str | None:
    """Normalize a column default for comparison.

    - Serial defaults (either form) become ``<serial>``
    - Trailing type casts are stripped: ``'{}'::json`` -> ``'{}'``
    - Boolean literals are canonical for boolean columns: ``'TRUE'`` -> ``true``
    - JSON literals are compacted: ``'[0, 1]'`` -> ``'[0,1]'``
    - The rest goes through ``normalize_sql_expression``

    Examples:
        >>> normalize_default("'{}'::jsonb", "jsonb")
        "'{}'"
        >>> normalize_default("nextval('users_id_seq'::regclass)", "integer")
        '<serial>'
        >>> normalize_default(None, "serial")
        '<serial>'
        >>> normalize_default("'true'", "boolean")
        'true'
    """
    if is_serial_column(data_type, default):
        return SERIAL_SENTINEL

    if default is None:
        return None

    normalized = _TRAILING_CAST_RE.sub("", default.strip())

    if data_type is None or data_type.lower() in BOOLEAN_TYPES:
        match = _QUOTED_BOOLEAN_RE.match(normalized)
        if match:
            return match.group(1).lower()

    normalized = _normalize_json_literal(normalized)

    return normalize_sql_expression(normalized)


def normalize_generation_expression(expression: str | None) -> str | None:
    if expression is None:
        return None
    return normalize_sql_expression(expression)


# ------------------------------------------------------------------
# Data types
# ------------------------------------------------------------------


def normalize_data_type(data_type: str, udt_name: str | None = None) -> str:
    """Normalize a column data type for comparison.

    - ``ARRAY`` with udt ``_text`` -> ``text[]``
    - ``USER-DEFINED`` with udt ``mood`` -> ``mood``
    - ``serial``/``bigserial``/``smallserial`` -> their storage type

    Examples:
        >>> normalize_data_type("ARRAY", "_text")
        'text[]'
        >>> normalize_data_type("USER-DEFINED", "mood")
        'mood'
        >>> normalize_data_type("bigserial")
        'bigint'
    """
    lowered = data_type.lower()
    if lowered in SERIAL_TYPES:
        return SERIAL_TYPES[lowered]

    if data_type == "ARRAY" and udt_name and udt_name.startswith("_"):
        return f"{udt_name[1:]}[]"

    if data_type == "USER-DEFINED" and udt_name:
        return udt_name

    return data_type


# ------------------------------------------------------------------
# Deep equality
# ------------------------------------------------------------------


def sort_object_keys(value: Any) -> Any:
    """Recursively rebuild dicts with sorted keys; lists keep their order."""
    if isinstance(value, dict):
        return {key: sort_object_keys(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [sort_object_keys(item) for item in value]
    return value


def canonical_json(value: Any) -> str:
    """Serialize with recursively sorted keys, independent of insertion order."""
    return json.dumps(sort_object_keys(value), separators=(",", ":"), default=str)


def deep_equal(a: Any, b: Any) -> bool:
    """Compare two JSON-like values for equality, ignoring key order."""
    return canonical_json(a) == canonical_json(b)
