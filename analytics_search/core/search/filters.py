"""Rule tree to filter clause compiler.

Translates the rule trees produced by the dashboard's rule-builder UI into
Elasticsearch filter clauses. Compilation is pure: no I/O and no state, so
it can be used and tested independently of any query document.

Example:
    >>> tree = {"condition": "AND", "rules": [
    ...     {"field": "request_ip_country", "operator": "equal", "value": "us"},
    ... ]}
    >>> compile_rule_tree(tree).to_dict()
    {'bool': {'must': [{'term': {'request_ip_country': 'US'}}]}}
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from analytics_search.core.search.errors import (
    InvalidFilterOperator,
    InvalidFilterValue,
    MalformedFilterError,
)
from analytics_search.core.search.query import (
    BoolQuery,
    ExistsQuery,
    FilterClause,
    PrefixQuery,
    Query,
    RangeQuery,
    RegexpQuery,
    TermQuery,
)

# Fields whose values are indexed exactly as received
CASE_SENSITIVE_FIELDS = frozenset({
    "api_key",
    "request_ip_city",
})

# Fields indexed in upper case; every other text field is indexed lower case
UPPERCASE_FIELDS = frozenset({
    "request_method",
    "request_ip_country",
    "request_ip_region",
})

_RANGE_OPERATORS = {
    "less": "lt",
    "less_or_equal": "lte",
    "greater": "gt",
    "greater_or_equal": "gte",
}

# Lucene regular expression reserved characters
_REGEX_RESERVED = re.compile(r'([.?+*|{}\[\]()"\\#@&<>~])')


class Rule(BaseModel):
    field: str = Field(description="Indexed field name")
    operator: str = Field(description="Rule-builder operator, e.g. equal, not_contains")
    value: Any = Field(default=None, description="Scalar, or [low, high] for between")


class RuleTree(BaseModel):
    condition: str = Field(default="AND", description="AND or OR")
    rules: List[Rule] = Field(default_factory=list)


RuleTreeInput = Union[RuleTree, Mapping[str, Any], str, None]


def escape_regex(value: Any) -> str:
    """Escape a literal for use inside a Lucene regular expression."""
    return _REGEX_RESERVED.sub(r"\\\1", str(value))


def normalize_value(field: str, value: Any) -> Any:
    """Fold text values to the case the field is indexed in."""
    if not isinstance(value, str) or field in CASE_SENSITIVE_FIELDS:
        return value
    if field in UPPERCASE_FIELDS:
        return value.upper()
    return value.lower()


def is_negated(operator: str) -> bool:
    return operator == "is_null" or operator.startswith("not_")


def parse_rule_tree(value: RuleTreeInput) -> Optional[RuleTree]:
    """Decode a rule tree from its structured or JSON-serialized form.

    Returns None for absent or empty input.

    Raises:
        MalformedFilterError: If the input cannot be decoded into a rule tree.
    """
    if value is None or isinstance(value, RuleTree):
        return value

    try:
        if isinstance(value, str):
            if not value.strip():
                return None
            return RuleTree.model_validate_json(value)
        if isinstance(value, Mapping):
            if not value:
                return None
            return RuleTree.model_validate(dict(value))
    except ValidationError as e:
        raise MalformedFilterError(f"invalid filter rule tree: {e}") from e

    raise MalformedFilterError(
        f"filter rule tree must be a mapping or JSON string, got {type(value).__name__}"
    )


def compile_rule(rule: Rule) -> FilterClause:
    """Compile a single rule into a filter clause.

    Raises:
        InvalidFilterOperator: If the operator is not recognized.
        InvalidFilterValue: If a range operand is not numeric, or a
            ``between`` value is not two ordered bounds.
    """
    operator = rule.operator
    field = rule.field
    value = normalize_value(field, rule.value)

    clause: FilterClause
    if operator in ("equal", "not_equal"):
        clause = TermQuery(field=field, value=value)
    elif operator in ("begins_with", "not_begins_with"):
        clause = PrefixQuery(field=field, value=value)
    elif operator in ("contains", "not_contains"):
        clause = RegexpQuery(field=field, value=f".*{escape_regex(value)}.*")
    elif operator in ("is_null", "is_not_null"):
        clause = ExistsQuery(field=field)
    elif operator in _RANGE_OPERATORS:
        bound = _to_number(value, rule)
        clause = RangeQuery(field=field, **{_RANGE_OPERATORS[operator]: bound})
    elif operator == "between":
        low, high = _range_bounds(value, rule)
        clause = RangeQuery(field=field, gte=low, lte=high)
    else:
        raise InvalidFilterOperator(operator, rule.model_dump())

    if is_negated(operator):
        clause = BoolQuery(must_not=(clause,))

    return clause


def compile_rule_tree(tree: RuleTreeInput) -> Optional[BoolQuery]:
    """Compile a rule tree into one boolean filter clause.

    ``OR`` trees combine as ``should`` with ``minimum_should_match`` pinned
    to 1; anything else combines as ``must``. Returns None when the tree is
    absent or has no rules.
    """
    parsed = parse_rule_tree(tree)
    if parsed is None:
        return None

    clauses: List[Query] = [compile_rule(rule) for rule in parsed.rules]
    if not clauses:
        return None

    if parsed.condition.upper() == "OR":
        return BoolQuery(should=tuple(clauses), minimum_should_match=1)
    return BoolQuery(must=tuple(clauses))


def _to_number(value: Any, rule: Rule) -> Union[int, float]:
    if isinstance(value, bool):
        raise InvalidFilterValue(f"range operand must be numeric, got {value!r}", rule.model_dump())
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            pass
        else:
            # nan and inf have no JSON encoding
            if math.isfinite(number):
                return number
    raise InvalidFilterValue(f"range operand must be numeric, got {value!r}", rule.model_dump())


def _range_bounds(value: Any, rule: Rule) -> tuple:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise InvalidFilterValue("between requires a list of two values", rule.model_dump())
    low = _to_number(value[0], rule)
    high = _to_number(value[1], rule)
    if low > high:
        raise InvalidFilterValue(
            f"between bounds out of order: {low!r} > {high!r}", rule.model_dump()
        )
    return low, high


def describe(clause: Optional[Query]) -> Dict[str, Any]:
    """Render a compiled clause for logging; empty dict for no filter."""
    return clause.to_dict() if clause is not None else {}
