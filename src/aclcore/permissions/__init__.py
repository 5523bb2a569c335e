"""Role-based permission resolution.

Defines:
- PermissionRecord / Grant / Target: what a principal holds
- normalize(): flatten records into canonical dotted keys
- parse_expression() / evaluate(): "a|b" and "a&b" expressions
- match_key(): global-first, instance-scoped key matching
- aggregate_records(): OR-merge grants across roles
- EffectivePermissionCache: per-principal memoization with TTL
- PermissionResolver, Role, User: the ``can`` / ``able`` surface
"""

from .cache import (
    CacheStore,
    EffectivePermissionCache,
    InMemoryCacheStore,
    RedisCacheStore,
    cache_store_from_config,
)
from .expression import Operator, ParsedExpression, evaluate, parse_expression
from .inheritance import aggregate_records, merge_values, resolve_record
from .normalize import normalize
from .principals import Role, User
from .records import Grant, PermissionRecord, Target
from .resolver import PermissionResolver, Principal
from .scope import match_key, scoped_key

__all__ = [
    "CacheStore",
    "EffectivePermissionCache",
    "Grant",
    "InMemoryCacheStore",
    "Operator",
    "ParsedExpression",
    "PermissionRecord",
    "PermissionResolver",
    "Principal",
    "RedisCacheStore",
    "Role",
    "Target",
    "User",
    "aggregate_records",
    "cache_store_from_config",
    "evaluate",
    "match_key",
    "merge_values",
    "normalize",
    "parse_expression",
    "resolve_record",
    "scoped_key",
]
