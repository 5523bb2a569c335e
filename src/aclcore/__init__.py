from .config import AclConfig, LogLevel, load_config_from_env
from .exceptions import (
    AclError,
    CacheError,
    ConfigurationError,
    InvalidOperator,
    MalformedRecord,
)
from .logging import (
    safe_preview,
    AclFormatter,
    PrincipalLoggerAdapter,
    setup_logging,
    get_acl_logger,
)
from .permissions import (
    CacheStore,
    EffectivePermissionCache,
    Grant,
    InMemoryCacheStore,
    Operator,
    PermissionRecord,
    PermissionResolver,
    RedisCacheStore,
    Role,
    Target,
    User,
    aggregate_records,
    cache_store_from_config,
    evaluate,
    match_key,
    normalize,
    parse_expression,
    resolve_record,
)

__all__ = [
    'AclConfig',
    'LogLevel',
    'load_config_from_env',
    'AclError',
    'CacheError',
    'ConfigurationError',
    'InvalidOperator',
    'MalformedRecord',
    'safe_preview',
    'AclFormatter',
    'PrincipalLoggerAdapter',
    'setup_logging',
    'get_acl_logger',
    'CacheStore',
    'EffectivePermissionCache',
    'Grant',
    'InMemoryCacheStore',
    'Operator',
    'PermissionRecord',
    'PermissionResolver',
    'RedisCacheStore',
    'Role',
    'Target',
    'User',
    'aggregate_records',
    'cache_store_from_config',
    'evaluate',
    'match_key',
    'normalize',
    'parse_expression',
    'resolve_record',
]
