from .config import AccessConfig, LogLevel, load_access_config_from_env
from .credentials import (
    DEFAULT_CREDENTIALS,
    FORBIDDEN,
    NO_HOOK,
    SEPARATOR,
    SOFT_DELETE_CREDENTIALS,
    AccessHooks,
    AccessKind,
    Credential,
    CredentialHolder,
    CredentialRegistry,
    EntityAccessPolicy,
    FieldPolicy,
    Forbidden,
    Hook,
    NoHook,
    PolicyCache,
    ResolvedCredentialSet,
    StaticPrincipal,
    build_policy,
    compile_relations,
    expand_credentials,
    format_credential,
    format_credentials,
    has_access,
    has_access_async,
    has_field_access,
    has_field_access_async,
    is_closed,
    resolve_entity_access,
    resolve_field_access,
    soft_delete_view_hook,
    split_credential,
)
from .declarations import (
    CredentialDeclaration,
    EntityDeclaration,
    FieldPolicyDeclaration,
    build_policies,
    load_declarations,
    load_declarations_from_yaml,
    parse_declarations_yaml,
)
from .exceptions import (
    ConfigurationError,
    CredentialCoreError,
    InvalidCredential,
    InvalidFieldPolicy,
    InvalidHookResult,
    PrincipalError,
    UnknownAccessKind,
    UnknownCredentialReference,
)
from .logging import (
    AccessLogFormatter,
    AccessLoggerAdapter,
    get_access_logger,
    safe_preview,
    setup_logging,
)

__all__ = [
    'AccessConfig',
    'LogLevel',
    'load_access_config_from_env',
    'DEFAULT_CREDENTIALS',
    'FORBIDDEN',
    'NO_HOOK',
    'SEPARATOR',
    'SOFT_DELETE_CREDENTIALS',
    'AccessHooks',
    'AccessKind',
    'Credential',
    'CredentialHolder',
    'CredentialRegistry',
    'EntityAccessPolicy',
    'FieldPolicy',
    'Forbidden',
    'Hook',
    'NoHook',
    'PolicyCache',
    'ResolvedCredentialSet',
    'StaticPrincipal',
    'build_policy',
    'compile_relations',
    'expand_credentials',
    'format_credential',
    'format_credentials',
    'has_access',
    'has_access_async',
    'has_field_access',
    'has_field_access_async',
    'is_closed',
    'resolve_entity_access',
    'resolve_field_access',
    'soft_delete_view_hook',
    'split_credential',
    'CredentialDeclaration',
    'EntityDeclaration',
    'FieldPolicyDeclaration',
    'build_policies',
    'load_declarations',
    'load_declarations_from_yaml',
    'parse_declarations_yaml',
    'ConfigurationError',
    'CredentialCoreError',
    'InvalidCredential',
    'InvalidFieldPolicy',
    'InvalidHookResult',
    'PrincipalError',
    'UnknownAccessKind',
    'UnknownCredentialReference',
    'AccessLogFormatter',
    'AccessLoggerAdapter',
    'get_access_logger',
    'safe_preview',
    'setup_logging',
]
