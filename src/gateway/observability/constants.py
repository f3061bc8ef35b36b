"""Constants for observability layer."""

# HTTP header for correlation ID propagation
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Service identifier for logs
SERVICE_NAME = "rag-gateway"


# Log event names following the pattern: {domain}.{action}.{result}
class LogEvents:
    """Standardized log event names."""

    # Chat turn events
    CHAT_TURN_STARTED = "chat.turn.started"
    CHAT_TURN_COMPLETED = "chat.turn.completed"
    CHAT_TURN_FAILED = "chat.turn.failed"
    CHAT_CONFIG_RESOLVED = "chat.config.resolved"
    CHAT_CONFIG_FAILED = "chat.config.failed"
    CHAT_BACKEND_MISSING = "chat.backend.missing"
    CHAT_STREAM_CONNECTED = "chat.stream.connected"
    CHAT_STREAM_FAILED = "chat.stream.failed"
    CHAT_RESPONSE_PERSISTED = "chat.response.persisted"

    # Registry events
    REGISTRY_INITIALIZED = "registry.init.completed"
    REGISTRY_CREDENTIALS_MISSING = "registry.credentials.missing"

    # Backend client events
    BACKEND_CONFIG_FETCHED = "backend.config.fetched"
    BACKEND_CONFIG_FAILED = "backend.config.failed"
    BACKEND_CONFIGURE_COMPLETED = "backend.configure.completed"
    BACKEND_CONFIGURE_FAILED = "backend.configure.failed"
    BACKEND_PREDICT_STARTED = "backend.predict.started"
    BACKEND_PREDICT_COMPLETED = "backend.predict.completed"
    BACKEND_PREDICT_CLOSED = "backend.predict.closed"
    BACKEND_PREDICT_FAILED = "backend.predict.failed"
    BACKEND_AUTH_FAILED = "backend.auth.failed"

    # Discovery events
    DISCOVERY_INIT_STARTED = "discovery.init.started"
    DISCOVERY_INIT_EMPTY = "discovery.init.empty"
    DISCOVERY_LOCAL_LOADED = "discovery.local.loaded"
    DISCOVERY_LOCAL_FAILED = "discovery.local.failed"
    DISCOVERY_REFRESH_COMPLETED = "discovery.refresh.completed"
    DISCOVERY_ENDPOINT_RETRYING = "discovery.endpoint.retrying"
    DISCOVERY_ENDPOINT_FAILED = "discovery.endpoint.failed"
    DISCOVERY_KEY_COLLISION = "discovery.key.collision"
    DISCOVERY_POLLING_STARTED = "discovery.polling.started"
    DISCOVERY_POLLING_STOPPED = "discovery.polling.stopped"
    DISCOVERY_POLLING_FAILED = "discovery.polling.failed"

    # Retry events
    RETRY_ATTEMPT_FAILED = "retry.attempt.failed"
    RETRY_EXHAUSTED = "retry.attempts.exhausted"

    # Request lifecycle events
    REQUEST_STARTED = "request.started"
    REQUEST_COMPLETED = "request.completed"
    REQUEST_FAILED = "request.failed"

    # Error events
    ERROR_UNHANDLED = "error.unhandled"
    ERROR_UNAUTHORIZED = "error.unauthorized"


# Fields that should be redacted in logs
SENSITIVE_FIELDS = frozenset({
    "password",
    "secret",
    "token",
    "access_token",
    "api_key",
    "authorization",
    "auth",
    "credentials",
    "server_credentials",
    "session_tokens",
})

# Fields to redact (case-insensitive patterns)
SENSITIVE_FIELD_PATTERNS = frozenset({
    "password",
    "secret",
    "token",
    "credential",
    "auth",
})

# Redaction placeholder
REDACTED_VALUE = "[REDACTED]"
