"""
Shared protocol constants: event kinds, JSON-RPC method names and error codes.
"""

# Server-push frame kinds
EVENT_KIND_STATUS_UPDATE = "status-update"
EVENT_KIND_ARTIFACT_UPDATE = "artifact-update"
EVENT_KIND_CONNECTED = "connected"

# JSON-RPC method names
METHOD_MESSAGE_SEND = "message/send"
METHOD_TASKS_GET = "tasks/get"
METHOD_TASKS_CANCEL = "tasks/cancel"
METHOD_SET_PUSH_NOTIFICATION_CONFIG = "tasks/setPushNotificationConfig"
METHOD_GET_PUSH_NOTIFICATION_CONFIG = "tasks/getPushNotificationConfig"

SUPPORTED_METHODS = frozenset({
    METHOD_MESSAGE_SEND,
    METHOD_TASKS_GET,
    METHOD_TASKS_CANCEL,
    METHOD_SET_PUSH_NOTIFICATION_CONFIG,
    METHOD_GET_PUSH_NOTIFICATION_CONFIG,
})
UNIMPLEMENTED_METHODS = frozenset({
    METHOD_SET_PUSH_NOTIFICATION_CONFIG,
    METHOD_GET_PUSH_NOTIFICATION_CONFIG,
})

# JSON-RPC Error Codes
JSONRPC_PARSE_ERROR = -32700
JSONRPC_INVALID_REQUEST = -32600
JSONRPC_METHOD_NOT_FOUND = -32601
JSONRPC_INVALID_PARAMS = -32602
JSONRPC_INTERNAL_ERROR = -32603
JSONRPC_TASK_NOT_FOUND = -32001
JSONRPC_EXECUTOR_NOT_FOUND = -32002
JSONRPC_STORAGE_ERROR = -32003

# Redis pub/sub channel prefix
DEFAULT_REDIS_CHANNEL_PREFIX = "a2a:task:"

SSE_CONNECTION_ESTABLISHED_TEXT = "SSE connection established"
DEFAULT_CANCEL_REASON = "Task canceled"
