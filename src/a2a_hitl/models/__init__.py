"""
Wire models for the A2A task protocol and its JSON-RPC envelopes.
"""
from .a2a_protocol import (
    TaskState, TERMINAL_STATES,
    FileWithBytes, FileWithUri, File, TextPart, FilePart, DataPart, Part,
    Message, Artifact, TaskStatus, Task, TaskWithHistory,
    TaskStatusUpdateEvent, TaskArtifactUpdateEvent, A2AEvent,
    to_wire,
)
from .jsonrpc import (
    SendMessageContext, SendMessageParams, GetTaskParams, CancelTaskParams,
    PushNotificationConfig, SetTaskPushNotificationConfigParams, GetTaskPushNotificationConfigParams,
    SendMessageRequest, GetTaskRequest, CancelTaskRequest,
    SetTaskPushNotificationConfigRequest, GetTaskPushNotificationConfigRequest,
    JSONRPCRequest, JSONRPCRequestAdapter, REQUEST_MODELS, parse_jsonrpc_request,
    SendMessageResult, TaskResult,
    JSONRPCError, JSONRPCErrorResponse, JSONRPCSuccessResponse,
    create_jsonrpc_error_response, create_jsonrpc_success_response,
    format_validation_errors,
)

__all__ = [
    "TaskState", "TERMINAL_STATES",
    "FileWithBytes", "FileWithUri", "File", "TextPart", "FilePart", "DataPart", "Part",
    "Message", "Artifact", "TaskStatus", "Task", "TaskWithHistory",
    "TaskStatusUpdateEvent", "TaskArtifactUpdateEvent", "A2AEvent",
    "to_wire",
    "SendMessageContext", "SendMessageParams", "GetTaskParams", "CancelTaskParams",
    "PushNotificationConfig", "SetTaskPushNotificationConfigParams", "GetTaskPushNotificationConfigParams",
    "SendMessageRequest", "GetTaskRequest", "CancelTaskRequest",
    "SetTaskPushNotificationConfigRequest", "GetTaskPushNotificationConfigRequest",
    "JSONRPCRequest", "JSONRPCRequestAdapter", "REQUEST_MODELS", "parse_jsonrpc_request",
    "SendMessageResult", "TaskResult",
    "JSONRPCError", "JSONRPCErrorResponse", "JSONRPCSuccessResponse",
    "create_jsonrpc_error_response", "create_jsonrpc_success_response",
    "format_validation_errors",
]
