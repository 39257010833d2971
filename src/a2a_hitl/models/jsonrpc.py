"""
JSON-RPC 2.0 envelopes for the A2A methods, plus helpers to build responses
and to turn pydantic validation failures into structured error data.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from ..constants import (
    METHOD_MESSAGE_SEND, METHOD_TASKS_GET, METHOD_TASKS_CANCEL,
    METHOD_SET_PUSH_NOTIFICATION_CONFIG, METHOD_GET_PUSH_NOTIFICATION_CONFIG,
)
from .a2a_protocol import Message, Task, require_absolute_url

RequestId = Union[str, int, None]


class _ParamsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Method-specific params ---

class SendMessageContext(_ParamsModel):
    task_id: Optional[str] = Field(None, alias="taskId")
    context_id: Optional[str] = Field(None, alias="contextId")


class SendMessageParams(_ParamsModel):
    message: Message
    context: Optional[SendMessageContext] = None


class GetTaskParams(_ParamsModel):
    task_id: str = Field(..., alias="taskId")


class CancelTaskParams(_ParamsModel):
    task_id: str = Field(..., alias="taskId")
    context_id: str = Field(..., alias="contextId")
    reason: Optional[str] = None


class PushNotificationConfig(_ParamsModel):
    url: str
    headers: Optional[Dict[str, str]] = None

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        return require_absolute_url(v)


class SetTaskPushNotificationConfigParams(_ParamsModel):
    task_id: str = Field(..., alias="taskId")
    config: PushNotificationConfig


class GetTaskPushNotificationConfigParams(_ParamsModel):
    task_id: str = Field(..., alias="taskId")


# --- Requests ---

class _JSONRPCRequestBase(BaseModel):
    jsonrpc: Literal["2.0"]
    id: RequestId = None


class SendMessageRequest(_JSONRPCRequestBase):
    method: Literal["message/send"]
    params: SendMessageParams


class GetTaskRequest(_JSONRPCRequestBase):
    method: Literal["tasks/get"]
    params: GetTaskParams


class CancelTaskRequest(_JSONRPCRequestBase):
    method: Literal["tasks/cancel"]
    params: CancelTaskParams


class SetTaskPushNotificationConfigRequest(_JSONRPCRequestBase):
    method: Literal["tasks/setPushNotificationConfig"]
    params: SetTaskPushNotificationConfigParams


class GetTaskPushNotificationConfigRequest(_JSONRPCRequestBase):
    method: Literal["tasks/getPushNotificationConfig"]
    params: GetTaskPushNotificationConfigParams


JSONRPCRequest = Annotated[
    Union[
        SendMessageRequest,
        GetTaskRequest,
        CancelTaskRequest,
        SetTaskPushNotificationConfigRequest,
        GetTaskPushNotificationConfigRequest,
    ],
    Field(discriminator="method"),
]
JSONRPCRequestAdapter: TypeAdapter = TypeAdapter(JSONRPCRequest)

REQUEST_MODELS: Dict[str, Type[_JSONRPCRequestBase]] = {
    METHOD_MESSAGE_SEND: SendMessageRequest,
    METHOD_TASKS_GET: GetTaskRequest,
    METHOD_TASKS_CANCEL: CancelTaskRequest,
    METHOD_SET_PUSH_NOTIFICATION_CONFIG: SetTaskPushNotificationConfigRequest,
    METHOD_GET_PUSH_NOTIFICATION_CONFIG: GetTaskPushNotificationConfigRequest,
}


def parse_jsonrpc_request(payload: Any) -> Union[
    SendMessageRequest, GetTaskRequest, CancelTaskRequest,
    SetTaskPushNotificationConfigRequest, GetTaskPushNotificationConfigRequest,
]:
    """Validates a decoded JSON body against the method-discriminated request union.

    Raises:
        pydantic.ValidationError: If the payload does not describe a known, well-formed request.
    """
    return JSONRPCRequestAdapter.validate_python(payload)


# --- Results ---

class SendMessageResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    task: Task
    stream_url: str = Field(..., alias="streamUrl")


class TaskResult(BaseModel):
    task: Task


# --- Responses ---

class JSONRPCError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class JSONRPCErrorResponse(BaseModel):
    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId = None
    error: JSONRPCError


class JSONRPCSuccessResponse(BaseModel):
    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId = None
    result: Any


def create_jsonrpc_error_response(req_id: RequestId, code: int, message: str, data: Optional[Any] = None) -> Dict[str, Any]:
    response = JSONRPCErrorResponse(id=req_id, error=JSONRPCError(code=code, message=message, data=data))
    # `id` stays even when null; `error.data` only when given.
    return response.model_dump(mode="json", exclude={"error": {"data"}} if data is None else None)


def create_jsonrpc_success_response(req_id: RequestId, result: Any) -> Dict[str, Any]:
    return JSONRPCSuccessResponse(id=req_id, result=result).model_dump(mode="json")


def format_validation_errors(exc: ValidationError) -> List[Dict[str, Any]]:
    """Converts a pydantic ValidationError into ``[{path, message, type}]`` entries."""
    return [
        {
            "path": ".".join(str(loc) for loc in err.get("loc", ())),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors(include_url=False)
    ]
