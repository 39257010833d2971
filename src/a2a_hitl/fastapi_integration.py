"""
Provides FastAPI integration helpers for exposing an A2A instance as a
JSON-RPC endpoint, a REST sub-API for out-of-process callers and a
server-sent events stream.
"""

import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type, Union

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError

from .constants import (
    JSONRPC_PARSE_ERROR, JSONRPC_INVALID_REQUEST, JSONRPC_METHOD_NOT_FOUND, JSONRPC_INVALID_PARAMS,
    JSONRPC_INTERNAL_ERROR, JSONRPC_TASK_NOT_FOUND, JSONRPC_EXECUTOR_NOT_FOUND, JSONRPC_STORAGE_ERROR,
    METHOD_MESSAGE_SEND, METHOD_TASKS_GET, METHOD_TASKS_CANCEL, UNIMPLEMENTED_METHODS,
    SSE_CONNECTION_ESTABLISHED_TEXT, DEFAULT_CANCEL_REASON,
)
from .core import A2AInstance
from .exceptions import (
    ExecutorInputError, ExecutorOutputError, MissingIdentifiersError, NoExecutorFoundError,
    StorageAdapterRequiredError, StorageError, TaskNotFoundError,
)
from .lifecycle import agent_text_message, utc_now_iso
from .models import (
    REQUEST_MODELS, Artifact, CancelTaskRequest, GetTaskRequest, Message, SendMessageRequest,
    SendMessageResult, Task, TaskResult, TaskState, TaskStatus, TaskStatusUpdateEvent,
    create_jsonrpc_error_response, create_jsonrpc_success_response, format_validation_errors, to_wire,
)
from .sse import SSE_HEADERS, sse_event_stream

logger = logging.getLogger(__name__)

EVENTS_ROUTE_NAME = "a2a_events"

RequestId = Union[str, int, None]


def _rpc_response(content: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(content=content, status_code=status.HTTP_200_OK)


def jsonrpc_error_for_exception(exc: Exception) -> Tuple[int, str, Optional[Any]]:
    """Maps a dispatch/lifecycle exception onto a JSON-RPC ``(code, message, data)`` triple."""
    if isinstance(exc, NoExecutorFoundError):
        return JSONRPC_EXECUTOR_NOT_FOUND, "No executor found for extensions", {"extensions": exc.extensions}
    if isinstance(exc, ExecutorInputError):
        return JSONRPC_INVALID_PARAMS, "Invalid params", exc.errors
    if isinstance(exc, MissingIdentifiersError):
        return JSONRPC_INVALID_PARAMS, str(exc), None
    if isinstance(exc, TaskNotFoundError):
        return JSONRPC_TASK_NOT_FOUND, str(exc), {"taskId": exc.task_id}
    if isinstance(exc, StorageError):
        return JSONRPC_STORAGE_ERROR, str(exc), None
    if isinstance(exc, ExecutorOutputError):
        return JSONRPC_INTERNAL_ERROR, "Internal error", {"errors": exc.errors}
    return JSONRPC_INTERNAL_ERROR, "Internal error", str(exc) or type(exc).__name__


def create_a2a_router(
    a2a: A2AInstance,
    prefix: str = "",
    tags: Optional[List[str]] = None,
    dependencies: Optional[List[Depends]] = None,
    heartbeat_seconds: float = 30.0,
    replay_on_subscribe: bool = False,
) -> APIRouter:
    """
    Creates an APIRouter exposing ``a2a``.

    Routes (relative to ``prefix``):
        ``POST /``: JSON-RPC 2.0 endpoint; every JSON-RPC outcome is HTTP 200.
        ``GET /events?taskId=&contextId=``: server-sent events for one task.
        ``GET /tasks/{taskId}``: the stored task.
        ``POST /tasks/{taskId}/status|messages|artifacts?contextId=``: lifecycle writes.
    """
    if tags is None: tags = ["A2A Protocol"]
    router = APIRouter(prefix=prefix, tags=tags, dependencies=dependencies or [])
    logger.info(
        f"Creating A2A router with prefix '{prefix}' for {len(a2a.registry)} executor(s), "
        f"storage: {a2a.storage.__class__.__name__ if a2a.storage else 'none'}, "
        f"events: {a2a.event_channel.__class__.__name__}"
    )

    # --- JSON-RPC method handlers ---

    async def _message_send(request: Request, rpc: SendMessageRequest) -> Dict[str, Any]:
        message = rpc.params.message
        context = rpc.params.context
        task_id = (context.task_id if context else None) or message.task_id or str(uuid.uuid4())
        context_id = (context.context_id if context else None) or message.context_id or str(uuid.uuid4())

        await a2a.execute(message, task_id=task_id, context_id=context_id)

        task = Task(
            id=task_id,
            context_id=context_id,
            status=TaskStatus(state=TaskState.SUBMITTED, timestamp=utc_now_iso()),
            history=[message],
            metadata={},
        )
        stream_url = request.url_for(EVENTS_ROUTE_NAME).include_query_params(taskId=task_id, contextId=context_id)
        return to_wire(SendMessageResult(task=task, stream_url=str(stream_url)))

    async def _tasks_get(request: Request, rpc: GetTaskRequest) -> Dict[str, Any]:
        if a2a.storage is None:
            raise StorageAdapterRequiredError(METHOD_TASKS_GET)
        try:
            task = await a2a.get_task(rpc.params.task_id)
        except StorageError as e:
            logger.error(f"Failed to retrieve task {rpc.params.task_id}: {e}")
            raise StorageError("Failed to retrieve task") from e
        return to_wire(TaskResult(task=task))

    async def _tasks_cancel(request: Request, rpc: CancelTaskRequest) -> Dict[str, Any]:
        if a2a.storage is None:
            raise StorageAdapterRequiredError(METHOD_TASKS_CANCEL)
        params = rpc.params
        await a2a.get_task(params.task_id)
        message = agent_text_message(params.reason or DEFAULT_CANCEL_REASON, task_id=params.task_id, context_id=params.context_id)
        await a2a.cancel_task(params.task_id, params.context_id, message)
        task = await a2a.get_task(params.task_id)
        return to_wire(TaskResult(task=task))

    method_handlers: Dict[str, Callable[[Request, Any], Awaitable[Dict[str, Any]]]] = {
        METHOD_MESSAGE_SEND: _message_send,
        METHOD_TASKS_GET: _tasks_get,
        METHOD_TASKS_CANCEL: _tasks_cancel,
    }

    @router.post("/", summary="A2A JSON-RPC Endpoint", description="Handles A2A JSON-RPC requests (message/send, tasks/get, tasks/cancel).")
    async def handle_a2a_request(request: Request) -> JSONResponse:
        """Handles incoming A2A JSON-RPC requests over POST."""
        req_id: RequestId = None
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to parse request body as JSON: {e}")
            return _rpc_response(create_jsonrpc_error_response(None, JSONRPC_PARSE_ERROR, "Parse error"))

        if not isinstance(payload, dict):
            logger.warning("Invalid request: Payload is not a JSON object.")
            return _rpc_response(create_jsonrpc_error_response(None, JSONRPC_INVALID_REQUEST, "Invalid Request: Payload must be a JSON object."))
        raw_id = payload.get("id")
        req_id = raw_id if isinstance(raw_id, (str, int)) and not isinstance(raw_id, bool) else None
        request.state.json_rpc_request_id = req_id

        method = payload.get("method")
        if not isinstance(method, str) or not method:
            logger.warning("Invalid request: 'method' field is missing or not a string.")
            return _rpc_response(create_jsonrpc_error_response(req_id, JSONRPC_INVALID_REQUEST, "Invalid Request: 'method' is required and must be a string."))
        request_model: Optional[Type[BaseModel]] = REQUEST_MODELS.get(method)
        if request_model is None:
            logger.warning(f"Method not found: '{method}'")
            return _rpc_response(create_jsonrpc_error_response(req_id, JSONRPC_METHOD_NOT_FOUND, f"Method not found: {method}"))

        try:
            rpc = request_model.model_validate(payload)
        except ValidationError as e:
            errors = format_validation_errors(e)
            in_params = all(err["path"].split(".")[0] == "params" for err in errors)
            code = JSONRPC_INVALID_PARAMS if in_params else JSONRPC_INVALID_REQUEST
            logger.warning(f"Validation failed for method '{method}': {errors}")
            return _rpc_response(create_jsonrpc_error_response(req_id, code, "Invalid params" if in_params else "Invalid Request", errors))

        if method in UNIMPLEMENTED_METHODS:
            logger.info(f"Method '{method}' is recognised but not implemented.")
            return _rpc_response(create_jsonrpc_error_response(req_id, JSONRPC_METHOD_NOT_FOUND, f"Method {method} not implemented"))

        logger.info(f"Received valid JSON-RPC request: method='{method}', id='{req_id}'")
        try:
            result = await method_handlers[method](request, rpc)
        except Exception as e:
            code, message, data = jsonrpc_error_for_exception(e)
            if code == JSONRPC_INTERNAL_ERROR:
                logger.exception(f"Unhandled error while processing '{method}': {e}")
            else:
                logger.warning(f"Request '{method}' failed with code {code}: {e}")
            return _rpc_response(create_jsonrpc_error_response(req_id, code, message, data))
        return _rpc_response(create_jsonrpc_success_response(req_id, result))

    # --- Event stream ---

    @router.get("/events", name=EVENTS_ROUTE_NAME, summary="Subscribe to task events (SSE)")
    async def stream_task_events(
        request: Request,
        task_id: Optional[str] = Query(None, alias="taskId"),
        context_id: Optional[str] = Query(None, alias="contextId"),
    ):
        if not task_id:
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Missing taskId parameter"})

        snapshot = None
        if a2a.storage is not None:
            try:
                snapshot = await a2a.storage.get_task_with_history(task_id)
            except StorageError as e:
                logger.error(f"Failed to load task {task_id} for subscription: {e}")
                return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e)})
            if snapshot is None:
                logger.warning(f"Task '{task_id}' not found for subscription.")
                return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Task not found"})
            context_id = context_id or snapshot.task.context_id
        context_id = context_id or str(uuid.uuid4())

        channel = a2a.event_channel
        try:
            queue = await channel.subscribe(task_id)
        except Exception as e:
            logger.exception(f"Failed to subscribe to events for task {task_id}: {e}")
            return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e) or "Subscription failed"})
        if channel.announce_on_subscribe:
            try:
                await channel.send(TaskStatusUpdateEvent(
                    task_id=task_id,
                    context_id=context_id,
                    status=TaskStatus(
                        state=TaskState.WORKING,
                        message=agent_text_message(SSE_CONNECTION_ESTABLISHED_TEXT, task_id=task_id, context_id=context_id),
                        timestamp=utc_now_iso(),
                    ),
                ))
            except Exception as e:
                logger.error(f"Failed to announce subscription for task {task_id}: {e}")

        async def _on_close() -> None:
            await channel.unsubscribe(task_id, queue)

        logger.info(f"Starting SSE stream for task {task_id}.")
        return StreamingResponse(
            content=sse_event_stream(
                task_id,
                queue,
                on_close=_on_close,
                heartbeat_seconds=heartbeat_seconds,
                is_disconnected=request.is_disconnected,
                snapshot=snapshot if replay_on_subscribe else None,
            ),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    # --- REST sub-API ---

    async def _rest_write(
        task_id: str,
        context_id: Optional[str],
        request: Request,
        model_cls: Type[BaseModel],
        operation: Callable[[str, str, Any], Awaitable[None]],
    ) -> JSONResponse:
        if not context_id:
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "contextId is required"})
        try:
            await a2a.get_task(task_id)
        except TaskNotFoundError:
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Task not found"})
        except Exception as e:
            logger.exception(f"Failed to load task {task_id}: {e}")
            return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e)})

        try:
            body = model_cls.model_validate(await request.json())
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid JSON body"})
        except ValidationError as e:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Invalid request body", "details": format_validation_errors(e)},
            )

        try:
            await operation(task_id, context_id, body)
        except TaskNotFoundError:
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Task not found"})
        except Exception as e:
            logger.exception(f"REST lifecycle operation failed for task {task_id}: {e}")
            return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e) or "Internal server error"})
        return JSONResponse(content={"success": True})

    @router.post("/tasks/{task_id}/status", summary="Update task status")
    async def rest_update_status(task_id: str, request: Request, context_id: Optional[str] = Query(None, alias="contextId")):
        return await _rest_write(task_id, context_id, request, TaskStatus, a2a.update_status)

    @router.post("/tasks/{task_id}/messages", summary="Attach a message to a task")
    async def rest_update_message(task_id: str, request: Request, context_id: Optional[str] = Query(None, alias="contextId")):
        return await _rest_write(task_id, context_id, request, Message, a2a.update_message)

    @router.post("/tasks/{task_id}/artifacts", summary="Create or replace a task artifact")
    async def rest_update_artifact(task_id: str, request: Request, context_id: Optional[str] = Query(None, alias="contextId")):
        return await _rest_write(task_id, context_id, request, Artifact, a2a.update_artifact)

    @router.get("/tasks/{task_id}", summary="Get a task")
    async def rest_get_task(task_id: str):
        try:
            task = await a2a.get_task(task_id)
        except TaskNotFoundError:
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Task not found"})
        except Exception as e:
            logger.exception(f"Failed to load task {task_id}: {e}")
            return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e) or "Internal server error"})
        return JSONResponse(content=to_wire(task))

    return router
