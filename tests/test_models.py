import pytest
from pydantic import TypeAdapter, ValidationError

from a2a_hitl.models import (
    A2AEvent, Artifact, DataPart, FilePart, FileWithBytes, FileWithUri, Message, Task, TaskState,
    TaskStatus, TaskStatusUpdateEvent, TextPart, JSONRPCRequestAdapter, SendMessageRequest,
    GetTaskRequest, JSONRPCErrorResponse, JSONRPCSuccessResponse, SendMessageResult, TaskResult,
    create_jsonrpc_error_response, create_jsonrpc_success_response, parse_jsonrpc_request,
    format_validation_errors, to_wire,
)


def test_task_state_values():
    assert [s.value for s in TaskState] == [
        "submitted", "working", "input-required", "completed", "canceled",
        "failed", "rejected", "auth-required", "unknown",
    ]


def test_message_wire_form_uses_camel_case():
    message = Message(message_id="m1", role="user", parts=[TextPart(text="hi")], context_id="c1", task_id="t1")
    wire = to_wire(message)
    assert wire == {
        "kind": "message",
        "messageId": "m1",
        "role": "user",
        "parts": [{"kind": "text", "text": "hi"}],
        "contextId": "c1",
        "taskId": "t1",
    }


def test_message_is_immutable():
    message = Message(message_id="m1", role="user", parts=[TextPart(text="hi")])
    with pytest.raises(ValidationError):
        message.role = "agent"


def test_part_discriminated_union_parses_each_kind():
    message = Message.model_validate({
        "messageId": "m1",
        "role": "agent",
        "parts": [
            {"kind": "text", "text": "hi"},
            {"kind": "data", "data": {"x": 1}},
            {"kind": "file", "file": {"uri": "https://example.com/a.pdf", "mimeType": "application/pdf"}},
            {"kind": "file", "file": {"bytes": "aGVsbG8=", "name": "a.txt"}},
        ],
    })
    assert isinstance(message.parts[0], TextPart)
    assert isinstance(message.parts[1], DataPart)
    assert isinstance(message.parts[2], FilePart) and isinstance(message.parts[2].file, FileWithUri)
    assert isinstance(message.parts[3].file, FileWithBytes)


@pytest.mark.parametrize("file_value", [
    {"bytes": "aGVsbG8=", "uri": "https://example.com/a"},
    {"name": "neither.txt"},
    {"uri": "not-a-url"},
])
def test_file_requires_exactly_one_valid_source(file_value):
    with pytest.raises(ValidationError):
        FilePart.model_validate({"kind": "file", "file": file_value})


@pytest.mark.parametrize("uri", [
    "https://example.com/report.pdf",
    "file:///tmp/report.pdf",
    "urn:isbn:0451450523",
])
def test_file_uri_accepts_any_absolute_uri(uri):
    part = FilePart.model_validate({"kind": "file", "file": {"uri": uri}})
    assert isinstance(part.file, FileWithUri)
    assert to_wire(part) == {"kind": "file", "file": {"uri": uri}}


def test_unknown_part_kind_rejected():
    with pytest.raises(ValidationError):
        Message.model_validate({"messageId": "m1", "role": "user", "parts": [{"kind": "video", "url": "x"}]})


def test_invalid_role_rejected():
    with pytest.raises(ValidationError):
        Message.model_validate({"messageId": "m1", "role": "assistant", "parts": []})


def test_task_round_trip():
    task = Task(
        id="t1",
        context_id="c1",
        status=TaskStatus(
            state=TaskState.INPUT_REQUIRED,
            message=Message(message_id="m2", role="agent", parts=[TextPart(text="approve?")]),
            timestamp="2026-01-01T00:00:00.000Z",
        ),
        artifacts=[Artifact(artifact_id="a1", name="plan", parts=[DataPart(data={"steps": [1, 2]})])],
        history=[Message(message_id="m1", role="user", parts=[TextPart(text="go")], extensions=["urn:x"])],
        metadata={"source": "test"},
    )
    assert to_wire(Task.model_validate(to_wire(task))) == to_wire(task)


def test_event_union_discriminates_on_kind():
    adapter = TypeAdapter(A2AEvent)
    event = adapter.validate_python({
        "kind": "status-update",
        "taskId": "t1",
        "contextId": "c1",
        "status": {"state": "working"},
        "final": False,
    })
    assert isinstance(event, TaskStatusUpdateEvent)
    assert event.status.state == TaskState.WORKING


def test_parse_jsonrpc_request_discriminates_on_method():
    request = parse_jsonrpc_request({"jsonrpc": "2.0", "id": 1, "method": "tasks/get", "params": {"taskId": "t1"}})
    assert isinstance(request, GetTaskRequest)
    assert request.params.task_id == "t1"


def test_parse_jsonrpc_request_message_send_with_context():
    request = JSONRPCRequestAdapter.validate_python({
        "jsonrpc": "2.0",
        "id": "abc",
        "method": "message/send",
        "params": {
            "message": {"messageId": "m1", "role": "user", "parts": [{"kind": "text", "text": "x"}]},
            "context": {"taskId": "t9"},
        },
    })
    assert isinstance(request, SendMessageRequest)
    assert request.params.context.task_id == "t9"


def test_format_validation_errors_reports_paths():
    with pytest.raises(ValidationError) as exc_info:
        GetTaskRequest.model_validate({"jsonrpc": "2.0", "id": 1, "method": "tasks/get", "params": {}})
    errors = format_validation_errors(exc_info.value)
    assert errors == [{"path": "params.taskId", "message": "Field required", "type": "missing"}]


def test_send_message_result_wire_form():
    task = Task(id="t1", context_id="c1", status=TaskStatus(state=TaskState.SUBMITTED))
    wire = to_wire(SendMessageResult(task=task, stream_url="http://testserver/a2a/events?taskId=t1"))
    assert wire == {
        "task": {"kind": "task", "id": "t1", "contextId": "c1", "status": {"state": "submitted"}},
        "streamUrl": "http://testserver/a2a/events?taskId=t1",
    }
    assert TaskResult.model_validate(wire).task.context_id == "c1"


def test_success_response_keeps_null_id():
    body = create_jsonrpc_success_response(None, {"task": {"id": "t1"}})
    assert body == {"jsonrpc": "2.0", "id": None, "result": {"task": {"id": "t1"}}}
    assert JSONRPCSuccessResponse.model_validate(body).result["task"]["id"] == "t1"


def test_error_response_omits_absent_data():
    body = create_jsonrpc_error_response("r1", -32001, "Task not found")
    assert body == {"jsonrpc": "2.0", "id": "r1", "error": {"code": -32001, "message": "Task not found"}}

    with_data = create_jsonrpc_error_response(7, -32602, "Invalid params", [{"path": "params"}])
    assert with_data["error"]["data"] == [{"path": "params"}]
    assert JSONRPCErrorResponse.model_validate(with_data).id == 7
