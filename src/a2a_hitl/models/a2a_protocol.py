"""
Pydantic models representing the structures used in the Agent-to-Agent (A2A) protocol.

Wire field names are camelCase (``messageId``, ``contextId`` ...). The Python
attributes are snake_case and every model accepts either spelling on input.
Use :func:`to_wire` to produce the JSON-compatible wire representation.
"""

from enum import Enum
from typing import Annotated, List, Optional, Dict, Any, Union, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ConfigDict, field_validator

# --- Core Enumerations ---

class TaskState(str, Enum):
    """
    Represents the possible states of an A2A task.

    States:
        SUBMITTED: Task received, awaiting execution.
        WORKING: Task is actively being processed.
        INPUT_REQUIRED: Task is suspended, awaiting external (human) input.
        COMPLETED: Task finished successfully.
        CANCELED: Task was canceled explicitly.
        FAILED: Task terminated due to an error.
        REJECTED: A human declined the task at an approval gate.
        AUTH_REQUIRED: Reserved by the protocol.
        UNKNOWN: Reserved by the protocol.
    """
    SUBMITTED = "submitted"
    WORKING = "working"
    INPUT_REQUIRED = "input-required"
    COMPLETED = "completed"
    CANCELED = "canceled"
    FAILED = "failed"
    REJECTED = "rejected"
    AUTH_REQUIRED = "auth-required"
    UNKNOWN = "unknown"


TERMINAL_STATES = frozenset({
    TaskState.COMPLETED, TaskState.CANCELED, TaskState.FAILED, TaskState.REJECTED,
})

Metadata = Optional[Dict[str, Any]]


def require_absolute_uri(value: str) -> str:
    """Accepts any URI with a scheme (`https:`, `file:`, `urn:` ...), returned verbatim."""
    if not urlparse(value).scheme:
        raise ValueError("must be an absolute URI")
    return value


def require_absolute_url(value: str) -> str:
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("must be an absolute URL")
    return value


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Message Parts ---

class FileWithBytes(BaseModel):
    """File content carried inline as an encoded (base64) string."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")
    bytes: str = Field(..., description="Encoded file payload.")
    mime_type: Optional[str] = Field(None, alias="mimeType")
    name: Optional[str] = None


class FileWithUri(BaseModel):
    """File content referenced by an absolute URI."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")
    uri: str = Field(..., description="Absolute URI pointing to the file content.")
    mime_type: Optional[str] = Field(None, alias="mimeType")
    name: Optional[str] = None

    @field_validator("uri")
    @classmethod
    def check_absolute_uri(cls, v: str) -> str:
        return require_absolute_uri(v)


File = Union[FileWithBytes, FileWithUri]


class TextPart(BaseModel):
    """Represents a plain text part of a message."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    kind: Literal["text"] = "text"
    text: str
    metadata: Metadata = None


class FilePart(BaseModel):
    """Represents a file (inline bytes or URI) within a message."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    kind: Literal["file"] = "file"
    file: File
    metadata: Metadata = None


class DataPart(BaseModel):
    """Represents arbitrary structured data within a message."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    kind: Literal["data"] = "data"
    data: Any = Field(..., description="Opaque structured (JSON) value.")
    metadata: Metadata = None


Part = Annotated[Union[TextPart, FilePart, DataPart], Field(discriminator="kind")]


# --- Messages ---

class Message(BaseModel):
    """One exchange unit (a request, a status narration, a human response)."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    kind: Literal["message"] = "message"
    message_id: str = Field(..., alias="messageId")
    role: Literal["agent", "user"]
    parts: List[Part]
    context_id: Optional[str] = Field(None, alias="contextId")
    task_id: Optional[str] = Field(None, alias="taskId")
    extensions: Optional[List[str]] = Field(None, description="Capability URIs naming the executor(s) that may handle this message.")
    reference_task_ids: Optional[List[str]] = Field(None, alias="referenceTaskIds")
    metadata: Metadata = None


# --- Artifacts ---

class Artifact(_WireModel):
    """A durable output attached to a task (a plan, a result)."""
    artifact_id: str = Field(..., alias="artifactId")
    name: Optional[str] = None
    description: Optional[str] = None
    parts: List[Part]
    extensions: Optional[List[str]] = None
    metadata: Metadata = None
    # Owning task; set by the lifecycle before the artifact is stored.
    task_id: Optional[str] = Field(None, alias="taskId")


# --- Task ---

class TaskStatus(_WireModel):
    state: TaskState
    message: Optional[Message] = None
    timestamp: Optional[str] = Field(None, description="ISO 8601 timestamp.")


class Task(_WireModel):
    """The central unit-of-work record."""
    id: str
    context_id: str = Field(..., alias="contextId")
    kind: Literal["task"] = "task"
    status: TaskStatus
    artifacts: Optional[List[Artifact]] = None
    history: Optional[List[Message]] = None
    metadata: Metadata = None


class TaskWithHistory(_WireModel):
    """Composite read of a task together with its ordered messages and artifacts."""
    task: Task
    messages: List[Message] = Field(default_factory=list)
    artifacts: List[Artifact] = Field(default_factory=list)


# --- Events ---

class TaskStatusUpdateEvent(_WireModel):
    kind: Literal["status-update"] = "status-update"
    task_id: str = Field(..., alias="taskId")
    context_id: str = Field(..., alias="contextId")
    status: TaskStatus
    final: bool = False
    metadata: Metadata = None


class TaskArtifactUpdateEvent(_WireModel):
    kind: Literal["artifact-update"] = "artifact-update"
    task_id: str = Field(..., alias="taskId")
    context_id: str = Field(..., alias="contextId")
    artifact: Artifact
    append: Optional[bool] = None
    last_chunk: Optional[bool] = Field(None, alias="lastChunk")
    metadata: Metadata = None


A2AEvent = Annotated[Union[TaskStatusUpdateEvent, TaskArtifactUpdateEvent], Field(discriminator="kind")]


def to_wire(model: BaseModel) -> Dict[str, Any]:
    """Serializes a model to its JSON-compatible camelCase wire form, omitting unset optionals."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
