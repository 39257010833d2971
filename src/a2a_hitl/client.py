"""
HTTP client for out-of-process callers (e.g. a workflow orchestrator) that
report task progress through the REST sub-API.
"""

import logging
from typing import Any, Dict, Optional, Union

import httpx
import pydantic

from .exceptions import A2AClientError, A2AConnectionError
from .models import Artifact, Message, Task, TaskStatus, to_wire

logger = logging.getLogger(__name__)


class A2AHttpClient:
    """
    Implements the task lifecycle operations against a remote A2A server.

    Args:
        base_url: URL the A2A router is mounted at (e.g. ``https://host/api/a2a``).
        token: Optional bearer token sent as ``Authorization: Bearer <token>``.
        http_client: Optional externally managed ``httpx.AsyncClient``.
        default_timeout: Timeout for the internally created client.
    """
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        default_timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._headers: Dict[str, str] = {"Content-Type": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        if http_client:
            self._http_client = http_client
            self._should_close_client = False
            logger.debug("Using provided httpx.AsyncClient instance.")
        else:
            logger.debug(f"Creating internal httpx.AsyncClient instance with timeout {default_timeout}s.")
            self._http_client = httpx.AsyncClient(timeout=default_timeout, follow_redirects=True)
            self._should_close_client = True

    async def close(self) -> None:
        """Closes the underlying HTTP client if it was created internally."""
        if self._should_close_client and not self._http_client.is_closed:
            logger.debug("Closing internally managed httpx.AsyncClient instance.")
            await self._http_client.aclose()

    async def __aenter__(self) -> "A2AHttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(self, method: str, path: str, params: Optional[Dict[str, str]] = None, json_payload: Optional[Any] = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            return await self._http_client.request(method, url, params=params, json=json_payload, headers=self._headers)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling {method} {url}: {e}")
            raise A2AConnectionError(f"Timeout connecting to {url}") from e
        except httpx.RequestError as e:
            logger.error(f"Connection error calling {method} {url}: {e}")
            raise A2AConnectionError(f"Could not connect to {url}: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text
        logger.error(f"Failed to {action}: HTTP {response.status_code} {body}")
        raise A2AClientError(f"Failed to {action}: HTTP {response.status_code}", status_code=response.status_code, response_body=body)

    async def update_status(self, task_id: str, context_id: str, status: Union[TaskStatus, Dict[str, Any]]) -> None:
        payload = to_wire(TaskStatus.model_validate(status) if isinstance(status, dict) else status)
        response = await self._request("POST", f"/tasks/{task_id}/status", params={"contextId": context_id}, json_payload=payload)
        self._raise_for_status(response, "update status")
        logger.info(f"Reported status '{payload['state']}' for task {task_id}.")

    async def update_message(self, task_id: str, context_id: str, message: Union[Message, Dict[str, Any]]) -> None:
        payload = to_wire(Message.model_validate(message) if isinstance(message, dict) else message)
        response = await self._request("POST", f"/tasks/{task_id}/messages", params={"contextId": context_id}, json_payload=payload)
        self._raise_for_status(response, "send message")

    async def update_artifact(self, task_id: str, context_id: str, artifact: Union[Artifact, Dict[str, Any]]) -> None:
        payload = to_wire(Artifact.model_validate(artifact) if isinstance(artifact, dict) else artifact)
        response = await self._request("POST", f"/tasks/{task_id}/artifacts", params={"contextId": context_id}, json_payload=payload)
        self._raise_for_status(response, "save artifact")

    async def get_task(self, task_id: str) -> Optional[Task]:
        """Returns the task, or None when the server reports 404."""
        response = await self._request("GET", f"/tasks/{task_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "get task")
        try:
            return Task.model_validate(response.json())
        except (ValueError, pydantic.ValidationError) as e:
            raise A2AClientError(f"Invalid task payload for {task_id}: {e}", status_code=response.status_code, response_body=response.text) from e

    async def cancel_task(self, task_id: str, context_id: str, message: Optional[Message] = None) -> None:
        raise NotImplementedError("Task cancellation is not available over the REST sub-API; use the tasks/cancel JSON-RPC method.")
