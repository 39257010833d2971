"""
Executors and the registry that resolves them by capability URI.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterator, List, Optional, Sequence, TypeVar

from pydantic import TypeAdapter, ValidationError

from .exceptions import ExecutorInputError, ExecutorOutputError, NoExecutorFoundError
from .models import DataPart, Message, TextPart, format_validation_errors

if TYPE_CHECKING:
    from .lifecycle import ExecutorContext

logger = logging.getLogger(__name__)

ExecuteFn = Callable[[Any, "ExecutorContext"], Awaitable[Any]]
F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class Executor:
    """
    A stateless handler bound to one capability URI.

    ``input_schema``/``output_schema`` may be any type pydantic can validate,
    typically a ``BaseModel`` subclass. Without an input schema the executor
    receives the extracted input as a plain dict.
    """
    extension: str
    execute: ExecuteFn
    input_schema: Optional[Any] = None
    output_schema: Optional[Any] = None
    _input_adapter: Optional[TypeAdapter] = field(default=None, init=False, repr=False, compare=False)
    _output_adapter: Optional[TypeAdapter] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.extension, str) or not self.extension:
            raise ValueError("Executor requires a non-empty extension URI.")
        if not inspect.iscoroutinefunction(self.execute):
            name = getattr(self.execute, "__name__", repr(self.execute))
            raise TypeError(f"Executor handler '{name}' must be an async function (defined with 'async def').")
        if self.input_schema is not None:
            self._input_adapter = TypeAdapter(self.input_schema)
        if self.output_schema is not None:
            self._output_adapter = TypeAdapter(self.output_schema)

    def parse_input(self, raw: Dict[str, Any]) -> Any:
        if self._input_adapter is None:
            return raw
        try:
            return self._input_adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Input validation failed for executor '{self.extension}': {e.error_count()} error(s)")
            raise ExecutorInputError(self.extension, format_validation_errors(e)) from e

    def parse_output(self, value: Any) -> Any:
        if self._output_adapter is None:
            return value
        try:
            return self._output_adapter.validate_python(value)
        except ValidationError as e:
            logger.error(f"Output validation failed for executor '{self.extension}': {e}")
            raise ExecutorOutputError(self.extension, format_validation_errors(e)) from e


def define_executor(
    extension: str,
    execute: ExecuteFn,
    input_schema: Optional[Any] = None,
    output_schema: Optional[Any] = None,
) -> Executor:
    return Executor(extension=extension, execute=execute, input_schema=input_schema, output_schema=output_schema)


def a2a_executor(extension: str, input_schema: Optional[Any] = None, output_schema: Optional[Any] = None) -> Callable[[F], Executor]:
    """
    Decorator turning an async function into an :class:`Executor` for ``extension``.

    Example::

        @a2a_executor("urn:example:echo", input_schema=EchoInput)
        async def echo(data: EchoInput, context: ExecutorContext) -> dict:
            return {"result": data.text.upper()}
    """
    if not isinstance(extension, str) or not extension:
        raise ValueError("a2a_executor decorator requires a non-empty extension URI.")

    def _decorator(func: F) -> Executor:
        logger.debug(f"Defining executor '{func.__name__}' for extension '{extension}'")
        return define_executor(extension, func, input_schema=input_schema, output_schema=output_schema)
    return _decorator


def extract_input(message: Message) -> Dict[str, Any]:
    """
    Builds executor input from a message: the first text part becomes ``text``
    and the first data part's object is merged in.

    A non-object data value (a list, string or number) cannot be merged, so it
    is kept under the ``data`` key instead of being dropped.
    """
    raw: Dict[str, Any] = {}
    text_part = next((p for p in message.parts if isinstance(p, TextPart)), None)
    data_part = next((p for p in message.parts if isinstance(p, DataPart)), None)
    if text_part is not None:
        raw["text"] = text_part.text
    if data_part is not None:
        if isinstance(data_part.data, dict):
            raw.update(data_part.data)
        elif data_part.data is not None:
            raw["data"] = data_part.data
    return raw


class ExecutorRegistry:
    """Maps capability URIs to executors. Later registrations replace earlier ones."""

    def __init__(self, executors: Sequence[Executor] = ()):
        self._executors: Dict[str, Executor] = {}
        for executor in executors:
            self.register(executor)

    def register(self, executor: Executor) -> "ExecutorRegistry":
        if executor.extension in self._executors:
            logger.warning(f"Replacing executor registered for extension '{executor.extension}'.")
        self._executors[executor.extension] = executor
        logger.info(f"Registered executor for extension '{executor.extension}'")
        return self

    def get(self, extension: str) -> Optional[Executor]:
        return self._executors.get(extension)

    def resolve(self, extensions: Optional[Sequence[str]]) -> Executor:
        """Returns the executor of the first extension (in message order) that is registered."""
        for extension in extensions or []:
            executor = self._executors.get(extension)
            if executor is not None:
                logger.debug(f"Resolved extension '{extension}' to executor.")
                return executor
        raise NoExecutorFoundError(extensions)

    @property
    def extensions(self) -> List[str]:
        return list(self._executors)

    def __contains__(self, extension: object) -> bool:
        return extension in self._executors

    def __len__(self) -> int:
        return len(self._executors)

    def __iter__(self) -> Iterator[Executor]:
        return iter(list(self._executors.values()))
