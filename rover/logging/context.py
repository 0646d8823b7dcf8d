"""Per-run logging context.

Each mission start draws a fresh run id so every record of one run can be
grouped. Extra fields bound here are added to every record in the current
context, which asyncio tasks inherit when they are created.
"""

from contextvars import ContextVar
from types import MappingProxyType
from typing import Any
from uuid import uuid4

run_id: ContextVar[str] = ContextVar("run_id", default="")

_EMPTY: MappingProxyType[str, Any] = MappingProxyType({})
_bound_fields: ContextVar[MappingProxyType[str, Any]] = ContextVar("bound_fields", default=_EMPTY)


def get_run_id() -> str:
    """Return the current mission run id, or an empty string."""
    return run_id.get()


def set_run_id(value: str) -> None:
    """Use ``value`` as the mission run id."""
    run_id.set(value)


def generate_run_id() -> str:
    """Draw a new 12-character run id and make it current.

    Returns:
        The new run id.
    """
    new_id = uuid4().hex[:12]
    run_id.set(new_id)
    return new_id


def get_extra_context() -> dict[str, Any]:
    """Return a copy of the fields bound to the current context."""
    return dict(_bound_fields.get())


def set_extra_context(**fields: Any) -> None:
    """Bind fields to every following record, merged over existing ones."""
    _bound_fields.set(MappingProxyType({**_bound_fields.get(), **fields}))


def clear_context() -> None:
    """Forget the run id and all bound fields."""
    run_id.set("")
    _bound_fields.set(_EMPTY)
