"""Capability source contract and discovery models.

A capability source is anything that can report which API methods exist and
invoke them. ``HostBillClient`` is the production implementation; tests use
``hostbill_mcp.testing.FakeCapabilitySource``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class MethodParameter(BaseModel):
    """One parameter of an API method as reported by the source.

    Attributes:
        name: Parameter name, passed through verbatim as a form field.
        type: Source type label (e.g. "int", "string"); normalized later.
        description: Human-readable description.
        required: Whether the source marks the parameter as mandatory.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(default="")
    type: str = Field(default="string")
    description: str = Field(default="")
    required: bool = Field(default=False)

    @field_validator("type", "description", mode="before")
    @classmethod
    def _none_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return "string" if info.field_name == "type" else ""
        return str(v)

    @field_validator("required", mode="before")
    @classmethod
    def _coerce_required(cls, v: Any) -> bool:
        # HostBill reports flags as "1"/"0" strings as often as booleans
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes", "required")
        return bool(v)


class MethodDetails(BaseModel):
    """Description and parameter list of one discovered method.

    Attributes:
        method: Method name the details belong to.
        description: Description text; may be empty.
        parameters: Parameter definitions in source order.
        degraded: True when the details were synthesized because the
            source could not provide them.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    method: str
    description: str = Field(default="")
    parameters: tuple[MethodParameter, ...] = Field(default=())
    degraded: bool = Field(default=False)

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("parameters", mode="before")
    @classmethod
    def _normalize_parameters(cls, v: Any) -> Any:
        if v is None:
            return ()
        if isinstance(v, dict):
            # {"name": {...}} form
            return tuple(
                {"name": key, **(info if isinstance(info, dict) else {"description": info})}
                for key, info in v.items()
            )
        if isinstance(v, (list, tuple)):
            return tuple({"name": item} if isinstance(item, str) else item for item in v)
        return v

    @classmethod
    def generic(cls, method: str) -> MethodDetails:
        """Details used when the source cannot describe ``method``."""
        return cls(
            method=method,
            description=f"Execute {method} API call",
            parameters=(),
            degraded=True,
        )

    @classmethod
    def from_payload(cls, method: str, payload: dict[str, Any]) -> MethodDetails:
        """Build details from a raw source payload, tolerating missing keys."""
        return cls.model_validate(
            {
                "method": payload.get("method") or method,
                "description": payload.get("description"),
                "parameters": payload.get("parameters"),
            }
        )


@runtime_checkable
class CapabilitySource(Protocol):
    """Contract the server consumes to discover and invoke API methods.

    ``test_connection`` and ``server_info`` never raise. ``list_methods``,
    ``get_method_details`` and ``invoke`` raise on failure; the message of
    the raised exception is what callers see.
    """

    async def test_connection(self) -> bool: ...

    async def list_methods(self) -> list[str]: ...

    async def get_method_details(self, name: str) -> dict[str, Any]: ...

    async def invoke(self, name: str, args: dict[str, Any]) -> Any: ...

    async def server_info(self) -> dict[str, Any]: ...

    async def aclose(self) -> None: ...
