"""Shared base model for every wire-serializable relayQL type.

``WireModel`` fixes the conventions used across the query model:

* instances are frozen value objects;
* Python attributes are snake_case, wire keys are camelCase
  (``where_raw`` ↔ ``whereRaw``);
* encoding is sparse: attributes that are ``None`` are omitted from the
  wire form unless listed in :attr:`WireModel.wire_nullable`, where an
  explicit ``null`` carries meaning;
* decoding failures surface as :class:`~relayql.errors.FormatError`.
"""
from __future__ import annotations

from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict, SerializerFunctionWrapHandler, model_serializer
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from relayql.errors import FormatError

M = TypeVar("M", bound="WireModel")

WIRE_CONFIG = ConfigDict(
    extra="forbid",
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


class WireModel(BaseModel):
    """Frozen pydantic model with a sparse camelCase wire form."""

    model_config = WIRE_CONFIG

    #: Wire keys that are emitted even when their value is ``None``.
    wire_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_serializer(mode="wrap")
    def _omit_absent(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        return {
            key: value
            for key, value in data.items()
            if value is not None or key in self.wire_nullable
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the structural (JSON-compatible) form of this value."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls: type[M], data: Any) -> M:
        """Rebuild a value from its structural form.

        Args:
            data: A mapping produced by :meth:`to_dict` (or received from
                the remote service).

        Returns:
            The reconstructed value.

        Raises:
            FormatError: If a token is unknown or the structure is malformed.
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise FormatError(
                f"{cls.__name__} structure is invalid: {exc}", value=data
            ) from exc
