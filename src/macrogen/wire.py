# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Reference encoder and decoder for the tagged-union wire format.

The generated ``encode(to:)`` writes ``{"type": <case>, <label>: <value>, ...}``
and ``init(from:)`` reads it back. This module implements the same format for
Python callers, driven by the cases of a parsed enum, so payloads can be
produced and checked without compiling the generated code.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from macrogen.diagnostics import ExpansionContext
from macrogen.enum_codable import DISCRIMINATOR_KEY, EnumCaseSpec, collect_cases
from macrogen.syntax import DeclKind, TypeDecl

logger = logging.getLogger(__name__)


def _wire_name(name: str) -> str:
    """Drop the backticks that escape a Swift keyword used as an identifier."""
    return name.strip("`")


class WireFormatError(RuntimeError):
    """Represent a payload that does not match the tagged-union format."""


class KeyNotFoundError(WireFormatError):
    """Represent a missing discriminator or payload key."""

    def __init__(self, key: str, case: str | None = None) -> None:
        where = f" for case '{case}'" if case else ""
        super().__init__(f"No value associated with key '{key}'{where}")
        self.key = key
        self.case = case


class UnknownDiscriminatorError(WireFormatError):
    """Represent a discriminator that names no known case."""

    def __init__(self, value: object, known: list[str]) -> None:
        super().__init__(
            f"Cannot initialize SubType from invalid value {value!r} "
            f"(expected one of {', '.join(known)})"
        )
        self.value = value
        self.known = known


@dataclass(frozen=True)
class EnumValue:
    """Python-side value of an enum case and its labelled payload."""

    case: str
    payload: Mapping[str, Any] = field(default_factory=dict)


class TaggedUnionCodec:
    """Encode and decode enum values for one enum's case list."""

    def __init__(self, cases: list[EnumCaseSpec]) -> None:
        self._cases = {_wire_name(case.name): case for case in cases}

    @classmethod
    def from_enum(
        cls, declaration: TypeDecl, context: ExpansionContext | None = None
    ) -> "TaggedUnionCodec":
        """Build a codec from a parsed enum declaration.

        Invalid cases are skipped the same way the generated code skips them.

        Args:
            declaration: Enum declaration.
            context: Optional context receiving case diagnostics.

        Returns:
            Codec for the valid cases.

        Raises:
            WireFormatError: If the declaration is not an enum.
        """
        if declaration.kind is not DeclKind.ENUM:
            raise WireFormatError(f"'{declaration.name}' is not an enum")
        return cls(collect_cases(declaration, context or ExpansionContext()))

    @property
    def discriminators(self) -> list[str]:
        return list(self._cases)

    def encode(self, value: EnumValue) -> dict[str, Any]:
        """Encode a value as a mapping with ``type`` first.

        Raises:
            UnknownDiscriminatorError: If the case is not part of the enum.
            KeyNotFoundError: If the payload lacks one of the case's labels.
        """
        case = self._case(value.case)
        name = _wire_name(case.name)
        encoded: dict[str, Any] = {DISCRIMINATOR_KEY: name}
        for payload_field in case.payload or ():
            label = _wire_name(payload_field.label)
            if label not in value.payload:
                raise KeyNotFoundError(label, name)
            encoded[label] = value.payload[label]
        return encoded

    def decode(self, data: Mapping[str, Any]) -> EnumValue:
        """Decode a mapping produced by :meth:`encode` or by Swift.

        Keys that the case does not declare are ignored.

        Raises:
            KeyNotFoundError: If ``type`` or a payload key is missing.
            UnknownDiscriminatorError: If ``type`` names no known case.
        """
        if DISCRIMINATOR_KEY not in data:
            raise KeyNotFoundError(DISCRIMINATOR_KEY)
        case = self._case(data[DISCRIMINATOR_KEY])
        name = _wire_name(case.name)
        payload: dict[str, Any] = {}
        for payload_field in case.payload or ():
            label = _wire_name(payload_field.label)
            if label not in data:
                raise KeyNotFoundError(label, name)
            payload[label] = data[label]
        return EnumValue(case=name, payload=payload)

    def dumps(self, value: EnumValue, indent: int | None = None) -> str:
        return json.dumps(self.encode(value), indent=indent)

    def loads(self, text: str) -> EnumValue:
        """Decode JSON text.

        Raises:
            WireFormatError: If the text is not a JSON object or does not decode.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Invalid wire payload", extra={"error": str(exc)})
            raise WireFormatError(f"Invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise WireFormatError("Tagged-union payload must be a JSON object")
        return self.decode(data)

    def describe(self) -> dict[str, Any]:
        """Return a JSON-friendly description of the format."""
        return {
            "discriminator": DISCRIMINATOR_KEY,
            "cases": {
                name: [
                    {"label": _wire_name(f.label), "type": str(f.type)}
                    for f in case.payload or ()
                ]
                for name, case in self._cases.items()
            },
        }

    def _case(self, name: object) -> EnumCaseSpec:
        if not isinstance(name, str) or name not in self._cases:
            raise UnknownDiscriminatorError(name, self.discriminators)
        return self._cases[name]
