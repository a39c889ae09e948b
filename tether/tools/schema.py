"""Tool schema — pydantic models or JSON Schema dicts for parameter validation."""

from __future__ import annotations

from typing import Any

from jsonschema import Draft7Validator
from pydantic import BaseModel

from ..errors import ToolValidationError


class PydanticSchema:
    """ToolSchema implementation backed by a Pydantic model."""

    def __init__(self, model: type[BaseModel]) -> None:
        self._model = model

    @property
    def model(self) -> type[BaseModel]:
        return self._model

    def parse(self, raw: Any) -> Any:
        if isinstance(raw, str):
            return self._model.model_validate_json(raw)
        return self._model.model_validate(raw if raw is not None else {})

    def to_json_schema(self) -> dict:
        return self._model.model_json_schema()


class DictSchema:
    """ToolSchema backed by a raw JSON Schema dict, checked with a Draft 7 validator."""

    def __init__(self, schema: dict[str, Any], name: str = "") -> None:
        Draft7Validator.check_schema(schema)
        self._schema = schema
        self._name = name
        self._validator = Draft7Validator(schema)

    def parse(self, raw: Any) -> Any:
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ToolValidationError(
                self._name, [{"loc": [], "msg": "Input should be an object", "type": "dict_type"}]
            )
        errors = [
            {"loc": list(e.absolute_path), "msg": e.message, "type": e.validator}
            for e in self._validator.iter_errors(raw)
        ]
        if errors:
            raise ToolValidationError(self._name, errors)
        return raw

    def to_json_schema(self) -> dict:
        return self._schema
