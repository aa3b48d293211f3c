"""
Parameter Schemas

Wraps a tool's declared parameter schema so the registry can validate
untrusted input before any side effect runs.

Design decisions:
- Pydantic models are the native way to declare tool parameters
- Parsing returns a SchemaResult value instead of raising
- Field-level constraints live on the tool author's model, declared once
"""

from typing import Any

from pydantic import BaseModel, ValidationError

from toolgate.core.interfaces import ParameterSchemaProtocol, SchemaIssue, SchemaResult

ROOT_PATH = "(root)"


def _format_loc(loc: tuple[Any, ...]) -> str:
    """Render a pydantic error location as a dotted path."""
    if not loc:
        return ROOT_PATH
    return ".".join(str(part) for part in loc)


class PydanticSchema:
    """
    Parameter schema backed by a pydantic model.

    Usage:
        class HashParams(BaseModel):
            data: str
            algorithm: Literal["sha256", "sha512"] = "sha256"

        schema = PydanticSchema(HashParams)
        result = schema.safe_parse({"data": "abc"})
    """

    def __init__(self, model: type[BaseModel]):
        self.model = model

    def safe_parse(self, value: Any) -> SchemaResult:
        try:
            parsed = self.model.model_validate(value)
        except ValidationError as exc:
            return SchemaResult.fail(
                *(
                    SchemaIssue(path=_format_loc(err["loc"]), message=err["msg"])
                    for err in exc.errors()
                )
            )
        return SchemaResult.ok(parsed)

    def json_schema(self) -> dict[str, Any]:
        """JSON Schema for the model, for catalogs and LLM prompts."""
        return self.model.model_json_schema()

    def __repr__(self) -> str:
        return f"PydanticSchema({self.model.__name__})"


def resolve_schema(parameters: Any) -> ParameterSchemaProtocol | None:
    """
    Turn a declared `parameters` value into a usable schema.

    Accepts a pydantic model class or any object exposing `safe_parse`.
    Returns None when the value is neither.
    """
    if isinstance(parameters, type) and issubclass(parameters, BaseModel):
        return PydanticSchema(parameters)

    if parameters is not None and callable(getattr(parameters, "safe_parse", None)):
        return parameters

    return None
