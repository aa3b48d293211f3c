"""
Unit Tests - Parameter Schemas
"""

from typing import Literal

from pydantic import BaseModel

from tests.fixtures import PositiveNumber
from toolgate.tools.schema import PydanticSchema, resolve_schema


class Address(BaseModel):
    city: str


class Order(BaseModel):
    quantity: int
    kind: Literal["a", "b"] = "a"
    address: Address


class TestPydanticSchema:
    """Tests for pydantic-backed validation."""

    def test_success_returns_model(self):
        result = PydanticSchema(Order).safe_parse({"quantity": "3", "address": {"city": "Oslo"}})

        assert result.success
        assert result.data.quantity == 3
        assert result.errors == ()

    def test_nested_paths(self):
        result = PydanticSchema(Order).safe_parse({"quantity": 1, "kind": "z", "address": {}})

        assert not result.success
        paths = {issue.path for issue in result.errors}
        assert paths == {"kind", "address.city"}

    def test_root_path_for_non_objects(self):
        result = PydanticSchema(Order).safe_parse(42)

        assert not result.success
        assert result.errors[0].path == "(root)"
        assert str(result.errors[0]).startswith("(root): ")

    def test_json_schema(self):
        schema = PydanticSchema(Order).json_schema()

        assert "quantity" in schema["properties"]


class TestResolveSchema:
    """Tests for turning declared parameters into a schema."""

    def test_model_class(self):
        assert isinstance(resolve_schema(Order), PydanticSchema)

    def test_safe_parse_object(self):
        schema = PositiveNumber()

        assert resolve_schema(schema) is schema

    def test_rejects_other_values(self):
        assert resolve_schema(None) is None
        assert resolve_schema({"type": "object"}) is None
        assert resolve_schema(Order(quantity=1, address=Address(city="x"))) is None
