# app/routers/common.py
from typing import Any, Iterable, Type

from pydantic import BaseModel


def ok(data: Any = None, **extra: Any) -> dict:
    """Success envelope shared by all /api/v1 routes."""
    body = {"success": True, "data": data}
    body.update(extra)
    return body


def dump(schema: Type[BaseModel], obj: Any) -> dict:
    return schema.model_validate(obj).model_dump(mode="json")


def dump_all(schema: Type[BaseModel], objs: Iterable[Any]) -> list:
    return [dump(schema, o) for o in objs]
