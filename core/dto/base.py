"""Helpers shared by the DTO modules."""
from typing import Any, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ValidationError


DTOType = TypeVar("DTOType", bound=BaseModel)


def build_dto(dto_class: Type[DTOType], **data: Any) -> DTOType:
    """
    Validate input into a DTO, raising the application ValidationError.

    Only the first pydantic error is reported; services surface a single
    field/message pair to their callers.
    """
    try:
        return dto_class(**data)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or dto_class.__name__
        raise ValidationError(field, error.get("msg", "invalid value")) from e
