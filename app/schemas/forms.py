from typing import Any, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "input"
        parts.append(f"{field}: {err.get('msg')}")
    return "; ".join(parts)


def parse_form(schema: Type[SchemaT], data: dict[str, Any], redirect_to: str) -> SchemaT:
    """
    Build `schema` from submitted form values.

    Fields the form did not send (None) are left out, so partial schemas keep
    them unset. Invalid input becomes a ValidationError redirecting to `redirect_to`.
    """
    provided = {k: v for k, v in data.items() if v is not None}
    try:
        return schema.model_validate(provided)
    except PydanticValidationError as e:
        raise ValidationError(_describe(e), redirect_to) from e
