"""
Schema Gate
Validates payloads against declared pydantic contracts
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from launchpad.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class Contract(Generic[ModelT]):
    """
    A named shape. The normalizer, when given, runs once before validation
    and maps accepted alternate spellings onto the canonical keys.
    """
    name: str
    model: Type[ModelT]
    normalizer: Optional[Callable[[Any], Any]] = None


def error_path(loc) -> str:
    """Dotted path for a pydantic error location, e.g. `competitors.0.name`"""
    return ".".join(str(part) for part in loc) or "__root__"


class SchemaGate:
    """Accepts or rejects payloads; never repairs beyond the contract's normalizer"""

    def __init__(self, agent_type: Optional[str] = None):
        self.agent_type = agent_type

    def validate(self, payload: Any, contract: Contract[ModelT]) -> ModelT:
        if isinstance(payload, contract.model):
            return payload
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(by_alias=True)

        data = contract.normalizer(payload) if contract.normalizer else payload
        try:
            return contract.model.model_validate(data)
        except PydanticValidationError as e:
            errors = e.errors()
            first = errors[0] if errors else {"loc": (), "msg": str(e)}
            field = error_path(first.get("loc", ()))
            raise ValidationError(
                f"Invalid {contract.name}: {field}: {first.get('msg', 'invalid value')}",
                field=field,
                agent_type=self.agent_type,
                details={
                    "contract": contract.name,
                    "errors": [
                        {"field": error_path(err.get("loc", ())), "message": err.get("msg", "")}
                        for err in errors
                    ],
                },
            )
