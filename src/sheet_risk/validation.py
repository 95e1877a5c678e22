"""Inbound message validation. Malformed messages are rejected, never retried."""

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from sheet_risk.errors import ValidationError
from sheet_risk.models.message import InboundMessage


def parse_message(body: str | bytes) -> InboundMessage:
    """
    Parse and validate one raw queue message body.
    Raises ValidationError naming the first violated field.
    """
    if not body:
        raise ValidationError("body", "message body is empty")
    try:
        return InboundMessage.model_validate_json(body)
    except PydanticValidationError as e:
        field, reason = _first_violation(e)
        raise ValidationError(field, reason) from e


def _first_violation(error: PydanticValidationError) -> tuple[str, str]:
    """Dotted field path (snake_case) and message of the first error."""
    first = error.errors(include_url=False)[0]
    loc = first.get("loc") or ()
    if not loc or first.get("type") == "json_invalid":
        return "body", first.get("msg", "invalid message")
    parts = [to_snake(p) if isinstance(p, str) and i == 0 else str(p) for i, p in enumerate(loc)]
    return ".".join(parts), first.get("msg", "invalid value")
