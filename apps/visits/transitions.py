"""Visit lifecycle.

A visit starts ``pending``. An assigned visitor may approve it, then settle it
as completed, incomplete, rejected or rescheduled. Settling is also allowed
straight from ``pending``. Settled statuses are terminal.

``plan_transition`` only validates and returns the field changes to apply; it
never touches the database, so a failed call leaves the visit untouched.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from apps.common.exceptions import InvalidStateError, ServiceError
from apps.visits.models import VisitStatus

OPEN_STATUSES = (VisitStatus.PENDING, VisitStatus.APPROVED)
DIMENSIONS = ("length", "width", "height")
# Visit.length/width/height are max_digits=10, decimal_places=2.
MAX_DIMENSION = Decimal("99999999.99")
DATA_URL_RE = re.compile(r"data:image/(png|jpe?g|gif|webp);base64", re.IGNORECASE)


@dataclass(frozen=True)
class Transition:
    name: str
    sources: tuple
    target: str


TRANSITIONS = {
    "approve": Transition("approve", (VisitStatus.PENDING,), VisitStatus.APPROVED),
    "reject": Transition("reject", OPEN_STATUSES, VisitStatus.REJECTED),
    "complete": Transition("complete", OPEN_STATUSES, VisitStatus.COMPLETED),
    "incomplete": Transition("incomplete", OPEN_STATUSES, VisitStatus.INCOMPLETE),
    "reschedule": Transition("reschedule", OPEN_STATUSES, VisitStatus.RESCHEDULED),
}


@dataclass
class TransitionPlan:
    transition: Transition
    source: str
    changes: dict
    images: list


def _invalid(message, field):
    return ServiceError(message, code="VAL_004", details=[{"field": field, "message": message}])


def _required_text(payload, field):
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise _invalid(f"{field} is required", field)
    return value.strip()


def _positive_dimension(payload, field):
    raw = payload.get(field)
    message = f"{field} must be a positive number up to {MAX_DIMENSION}"
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise _invalid(message, field) from None
    if not value.is_finite() or value <= 0 or value > MAX_DIMENSION:
        raise _invalid(message, field)
    return value.quantize(Decimal("0.01"))


def _image_extension(content):
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if content.startswith(b"\xff\xd8\xff"):
        return "jpg"
    if content[:6] in (b"GIF87a", b"GIF89a"):
        return "gif"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "webp"
    return None


def decode_image(value, index):
    """Accepts a bare base64 string or a ``data:image/<type>;base64,`` URL.

    Only PNG, JPEG, GIF and WebP content is accepted. The returned extension
    comes from the decoded bytes, never from the client supplied header.
    """
    field = f"images[{index}]"
    if not isinstance(value, str) or not value.strip():
        raise _invalid("Image must be a base64 string", field)
    header, _, data = value.strip().partition(",")
    if not data:
        header, data = "", header
    if header and not DATA_URL_RE.fullmatch(header):
        raise _invalid("Unsupported image type", field)
    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise _invalid("Image is not valid base64", field) from None
    if not content:
        raise _invalid("Image is empty", field)
    extension = _image_extension(content)
    if extension is None:
        raise _invalid("Unsupported image type", field)
    return content, extension


def _payload_changes(name, payload):
    if name == "approve":
        return {}, []
    if name == "reject":
        return {"rejection_reason": _required_text(payload, "rejectionReason")}, []
    if name in ("incomplete", "reschedule"):
        return {"feedback": _required_text(payload, "reason")}, []

    changes = {field: _positive_dimension(payload, field) for field in DIMENSIONS}
    images = payload.get("images")
    if not isinstance(images, list) or not images:
        raise _invalid("At least one image is required", "images")
    decoded = [decode_image(image, index) for index, image in enumerate(images)]
    notes = payload.get("notes")
    if isinstance(notes, str) and notes.strip():
        changes["notes"] = notes.strip()
    return changes, decoded


def plan_transition(current_status, name, payload=None):
    transition = TRANSITIONS.get(name)
    if transition is None:
        raise _invalid(f"Unknown visit action '{name}'", "action")

    changes, images = _payload_changes(name, payload or {})
    if current_status not in transition.sources:
        raise InvalidStateError(
            f"Cannot {name} a visit that is {current_status}",
            details=[
                {
                    "field": "status",
                    "message": f"Allowed from: {', '.join(transition.sources)}",
                }
            ],
        )
    changes["status"] = transition.target
    return TransitionPlan(transition=transition, source=current_status, changes=changes, images=images)
