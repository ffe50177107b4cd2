"""Request Lifecycle Engine — the legal state graph for booking requests.

Everything here is a pure decision over a record and a requested action:
no session, no I/O, no mutation of the record passed in. The booking
service loads the record, asks this module what to write, and persists the
answer with a compare-and-set on the status it read.

State graph::

    pending --approve--> approved --complete--> completed
       |                    |
       +--reject--> rejected +--cancel--> canceled
       |
       +--edit--> pending
       +--delete--> (gone)

``rejected``, ``completed`` and ``canceled`` are terminal.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from app.errors import InvalidTransition, ValidationError
from app.models.booking_request import BookingRequest, RequestStatus


class RequestAction(str, enum.Enum):
    approve = "approve"
    reject = "reject"
    complete = "complete"
    cancel = "cancel"
    edit = "edit"
    delete = "delete"


class ActorRole(str, enum.Enum):
    owner = "owner"
    requester = "requester"


@dataclass(frozen=True)
class Transition:
    source: RequestStatus
    target: Optional[RequestStatus]  # None: the record is removed
    actors: frozenset


TRANSITIONS: dict[RequestAction, Transition] = {
    RequestAction.approve: Transition(RequestStatus.pending, RequestStatus.approved, frozenset({ActorRole.owner})),
    RequestAction.reject: Transition(RequestStatus.pending, RequestStatus.rejected, frozenset({ActorRole.owner})),
    RequestAction.edit: Transition(RequestStatus.pending, RequestStatus.pending, frozenset({ActorRole.requester})),
    RequestAction.delete: Transition(
        RequestStatus.pending, None, frozenset({ActorRole.requester, ActorRole.owner})
    ),
    RequestAction.cancel: Transition(RequestStatus.approved, RequestStatus.canceled, frozenset({ActorRole.requester})),
    RequestAction.complete: Transition(RequestStatus.approved, RequestStatus.completed, frozenset({ActorRole.owner})),
}

TERMINAL_STATUSES = frozenset({RequestStatus.rejected, RequestStatus.completed, RequestStatus.canceled})
OPEN_STATUSES = frozenset({RequestStatus.pending, RequestStatus.approved})

EDITABLE_FIELDS = ("party_size", "arrival_time", "price_offer", "notes")

# Offers are stored as Numeric(10, 2)
CENTS = Decimal("0.01")
MAX_PRICE_OFFER = Decimal("99999999.99")

# Arrival times this far in the past still count as "now".
ARRIVAL_GRACE = timedelta(minutes=1)


def required_roles(action: RequestAction) -> frozenset:
    """Actor roles allowed to perform ``action``."""
    return TRANSITIONS[action].actors


def is_terminal(status: RequestStatus) -> bool:
    return status in TERMINAL_STATUSES


def plan_transition(current: RequestStatus, action: RequestAction) -> Optional[RequestStatus]:
    """Return the status ``action`` leads to from ``current``.

    ``None`` means the action removes the record (delete). Raises
    ``InvalidTransition`` when ``current`` is not the action's source state.
    """
    transition = TRANSITIONS[action]
    if current != transition.source:
        raise InvalidTransition(RequestStatus(current).value, action.value)
    return transition.target


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _coerce_price(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("price_offer must be a number")
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError("price_offer must be a number") from exc
    if not price.is_finite():
        raise ValueError("price_offer must be a finite number")
    return price


def _check_fields(fields: dict[str, Any], now: datetime) -> dict[str, str]:
    """Collect per-field problems for the value rules shared by submit and edit."""
    errors: dict[str, str] = {}

    if "party_size" in fields:
        party_size = fields["party_size"]
        if isinstance(party_size, bool) or not isinstance(party_size, int):
            errors["party_size"] = "party_size must be an integer"
        elif party_size < 1:
            errors["party_size"] = "party_size must be at least 1"

    if "price_offer" in fields:
        try:
            price = _coerce_price(fields["price_offer"])
        except ValueError as exc:
            errors["price_offer"] = str(exc)
        else:
            if price < 0:
                errors["price_offer"] = "price_offer must not be negative"
            elif price > MAX_PRICE_OFFER:
                errors["price_offer"] = f"price_offer must not exceed {MAX_PRICE_OFFER}"
            elif price != price.quantize(CENTS):
                errors["price_offer"] = "price_offer must have at most 2 decimal places"

    if "arrival_time" in fields:
        arrival_time = fields["arrival_time"]
        if arrival_time is None:
            errors["arrival_time"] = "arrival_time is required"
        elif _as_utc(arrival_time) < _as_utc(now) - ARRIVAL_GRACE:
            errors["arrival_time"] = "arrival_time must not be in the past"

    return errors


def validate_submission(
    party_size: Any,
    price_offer: Any,
    arrival_time: Optional[datetime],
    now: datetime,
) -> None:
    """Reject a new request before anything is written."""
    errors = _check_fields(
        {"party_size": party_size, "price_offer": price_offer, "arrival_time": arrival_time},
        now,
    )
    if errors:
        raise ValidationError("Invalid booking request", details={"fields": errors})


def validate_edit(changes: dict[str, Any], now: datetime) -> None:
    """Only the editable fields may change, under the same value rules as submission."""
    if not changes:
        raise ValidationError("No changes supplied")
    unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValidationError(
            "Fields cannot be edited: " + ", ".join(unknown),
            details={"fields": {name: "not editable" for name in unknown}},
        )
    errors = _check_fields(changes, now)
    if errors:
        raise ValidationError("Invalid booking request edit", details={"fields": errors})


def apply_transition(
    record: BookingRequest,
    action: RequestAction,
    now: datetime,
    changes: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Decide the column values to write for ``action`` on ``record``.

    Legality is checked before any field validation, so an edit of a
    non-pending request is an ``InvalidTransition`` whatever it carries.
    Delete has no values to write; use ``plan_transition`` for it.
    """
    if action is RequestAction.delete:
        raise ValueError("delete removes the record; call plan_transition instead")

    target = plan_transition(record.status, action)

    values: dict[str, Any] = {}
    if action is RequestAction.edit:
        changes = dict(changes or {})
        validate_edit(changes, now)
        if "price_offer" in changes:
            changes["price_offer"] = _coerce_price(changes["price_offer"])
        values.update(changes)
    elif changes:
        raise ValidationError(f"{action.value} does not accept field changes")

    values["status"] = target
    now = _as_utc(now)
    created_at = _as_utc(record.created_at) if record.created_at else now
    values["updated_at"] = max(now, created_at)
    return values
