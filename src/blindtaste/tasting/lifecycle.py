"""Tasting lifecycle: creation, metadata, status, criteria and wine slots.

Domain logic is pure - database operations go through repo.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from blindtaste.core.errors import ConflictError, InvalidInputError, NotFoundError
from blindtaste.core.security import hash_pin, is_valid_pin
from blindtaste.db import repo
from blindtaste.db.repo import DbSession
from blindtaste.models.domain import (
    TASTING_STATUSES,
    CriterionEntity,
    TastingEntity,
    WineEntity,
)

logger = logging.getLogger(__name__)

MAX_WINES = 10
MAX_CRITERIA = 8
SCALE_LIMIT = 1000


@dataclass
class CriterionInput:
    """Criterion data for creation or update."""

    label: str
    scale_min: float = 1
    scale_max: float = 10
    weight: float = 1.0
    order: int = 0
    is_active: bool = True
    criterion_id: str | None = None


@dataclass
class NewTasting:
    """Input for tasting creation."""

    public_slug: str
    title: str
    host_name: str
    pin: str
    wine_count: int = 10
    max_participants: int = 10
    status: str = "open"
    criteria: list[CriterionInput] = field(default_factory=list)


def _new_id() -> str:
    return uuid.uuid4().hex


def _check_criterion(criterion: CriterionInput) -> None:
    if not criterion.label.strip():
        raise InvalidInputError("Criterion label missing")
    if criterion.scale_min > criterion.scale_max:
        raise InvalidInputError("scaleMin must not exceed scaleMax")
    if max(abs(criterion.scale_min), abs(criterion.scale_max)) > SCALE_LIMIT:
        raise InvalidInputError(f"Criterion scale must lie within -{SCALE_LIMIT}..{SCALE_LIMIT}")
    if criterion.weight < 0:
        raise InvalidInputError("Criterion weight must not be negative")


def require_tasting(session: DbSession, public_slug: str) -> TastingEntity:
    """Resolve a tasting by slug.

    Raises:
        InvalidInputError: If the slug is empty.
        NotFoundError: If no tasting has this slug.
    """
    slug = public_slug.strip()
    if not slug:
        raise InvalidInputError("Missing publicSlug")

    tasting = repo.get_tasting_by_slug(session, slug)
    if tasting is None:
        raise NotFoundError("Tasting not found")
    return tasting


def create_tasting(session: DbSession, new: NewTasting, *, pin_salt: str) -> TastingEntity:
    """Create a tasting with its criteria and blind wine slots 1..wine_count.

    Raises:
        InvalidInputError: On bad PIN, counts, status or criteria.
        ConflictError: If the slug is taken.
    """
    slug = new.public_slug.strip()
    if not slug:
        raise InvalidInputError("Missing publicSlug")
    if not is_valid_pin(new.pin):
        raise InvalidInputError("PIN must be 4 digits")
    if not 1 <= new.wine_count <= MAX_WINES:
        raise InvalidInputError(f"wineCount must be 1..{MAX_WINES}")
    if not 1 <= len(new.criteria) <= MAX_CRITERIA:
        raise InvalidInputError(f"criteria must be 1..{MAX_CRITERIA} items")
    if new.status not in TASTING_STATUSES:
        raise InvalidInputError(f"Invalid status: {new.status}")
    for criterion in new.criteria:
        _check_criterion(criterion)

    if repo.get_tasting_by_slug(session, slug) is not None:
        raise ConflictError("publicSlug already exists")

    tasting = TastingEntity(
        tasting_id=_new_id(),
        public_slug=slug,
        title=new.title.strip(),
        host_name=new.host_name.strip(),
        status=new.status,
        wine_count=new.wine_count,
        max_participants=new.max_participants,
        pin_hash=hash_pin(new.pin, pin_salt),
    )
    repo.create_tasting(session, tasting)

    for index, criterion in enumerate(new.criteria, start=1):
        repo.save_criterion(
            session,
            CriterionEntity(
                criterion_id=_new_id(),
                tasting_id=tasting.tasting_id,
                label=criterion.label.strip(),
                order=index,
                scale_min=criterion.scale_min,
                scale_max=criterion.scale_max,
                weight=criterion.weight,
            ),
        )

    _create_wine_slots(session, tasting)
    repo.commit(session)

    logger.info(
        f"Created tasting {slug} with {len(new.criteria)} criteria "
        f"and {new.wine_count} wine slots"
    )
    return tasting


def _create_wine_slots(session: DbSession, tasting: TastingEntity) -> None:
    for blind_number in range(1, tasting.wine_count + 1):
        repo.create_wine(
            session,
            WineEntity(
                wine_id=_new_id(),
                tasting_id=tasting.tasting_id,
                blind_number=blind_number,
            ),
        )


def ensure_wine_slots(session: DbSession, tasting: TastingEntity) -> list[WineEntity]:
    """Return the tasting's wines, creating placeholder slots if none exist."""
    if tasting.wine_count > 0 and repo.count_wines_for_tasting(session, tasting.tasting_id) == 0:
        _create_wine_slots(session, tasting)
        repo.commit(session)
        logger.info(f"Created {tasting.wine_count} placeholder wine slots for {tasting.public_slug}")

    wines = repo.get_wines_for_tasting(session, tasting.tasting_id)
    return sorted(wines, key=lambda w: (w.blind_number is None, w.blind_number or 0))


def update_meta(
    session: DbSession,
    tasting: TastingEntity,
    *,
    title: str,
    host_name: str,
    max_participants: int,
    tasting_date: str | None,
) -> None:
    """Update title, host, participant cap and date."""
    if not title.strip():
        raise InvalidInputError("Missing title")
    if not host_name.strip():
        raise InvalidInputError("Missing hostName")

    repo.update_tasting_meta(
        session,
        tasting.tasting_id,
        title=title.strip(),
        host_name=host_name.strip(),
        max_participants=max_participants,
        tasting_date=tasting_date or None,
    )
    repo.commit(session)


def set_status(session: DbSession, tasting: TastingEntity, status: str) -> str:
    """Set a tasting's status. Any state may be set from any state."""
    if status not in TASTING_STATUSES:
        raise InvalidInputError(f"Invalid status: {status}")

    repo.update_tasting_status(session, tasting.tasting_id, status)
    repo.commit(session)

    logger.info(f"Tasting {tasting.public_slug} status {tasting.status} -> {status}")
    return status


def delete_tasting(session: DbSession, tasting: TastingEntity) -> None:
    """Delete a tasting and everything attached to it."""
    repo.delete_tasting(session, tasting.tasting_id)
    repo.commit(session)
    logger.info(f"Deleted tasting {tasting.public_slug}")


def upsert_criterion(
    session: DbSession, tasting: TastingEntity, criterion: CriterionInput
) -> CriterionEntity:
    """Create a criterion, or update the one named by ``criterion_id``."""
    _check_criterion(criterion)

    criterion_id = criterion.criterion_id
    if criterion_id:
        if repo.get_criterion(session, tasting.tasting_id, criterion_id) is None:
            raise NotFoundError("Criterion not found")
    else:
        criterion_id = _new_id()

    entity = CriterionEntity(
        criterion_id=criterion_id,
        tasting_id=tasting.tasting_id,
        label=criterion.label.strip(),
        order=criterion.order,
        scale_min=criterion.scale_min,
        scale_max=criterion.scale_max,
        weight=criterion.weight,
        is_active=criterion.is_active,
    )
    repo.save_criterion(session, entity)
    repo.commit(session)
    return entity


def delete_criterion(session: DbSession, tasting: TastingEntity, criterion_id: str) -> None:
    """Delete a criterion of a tasting."""
    if not repo.delete_criterion(session, tasting.tasting_id, criterion_id):
        raise NotFoundError("Criterion not found")
    repo.commit(session)


def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


_STRING_WINE_FIELDS = (
    "owner_name",
    "display_name",
    "winery",
    "grape",
    "vintage",
    "image_url",
    "image_path",
)


def update_wine(
    session: DbSession,
    tasting: TastingEntity,
    blind_number: int,
    patch: dict[str, Any],
) -> tuple[WineEntity, list[str]]:
    """Apply a partial update to the wine slot with this blind number.

    Blank strings clear a field.

    Returns:
        The wine before the update and the names of the changed fields.
    """
    if blind_number < 1:
        raise InvalidInputError("Invalid blindNumber")

    wine = repo.get_wine_by_blind_number(session, tasting.tasting_id, blind_number)
    if wine is None:
        raise NotFoundError("Wine not found")

    fields: dict[str, Any] = {}
    for name in _STRING_WINE_FIELDS:
        if name in patch:
            fields[name] = _clean_str(patch[name])
    if "serve_order" in patch:
        fields["serve_order"] = patch["serve_order"]
    if "is_active" in patch and patch["is_active"] is not None:
        fields["is_active"] = bool(patch["is_active"])

    repo.update_wine(session, wine.wine_id, fields)
    repo.commit(session)
    return wine, sorted(fields)
