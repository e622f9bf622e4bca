"""
Pydantic models for structured per-card payloads.

Cards carry an auxiliary JSON payload (source location, cloze spans, tags).
It is validated on read; malformed input falls back to an empty payload so a
bad blob never reaches the scheduling logic.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from srs_core.logging import get_logger


logger = get_logger(__name__)


class ClozeSpan(BaseModel):
    """One hidden span of a cloze card."""
    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)
    hint: Optional[str] = None


class CardExtras(BaseModel):
    """Auxiliary per-card data stored next to the memory state."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    highlight_id: Optional[int] = None
    source_page: Optional[int] = Field(default=None, ge=1)
    cloze: list[ClozeSpan] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


def parse_extras(raw: Optional[str], card_id: Optional[int] = None) -> CardExtras:
    """
    Deserialize a stored extras payload.

    Args:
        raw: JSON text from the store (None or empty means no payload)
        card_id: Owning card, for the warning log

    Returns:
        Parsed CardExtras, or the default CardExtras() if raw is malformed
    """
    if not raw:
        return CardExtras()
    try:
        return CardExtras.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning(
            "card_extras_malformed",
            card_id=card_id,
            errors=exc.error_count(),
        )
        return CardExtras()


def dump_extras(extras: CardExtras) -> Optional[str]:
    """Serialize extras for storage; an empty payload is stored as NULL."""
    if extras == CardExtras():
        return None
    return extras.model_dump_json(exclude_defaults=True)
