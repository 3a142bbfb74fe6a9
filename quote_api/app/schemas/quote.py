"""
Pydantic schemas for quotes (devis).

``Quote`` is the stored entity including its owner.  ``QuoteForm``
holds validated create/update input and is built from raw form
fields with ``QuoteForm.from_form``, which raises ``BadRequestError``
with the user-facing message when a field is missing or the amount
is not a number.  ``QuoteRead`` is the JSON representation, with the
amount rendered with two decimals and ``created_at`` as
``YYYY-MM-DD HH:MM:SS``.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional

from pydantic import BaseModel, Field

from ..core.errors import BadRequestError

CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"
AMOUNT_QUANTUM = Decimal("0.01")

REQUIRED_FIELDS_MESSAGE = "Le titre, la description et le montant sont requis."
INVALID_AMOUNT_MESSAGE = "Le montant doit être un nombre."


def parse_amount(raw: str) -> Decimal:
    """Parse a form amount into a two-decimal ``Decimal``.

    Half-up rounding is applied past the second decimal.  NaN,
    infinities and values too large to quantize are rejected.
    """
    # Decimal() accepts digit separators, form input does not.
    if "_" in raw:
        raise BadRequestError(INVALID_AMOUNT_MESSAGE)
    try:
        value = Decimal(raw.strip())
        if not value.is_finite():
            raise BadRequestError(INVALID_AMOUNT_MESSAGE)
        # Adding zero turns -0.00 into 0.00.
        return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP) + 0
    except InvalidOperation:
        raise BadRequestError(INVALID_AMOUNT_MESSAGE)


def format_amount(amount: Decimal) -> str:
    return f"{amount.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP) + 0:f}"


class Quote(BaseModel):
    """A quote as stored in the database."""

    id: Optional[int] = None
    title: str
    description: str
    amount: Decimal
    created_at: datetime
    user_id: int


class QuoteForm(BaseModel):
    """Validated title/description/amount submitted on create or update."""

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    amount: Decimal

    @classmethod
    def from_form(
        cls,
        title: Optional[str],
        description: Optional[str],
        amount: Optional[str],
    ) -> "QuoteForm":
        if not title or not description or not amount:
            raise BadRequestError(REQUIRED_FIELDS_MESSAGE)
        return cls(title=title, description=description, amount=parse_amount(amount))


class QuoteRead(BaseModel):
    """Schema for a quote in API responses."""

    id: int
    title: str
    description: str
    amount: str = Field(..., example="150.50")
    created_at: str = Field(..., example="2024-05-14 09:30:00")

    @classmethod
    def from_quote(cls, quote: Quote) -> "QuoteRead":
        return cls(
            id=quote.id,
            title=quote.title,
            description=quote.description,
            amount=format_amount(quote.amount),
            created_at=quote.created_at.strftime(CREATED_AT_FORMAT),
        )


class QuoteEnvelope(BaseModel):
    """``{success, message?, quote}`` returned by create, read and update."""

    success: bool = True
    message: Optional[str] = None
    quote: QuoteRead


class QuoteListEnvelope(BaseModel):
    """``{error: false, quotes}`` returned by the list operation."""

    error: bool = False
    quotes: List[QuoteRead]


class MessageEnvelope(BaseModel):
    success: bool = True
    message: str


class ErrorEnvelope(BaseModel):
    """Body of every failure response."""

    error: bool = True
    message: str
