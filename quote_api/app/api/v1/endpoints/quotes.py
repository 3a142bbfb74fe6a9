"""
Quote (devis) endpoints for API v1.

Every route requires a bearer token.  Request bodies are form
encoded; responses are the JSON envelopes defined in
``schemas.quote``.  Failures never leave these handlers as raw
exceptions: the router's ``QuoteRoute`` maps them to
``{"error": true, "message": ...}`` bodies with the matching status.

Any authenticated user can read, update or delete any quote; the
owner is only recorded on creation.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Form, status

from quote_api.app.core.errors import NotFoundError, QuoteRoute
from quote_api.app.core.security import get_current_user
from quote_api.app.schemas.quote import (
    ErrorEnvelope,
    MessageEnvelope,
    Quote,
    QuoteEnvelope,
    QuoteForm,
    QuoteListEnvelope,
    QuoteRead,
)
from quote_api.app.schemas.user import UserRead
from quote_api.app.services.quote_service import QuoteService, get_quote_service

router = APIRouter(
    route_class=QuoteRoute,
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorEnvelope},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorEnvelope},
    },
)

QUOTE_NOT_FOUND_MESSAGE = "Devis non trouvé."


async def _get_quote_or_404(quotes: type[QuoteService], quote_id: int) -> Quote:
    quote = await quotes.find(quote_id)
    if quote is None:
        raise NotFoundError(QUOTE_NOT_FOUND_MESSAGE)
    return quote


@router.post(
    "/quote",
    name="create_quote",
    response_model=QuoteEnvelope,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorEnvelope}},
)
async def create_quote(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    current_user: UserRead = Depends(get_current_user),
    quotes: type[QuoteService] = Depends(get_quote_service),
) -> QuoteEnvelope:
    """Create a quote owned by the caller, timestamped now."""
    form = QuoteForm.from_form(title, description, amount)
    quote = await quotes.save(
        Quote(
            title=form.title,
            description=form.description,
            amount=form.amount,
            created_at=datetime.now().replace(microsecond=0),
            user_id=current_user.id,
        )
    )
    return QuoteEnvelope(message="Devis créé avec succès.", quote=QuoteRead.from_quote(quote))


@router.get(
    "/quote/{quote_id}",
    name="read_quote",
    response_model=QuoteEnvelope,
    response_model_exclude_none=True,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorEnvelope}},
)
async def read_quote(
    quote_id: int,
    current_user: UserRead = Depends(get_current_user),
    quotes: type[QuoteService] = Depends(get_quote_service),
) -> QuoteEnvelope:
    """Return a single quote."""
    quote = await _get_quote_or_404(quotes, quote_id)
    return QuoteEnvelope(quote=QuoteRead.from_quote(quote))


@router.put(
    "/quote/{quote_id}",
    name="update_quote",
    response_model=QuoteEnvelope,
    response_model_exclude_none=True,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorEnvelope},
        status.HTTP_404_NOT_FOUND: {"model": ErrorEnvelope},
    },
)
async def update_quote(
    quote_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    current_user: UserRead = Depends(get_current_user),
    quotes: type[QuoteService] = Depends(get_quote_service),
) -> QuoteEnvelope:
    """Overwrite title, description and amount of an existing quote.

    The quote is looked up before the form is validated, so an unknown
    id answers 404 even when the payload is also invalid.
    """
    quote = await _get_quote_or_404(quotes, quote_id)
    form = QuoteForm.from_form(title, description, amount)
    updated = await quotes.save(
        quote.model_copy(
            update={"title": form.title, "description": form.description, "amount": form.amount}
        )
    )
    # A concurrent delete may have removed the row since the lookup.
    if updated is None:
        raise NotFoundError(QUOTE_NOT_FOUND_MESSAGE)
    return QuoteEnvelope(message="Devis mis à jour avec succès.", quote=QuoteRead.from_quote(updated))


@router.delete(
    "/quote/{quote_id}",
    name="delete_quote",
    response_model=MessageEnvelope,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorEnvelope}},
)
async def delete_quote(
    quote_id: int,
    current_user: UserRead = Depends(get_current_user),
    quotes: type[QuoteService] = Depends(get_quote_service),
) -> MessageEnvelope:
    """Permanently delete a quote."""
    quote = await _get_quote_or_404(quotes, quote_id)
    # A concurrent delete may already have removed the row.
    if not await quotes.delete(quote):
        raise NotFoundError(QUOTE_NOT_FOUND_MESSAGE)
    return MessageEnvelope(message="Devis supprimé avec succès.")


@router.get("/quotes", name="get_all_quotes", response_model=QuoteListEnvelope)
async def get_all_quotes(
    current_user: UserRead = Depends(get_current_user),
    quotes: type[QuoteService] = Depends(get_quote_service),
) -> QuoteListEnvelope:
    """List every quote in storage, whatever its owner."""
    stored = await quotes.find_all()
    return QuoteListEnvelope(quotes=[QuoteRead.from_quote(quote) for quote in stored])
