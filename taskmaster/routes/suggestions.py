"""Routes for AI-drafted task descriptions."""

import logging

from fastapi import APIRouter, Depends

from ..deps import get_suggestion_client
from ..schemas import SuggestionRequest, SuggestionResponse
from ..services.suggestion_service import DescriptionSuggestionClient, is_diagnostic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


@router.post("/description", response_model=SuggestionResponse)
async def suggest_description(
    request: SuggestionRequest,
    client: DescriptionSuggestionClient = Depends(get_suggestion_client)
) -> SuggestionResponse:
    """Suggest a description for a task title.

    Failures are reported in the response body rather than as HTTP errors,
    with ``is_error`` set, so the text can always be displayed.
    """
    logger.info(f"Suggesting description for: {request.title}")
    description = await client.asuggest(request.title)
    return SuggestionResponse(
        title=request.title,
        description=description,
        is_error=is_diagnostic(description),
    )
