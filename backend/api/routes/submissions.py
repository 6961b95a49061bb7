"""
Submission webhook called by the submission form automation.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.storage import StorageAdapter
from api.dependencies import get_storage, verify_webhook_secret
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.submissions import SubmissionRequest, SubmissionResponse
from infrastructure.database.connection import get_db
from services.submissions import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_webhook_secret)],
)
@limiter.limit(get_rate_limit("submission"))
async def receive_submission(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Create an author (if new), an article and its attachments from a form submission.

    Invalid payloads are rejected with 400 and the list of validation errors.
    """
    try:
        submission = SubmissionRequest.model_validate(payload)
    except PydanticValidationError as e:
        logger.warning("Rejected submission: %d validation error(s)", e.error_count())
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Validation failed",
                "errors": e.errors(include_url=False, include_input=False, include_context=False),
            },
        )

    result = await SubmissionService(db, storage).process(submission)
    await db.commit()
    logger.info("Submission stored as article %s", result["article_id"])
    return SubmissionResponse(**result)
