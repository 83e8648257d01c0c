"""Yearly activity summary endpoint."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from blogapi.schemas.content import SummaryRequest, SummaryResponse
from blogapi.services.summary import InvalidUsernameError, SummaryService

router = APIRouter(prefix="/api/v1", tags=["summary"])


def get_summary_service(request: Request) -> SummaryService:
    return request.app.state.summary_service


@router.post("/summary", response_model=SummaryResponse)
async def get_yearly_summary(
    body: SummaryRequest,
    summary_service: SummaryService = Depends(get_summary_service),
) -> SummaryResponse:
    """Monthly post, comment and like counts for a user in the current year."""
    try:
        summary = await summary_service.get_yearly_summary(body.username.strip())
    except InvalidUsernameError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return SummaryResponse(
        username=body.username.strip(),
        likes=summary.likes,
        comments=summary.comments,
        posts=summary.posts,
    )
