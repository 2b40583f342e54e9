"""Video and feedback routes.

Videos arrive either as a multipart upload stored on this server, or are
registered by URL once the client has put the file in its own storage.
"""

from typing import Optional

from fastapi import APIRouter, File, Form, Query, Request, UploadFile, status

from api.responses import envelope
from api.routes.auth import CoachDep, CurrentUserDep
from core.dependencies import VideoManagerDep
from schemas.video import CreateVideoRequest, FeedbackRequest

router = APIRouter(prefix="/api/videos", tags=["Videos"])


@router.get("", summary="List videos")
def list_videos(
    current_user: CurrentUserDep,
    video_manager: VideoManagerDep,
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
) -> dict:
    """List the caller's uploads (student) or the videos on their sessions (coach).

    Args:
        current_user: Current authenticated user.
        video_manager: Injected VideoManager instance.
        session_id: Only videos of this session.
    """
    return envelope(videos=video_manager.list_videos(current_user, session_id=session_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Register a video")
def create_video(
    req: CreateVideoRequest,
    current_user: CurrentUserDep,
    video_manager: VideoManagerDep,
) -> dict:
    video = video_manager.create_video(
        current_user,
        url=req.url,
        filename=req.filename,
        size=req.size,
        duration=req.duration,
        session_id=req.session_id,
    )
    return envelope(video=video)


@router.post("/upload", status_code=status.HTTP_201_CREATED, summary="Upload a video")
async def upload_video(
    request: Request,
    current_user: CurrentUserDep,
    video_manager: VideoManagerDep,
    video: UploadFile = File(..., description="Video file"),
    session_id: Optional[str] = Form(default=None, alias="sessionId"),
) -> dict:
    """Store a multipart video upload and register it.

    The file is served back from ``/uploads``.

    Raises:
        ValidationError: If the file is empty or not a video.
        PayloadTooLargeError: If the file is over the size limit.
    """
    content = await video.read()
    stored = video_manager.store_upload(
        current_user,
        filename=video.filename,
        content=content,
        base_url=str(request.base_url),
        session_id=session_id,
    )
    return envelope(video=stored, videoId=stored.id)


@router.get("/{video_id}/feedback", summary="Get video feedback")
def get_feedback(
    video_id: str,
    current_user: CurrentUserDep,
    video_manager: VideoManagerDep,
) -> dict:
    feedback = video_manager.get_feedback(video_id, current_user)
    if feedback is None:
        return envelope(message="Feedback not available yet", feedback=None)
    return envelope(feedback=feedback)


@router.post("/{video_id}/feedback", summary="Give video feedback")
def upsert_feedback(
    video_id: str,
    req: FeedbackRequest,
    current_user: CoachDep,
    video_manager: VideoManagerDep,
) -> dict:
    """Create or update the feedback of a video on one of the coach's sessions.

    Raises:
        NotFoundError: If the video does not exist.
        AuthorizationError: If the video is not on the coach's session.
    """
    feedback = video_manager.upsert_feedback(
        video_id,
        current_user,
        rating=req.rating,
        comments=req.comments,
        improvements=req.improvements,
    )
    return envelope(feedback=feedback)
