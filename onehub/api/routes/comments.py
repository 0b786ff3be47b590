"""Next-step comment endpoints (nested under a requirement)."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from onehub.api.routes.requirements import get_owned_requirement
from onehub.api.schemas import CommentCreate, CommentResponse
from onehub.db import NextStepComment, User, get_db
from onehub.db.activity import get_user_name

router = APIRouter()


def _to_response(db: Session, comment: NextStepComment) -> CommentResponse:
    author = db.query(User).filter(User.id == comment.user_id).first()
    return CommentResponse(
        id=comment.id,
        requirement_id=comment.requirement_id,
        user_id=comment.user_id,
        comment_text=comment.comment_text,
        created_at=comment.created_at,
        author_name=get_user_name(db, comment.user_id),
        author_email=author.email if author else None,
    )


@router.post("/{requirement_id}/comments", response_model=CommentResponse)
def add_comment(
    requirement_id: str,
    data: CommentCreate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Add a next-step comment; it also becomes the requirement's next step."""
    requirement = get_owned_requirement(db, requirement_id, x_user_id)
    text = data.comment_text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Comment text is required")

    comment = NextStepComment(requirement_id=requirement.id, user_id=x_user_id, comment_text=text)
    db.add(comment)
    requirement.next_step = text
    requirement.updated_by = x_user_id
    requirement.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(comment)
    return _to_response(db, comment)


@router.get("/{requirement_id}/comments", response_model=list[CommentResponse])
def list_comments(
    requirement_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """All comments for a requirement, newest first."""
    get_owned_requirement(db, requirement_id, x_user_id)
    comments = (
        db.query(NextStepComment)
        .filter(NextStepComment.requirement_id == requirement_id)
        .order_by(NextStepComment.created_at.desc())
        .all()
    )
    return [_to_response(db, c) for c in comments]


@router.get("/{requirement_id}/comments/latest", response_model=CommentResponse | None)
def latest_comment(
    requirement_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Most recent comment, or null."""
    get_owned_requirement(db, requirement_id, x_user_id)
    comment = (
        db.query(NextStepComment)
        .filter(NextStepComment.requirement_id == requirement_id)
        .order_by(NextStepComment.created_at.desc())
        .first()
    )
    return _to_response(db, comment) if comment else None


@router.delete("/{requirement_id}/comments/{comment_id}")
def delete_comment(
    requirement_id: str,
    comment_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Delete a comment."""
    get_owned_requirement(db, requirement_id, x_user_id)
    comment = (
        db.query(NextStepComment)
        .filter(NextStepComment.id == comment_id, NextStepComment.requirement_id == requirement_id)
        .first()
    )
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")

    db.delete(comment)
    db.commit()
    return {"message": "Comment deleted"}
