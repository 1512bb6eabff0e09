from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import select, func

from db.models.comment import Comment
from db.models.post import Post
from schemas.commons import DBSession
from utils.auth import require_api_key
from utils.database import utcnow
from utils.responses import now_iso, success_response

router = APIRouter(
    tags=["STATS"],
    dependencies=[Depends(require_api_key)],
)


def start_of_today() -> datetime:
    """오늘 00:00 (UTC, naive)"""
    return utcnow().replace(hour=0, minute=0, second=0, microsecond=0)


@router.get("/stats/board")
async def get_board_stats(db: DBSession) -> dict:
    """게시판 통계: 전체/오늘 게시글 수, 전체/오늘 댓글 수 (댓글은 삭제 제외)"""
    today = start_of_today()
    live_comments = Comment.is_deleted.is_(False)

    total_posts = await db.scalar(select(func.count(Post.id)))
    total_comments = await db.scalar(select(func.count(Comment.id)).where(live_comments))
    today_posts = await db.scalar(select(func.count(Post.id)).where(Post.created_at >= today))
    today_comments = await db.scalar(
        select(func.count(Comment.id)).where(live_comments, Comment.created_at >= today)
    )

    return success_response({
        "totalPosts": total_posts or 0,
        "totalComments": total_comments or 0,
        "todayPosts": today_posts or 0,
        "todayComments": today_comments or 0,
        "lastUpdated": now_iso(),
    })
