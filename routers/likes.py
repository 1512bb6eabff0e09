from fastapi import APIRouter, Depends

from db.models.comment import Comment
from db.models.post import Post
from schemas.commons import PostId, CommentId, DBSession, CounterDirection
from schemas.comment import CommentLikeRequest
from schemas.post import PostLikeRequest
from utils.auth import require_api_key
from utils.database import adjust_counter
from utils.responses import success_response

# TODO: 익명 좋아요는 요청자 식별 없이 무제한 토글 가능 → 클라이언트 지문/IP 기반 중복 방지 검토

router = APIRouter(
    tags=["COUNTERS"],
    dependencies=[Depends(require_api_key)],
)


@router.post("/posts/{post_id}/like")
async def like_post(post_id: PostId, body: PostLikeRequest, db: DBSession) -> dict:
    """게시글 좋아요 / 좋아요 취소 (0 미만으로 내려가지 않음)"""
    like_count = await adjust_counter(db, Post, post_id, "like_count", body.action.direction)
    label = "좋아요" if body.action.direction is CounterDirection.INCREASE else "좋아요 취소"
    return success_response({
        "like_count": like_count,
        "action": body.action.value,
    }, f"게시글 {label}가 완료되었습니다.")


@router.post("/posts/{post_id}/view")
async def view_post(post_id: PostId, db: DBSession) -> dict:
    """조회수 증가 (요청마다 1 증가, 중복 조회 판별 없음)"""
    view_count = await adjust_counter(db, Post, post_id, "view_count", CounterDirection.INCREASE)
    return success_response({"view_count": view_count}, "조회수가 증가되었습니다.")


@router.post("/comments/{comment_id}/like")
async def like_comment(comment_id: CommentId, body: CommentLikeRequest, db: DBSession) -> dict:
    """댓글 좋아요 / 좋아요 취소"""
    like_count = await adjust_counter(db, Comment, comment_id, "like_count", body.direction)
    label = "좋아요" if body.liked else "좋아요 취소"
    return success_response({
        "id": comment_id,
        "like_count": like_count,
        "liked": body.liked,
    }, f"댓글 {label}가 완료되었습니다.")
