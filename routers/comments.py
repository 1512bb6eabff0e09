import logging
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, update

from db.models.comment import Comment, MAX_COMMENT_DEPTH
from db.models.post import Post
from schemas.commons import PostId, CommentId, DBSession, PasswordRequest, clamp_limit
from schemas.comment import (
    CommentBase,
    CommentCreateRequest,
    CommentNode,
    CommentUpdateRequest,
    CommentVerifyRequest,
    RecentComment,
)
from utils.auth import check_password_or_raise, hash_password, require_api_key, verify_password
from utils.database import (
    commit_or_raise,
    find_comment_by_id,
    find_post_by_id,
    get_comment_or_404,
    soft_delete_comment,
    utcnow,
)
from utils.errors import AuthError, NotFoundError, ValidationError, post_not_found
from utils.responses import success_response

RECENT_DEFAULT_LIMIT = 5
RECENT_MAX_LIMIT = 20

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["COMMENTS"],
    dependencies=[Depends(require_api_key)],
)


def build_comment_tree(comments: list[Comment]) -> list[CommentNode]:
    """작성순 댓글 목록 → parent_id 기준 트리 (부모가 없으면 최상위로)"""
    nodes = {c.id: CommentNode.model_validate(c) for c in comments}
    roots = []
    for comment in comments:
        node = nodes[comment.id]
        parent = nodes.get(comment.parent_id) if comment.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots


@router.post("/comments", status_code=status.HTTP_201_CREATED)
async def create_comment(comment: CommentCreateRequest, db: DBSession) -> dict:
    """댓글 작성 (대댓글 깊이 최대 10)"""
    depth = 0
    if comment.parentId:
        parent = await find_comment_by_id(db, comment.parentId, include_deleted=True)
        if parent is None:
            raise NotFoundError("부모 댓글을 찾을 수 없습니다.")
        if parent.post_id != comment.postId:
            raise ValidationError("다른 게시글의 댓글에는 답글을 달 수 없습니다.")
        depth = parent.depth + 1
        if depth > MAX_COMMENT_DEPTH:
            raise ValidationError("댓글 깊이가 너무 깊습니다")

    post = await find_post_by_id(db, comment.postId)
    if post is None:
        raise post_not_found()

    # 글쓴이라고 주장하면 게시글 비밀번호로 확인
    if comment.isAuthor and not verify_password(comment.password, post.password_hash):
        raise AuthError("글쓴이 비밀번호가 틀렸습니다.")

    new_comment = Comment(
        id=str(uuid.uuid4()),
        post_id=comment.postId,
        parent_id=comment.parentId,
        content=comment.content,
        nickname=comment.nickname,
        password_hash=hash_password(comment.password),
        depth=depth,
        is_author=comment.isAuthor,
    )
    db.add(new_comment)
    await db.flush()

    await db.execute(
        update(Post)
        .where(Post.id == comment.postId)
        .values(comment_count=Post.comment_count + 1, last_comment_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if comment.parentId:
        await db.execute(
            update(Comment)
            .where(Comment.id == comment.parentId)
            .values(reply_count=Comment.reply_count + 1)
            .execution_options(synchronize_session=False)
        )
    await commit_or_raise(db, "댓글 작성에 실패했습니다.")
    await db.refresh(new_comment)
    logger.info("Comment created: %s (post=%s, depth=%d)", new_comment.id, comment.postId, depth)

    return success_response(
        CommentBase.model_validate(new_comment).model_dump(mode="json"),
        "댓글이 작성되었습니다.",
    )


@router.get("/comments/recent")
async def get_recent_comments(db: DBSession, limit: int | None = Query(default=None)) -> dict:
    """최근 댓글 (삭제 제외, 게시글 제목 포함)"""
    limit = clamp_limit(limit, RECENT_DEFAULT_LIMIT, RECENT_MAX_LIMIT)
    result = await db.execute(
        select(Comment, Post.title)
        .join(Post, Post.id == Comment.post_id)
        .where(Comment.is_deleted.is_(False))
        .order_by(Comment.created_at.desc())
        .limit(limit)
    )
    comments = [
        RecentComment(
            id=c.id,
            content=c.content,
            nickname=c.nickname,
            post_id=c.post_id,
            post_title=title,
            is_author=c.is_author,
            depth=c.depth,
            created_at=c.created_at,
        ).model_dump(mode="json")
        for c, title in result.all()
    ]
    return success_response({"comments": comments})


@router.get("/comments/{post_id}")
async def get_comments(post_id: PostId, db: DBSession) -> dict:
    """게시글의 댓글 트리 (삭제된 댓글 포함, 작성순)"""
    post = await find_post_by_id(db, post_id, include_deleted=True)
    if post is None:
        raise post_not_found()

    result = await db.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc())
    )
    comments = result.scalars().all()

    return success_response({
        "comments": [node.model_dump(mode="json") for node in build_comment_tree(comments)],
        "total": len(comments),
    })


@router.post("/comments/{comment_id}/edit")
async def update_comment(comment_id: CommentId, update_data: CommentUpdateRequest, db: DBSession) -> dict:
    """댓글 수정"""
    comment = await get_comment_or_404(db, comment_id)
    check_password_or_raise(update_data.password, comment.password_hash)

    updated_at = utcnow()
    await db.execute(
        update(Comment)
        .where(Comment.id == comment_id)
        .values(content=update_data.content, updated_at=updated_at)
        .execution_options(synchronize_session=False)
    )
    await commit_or_raise(db, "댓글 수정에 실패했습니다.")

    return success_response({
        "id": comment_id,
        "content": update_data.content,
        "updated_at": updated_at.isoformat(),
    }, "댓글이 수정되었습니다.")


@router.post("/comments/{comment_id}/delete")
async def delete_comment(comment_id: CommentId, body: PasswordRequest, db: DBSession) -> dict:
    """댓글 삭제 (소프트 삭제, 대댓글은 유지)"""
    deleted_id = await soft_delete_comment(db, comment_id, body.password)
    return success_response({
        "deleted": True,
        "soft_deleted": True,
        "comment_id": deleted_id,
    }, "댓글이 삭제되었습니다.")


@router.post("/comments/{comment_id}/verify")
async def verify_comment_password(comment_id: CommentId, body: CommentVerifyRequest, db: DBSession) -> dict:
    """댓글 비밀번호 확인"""
    comment = await get_comment_or_404(db, comment_id)
    check_password_or_raise(body.password, comment.password_hash)
    return success_response(None, "비밀번호가 확인되었습니다.")
