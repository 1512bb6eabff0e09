# utils/database.py
"""게시글/댓글 공통 DB 작업: 조회, 카운터 증감, 소프트 삭제"""

import logging
from typing import TypeVar

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings
from db.base import utcnow
from db.models.comment import Comment, DELETED_COMMENT_CONTENT
from db.models.post import Post, DELETED_POST_CONTENT, DELETED_POST_TITLE
from schemas.commons import CounterDirection
from utils.auth import check_password_or_raise
from utils.content import extract_attachment_keys, extract_image_keys
from utils.errors import InternalError, comment_not_found, post_not_found
from utils.storage import BlobStorage

logger = logging.getLogger(__name__)

Entity = TypeVar("Entity", Post, Comment)

COUNTER_COLUMNS = {
    Post: frozenset(["view_count", "like_count"]),
    Comment: frozenset(["like_count"]),
}


async def _find_by_id(db: AsyncSession, model: type[Entity], entity_id: str, include_deleted: bool) -> Entity | None:
    query = select(model).where(model.id == entity_id)
    if not include_deleted:
        query = query.where(model.is_deleted.is_(False))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def find_post_by_id(db: AsyncSession, post_id: str, include_deleted: bool = False) -> Post | None:
    return await _find_by_id(db, Post, post_id, include_deleted)


async def find_comment_by_id(db: AsyncSession, comment_id: str, include_deleted: bool = False) -> Comment | None:
    return await _find_by_id(db, Comment, comment_id, include_deleted)


async def get_post_or_404(db: AsyncSession, post_id: str) -> Post:
    post = await find_post_by_id(db, post_id)
    if post is None:
        raise post_not_found()
    return post


async def get_comment_or_404(db: AsyncSession, comment_id: str) -> Comment:
    comment = await find_comment_by_id(db, comment_id)
    if comment is None:
        raise comment_not_found()
    return comment


async def adjust_counter(
        db: AsyncSession,
        model: type[Entity],
        entity_id: str,
        column: str,
        direction: CounterDirection,
) -> int:
    """
    카운터 증감 (0 미만으로 내려가지 않음)

    SET col = CASE WHEN COALESCE(col, 0) + delta < 0 THEN 0 ELSE COALESCE(col, 0) + delta END
    를 DB에서 한 번에 실행하고 응답 전에 커밋하므로 동시 요청 사이에 read-then-write 경합이 없다.
    삭제된 엔티티의 카운터는 동결 → NotFound
    """
    if column not in COUNTER_COLUMNS[model]:
        raise ValueError(f"Invalid counter column: {column}")

    entity = await _find_by_id(db, model, entity_id, include_deleted=False)
    if entity is None:
        raise post_not_found() if model is Post else comment_not_found()

    counter = getattr(model, column)
    delta = 1 if direction is CounterDirection.INCREASE else -1
    adjusted = func.coalesce(counter, 0) + delta

    try:
        await db.execute(
            update(model)
            .where(model.id == entity_id)
            .values({column: case((adjusted < 0, 0), else_=adjusted)})
            .execution_options(synchronize_session=False)
        )
        new_value = await db.scalar(select(counter).where(model.id == entity_id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Counter update failed: %s.%s id=%s", model.__tablename__, column, entity_id, exc_info=e)
        raise InternalError("카운터 업데이트에 실패했습니다.") from e

    return new_value or 0


async def soft_delete_post(
        db: AsyncSession,
        post_id: str,
        password: str,
        storage: BlobStorage,
        settings: Settings,
) -> dict[str, int]:
    """
    게시글 소프트 삭제

    1. 삭제되지 않은 게시글 조회 (이미 삭제됐으면 404)
    2. 비밀번호 검증 (불일치 401, 행은 그대로)
    3. 본문 이미지 / 첨부파일 스토리지 키 추출
    4. 스토리지 삭제 (best-effort, 실패해도 계속)
    5. 행 업데이트: 제목/내용 교체, 첨부 정보 제거, is_deleted = true
    반환값은 정리를 시도한 개수 (성공 개수 아님)
    """
    post = await get_post_or_404(db, post_id)
    check_password_or_raise(password, post.password_hash)

    image_keys = extract_image_keys(post.content, settings.image_prefix, settings.storage_host)
    attached_files = post.attached_files or []
    attachment_keys = extract_attachment_keys(attached_files, settings.attachment_prefix, settings.storage_host)

    if image_keys:
        deleted = await storage.delete_many(image_keys)
        if deleted < len(image_keys):
            logger.warning("Post %s: %d/%d images left in storage", post_id, len(image_keys) - deleted, len(image_keys))
    if attachment_keys:
        deleted = await storage.delete_many(attachment_keys)
        if deleted < len(attachment_keys):
            logger.warning(
                "Post %s: %d/%d attachments left in storage",
                post_id, len(attachment_keys) - deleted, len(attachment_keys),
            )

    try:
        await db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(
                title=DELETED_POST_TITLE,
                content=DELETED_POST_CONTENT,
                plain_text=None,
                attached_files=None,
                has_attachments=False,
                attachment_count=0,
                is_deleted=True,
                deleted_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Post soft delete failed: %s", post_id, exc_info=e)
        raise InternalError("게시글 삭제에 실패했습니다.") from e

    logger.info("Post soft deleted: %s (images=%d, attachments=%d)", post_id, len(image_keys), len(attached_files))
    return {
        "deletedImages": len(image_keys),
        "deletedAttachments": len(attached_files),
    }


async def soft_delete_comment(db: AsyncSession, comment_id: str, password: str) -> str:
    """댓글 소프트 삭제 (자식 댓글은 건드리지 않음)"""
    comment = await get_comment_or_404(db, comment_id)
    check_password_or_raise(password, comment.password_hash)

    try:
        await db.execute(
            update(Comment)
            .where(Comment.id == comment_id)
            .values(
                content=DELETED_COMMENT_CONTENT,
                is_deleted=True,
                deleted_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await refresh_post_comment_count(db, comment.post_id)
        if comment.parent_id:
            await refresh_reply_count(db, comment.parent_id)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Comment soft delete failed: %s", comment_id, exc_info=e)
        raise InternalError("댓글 삭제 중 오류가 발생했습니다.") from e

    logger.info("Comment soft deleted: %s", comment_id)
    return comment.id


async def refresh_post_comment_count(db: AsyncSession, post_id: str) -> None:
    """게시글의 comment_count / last_comment_at 을 삭제되지 않은 댓글 기준으로 재계산"""
    live_comments = (
        select(func.count(Comment.id))
        .where(Comment.post_id == post_id, Comment.is_deleted.is_(False))
        .scalar_subquery()
    )
    last_created = (
        select(func.max(Comment.created_at))
        .where(Comment.post_id == post_id, Comment.is_deleted.is_(False))
        .scalar_subquery()
    )
    await db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(comment_count=live_comments, last_comment_at=last_created)
        .execution_options(synchronize_session=False)
    )


async def refresh_reply_count(db: AsyncSession, parent_id: str) -> None:
    # MySQL은 UPDATE 대상 테이블을 서브쿼리에서 참조할 수 없으므로 먼저 센다
    live_replies = await db.scalar(
        select(func.count(Comment.id))
        .where(Comment.parent_id == parent_id, Comment.is_deleted.is_(False))
    )
    await db.execute(
        update(Comment)
        .where(Comment.id == parent_id)
        .values(reply_count=live_replies or 0)
        .execution_options(synchronize_session=False)
    )


async def commit_or_raise(db: AsyncSession, message: str) -> None:
    """응답 전에 커밋 (실패 시 롤백 후 500)"""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Commit failed: %s", message, exc_info=e)
        raise InternalError(message) from e
