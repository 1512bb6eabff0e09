import logging
import uuid
from datetime import timedelta

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, func, or_, update

from config import AppSettings
from db.models.post import Post
from schemas.commons import PostId, DBSession, PasswordRequest, Pagination, clamp_limit
from schemas.post import (
    ListPostsQuery,
    PostCreateRequest,
    PostDetail,
    PostListItem,
    PostUpdateRequest,
    PostVerifyRequest,
    SortColumn,
)
from utils.auth import check_password_or_raise, hash_password, require_api_key
from utils.content import extract_attachment_keys, sanitize_html, strip_html
from utils.database import commit_or_raise, get_post_or_404, find_post_by_id, soft_delete_post, utcnow
from utils.errors import post_not_found
from utils.responses import success_response
from utils.storage import Storage

MAX_PAGE_SIZE = 50
TRENDING_DEFAULT_LIMIT = 5
TRENDING_MAX_LIMIT = 20
TRENDING_WINDOW = timedelta(hours=24)

SORT_COLUMN_MAP = {
    SortColumn.CREATED: Post.created_at,
    SortColumn.COMMENTS: Post.last_comment_at,
    SortColumn.LIKES: Post.like_count,
    SortColumn.VIEWS: Post.view_count,
    SortColumn.POPULAR: Post.comment_count,
}
logger = logging.getLogger(__name__)


def get_order_by(sort: SortColumn) -> list:
    """정렬 옵션 매핑 (동률은 id 내림차순)"""
    column = SORT_COLUMN_MAP[sort]
    return [column.desc(), Post.id.desc()]


router = APIRouter(
    tags=["POSTS"],
    dependencies=[Depends(require_api_key)],
)


@router.get("/posts")
async def get_posts(db: DBSession, query: ListPostsQuery = Depends()) -> dict:
    """
    게시글 목록 조회 (삭제된 게시글 제외)
    - 검색 (제목, 본문 텍스트)
    - 정렬 (최신, 최근 댓글, 좋아요, 조회수, 댓글수)
    - 페이지네이션 (최대 50개)
    """
    page_size = clamp_limit(query.limit, 20, MAX_PAGE_SIZE)
    offset = (query.page - 1) * page_size

    conditions = [Post.is_deleted.is_(False)]
    if query.search:
        search_pattern = f"%{query.search}%"
        conditions.append(or_(
            Post.title.like(search_pattern),
            Post.plain_text.like(search_pattern),
        ))

    total_count = await db.scalar(select(func.count()).select_from(Post).where(*conditions)) or 0
    total_pages = (total_count + page_size - 1) // page_size or 1

    result = await db.execute(
        select(Post)
        .where(*conditions)
        .order_by(*get_order_by(query.sort))
        .limit(page_size)
        .offset(offset)
    )
    posts = result.scalars().all()

    pagination = Pagination(
        currentPage=query.page,
        totalPages=total_pages,
        totalCount=total_count,
        hasMore=query.page < total_pages,
    )
    return success_response({
        "posts": [PostListItem.model_validate(post).model_dump(mode="json") for post in posts],
        "pagination": pagination.model_dump(),
    })


@router.post("/posts", status_code=status.HTTP_201_CREATED)
async def create_post(post: PostCreateRequest, db: DBSession) -> dict:
    """게시글 작성"""
    clean_content = sanitize_html(post.content)
    attached_files = [f.model_dump() for f in post.attachedFiles]

    new_post = Post(
        id=str(uuid.uuid4()),
        title=post.title,
        content=clean_content,
        plain_text=strip_html(clean_content),
        nickname=post.nickname,
        password_hash=hash_password(post.password),
        attached_files=attached_files or None,
        has_attachments=bool(attached_files),
        attachment_count=len(attached_files),
    )

    db.add(new_post)
    await commit_or_raise(db, "게시글 작성에 실패했습니다.")
    await db.refresh(new_post)
    logger.info("Post created: %s", new_post.id)

    return success_response({
        "id": new_post.id,
        "title": new_post.title,
        "created_at": new_post.created_at.isoformat() if new_post.created_at else None,
    }, "게시글이 작성되었습니다.")


@router.get("/posts/trending")
async def get_trending_posts(db: DBSession, limit: int | None = Query(default=None)) -> dict:
    """최근 24시간 인기 게시글 (조회수 → 좋아요 순)"""
    limit = clamp_limit(limit, TRENDING_DEFAULT_LIMIT, TRENDING_MAX_LIMIT)
    since = utcnow() - TRENDING_WINDOW

    result = await db.execute(
        select(Post)
        .where(Post.is_deleted.is_(False), Post.created_at >= since)
        .order_by(Post.view_count.desc(), Post.like_count.desc())
        .limit(limit)
    )
    posts = result.scalars().all()

    return success_response({
        "posts": [PostListItem.model_validate(post).model_dump(mode="json") for post in posts],
        "pagination": {"totalCount": len(posts), "hasMore": False},
    })


@router.get("/posts/{post_id}")
async def get_single_post(post_id: PostId, db: DBSession) -> dict:
    """게시글 상세 조회 (삭제된 게시글은 대체 문구로 노출)"""
    post = await find_post_by_id(db, post_id, include_deleted=True)
    if post is None:
        raise post_not_found()
    return success_response(PostDetail.model_validate(post).model_dump(mode="json"))


@router.post("/posts/{post_id}/edit")
async def update_post(
        post_id: PostId, update_data: PostUpdateRequest, db: DBSession, storage: Storage, settings: AppSettings,
) -> dict:
    """게시글 수정 (빠진 첨부파일은 스토리지에서 best-effort 삭제)"""
    post = await get_post_or_404(db, post_id)
    check_password_or_raise(update_data.password, post.password_hash)

    new_files = [f.model_dump() for f in update_data.attachedFiles]
    kept_urls = {f["url"] for f in new_files}
    dropped = [f for f in (post.attached_files or []) if f.get("url") not in kept_urls]
    if dropped:
        keys = extract_attachment_keys(dropped, settings.attachment_prefix, settings.storage_host)
        await storage.delete_many(keys)

    clean_content = sanitize_html(update_data.content)
    updated_at = utcnow()
    await db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(
            title=update_data.title,
            content=clean_content,
            plain_text=strip_html(clean_content),
            attached_files=new_files or None,
            has_attachments=bool(new_files),
            attachment_count=len(new_files),
            updated_at=updated_at,
        )
        .execution_options(synchronize_session=False)
    )
    await commit_or_raise(db, "게시글 수정에 실패했습니다.")

    return success_response({
        "id": post_id,
        "title": update_data.title,
        "updated_at": updated_at.isoformat(),
    }, "게시글이 수정되었습니다.")


@router.post("/posts/{post_id}/delete")
async def delete_post(
        post_id: PostId, body: PasswordRequest, db: DBSession, storage: Storage, settings: AppSettings,
) -> dict:
    """게시글 삭제 (소프트 삭제 + 이미지/첨부파일 정리)"""
    counts = await soft_delete_post(db, post_id, body.password, storage, settings)
    return success_response({"deleted": True, **counts}, "게시글이 삭제되었습니다.")


@router.post("/posts/{post_id}/verify")
async def verify_post_password(post_id: PostId, body: PostVerifyRequest, db: DBSession) -> dict:
    """게시글 비밀번호 확인"""
    post = await get_post_or_404(db, post_id)
    check_password_or_raise(body.password, post.password_hash)
    return success_response(None, "비밀번호가 확인되었습니다.")
