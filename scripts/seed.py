"""테이블 생성 + 테스트 데이터 생성 스크립트

사용법:
    python scripts/seed.py

테스트 게시글/댓글 비밀번호:
    - 1234
"""
import asyncio
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from db.base import Base
from db.models.comment import Comment
from db.models.post import Post
from db.session import AsyncSessionLocal, engine
from utils.auth import hash_password
from utils.content import strip_html

TEST_PASSWORD = "1234"

TEST_POSTS = [
    {
        "title": "첫 번째 글",
        "content": "<p>익명 게시판에 오신 것을 환영합니다.</p>",
        "nickname": "관리자",
    },
    {
        "title": "두 번째 글",
        "content": "<p>댓글과 좋아요를 남겨보세요.</p>",
        "nickname": "익명",
    },
]

TEST_COMMENTS = ["좋은 글이네요", "반갑습니다"]


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    password_hash = hash_password(TEST_PASSWORD)
    async with AsyncSessionLocal() as db:
        for data in TEST_POSTS:
            post = Post(
                title=data["title"],
                content=data["content"],
                plain_text=strip_html(data["content"]),
                nickname=data["nickname"],
                password_hash=password_hash,
                comment_count=len(TEST_COMMENTS),
            )
            db.add(post)
            await db.flush()

            for content in TEST_COMMENTS:
                db.add(Comment(
                    post_id=post.id,
                    content=content,
                    nickname="익명",
                    password_hash=password_hash,
                ))
        await db.commit()

    await engine.dispose()
    print(f"Seeded {len(TEST_POSTS)} posts, {len(TEST_POSTS) * len(TEST_COMMENTS)} comments")


if __name__ == "__main__":
    asyncio.run(seed())
