"""
게시판 통계 테스트
"""
from datetime import datetime
from unittest.mock import patch


class TestBoardStats:
    """GET /stats/board 테스트"""

    def test_board_stats(self, client, db, api_headers):
        db.scalar.side_effect = [10, 20, 1, 2]

        response = client.get("/stats/board", headers=api_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalPosts"] == 10
        assert data["totalComments"] == 20
        assert data["todayPosts"] == 1
        assert data["todayComments"] == 2
        assert "lastUpdated" in data

    def test_board_stats_empty(self, client, db, api_headers):
        db.scalar.side_effect = [None, None, None, None]

        response = client.get("/stats/board", headers=api_headers)

        assert response.json()["data"]["totalPosts"] == 0
        assert response.json()["data"]["todayComments"] == 0

    def test_today_starts_at_utc_midnight(self, client, db, api_headers):
        """오늘 기준은 UTC 00:00"""
        with patch("routers.stats.utcnow", return_value=datetime(2026, 1, 18, 9, 30, 15)):
            response = client.get("/stats/board", headers=api_headers)

        assert response.status_code == 200
        midnight = datetime(2026, 1, 18, 0, 0, 0)
        today_posts = db.scalar.call_args_list[2].args[0].compile().params
        today_comments = db.scalar.call_args_list[3].args[0].compile().params
        assert midnight in today_posts.values()
        assert midnight in today_comments.values()
