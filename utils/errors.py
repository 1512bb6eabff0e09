from fastapi import status


class BoardError(Exception):
    """HTTP 상태 코드와 사용자 노출 메시지를 가진 API 에러"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "서버 오류가 발생했습니다."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BoardError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "입력값이 올바르지 않습니다."


class AuthError(BoardError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "비밀번호가 일치하지 않습니다."


class NotFoundError(BoardError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "요청한 리소스를 찾을 수 없습니다."


class InternalError(BoardError):
    pass


def post_not_found() -> NotFoundError:
    return NotFoundError("게시글을 찾을 수 없습니다.")


def comment_not_found() -> NotFoundError:
    return NotFoundError("댓글을 찾을 수 없습니다.")
