import logging

from fastapi import Header

from app.exceptions import IdentityUnresolvedError

logger = logging.getLogger(__name__)


async def get_student_id(
    x_student_id: str | None = Header(None, alias="X-Student-Id"),
) -> int:
    """요청 헤더에서 학생 ID(숫자) 확인

    인증/세션 처리는 앞단(게이트웨이)이 담당하며, 이 서비스는 확인된 숫자 ID만 받습니다.
    """
    if x_student_id is None or not x_student_id.strip():
        raise IdentityUnresolvedError()

    try:
        student_id = int(x_student_id.strip())
    except ValueError:
        logger.warning(f"숫자가 아닌 학생 ID: {x_student_id!r}")
        raise IdentityUnresolvedError()

    if student_id <= 0:
        raise IdentityUnresolvedError()
    return student_id
