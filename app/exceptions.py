"""커스텀 예외 클래스 정의"""


class BaseAppError(Exception):
    """애플리케이션 기본 예외 클래스"""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class QuizUnavailableError(BaseAppError):
    """퀴즈가 없거나 공개되지 않았을 때 발생하는 예외 (404)"""

    def __init__(self, quiz_id: int):
        self.quiz_id = quiz_id
        super().__init__(f"퀴즈를 사용할 수 없습니다: {quiz_id}", status_code=404)


class AlreadyCompletedError(BaseAppError):
    """재응시가 허용되지 않는 퀴즈를 이미 제출했을 때 발생하는 예외 (409)"""

    def __init__(self, quiz_id: int):
        self.quiz_id = quiz_id
        super().__init__(f"이미 응시를 완료한 퀴즈입니다: {quiz_id}", status_code=409)


class AttemptLimitExceededError(BaseAppError):
    """최대 응시 횟수에 도달했을 때 발생하는 예외 (409)"""

    def __init__(self, quiz_id: int, max_attempts: int):
        self.quiz_id = quiz_id
        self.max_attempts = max_attempts
        super().__init__(
            f"최대 응시 횟수({max_attempts}회)에 도달했습니다: quiz_id={quiz_id}",
            status_code=409,
        )


class IdentityUnresolvedError(BaseAppError):
    """학생 식별 정보를 확인할 수 없을 때 발생하는 예외 (401)"""

    def __init__(self, message: str = "학생 정보를 확인할 수 없습니다. 다시 로그인해주세요."):
        super().__init__(message, status_code=401)


class ScoringInconsistencyError(BaseAppError):
    """응답이 퀴즈 스냅샷에 없는 문항/선택지를 참조할 때 발생하는 예외 (409)"""

    def __init__(self, message: str):
        super().__init__(message, status_code=409)


class AttemptNotFoundError(BaseAppError):
    """응시 기록을 찾을 수 없을 때 발생하는 예외 (404)"""

    def __init__(self, attempt_id: int):
        self.attempt_id = attempt_id
        super().__init__(f"응시 기록을 찾을 수 없습니다: {attempt_id}", status_code=404)


class AttemptClosedError(BaseAppError):
    """이미 제출되었거나 제한 시간이 지난 응시에 답안을 저장할 때 발생하는 예외 (409)"""

    def __init__(self, attempt_id: int):
        self.attempt_id = attempt_id
        super().__init__(f"이미 종료된 응시입니다: {attempt_id}", status_code=409)


class InvalidResponseError(BaseAppError):
    """문항 유형과 맞지 않는 답안일 때 발생하는 예외 (400)"""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class InvalidQuizDefinitionError(BaseAppError):
    """잘못된 퀴즈 정의일 때 발생하는 예외 (400)"""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)
