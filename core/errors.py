"""
예외 정의

분개 엔진 전반에서 사용하는 예외 계층.
- ValidationError: 잘못된 입력 (재시도 금지)
- DatabaseError: 저장소 호출 실패 (재시도 대상)
- ReconciliationError: 마스터 파일 형식 오류
"""

from decimal import Decimal


class JournalEngineError(Exception):
    """분개 엔진 기본 예외"""
    pass


class ValidationError(JournalEngineError):
    """입력값 또는 불변식 위반

    Args:
        message: 오류 메시지
        field: 문제가 된 필드명 (선택)
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class BalanceMismatchError(ValidationError):
    """차변/대변 불균형"""

    def __init__(self, total_debit: Decimal, total_credit: Decimal, entry_id: str | None = None):
        label = f"Unbalanced entry {entry_id}" if entry_id else "Unbalanced entry"
        super().__init__(f"{label}: debit={total_debit} credit={total_credit}")
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.entry_id = entry_id


class DatabaseError(JournalEngineError):
    """저장소 호출 실패

    Args:
        message: 오류 메시지
        operation: 실패한 저장소 작업명 (선택)
    """

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class ReconciliationError(JournalEngineError):
    """마스터 파일 형식 오류 (필수 컬럼 누락 등)"""
    pass
