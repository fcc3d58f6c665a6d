"""
State Machines

자산 생애주기와 백그라운드 작업의 상태 전이 관리.
허용되지 않은 전이는 StateMachineError로 거부.
"""

import logging
from enum import Enum

from core.types import AssetStatus

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """상태 전이 오류"""
    pass


class TaskState(str, Enum):
    """작업 상태

    전이 규칙:
    - PENDING → RUNNING: 워커가 가져감
    - RUNNING → SUCCEEDED: 성공
    - RUNNING → RETRYING: 재시도 가능한 실패
    - RUNNING → FAILED: 재시도 불가 또는 시도 횟수 소진
    - RETRYING → RUNNING: 대기 후 재실행
    """
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    RETRYING = "RETRYING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class StateMachine:
    """상태 머신 기본 클래스

    Args:
        initial_state: 초기 상태
        transitions: 허용된 전이 정의 {from_state: [to_states]}
        name: 머신 이름 (로깅용)
    """

    def __init__(
        self,
        initial_state: str | Enum,
        transitions: dict[str, list[str]],
        name: str = "StateMachine",
    ):
        self._state = initial_state.value if isinstance(initial_state, Enum) else initial_state
        self._transitions = transitions
        self._name = name
        self._history: list[tuple[str, str]] = []

    @property
    def state(self) -> str:
        """현재 상태"""
        return self._state

    def can_transition(self, to_state: str | Enum) -> bool:
        """전이 가능 여부 확인"""
        target = to_state.value if isinstance(to_state, Enum) else to_state
        return target in self._transitions.get(self._state, [])

    def transition(self, to_state: str | Enum) -> str:
        """상태 전이

        Args:
            to_state: 목표 상태

        Returns:
            새 상태

        Raises:
            StateMachineError: 허용되지 않은 전이
        """
        target = to_state.value if isinstance(to_state, Enum) else to_state

        if not self.can_transition(target):
            allowed = self._transitions.get(self._state, [])
            raise StateMachineError(
                f"{self._name}: Cannot transition from {self._state} to {target}. "
                f"Allowed: {allowed}"
            )

        old_state = self._state
        self._state = target
        self._history.append((old_state, target))
        logger.debug(f"{self._name}: {old_state} → {target}")
        return target

    def force_state(self, state: str | Enum) -> None:
        """강제 상태 설정 (부분 실패 복구용)"""
        target = state.value if isinstance(state, Enum) else state
        old_state = self._state
        self._state = target
        self._history.append((old_state, target))
        logger.warning(f"{self._name}: Force state {old_state} → {target}")

    @property
    def history(self) -> list[tuple[str, str]]:
        """상태 전이 이력"""
        return self._history.copy()


class AssetStateMachine(StateMachine):
    """자산 상태 머신

    active --dispose--> disposed --reinstate--> active
    처분된 자산은 복원 전까지 다시 처분할 수 없음.
    """

    TRANSITIONS: dict[str, list[str]] = {
        AssetStatus.ACTIVE.value: [AssetStatus.DISPOSED.value],
        AssetStatus.DISPOSED.value: [AssetStatus.ACTIVE.value],
    }

    def __init__(self, initial_state: str | AssetStatus = AssetStatus.ACTIVE):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name="AssetStateMachine",
        )

    @property
    def is_active(self) -> bool:
        """활성 여부"""
        return self._state == AssetStatus.ACTIVE.value

    @property
    def is_disposed(self) -> bool:
        """처분 여부"""
        return self._state == AssetStatus.DISPOSED.value


class TaskStateMachine(StateMachine):
    """작업 상태 머신"""

    TRANSITIONS: dict[str, list[str]] = {
        "PENDING": ["RUNNING"],
        "RUNNING": ["SUCCEEDED", "RETRYING", "FAILED"],
        "RETRYING": ["RUNNING"],
    }

    def __init__(self, initial_state: str | TaskState = TaskState.PENDING):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name="TaskStateMachine",
        )

    @property
    def is_complete(self) -> bool:
        """완료 여부"""
        return self._state in ("SUCCEEDED", "FAILED")
