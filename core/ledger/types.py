"""
복식부기 타입 정의

분개 유형, 차대 구분, 계정과목 코드
"""

from enum import Enum

from core.types import AcquisitionType, DispositionType


class EntryType(str, Enum):
    """분개 유형

    str을 상속하여 JSON 직렬화 가능.
    """

    ACQUISITION = "acquisition"
    DEPRECIATION = "depreciation"
    DISPOSITION = "disposition"
    DISPOSITION_REVERSAL = "disposition_reversal"


class LineType(str, Enum):
    """분개 라인 방향 (차변/대변)"""

    DEBIT = "debit"  # 차변 (자산 증가, 비용 증가)
    CREDIT = "credit"  # 대변 (자산 감소, 수익 증가)


class AccountType(str, Enum):
    """계정 유형"""

    ASSET = "ASSET"
    CONTRA_ASSET = "CONTRA_ASSET"  # 감가상각누계액
    EQUITY = "EQUITY"
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


class AccountCodes:
    """계정과목 코드 (젖소 자산 관련)"""

    CASH = "1000"
    DAIRY_COWS = "1500"
    ACCUMULATED_DEPRECIATION = "1500.1"
    EQUITY_RAISED_COWS = "3000"
    DEPRECIATION_EXPENSE = "6100"
    GAIN_ON_SALE = "8000"
    LOSS_ON_SALE_OF_ASSETS = "9000"
    LOSS_ON_DEAD_COWS = "9001"
    LOSS_ON_SALE = "9002"
    LOSS_ON_CULLED_COWS = "9003"


# 계정 목록 (스키마 초기화에서 사용)
INITIAL_ACCOUNTS: list[tuple[str, str, str]] = [
    # (account_code, account_type, account_name)
    (AccountCodes.CASH, AccountType.ASSET.value, "Cash"),
    (AccountCodes.DAIRY_COWS, AccountType.ASSET.value, "Dairy Cows"),
    (AccountCodes.ACCUMULATED_DEPRECIATION, AccountType.CONTRA_ASSET.value,
     "Accumulated Depreciation - Dairy Cows"),
    (AccountCodes.EQUITY_RAISED_COWS, AccountType.EQUITY.value, "Investment in Raised Cows"),
    (AccountCodes.DEPRECIATION_EXPENSE, AccountType.EXPENSE.value, "Depreciation Expense"),
    (AccountCodes.GAIN_ON_SALE, AccountType.INCOME.value, "Gain on Sale of Cows"),
    (AccountCodes.LOSS_ON_SALE_OF_ASSETS, AccountType.EXPENSE.value, "Loss on Sale of Assets"),
    (AccountCodes.LOSS_ON_DEAD_COWS, AccountType.EXPENSE.value, "Loss on Dead Cows"),
    (AccountCodes.LOSS_ON_SALE, AccountType.EXPENSE.value, "Loss on Sale of Cows"),
    (AccountCodes.LOSS_ON_CULLED_COWS, AccountType.EXPENSE.value, "Loss on Culled Cows"),
]

ACCOUNT_NAMES: dict[str, str] = {code: name for code, _, name in INITIAL_ACCOUNTS}

# 취득 유형별 대변 계정
ACQUISITION_CREDIT_ACCOUNTS: dict[AcquisitionType, str] = {
    AcquisitionType.PURCHASED: AccountCodes.CASH,
    AcquisitionType.RAISED: AccountCodes.EQUITY_RAISED_COWS,
}

# 처분 유형별 (이익 계정, 손실 계정)
DISPOSITION_ACCOUNTS: dict[DispositionType, tuple[str, str]] = {
    DispositionType.SALE: (AccountCodes.GAIN_ON_SALE, AccountCodes.LOSS_ON_SALE),
    DispositionType.DEATH: (AccountCodes.GAIN_ON_SALE, AccountCodes.LOSS_ON_DEAD_COWS),
    DispositionType.CULLED: (AccountCodes.GAIN_ON_SALE, AccountCodes.LOSS_ON_CULLED_COWS),
}

# 취소 분개 유형 매핑 (취소 가능한 분개만)
REVERSAL_TYPES: dict[EntryType, EntryType] = {
    EntryType.DISPOSITION: EntryType.DISPOSITION_REVERSAL,
}

REVERSAL_PREFIX = "REVERSAL: "


def account_name(account_code: str) -> str:
    """계정 코드 → 계정명 (미등록 코드는 'Unknown Account')"""
    return ACCOUNT_NAMES.get(account_code, "Unknown Account")
