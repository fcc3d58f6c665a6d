"""
분개 생성기

자산 생애주기 이벤트를 복식부기 분개로 변환.
- 취득 (Acquisition)
- 월 감가상각 (Depreciation)
- 처분 (Disposition)
- 처분 취소 (Reversal)

모든 build_* 메서드는 validate_balance()를 통과한 분개만 반환함.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import uuid4

from core.constants import Tolerances
from core.depreciation.calculator import DepreciationCalculator, round_currency
from core.domain.models import Asset
from core.errors import ValidationError
from core.ledger.balance import is_balanced, sum_lines, validate_balance
from core.ledger.types import (
    ACQUISITION_CREDIT_ACCOUNTS,
    DISPOSITION_ACCOUNTS,
    REVERSAL_PREFIX,
    REVERSAL_TYPES,
    AccountCodes,
    EntryType,
    LineType,
    account_name,
)
from core.types import AcquisitionType, DispositionType
from core.utils.periods import Period

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JournalLine:
    """분개 라인

    차변/대변 중 정확히 하나만 0이 아님.
    소유 분개(entry_id)에 종속.
    """

    line_id: str
    entry_id: str
    account_code: str
    account_name: str
    description: str
    debit_amount: Decimal
    credit_amount: Decimal
    line_type: LineType
    asset_id: str | None = None
    line_order: int = 0
    reverses_line_id: str | None = None

    @property
    def amount(self) -> Decimal:
        """0이 아닌 쪽 금액"""
        return self.debit_amount if self.line_type == LineType.DEBIT else self.credit_amount


@dataclass(frozen=True)
class JournalEntry:
    """분개

    하나의 이벤트에 대한 복식부기 기록.
    게시 후에는 수정하지 않음 (정정은 취소 분개로).
    """

    entry_id: str
    company_id: str
    entry_date: date
    month: int
    year: int
    entry_type: EntryType
    description: str
    total_amount: Decimal
    lines: tuple[JournalLine, ...] = field(default_factory=tuple)
    reverses_entry_id: str | None = None

    @property
    def period(self) -> Period:
        """회계 기간"""
        return Period(self.year, self.month)

    @property
    def total_debit(self) -> Decimal:
        """차변 합계"""
        return sum_lines(self.lines)[0]

    @property
    def total_credit(self) -> Decimal:
        """대변 합계"""
        return sum_lines(self.lines)[1]

    @property
    def asset_ids(self) -> set[str]:
        """라인이 참조하는 자산 ID"""
        return {line.asset_id for line in self.lines if line.asset_id}

    def is_balanced(self) -> bool:
        """차변 합계 ≈ 대변 합계 (0.01 이내)"""
        return is_balanced(self.lines)


@dataclass(frozen=True)
class DispositionData:
    """처분 분개 입력

    book_value = purchase_price - accumulated_depreciation
    gain_loss = sale_amount - book_value
    """

    company_id: str
    asset_id: str
    tag: str
    disposition_type: DispositionType
    disposition_date: date
    purchase_price: Decimal
    accumulated_depreciation: Decimal
    sale_amount: Decimal = Decimal("0")

    @property
    def book_value(self) -> Decimal:
        """처분 시점 장부가"""
        return self.purchase_price - self.accumulated_depreciation

    @property
    def gain_loss(self) -> Decimal:
        """처분 손익 (양수: 이익, 음수: 손실)"""
        return self.sale_amount - self.book_value


class _LineWriter:
    """분개 라인 누적기 (line_order 자동 증가)"""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        self.lines: list[JournalLine] = []

    def debit(
        self,
        account_code: str,
        amount: Decimal,
        description: str,
        asset_id: str | None = None,
    ) -> None:
        self._add(account_code, amount, description, LineType.DEBIT, asset_id)

    def credit(
        self,
        account_code: str,
        amount: Decimal,
        description: str,
        asset_id: str | None = None,
    ) -> None:
        self._add(account_code, amount, description, LineType.CREDIT, asset_id)

    def _add(
        self,
        account_code: str,
        amount: Decimal,
        description: str,
        line_type: LineType,
        asset_id: str | None,
    ) -> None:
        amount = round_currency(amount)
        if amount <= 0:
            raise ValidationError(
                f"Line amount must be positive: {account_code} {amount}", field="amount"
            )
        is_debit = line_type == LineType.DEBIT
        self.lines.append(JournalLine(
            line_id=str(uuid4()),
            entry_id=self.entry_id,
            account_code=account_code,
            account_name=account_name(account_code),
            description=description,
            debit_amount=amount if is_debit else Decimal("0"),
            credit_amount=Decimal("0") if is_debit else amount,
            line_type=line_type,
            asset_id=asset_id,
            line_order=len(self.lines),
        ))


class JournalEntryBuilder:
    """생애주기 이벤트 → 분개

    생성과 균형 검증이 한 메서드 안에서 이루어지므로
    검증되지 않은 분개는 밖으로 나가지 않음.

    Args:
        calculator: 처분 시점 장부가 계산용 감가상각 계산기

    사용 예시:
    ```python
    builder = JournalEntryBuilder(DepreciationCalculator())
    entry = builder.build_acquisition(asset, entry_date=asset.freshen_date)
    ```
    """

    def __init__(self, calculator: DepreciationCalculator | None = None):
        self.calculator = calculator or DepreciationCalculator()

    # -------------------------------------------------------------------------
    # 취득
    # -------------------------------------------------------------------------

    def build_acquisition(self, asset: Asset, entry_date: date) -> JournalEntry:
        """취득 분개

        구매: (차) 젖소 / (대) 현금
        육성: (차) 젖소 / (대) 육성우 투자(자본)

        Raises:
            ValidationError: 취득가 <= 0
        """
        if asset.purchase_price <= 0:
            raise ValidationError(
                f"purchase_price must be positive: {asset.purchase_price}",
                field="purchase_price",
            )

        acquisition_type = AcquisitionType(asset.acquisition_type)
        credit_account = ACQUISITION_CREDIT_ACCOUNTS[acquisition_type]
        label = acquisition_type.value.capitalize()

        entry_id = str(uuid4())
        writer = _LineWriter(entry_id)
        writer.debit(
            AccountCodes.DAIRY_COWS,
            asset.purchase_price,
            f"Cow acquisition - Cow #{asset.tag}",
            asset.asset_id,
        )
        writer.credit(
            credit_account,
            asset.purchase_price,
            f"{label} cow - Cow #{asset.tag}",
            asset.asset_id,
        )

        entry = JournalEntry(
            entry_id=entry_id,
            company_id=asset.company_id,
            entry_date=entry_date,
            month=entry_date.month,
            year=entry_date.year,
            entry_type=EntryType.ACQUISITION,
            description=f"Cow Acquisition - {label} - Cow #{asset.tag}",
            total_amount=round_currency(asset.purchase_price),
            lines=tuple(writer.lines),
        )
        return validate_balance(entry)

    # -------------------------------------------------------------------------
    # 감가상각
    # -------------------------------------------------------------------------

    def build_depreciation(
        self,
        asset: Asset,
        amount: Decimal,
        period: Period,
    ) -> JournalEntry:
        """자산 1건의 월 감가상각 분개

        (차) 감가상각비 / (대) 감가상각누계액

        Raises:
            ValidationError: amount <= 0
        """
        if amount <= 0:
            raise ValidationError(
                f"Depreciation amount must be positive: {amount}", field="amount"
            )

        entry_id = str(uuid4())
        writer = _LineWriter(entry_id)
        self._write_depreciation_pair(writer, asset, amount)

        entry = JournalEntry(
            entry_id=entry_id,
            company_id=asset.company_id,
            entry_date=period.end,
            month=period.month,
            year=period.year,
            entry_type=EntryType.DEPRECIATION,
            description=f"Monthly Depreciation - {period.label} - Cow #{asset.tag}",
            total_amount=round_currency(amount),
            lines=tuple(writer.lines),
        )
        return validate_balance(entry)

    def build_period_depreciation(
        self,
        company_id: str,
        period: Period,
        items: Sequence[tuple[Asset, Decimal]],
    ) -> JournalEntry:
        """회사 단위 월 감가상각 분개 (자산별 라인 쌍)

        Args:
            company_id: 회사 ID
            period: 회계 기간
            items: (자산, 당월 감가상각비) 목록

        Raises:
            ValidationError: 항목이 없거나 금액이 0 이하인 경우
        """
        if not items:
            raise ValidationError("No assets to depreciate", field="items")

        entry_id = str(uuid4())
        writer = _LineWriter(entry_id)
        total = Decimal("0")
        for asset, amount in items:
            if asset.company_id != company_id:
                raise ValidationError(
                    f"Asset {asset.asset_id} belongs to {asset.company_id}, not {company_id}",
                    field="company_id",
                )
            self._write_depreciation_pair(writer, asset, amount)
            total += round_currency(amount)

        entry = JournalEntry(
            entry_id=entry_id,
            company_id=company_id,
            entry_date=period.end,
            month=period.month,
            year=period.year,
            entry_type=EntryType.DEPRECIATION,
            description=f"Monthly Depreciation - {period.label}",
            total_amount=total,
            lines=tuple(writer.lines),
        )
        return validate_balance(entry)

    def _write_depreciation_pair(
        self,
        writer: _LineWriter,
        asset: Asset,
        amount: Decimal,
    ) -> None:
        description = f"Monthly depreciation - Cow #{asset.tag}"
        writer.debit(AccountCodes.DEPRECIATION_EXPENSE, amount, description, asset.asset_id)
        writer.credit(AccountCodes.ACCUMULATED_DEPRECIATION, amount, description, asset.asset_id)

    # -------------------------------------------------------------------------
    # 처분
    # -------------------------------------------------------------------------

    def disposition_data_for(
        self,
        asset: Asset,
        disposition_type: DispositionType,
        disposition_date: date,
        sale_amount: Decimal = Decimal("0"),
        accumulated_depreciation: Decimal | None = None,
    ) -> DispositionData:
        """자산으로부터 처분 입력 구성

        accumulated_depreciation이 없으면 계산기로 처분일 기준 누계액 산출.

        Raises:
            ValidationError: 누계액이 없는데 착유 개시일도 없는 경우
        """
        if accumulated_depreciation is None:
            if asset.freshen_date is None:
                raise ValidationError(
                    f"Cow #{asset.tag} has no freshen date; cannot compute book value",
                    field="freshen_date",
                )
            result = self.calculator.calculate(
                asset.purchase_price,
                asset.salvage_value,
                asset.freshen_date,
                disposition_date,
            )
            accumulated_depreciation = result.accumulated_depreciation

        return DispositionData(
            company_id=asset.company_id,
            asset_id=asset.asset_id,
            tag=asset.tag,
            disposition_type=disposition_type,
            disposition_date=disposition_date,
            purchase_price=asset.purchase_price,
            accumulated_depreciation=accumulated_depreciation,
            sale_amount=sale_amount,
        )

    def build_disposition(self, data: DispositionData) -> JournalEntry:
        """처분 분개

        - 매각이고 매각대금 > 0: (차) 현금
        - 누계액 > 0: (차) 감가상각누계액
        - 항상: (대) 젖소 (취득가 전액)
        - |손익| > 0.01: 이익이면 (대) 처분이익, 손실이면 (차) 유형별 처분손실

        Raises:
            ValidationError: 취득가 <= 0, 누계액 < 0 또는 > 취득가, 매각대금 < 0,
                매각 외 유형에 매각대금 지정
        """
        disposition_type = DispositionType(data.disposition_type)

        if data.purchase_price <= 0:
            raise ValidationError(
                f"purchase_price must be positive: {data.purchase_price}",
                field="purchase_price",
            )
        if data.accumulated_depreciation < 0:
            raise ValidationError(
                f"accumulated_depreciation cannot be negative: {data.accumulated_depreciation}",
                field="accumulated_depreciation",
            )
        if data.accumulated_depreciation > data.purchase_price:
            raise ValidationError(
                f"accumulated_depreciation ({data.accumulated_depreciation}) exceeds "
                f"purchase_price ({data.purchase_price})",
                field="accumulated_depreciation",
            )
        if data.sale_amount < 0:
            raise ValidationError(
                f"sale_amount cannot be negative: {data.sale_amount}", field="sale_amount"
            )
        if data.sale_amount > 0 and disposition_type != DispositionType.SALE:
            raise ValidationError(
                f"sale_amount only applies to sale dispositions, got {disposition_type.value}",
                field="sale_amount",
            )

        gain_account, loss_account = DISPOSITION_ACCOUNTS[disposition_type]
        label = disposition_type.value.capitalize()
        tag = data.tag

        entry_id = str(uuid4())
        writer = _LineWriter(entry_id)

        if data.sale_amount > 0:
            writer.debit(AccountCodes.CASH, data.sale_amount, f"Sale proceeds - Cow #{tag}", data.asset_id)

        if data.accumulated_depreciation > 0:
            writer.debit(
                AccountCodes.ACCUMULATED_DEPRECIATION,
                data.accumulated_depreciation,
                f"Remove accumulated depreciation - Cow #{tag}",
                data.asset_id,
            )

        writer.credit(
            AccountCodes.DAIRY_COWS,
            data.purchase_price,
            f"Remove asset - Cow #{tag}",
            data.asset_id,
        )

        gain_loss = round_currency(data.gain_loss)
        if abs(gain_loss) > Tolerances.GAIN_LOSS:
            if gain_loss > 0:
                writer.credit(gain_account, gain_loss, f"Gain on {label.lower()} - Cow #{tag}", data.asset_id)
            else:
                writer.debit(loss_account, -gain_loss, f"Loss on {label.lower()} - Cow #{tag}", data.asset_id)

        entry = JournalEntry(
            entry_id=entry_id,
            company_id=data.company_id,
            entry_date=data.disposition_date,
            month=data.disposition_date.month,
            year=data.disposition_date.year,
            entry_type=EntryType.DISPOSITION,
            description=f"Cow Disposition - {label} - Cow #{tag}",
            total_amount=round_currency(max(data.sale_amount, data.purchase_price)),
            lines=tuple(writer.lines),
        )
        return validate_balance(entry)

    # -------------------------------------------------------------------------
    # 취소
    # -------------------------------------------------------------------------

    def build_reversal(
        self,
        original: JournalEntry,
        reason: str,
        entry_date: date,
    ) -> JournalEntry:
        """취소 분개

        원 분개의 라인을 차대 반대로 복사. 합계는 원 분개와 동일.
        각 라인은 reverses_line_id로 원 라인을 가리킴.

        Raises:
            ValidationError: 취소할 수 없는 유형이거나 라인이 없는 경우
        """
        reversal_type = REVERSAL_TYPES.get(EntryType(original.entry_type))
        if reversal_type is None:
            raise ValidationError(
                f"Entry type {original.entry_type} cannot be reversed", field="entry_type"
            )
        if not original.lines:
            raise ValidationError(f"Entry {original.entry_id} has no lines", field="lines")

        entry_id = str(uuid4())
        lines = tuple(
            JournalLine(
                line_id=str(uuid4()),
                entry_id=entry_id,
                account_code=line.account_code,
                account_name=line.account_name,
                description=f"{REVERSAL_PREFIX}{line.description}",
                debit_amount=line.credit_amount,
                credit_amount=line.debit_amount,
                line_type=LineType.CREDIT if line.line_type == LineType.DEBIT else LineType.DEBIT,
                asset_id=line.asset_id,
                line_order=index,
                reverses_line_id=line.line_id,
            )
            for index, line in enumerate(original.lines)
        )

        entry = JournalEntry(
            entry_id=entry_id,
            company_id=original.company_id,
            entry_date=entry_date,
            month=entry_date.month,
            year=entry_date.year,
            entry_type=reversal_type,
            description=f"{REVERSAL_PREFIX}{original.description} - {reason}",
            total_amount=original.total_amount,
            lines=lines,
            reverses_entry_id=original.entry_id,
        )
        return validate_balance(entry)
