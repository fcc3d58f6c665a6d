"""
마스터 파일(로스터) 파서

구분자 자동 판별 텍스트 파일에서 (태그, 생년월일) 목록을 추출.
- 헤더는 소문자로 비교, 따옴표 제거
- 태그 컬럼: 'id' 또는 'tag'를 포함하는 첫 헤더
- 날짜 컬럼: 'birth' 또는 'bdat'를 포함하는 첫 헤더, 없으면 'date'
- 날짜: YYYY-MM-DD 그대로, M/D/YY(YY) → YYYY-MM-DD (2자리 연도는 20YY)
"""

import csv
import logging
import re
from datetime import date
from pathlib import Path

import pandas as pd
from pydantic import BaseModel, Field, field_validator

from core.domain.models import RosterEntry
from core.errors import ReconciliationError

logger = logging.getLogger(__name__)

ID_MARKERS = ("id", "tag")
BIRTH_MARKERS = ("birth", "bdat")
DATE_FALLBACK_MARKER = "date"

_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_QUOTES = "\"'"


class RosterRow(BaseModel):
    """로스터 한 행 (검증 후 RosterEntry로 변환)"""

    tag: str = Field(..., min_length=1, description="개체 태그")
    birth_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="생년월일 (YYYY-MM-DD)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"tag": "1042", "birth_date": "2020-01-01"},
            ]
        }
    }

    @field_validator("tag", mode="before")
    @classmethod
    def _clean_tag(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().strip(_QUOTES).strip()
        return value

    def to_entry(self) -> RosterEntry:
        return RosterEntry(tag=self.tag, birth_date=self.birth_date)


def normalize_date(value: str) -> str | None:
    """로스터 날짜 → YYYY-MM-DD

    Returns:
        정규화된 날짜, 인식할 수 없으면 None

    Example:
        >>> normalize_date("1/5/20")
        '2020-01-05'
        >>> normalize_date("2019-11-30")
        '2019-11-30'
    """
    text = value.strip().strip(_QUOTES).strip()

    iso = _ISO_DATE.match(text)
    us = _US_DATE.match(text)
    if iso:
        year, month, day = (int(part) for part in iso.groups())
    elif us:
        month, day, year = (int(part) for part in us.groups())
        if len(us.group(3)) == 2:
            year += 2000
    else:
        return None

    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def find_columns(headers: list[str]) -> tuple[str, str]:
    """태그/날짜 컬럼명 탐색

    Raises:
        ReconciliationError: 필요한 컬럼이 없는 경우
    """
    id_column = next((h for h in headers if any(m in h for m in ID_MARKERS)), None)
    date_column = next((h for h in headers if any(m in h for m in BIRTH_MARKERS)), None)
    if date_column is None:
        date_column = next((h for h in headers if DATE_FALLBACK_MARKER in h), None)

    missing = [
        name for name, column in (("id/tag", id_column), ("birth date", date_column))
        if column is None
    ]
    if missing:
        raise ReconciliationError(
            f"Roster is missing required column(s): {', '.join(missing)} (headers: {headers})"
        )
    return id_column, date_column


def parse_roster_frame(frame: pd.DataFrame) -> list[RosterEntry]:
    """DataFrame → RosterEntry 목록

    태그나 날짜가 비어 있는 행은 제외, 날짜를 해석할 수 없는 행은 경고 후 제외.
    """
    frame = frame.rename(columns=lambda c: str(c).strip().strip(_QUOTES).strip().lower())
    id_column, date_column = find_columns(list(frame.columns))

    entries: list[RosterEntry] = []
    skipped = 0
    for raw_tag, raw_date in zip(frame[id_column].fillna(""), frame[date_column].fillna("")):
        tag = str(raw_tag).strip().strip(_QUOTES).strip()
        raw_date = str(raw_date).strip()
        if not tag or not raw_date:
            skipped += 1
            continue

        birth_date = normalize_date(raw_date)
        if birth_date is None:
            logger.warning(f"로스터 날짜 해석 실패: tag={tag} date={raw_date!r}")
            skipped += 1
            continue

        entries.append(RosterRow(tag=tag, birth_date=birth_date).to_entry())

    logger.info(
        f"로스터 파싱 완료: {len(entries)} rows, {skipped} skipped",
        extra={"id_column": id_column, "date_column": date_column},
    )
    return entries


def read_roster(path: str | Path) -> list[RosterEntry]:
    """로스터 파일 읽기

    Raises:
        ReconciliationError: 파일을 읽을 수 없거나 필요한 컬럼이 없는 경우
    """
    path = Path(path)
    try:
        frame = pd.read_csv(
            path,
            sep=None,
            engine="python",
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
    except FileNotFoundError as e:
        raise ReconciliationError(f"Roster file not found: {path}") from e
    except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error, UnicodeDecodeError, OSError) as e:
        raise ReconciliationError(f"Cannot read roster {path.name}: {e}") from e

    return parse_roster_frame(frame)
