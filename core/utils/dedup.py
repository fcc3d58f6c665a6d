"""
Dedup Key 생성 유틸리티

분개/스테이징 레코드 중복 제거를 위한 키 생성 함수 제공
"""


def make_period_entry_key(
    company_id: str,
    entry_type: str,
    month: int,
    year: int,
) -> str:
    """기간 단위 분개 중복 검사 키

    Returns:
        dedup_key: {company_id}:{entry_type}:{year}-{month}

    Example:
        >>> make_period_entry_key("farm-1", "depreciation", 3, 2024)
        'farm-1:depreciation:2024-03'
    """
    return f"{company_id}:{entry_type}:{year:04d}-{month:02d}"


def make_staging_record_id(
    company_id: str,
    discrepancy_type: str,
    tag: str,
    birth_date: str | None,
) -> str:
    """정합성 스테이징 레코드 ID

    같은 마스터 파일로 재실행하면 동일한 ID가 생성되어야 함.

    Returns:
        {company_id}:{discrepancy_type}:{tag}:{birth_date or '-'}
    """
    return f"{company_id}:{discrepancy_type}:{tag}:{birth_date or '-'}"
