# PURPOSE: query-string parsers shared by the list endpoints.
# Empty strings mean "no filter"; unknown values are a 400.

from typing import Optional, get_args

from fastapi import HTTPException, Query, status as http_status

from ..models import Difficulty, Priority, ProblemStatus, Status


def _literal_or_none(value: Optional[str], allowed: tuple, field: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if value in allowed:
        return value
    raise HTTPException(
        status_code=http_status.HTTP_400_BAD_REQUEST,
        detail=f"{field} must be one of: {', '.join(allowed)}",
    )


def parse_status(status: Optional[str] = Query(None)) -> Optional[Status]:
    return _literal_or_none(status, get_args(Status), "status")  # type: ignore[return-value]


def parse_priority(priority: Optional[str] = Query(None)) -> Optional[Priority]:
    return _literal_or_none(priority, get_args(Priority), "priority")  # type: ignore[return-value]


def parse_difficulty(difficulty: Optional[str] = Query(None)) -> Optional[Difficulty]:
    return _literal_or_none(difficulty, get_args(Difficulty), "difficulty")  # type: ignore[return-value]


def parse_problem_status(status: Optional[str] = Query(None)) -> Optional[ProblemStatus]:
    return _literal_or_none(status, get_args(ProblemStatus), "status")  # type: ignore[return-value]


def parse_limit(limit: Optional[str] = Query(None)) -> int:
    if limit is None or limit == "":
        return 50
    try:
        value = int(limit)
    except ValueError as err:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="limit must be an integer",
        ) from err
    if not 1 <= value <= 200:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="limit must be between 1 and 200",
        )
    return value


def parse_offset(offset: Optional[str] = Query(None)) -> int:
    if offset is None or offset == "":
        return 0
    try:
        value = int(offset)
    except ValueError as err:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="offset must be an integer",
        ) from err
    if value < 0:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="offset must be >= 0",
        )
    return value
