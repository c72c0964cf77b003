"""Relative date tools (toolset ``calendar``).

Offsets count backwards: ``0`` is now, ``1`` the previous year / month /
day, ``-1`` the next one.
"""

from __future__ import annotations

from datetime import date, timedelta

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from .base import ToolContext

TOOLSET = "calendar"
MONTHS_PER_YEAR = 12


def relative_year(years_back: int, today: date | None = None) -> str:
    today = today or date.today()
    return str(today.year - years_back)


def relative_month(months_back: int, today: date | None = None) -> str:
    """``YYYY-MM`` of the month ``months_back`` months before ``today``."""
    today = today or date.today()
    index = today.year * MONTHS_PER_YEAR + (today.month - 1) - months_back
    year, month = divmod(index, MONTHS_PER_YEAR)
    return f"{year:04d}-{month + 1:02d}"


def relative_day(days_back: int, today: date | None = None) -> str:
    today = today or date.today()
    return (today - timedelta(days=days_back)).isoformat()


class YearArgs(BaseModel):
    years_from_current: int = Field(
        description="0 = current year, 1 = last year, 2 = two years ago, -1 = next year"
    )


class MonthArgs(BaseModel):
    months_from_current: int = Field(
        description="0 = current month, 1 = last month, -1 = next month"
    )


class DayArgs(BaseModel):
    days_from_current: int = Field(
        description="0 = today, 1 = yesterday, 2 = two days ago, -1 = tomorrow"
    )


def build_calendar_tools(ctx: ToolContext) -> list[BaseTool]:
    def get_year(years_from_current: int) -> str:
        return relative_year(years_from_current)

    def get_month(months_from_current: int) -> str:
        return relative_month(months_from_current)

    def get_day(days_from_current: int) -> str:
        return relative_day(days_from_current)

    return [
        StructuredTool.from_function(
            func=get_year,
            name="get_year",
            description="Get a year relative to the current year.",
            args_schema=YearArgs,
        ),
        StructuredTool.from_function(
            func=get_month,
            name="get_month",
            description="Get a month relative to the current month, as YYYY-MM.",
            args_schema=MonthArgs,
        ),
        StructuredTool.from_function(
            func=get_day,
            name="get_day",
            description="Get a date relative to today, as YYYY-MM-DD.",
            args_schema=DayArgs,
        ),
    ]
