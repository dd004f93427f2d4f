"""Schemas for the task calendar"""
from datetime import date
from typing import List

from pydantic import BaseModel

from hrdesk.schemas.task import TaskResponse


class CalendarDay(BaseModel):
    day: date
    in_month: bool
    tasks: List[TaskResponse]


class CalendarMonth(BaseModel):
    year: int
    month: int
    weeks: List[List[CalendarDay]]
