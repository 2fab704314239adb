"""
Project code derivation.

A project's code is the concatenation of the department letters of every
COMPLETED visit, oldest first. It is a pure projection of the history and is
cached on the project row only for display.
"""
from typing import Any, Dict, Iterable

from tracker.models.department import DEPARTMENT_CATALOG, Department, department_info
from tracker.models.department_history import WorkStatus


def department_code(department: Department) -> str:
    return department_info(department).code


def all_department_codes() -> Dict[Department, str]:
    return {department: info.code for department, info in DEPARTMENT_CATALOG.items()}


def generate_project_code(history: Iterable[Any]) -> str:
    """
    Build the code from history entries.

    Entries only need ``to_department``, ``work_status`` and ``created_at``.
    sorted() is stable, so entries sharing a timestamp keep their given order.
    """
    ordered = sorted(history, key=lambda entry: entry.created_at)
    return "".join(
        department_code(entry.to_department)
        for entry in ordered
        if entry.work_status == WorkStatus.COMPLETED
    )
