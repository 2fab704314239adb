"""
Unit tests for the work-status state machine and its date stamping.
"""
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from tracker.core.exceptions import InvalidStatusTransition
from tracker.models.department import Department
from tracker.models.department_history import WorkStatus
from tracker.services.work_status import WorkStatusMachine, apply_status

D = Department
S = WorkStatus


@pytest.fixture
def machine() -> WorkStatusMachine:
    return WorkStatusMachine()


class TestTransitions:
    """Test which status changes are legal."""

    @pytest.mark.parametrize(
        "department,current,target",
        [
            (D.PMO, S.NOT_STARTED, S.IN_PROGRESS),
            (D.PMO, S.NOT_STARTED, S.ON_HOLD),
            (D.PMO, S.IN_PROGRESS, S.COMPLETED),
            (D.PMO, S.IN_PROGRESS, S.ON_HOLD),
            (D.PMO, S.ON_HOLD, S.IN_PROGRESS),
            (D.DESIGN, S.IN_PROGRESS, S.PENDING_CLIENT_APPROVAL),
            (D.DESIGN, S.PENDING_CLIENT_APPROVAL, S.COMPLETED),
            (D.DESIGN, S.PENDING_CLIENT_APPROVAL, S.CLIENT_REJECTED),
            (D.DESIGN, S.CLIENT_REJECTED, S.IN_PROGRESS),
            (D.HTML, S.IN_PROGRESS, S.QA_TESTING),
            (D.REACT, S.QA_TESTING, S.COMPLETED),
            (D.REACT, S.QA_TESTING, S.QA_REJECTED),
            (D.REACT, S.QA_TESTING, S.READY_FOR_DELIVERY),
            (D.REACT, S.QA_REJECTED, S.BUGFIX_IN_PROGRESS),
            (D.REACT, S.BUGFIX_IN_PROGRESS, S.QA_TESTING),
            (D.QA, S.COMPLETED, S.BEFORE_LIVE_QA),
            (D.QA, S.BEFORE_LIVE_QA, S.READY_FOR_DELIVERY),
            (D.QA, S.BEFORE_LIVE_QA, S.QA_REJECTED),
            (D.HTML, S.CORRECTIONS_NEEDED, S.IN_PROGRESS),
            (D.QA, S.CORRECTIONS_NEEDED, S.BUGFIX_IN_PROGRESS),
        ],
    )
    def test_legal(self, machine, department, current, target):
        machine.check(department, current, target)
        assert machine.can_transition(department, current, target)

    @pytest.mark.parametrize("current", list(WorkStatus))
    def test_corrections_needed_from_anywhere(self, machine, current):
        if current == S.CORRECTIONS_NEEDED:
            assert not machine.can_transition(D.HTML, current, S.CORRECTIONS_NEEDED)
        else:
            machine.check(D.HTML, current, S.CORRECTIONS_NEEDED)

    @pytest.mark.parametrize(
        "department,current,target",
        [
            (D.PMO, S.NOT_STARTED, S.COMPLETED),
            (D.PMO, S.COMPLETED, S.IN_PROGRESS),
            (D.HTML, S.QA_REJECTED, S.QA_TESTING),
            (D.HTML, S.ON_HOLD, S.COMPLETED),
            (D.QA, S.READY_FOR_DELIVERY, S.COMPLETED),
        ],
    )
    def test_illegal(self, machine, department, current, target):
        with pytest.raises(InvalidStatusTransition) as exc_info:
            machine.check(department, current, target)
        error = exc_info.value
        assert error.current_status == current.value
        assert error.target_status == target.value
        assert error.code == "INVALID_STATUS_TRANSITION"

    def test_client_approval_only_for_planning_and_design(self, machine):
        machine.check(D.PMO, S.IN_PROGRESS, S.PENDING_CLIENT_APPROVAL)
        with pytest.raises(InvalidStatusTransition) as exc_info:
            machine.check(D.PHP, S.IN_PROGRESS, S.PENDING_CLIENT_APPROVAL)
        assert "planning and design" in exc_info.value.message

    def test_qa_submission_only_for_build(self, machine):
        with pytest.raises(InvalidStatusTransition):
            machine.check(D.DESIGN, S.IN_PROGRESS, S.QA_TESTING)
        machine.check(D.WORDPRESS, S.IN_PROGRESS, S.QA_TESTING)

    def test_before_live_qa_only_in_qa(self, machine):
        with pytest.raises(InvalidStatusTransition):
            machine.check(D.HTML, S.COMPLETED, S.BEFORE_LIVE_QA)

    def test_allowed_targets(self, machine):
        assert machine.allowed_targets(D.PMO, S.IN_PROGRESS) == [
            S.COMPLETED,
            S.ON_HOLD,
            S.PENDING_CLIENT_APPROVAL,
            S.CORRECTIONS_NEEDED,
        ]
        assert machine.allowed_targets(D.QA, S.READY_FOR_DELIVERY) == [S.CORRECTIONS_NEEDED]


class TestApplyStatus:
    """Test the dates stamped by status changes."""

    def _entry(self, **overrides):
        values = dict(
            work_status=S.NOT_STARTED,
            work_start_date=None,
            work_end_date=None,
            actual_days=None,
            created_at=datetime(2026, 3, 1, 9, 0),
        )
        values.update(overrides)
        return SimpleNamespace(**values)

    def test_first_start_stamped_once(self):
        entry = self._entry()
        first = datetime(2026, 3, 2, 9, 0)
        apply_status(entry, S.IN_PROGRESS, now=first)
        assert entry.work_start_date == first

        apply_status(entry, S.ON_HOLD, now=first + timedelta(days=1))
        apply_status(entry, S.IN_PROGRESS, now=first + timedelta(days=2))
        assert entry.work_start_date == first

    def test_completion_counts_partial_days_up(self):
        start = datetime(2026, 3, 2, 9, 0)
        entry = self._entry(work_status=S.IN_PROGRESS, work_start_date=start)
        apply_status(entry, S.COMPLETED, now=start + timedelta(days=2, hours=1))
        assert entry.work_end_date == start + timedelta(days=2, hours=1)
        assert entry.actual_days == 3

    def test_completion_without_start_uses_creation(self):
        entry = self._entry(work_status=S.PENDING_CLIENT_APPROVAL)
        apply_status(entry, S.COMPLETED, now=datetime(2026, 3, 5, 9, 0))
        assert entry.actual_days == 4

    def test_completion_keeps_existing_dates(self):
        end = datetime(2026, 3, 3, 9, 0)
        entry = self._entry(work_status=S.QA_TESTING, work_end_date=end, actual_days=1)
        apply_status(entry, S.COMPLETED, now=datetime(2026, 4, 1))
        assert entry.work_end_date == end
        assert entry.actual_days == 1
