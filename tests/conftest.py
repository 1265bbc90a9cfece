"""
conftest.py - Shared pytest fixtures for lesson escrow tests

Provides common fixtures used across unit, functional and conformance tests:
- Gateways (empty, with a funded student)
- Engines (empty, with a registered teacher, with a scheduled/paid lesson)
- Consistency helpers
"""

import pytest
from typing import Any, Dict

from lesson_escrow import LessonEngine, WalletGateway


TEACHER = "ST1TEACHER00000000000000000000000000000000"
STUDENT = "ST1STUDENT0000000000000000000000000000000"
OTHER = "ST1OTHER000000000000000000000000000000000"

START_TIME = 100000
DURATION = 3600
PRICE = 5000
STUDENT_FUNDS = 1_000_000


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def engine_state(engine: LessonEngine) -> Dict[str, Any]:
    """Capture every piece of engine and escrow state for before/after comparisons."""
    return {
        'balances': engine.balances.snapshot(),
        'lessons': engine.registry.snapshot(),
        'teacher_index': engine.teacher_index.snapshot(),
        'student_index': engine.student_index.snapshot(),
        'events': len(engine.event_log),
        'wallets': dict(engine.gateway.balances),
    }


def assert_escrow_consistent(engine: LessonEngine) -> None:
    """Escrow holds exactly what is owed and the gateway conserves value."""
    result = engine.verify_escrow()
    assert result['valid'], f"Escrow mismatch: {result}"
    assert engine.gateway.total_supply() == 0


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def gateway():
    """Fresh in-memory gateway with no balances."""
    return WalletGateway(verbose=False)


@pytest.fixture
def engine(gateway):
    """Engine with no registrations."""
    return LessonEngine("test", gateway=gateway, verbose=False)


@pytest.fixture
def teacher_engine(engine):
    """Engine with a registered teacher and a funded student."""
    engine.register_as_teacher(TEACHER)
    engine.gateway.deposit(STUDENT, STUDENT_FUNDS)
    return engine


# =============================================================================
# LESSON FIXTURES
# =============================================================================

@pytest.fixture
def scheduled_lesson(teacher_engine):
    """(engine, lesson_id) for a scheduled, unpaid lesson."""
    lesson_id = teacher_engine.schedule_lesson(TEACHER, STUDENT, START_TIME, DURATION, PRICE)
    return teacher_engine, lesson_id


@pytest.fixture
def paid_lesson(scheduled_lesson):
    """(engine, lesson_id) for a scheduled lesson the student has paid for."""
    engine, lesson_id = scheduled_lesson
    engine.pay_for_lesson(STUDENT, lesson_id)
    return engine, lesson_id
