#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Book, Pay, Cancel and Withdraw a Lesson

Walks through the lesson escrow engine one step at a time. Press Enter to
advance.

WHAT YOU'LL LEARN:
  1-3:  Setup         - The engine, the gateway, registering a teacher
  4-6:  Lifecycle     - Scheduling, paying into escrow, completing
  7-8:  Cancellation  - Early refund vs. late cancel
  9-10: Settlement    - Withdrawal, rejections and the escrow check

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from lesson_escrow import (
    LessonEngine, WalletGateway,
    ESCROW_WALLET, REFUND_CUTOFF_SECONDS,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    teacher: str = "teacher"
    student: str = "student"
    student_funds: int = 20000

    start_time: int = 100000
    duration: int = 3600
    price: int = 5000

    early_cancel_time: int = 10000      # 90000s before start -> refund
    late_cancel_time: int = 150000      # 50000s before a lesson at 200000 -> no refund


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_wallets(engine: LessonEngine):
    for wallet in (CONFIG.student, ESCROW_WALLET, CONFIG.teacher):
        print(f"  {wallet:<10} {engine.gateway.balance_of(wallet):>8}")
    print(f"  owed to {CONFIG.teacher}: {engine.get_teacher_balance(CONFIG.teacher)}")


# ============================================================================
# PHASE 1: SETUP
# ============================================================================

def step_01_engine() -> LessonEngine:
    step_header(1, "The Engine and the Gateway",
        "See that the engine owns records and balances but never holds funds.")

    print(">>> gateway = WalletGateway()")
    print(">>> engine = LessonEngine('school', gateway=gateway)")
    engine = LessonEngine("school", gateway=WalletGateway(verbose=True), verbose=True)

    section_header("Funding the Student")
    engine.gateway.deposit(CONFIG.student, CONFIG.student_funds)
    show_wallets(engine)
    return engine


def step_02_register(engine: LessonEngine):
    step_header(2, "Registering a Teacher",
        "A teacher needs a balance account before scheduling lessons.")
    engine.register_as_teacher(CONFIG.teacher)
    print(f"\nis_teacher({CONFIG.teacher!r}) = {engine.is_teacher(CONFIG.teacher)}")


def step_03_sessions(engine: LessonEngine):
    step_header(3, "Sessions",
        "Bind an authenticated identity once; failures come back as results.")
    outsider = engine.session("outsider")
    result = outsider.withdraw_balance()
    print(f"\noutsider.withdraw_balance() -> ok={result.ok}, error_code={result.error_code}")


# ============================================================================
# PHASE 2: LIFECYCLE
# ============================================================================

def step_04_schedule(engine: LessonEngine) -> int:
    step_header(4, "Scheduling a Lesson",
        "Lesson ids are assigned from 1 upward and never reused.")
    teacher = engine.session(CONFIG.teacher)
    lesson_id = teacher.schedule_lesson(
        CONFIG.student, CONFIG.start_time, CONFIG.duration, CONFIG.price
    ).value
    section_header("Record")
    print(engine.get_lesson(lesson_id).to_dict())
    return lesson_id


def step_05_pay(engine: LessonEngine, lesson_id: int):
    step_header(5, "Paying into Escrow",
        "Payment moves funds student -> escrow and credits the teacher's balance.")
    engine.session(CONFIG.student).pay_for_lesson(lesson_id)
    show_wallets(engine)


def step_06_complete(engine: LessonEngine, lesson_id: int):
    step_header(6, "Completing a Lesson",
        "Only the teacher may complete; payment stays in escrow until withdrawn.")
    result = engine.session(CONFIG.student).complete_lesson(lesson_id)
    print(f"\nstudent.complete_lesson() -> {result.error_code}")
    engine.session(CONFIG.teacher).complete_lesson(lesson_id)
    print(engine.get_lesson(lesson_id).to_dict())


# ============================================================================
# PHASE 3: CANCELLATION
# ============================================================================

def step_07_early_cancel(engine: LessonEngine):
    step_header(7, "Early Cancellation",
        f"More than {REFUND_CUTOFF_SECONDS}s of lead time refunds the student in full.")
    teacher = engine.session(CONFIG.teacher)
    student = engine.session(CONFIG.student)
    lesson_id = teacher.schedule_lesson(
        CONFIG.student, CONFIG.start_time, CONFIG.duration, CONFIG.price
    ).value
    student.pay_for_lesson(lesson_id)
    student.cancel_lesson(lesson_id, CONFIG.early_cancel_time)
    print(engine.get_lesson(lesson_id).to_dict())
    show_wallets(engine)


def step_08_late_cancel(engine: LessonEngine):
    step_header(8, "Late Cancellation",
        "Inside the cutoff the lesson is cancelled but stays paid.")
    teacher = engine.session(CONFIG.teacher)
    student = engine.session(CONFIG.student)
    lesson_id = teacher.schedule_lesson(
        CONFIG.student, CONFIG.start_time * 2, CONFIG.duration, CONFIG.price
    ).value
    student.pay_for_lesson(lesson_id)
    student.cancel_lesson(lesson_id, CONFIG.late_cancel_time)
    print(engine.get_lesson(lesson_id).to_dict())
    show_wallets(engine)


# ============================================================================
# PHASE 4: SETTLEMENT
# ============================================================================

def step_09_withdraw(engine: LessonEngine):
    step_header(9, "Withdrawal",
        "The teacher withdraws the full balance; a second attempt has nothing to take.")
    teacher = engine.session(CONFIG.teacher)
    print(f"\nfirst:  {teacher.withdraw_balance()}")
    print(f"second: {teacher.withdraw_balance()}")
    show_wallets(engine)


def step_10_escrow_check(engine: LessonEngine):
    step_header(10, "The Escrow Check",
        "Escrow always holds exactly what teachers are owed.")
    print(engine.verify_escrow())
    section_header("Event Log")
    for event in engine.event_log:
        print(f"  {event!r}")


def main():
    print("=" * 70)
    print("       LESSON ESCROW - INTERACTIVE TUTORIAL")
    print("=" * 70)
    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    wait_for_enter()

    engine = step_01_engine()
    wait_for_enter()
    step_02_register(engine)
    wait_for_enter()
    step_03_sessions(engine)
    wait_for_enter()

    lesson_id = step_04_schedule(engine)
    wait_for_enter()
    step_05_pay(engine, lesson_id)
    wait_for_enter()
    step_06_complete(engine, lesson_id)
    wait_for_enter()

    step_07_early_cancel(engine)
    wait_for_enter()
    step_08_late_cancel(engine)
    wait_for_enter()

    step_09_withdraw(engine)
    wait_for_enter()
    step_10_escrow_check(engine)


if __name__ == "__main__":
    main()
