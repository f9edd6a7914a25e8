"""
Learning statistics and the completion/quiz policies.

Everything here is pure: inputs are never mutated and nothing talks to
Firestore. `app.py` persists whatever `apply_completion` decides.
"""

import dataclasses
import datetime
import math

from firebase_admin import firestore

from .models import LessonProgress, utc_now_iso

QUIZ_PASS_PERCENT = 70
SMALL_QUIZ_SIZE = 3
HOURS_PER_LESSON = 1.5
CLASS_GRACE = datetime.timedelta(hours=2)


class IncompleteQuizError(ValueError):
    """Raised when a quiz is submitted without an answer for every question."""


def _round_half_up(value):
    return int(math.floor(value + 0.5))


def completion_count(account):
    if account is None:
        return 0
    return len(account.completed_lesson_ids)


def progress_percentage(account, lessons):
    if not lessons:
        return 0
    return _round_half_up(completion_count(account) * 100 / len(lessons))


def hours_spent(account):
    return _round_half_up(completion_count(account) * HOURS_PER_LESSON)


def completion_days(progress):
    days = set()
    for record in (progress or {}).values():
        if record.completed_at:
            try:
                days.add(datetime.date.fromisoformat(record.completed_at.split('T')[0]))
            except ValueError:
                continue
    return days


def day_streak(progress, today=None):
    """Consecutive completion days ending today or yesterday (UTC)."""
    days = sorted(completion_days(progress))
    if not days:
        return 0
    today = today or datetime.datetime.now(datetime.timezone.utc).date()
    last_active = days[-1]
    if last_active not in (today, today - datetime.timedelta(days=1)):
        return 0
    streak = 1
    current = last_active
    for day in reversed(days[:-1]):
        if (current - day).days != 1:
            break
        streak += 1
        current = day
    return streak


def quizzes_passed(progress):
    return sum(
        1 for record in (progress or {}).values()
        if record.score is not None and record.score >= QUIZ_PASS_PERCENT
    )


def completed_lessons(account, lessons):
    if account is None:
        return []
    return [lesson for lesson in lessons if account.has_completed(lesson.id)]


def learning_stats(account, lessons, today=None):
    progress = account.progress if account else {}
    return {
        'completed': completion_count(account),
        'total': len(lessons),
        'percentage': progress_percentage(account, lessons),
        'hours': hours_spent(account),
        'streak': day_streak(progress, today=today),
        'quizzes_passed': quizzes_passed(progress),
    }


# --- Completion policy ---

def needs_progress_write(account, lesson_id, score):
    if not account.has_completed(lesson_id):
        return True
    previous = account.progress.get(lesson_id)
    if previous is None:
        return False
    return previous.score is None or score > previous.score


def apply_completion(account, lesson_id, score, now=None):
    """Return (updated_account, firestore_update) or (account, None) when nothing changes.

    The update uses an array union for the completed set and a nested field
    path for the progress record, so a repeated write never duplicates ids.
    """
    if not needs_progress_write(account, lesson_id, score):
        return account, None

    record = LessonProgress(completed_at=utc_now_iso(now), score=score)
    completed = list(account.completed_lesson_ids)
    if lesson_id not in completed:
        completed.append(lesson_id)
    progress = dict(account.progress)
    progress[lesson_id] = record
    updated = dataclasses.replace(account, completed_lesson_ids=completed, progress=progress)

    update = {
        'completedLessonIds': firestore.ArrayUnion([lesson_id]),
        f'progress.{lesson_id}': record.to_dict(),
    }
    return updated, update


# --- Quizzes ---

def score_quiz(questions, answers):
    """Count correct answers; `answers` maps question id to the chosen option index."""
    if not questions:
        raise IncompleteQuizError("This lesson has no quiz.")
    missing = [q.id for q in questions if q.id not in answers]
    if missing:
        raise IncompleteQuizError(f"Answer every question before submitting ({len(missing)} left).")
    return sum(1 for q in questions if answers[q.id] == q.correct_answer)


def quiz_passed(correct, total):
    if total <= 0:
        return False
    if correct * 100 >= QUIZ_PASS_PERCENT * total:
        return True
    return total < SMALL_QUIZ_SIZE and correct == total


def quiz_score(correct, total):
    if total <= 0:
        return 0
    return _round_half_up(correct * 100 / total)


# --- Schedule ---

def upcoming_classes(classes, now=None):
    """Classes starting in the future or within the last two hours, soonest first."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    visible = [c for c in classes if c.starts_at and c.starts_at >= now - CLASS_GRACE]
    return sorted(visible, key=lambda c: c.starts_at)
