"""
Firestore document models.

Each model maps one stored document. `from_dict(data, doc_id)` tolerates
missing fields the way older documents are stored, and `to_dict()` produces the
camelCase payload written back to Firestore.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ROLES = ('student', 'admin')
STATUSES = ('pending', 'active', 'rejected')
DIFFICULTIES = ('Beginner', 'Intermediate', 'Advanced')

AVATAR_URL = 'https://api.dicebear.com/7.x/avataaars/svg?seed={}'


def utc_now_iso(now: Optional[datetime.datetime] = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds and a trailing Z."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return now.isoformat(timespec='milliseconds') + 'Z'


def parse_iso(value) -> Optional[datetime.datetime]:
    if not value:
        return None
    if isinstance(value, datetime.datetime):
        return value if value.tzinfo else value.replace(tzinfo=datetime.timezone.utc)
    try:
        parsed = datetime.datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=datetime.timezone.utc)


@dataclass
class LessonProgress:
    completed_at: str
    score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'completedAt': self.completed_at}
        if self.score is not None:
            data['score'] = self.score
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LessonProgress:
        return cls(completed_at=data.get('completedAt', ''), score=data.get('score'))


@dataclass
class Account:
    id: str
    name: str = 'User'
    email: str = ''
    role: str = 'student'
    status: str = 'pending'
    avatar: str = ''
    completed_lesson_ids: List[str] = field(default_factory=list)
    progress: Dict[str, LessonProgress] = field(default_factory=dict)
    joined_at: Any = None

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    def has_completed(self, lesson_id: str) -> bool:
        return lesson_id in self.completed_lesson_ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'status': self.status,
            'avatar': self.avatar,
            'completedLessonIds': list(self.completed_lesson_ids),
            'progress': {k: p.to_dict() for k, p in self.progress.items()},
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], doc_id: str) -> Account:
        data = data or {}
        completed = []
        for lesson_id in data.get('completedLessonIds') or []:
            if lesson_id not in completed:
                completed.append(lesson_id)
        progress = {
            lesson_id: LessonProgress.from_dict(record)
            for lesson_id, record in (data.get('progress') or {}).items()
            if isinstance(record, dict)
        }
        return cls(
            id=doc_id,
            name=data.get('name') or 'User',
            email=data.get('email') or '',
            role=data.get('role') if data.get('role') in ROLES else 'student',
            status=data.get('status') if data.get('status') in STATUSES else 'pending',
            avatar=data.get('avatar') or AVATAR_URL.format(doc_id),
            completed_lesson_ids=completed,
            progress=progress,
            joined_at=data.get('joinedAt'),
        )


@dataclass
class QuizQuestion:
    id: str
    question: str
    options: List[str] = field(default_factory=lambda: ['', '', '', ''])
    correct_answer: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'question': self.question,
            'options': list(self.options),
            'correctAnswer': self.correct_answer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> QuizQuestion:
        return cls(
            id=str(data.get('id', '')),
            question=data.get('question', ''),
            options=list(data.get('options') or []),
            correct_answer=int(data.get('correctAnswer', 0)),
        )


@dataclass
class Lesson:
    id: str
    title: str = ''
    description: str = ''
    difficulty: str = 'Beginner'
    topics: List[str] = field(default_factory=list)
    content: str = ''
    initial_code: str = ''
    task: str = ''
    expected_output: Optional[str] = None
    quiz: List[QuizQuestion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'difficulty': self.difficulty,
            'topics': list(self.topics),
            'content': self.content,
            'initialCode': self.initial_code,
            'task': self.task,
            'quiz': [q.to_dict() for q in self.quiz],
        }
        if self.expected_output is not None:
            data['expectedOutput'] = self.expected_output
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> Lesson:
        return cls(
            id=data.get('id') or doc_id or '',
            title=data.get('title', ''),
            description=data.get('description', ''),
            difficulty=data.get('difficulty', 'Beginner'),
            topics=list(data.get('topics') or []),
            content=data.get('content', ''),
            initial_code=data.get('initialCode', ''),
            task=data.get('task', ''),
            expected_output=data.get('expectedOutput'),
            quiz=[QuizQuestion.from_dict(q) for q in data.get('quiz') or []],
        )


@dataclass
class ScheduledClass:
    id: str
    title: str = ''
    date: str = ''
    duration_minutes: int = 60
    instructor_name: str = ''
    meeting_link: Optional[str] = None

    @property
    def starts_at(self) -> Optional[datetime.datetime]:
        return parse_iso(self.date)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'title': self.title,
            'date': self.date,
            'durationMinutes': self.duration_minutes,
            'instructorName': self.instructor_name,
        }
        if self.meeting_link:
            data['meetingLink'] = self.meeting_link
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: str) -> ScheduledClass:
        return cls(
            id=doc_id,
            title=data.get('title', ''),
            date=data.get('date', ''),
            duration_minutes=int(data.get('durationMinutes') or 60),
            instructor_name=data.get('instructorName', ''),
            meeting_link=data.get('meetingLink'),
        )


@dataclass
class LiveRoom:
    active: bool = False
    room_id: str = 'main-class'
    started_at: Any = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> LiveRoom:
        if not data:
            return cls()
        return cls(
            active=bool(data.get('active')),
            room_id=data.get('roomId') or 'main-class',
            started_at=data.get('startedAt'),
        )
