import copy
import itertools

import pytest
from firebase_admin import firestore

import app as app_module
from apexlabs.models import Lesson, QuizQuestion
from apexlabs.store import FirestoreStore


# --- In-memory Firestore double ---

class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


SERVER_TIME = "2024-01-01T00:00:00.000Z"


class FakeWatch:
    def __init__(self):
        self.unsubscribed = 0

    def unsubscribe(self):
        self.unsubscribed += 1


def _resolve(data):
    """Server-side sentinels are stored as a fixed marker value."""
    return {k: (SERVER_TIME if v is firestore.SERVER_TIMESTAMP else v) for k, v in data.items()}


def _apply_field(data, path, value):
    keys = path.split('.')
    target = data
    for key in keys[:-1]:
        target = target.setdefault(key, {})
    if isinstance(value, firestore.ArrayUnion):
        current = list(target.get(keys[-1]) or [])
        current.extend(v for v in value.values if v not in current)
        value = current
    target[keys[-1]] = value


class FakeDocument:
    def __init__(self, client, collection, doc_id):
        self._client = client
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self):
        return self._client.data.setdefault(self._collection, {})

    def get(self):
        self._client.check('get')
        return FakeSnapshot(self.id, self._docs.get(self.id))

    def set(self, data, merge=False):
        self._client.check('set')
        self._client.writes.append((self._collection, self.id, 'set', data))
        if merge and self.id in self._docs:
            self._docs[self.id].update(copy.deepcopy(_resolve(data)))
        else:
            self._docs[self.id] = copy.deepcopy(_resolve(data))

    def update(self, fields):
        self._client.check('update')
        self._client.writes.append((self._collection, self.id, 'update', fields))
        if self.id not in self._docs:
            raise KeyError(f"No document to update: {self._collection}/{self.id}")
        for path, value in fields.items():
            _apply_field(self._docs[self.id], path, value)

    def delete(self):
        self._client.check('delete')
        self._docs.pop(self.id, None)

    def on_snapshot(self, callback):
        watch = FakeWatch()
        self._client.watches.append(watch)
        callback([self.get()], [], None)
        return watch


class FakeQuery:
    def __init__(self, client, collection, filters=()):
        self._client = client
        self._collection = collection
        self._filters = filters

    def where(self, field, op, value):
        assert op == '=='
        return FakeQuery(self._client, self._collection, self._filters + ((field, value),))

    def stream(self):
        self._client.check('stream')
        docs = self._client.data.get(self._collection, {})
        for doc_id, data in list(docs.items()):
            if all(data.get(f) == v for f, v in self._filters):
                yield FakeSnapshot(doc_id, data)


class FakeCollection(FakeQuery):
    _ids = itertools.count(1)

    def document(self, doc_id):
        return FakeDocument(self._client, self._collection, doc_id)

    def add(self, data):
        ref = self.document(f'auto-{next(self._ids)}')
        ref.set(data)
        return None, ref

    def on_snapshot(self, callback):
        watch = FakeWatch()
        self._client.watches.append(watch)
        callback(list(self.stream()), [], None)
        return watch


class FakeBatch:
    def __init__(self):
        self._ops = []

    def set(self, ref, data):
        self._ops.append((ref, data))

    def commit(self):
        for ref, data in self._ops:
            ref.set(data)


class FakeClient:
    """Just enough of the Firestore client surface for FirestoreStore."""

    def __init__(self):
        self.data = {}
        self.writes = []
        self.watches = []
        self.fail_with = None
        self.fail_on = None

    def check(self, operation):
        if self.fail_with is not None and (self.fail_on is None or operation in self.fail_on):
            raise self.fail_with

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeBatch()


# --- Sample data ---

def make_lesson(lesson_id='l1', quiz_size=2):
    return Lesson(
        id=lesson_id,
        title=f'Lesson {lesson_id}',
        description='A lesson.',
        topics=['print function'],
        content='# Content',
        initial_code='print("hi")',
        task='Print hi',
        quiz=[
            QuizQuestion(id=f'{lesson_id}_q{i}', question=f'Question {i}?',
                         options=['a', 'b', 'c', 'd'], correct_answer=1)
            for i in range(quiz_size)
        ],
    )


def seed_account(client, uid, email='student@example.com', role='student', status='active', **extra):
    data = {'name': uid.title(), 'email': email, 'role': role, 'status': status,
            'avatar': '', 'completedLessonIds': [], 'progress': {}}
    data.update(extra)
    client.data.setdefault('users', {})[uid] = data


# --- Fixtures ---

@pytest.fixture
def fake_db():
    return FakeClient()


@pytest.fixture
def store(fake_db):
    return FirestoreStore(fake_db)


@pytest.fixture
def flask_app(monkeypatch, store):
    monkeypatch.setattr(app_module, 'store', store)
    monkeypatch.setitem(app_module.app.config, 'TESTING', True)
    monkeypatch.setitem(app_module.app.config, 'WTF_CSRF_ENABLED', False)
    monkeypatch.setitem(app_module.app.config, 'ADMIN_EMAILS', frozenset({'boss@example.com'}))
    monkeypatch.setitem(app_module.app.config, 'FIREBASE_WEB_API_KEY', 'test-web-key')
    return app_module.app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture
def login(client):
    def _login(uid):
        with client.session_transaction() as sess:
            sess['_user_id'] = uid
            sess['_fresh'] = True
        return client
    return _login


@pytest.fixture
def lessons(fake_db):
    lessons = [make_lesson('l1', quiz_size=2), make_lesson('l2', quiz_size=5)]
    fake_db.data['lessons'] = {l.id: l.to_dict() for l in lessons}
    return lessons


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Stands in for genai.GenerativeModel; replies with a canned text or raises."""

    reply = ''
    error = None
    calls = []

    def __init__(self, model_name):
        self.model_name = model_name

    def generate_content(self, prompt, generation_config=None):
        FakeModel.calls.append((prompt, generation_config))
        if FakeModel.error is not None:
            raise FakeModel.error
        return FakeResponse(FakeModel.reply)


@pytest.fixture
def gemini(monkeypatch):
    from apexlabs import grader
    monkeypatch.setenv('GEMINI_API_KEY', 'test-key')
    monkeypatch.setattr(grader.genai, 'GenerativeModel', FakeModel)
    FakeModel.reply, FakeModel.error, FakeModel.calls = '', None, []
    return FakeModel
