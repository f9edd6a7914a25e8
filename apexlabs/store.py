import base64
import json
import logging
import threading
from functools import wraps

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as gcp_exceptions

from .models import Account, Lesson, LiveRoom, ScheduledClass

logger = logging.getLogger(__name__)

LIVE_ROOM_DOC = ('rooms', 'live-config')
SETUP_HINTS = ("Cloud Firestore API", "has not been used", "SERVICE_DISABLED", "is disabled")


class SetupRequiredError(RuntimeError):
    """Firestore refused the request because the project is not set up (API off or rules)."""


def is_setup_error(error):
    if isinstance(error, SetupRequiredError):
        return True
    if isinstance(error, gcp_exceptions.PermissionDenied):
        return True
    message = str(error)
    return any(hint in message for hint in SETUP_HINTS)


def _translate_errors(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except SetupRequiredError:
            raise
        except Exception as e:
            if is_setup_error(e):
                raise SetupRequiredError(str(e)) from e
            raise
    return decorated_function


def init_firestore(creds_b64=None, creds_path='firebase-adminsdk.json'):
    """Initialise the Admin SDK and return a Firestore client, or None when it cannot start."""
    try:
        if not firebase_admin._apps:
            if creds_b64:
                cred_dict = json.loads(base64.b64decode(creds_b64).decode('utf-8'))
                cred = credentials.Certificate(cred_dict)
            else:
                cred = credentials.Certificate(creds_path)
            firebase_admin.initialize_app(cred)
        client = firestore.client()
        logger.info("Firebase Admin SDK initialized successfully.")
        return client
    except Exception as e:
        logger.critical("Could not initialize Firebase Admin SDK: %s", e)
        return None


class Subscription:
    """Handle for a live Firestore listener. `cancel()` is safe to call more than once."""

    def __init__(self, watch):
        self._watch = watch
        self._lock = threading.Lock()
        self.cancelled = False

    def cancel(self):
        with self._lock:
            if self.cancelled:
                return
            self.cancelled = True
        try:
            self._watch.unsubscribe()
        except Exception as e:
            logger.warning("Error closing Firestore listener: %s", e)


class FirestoreStore:
    def __init__(self, client):
        self.db = client

    # --- Accounts ---

    @_translate_errors
    def get_account(self, uid):
        doc = self.db.collection('users').document(uid).get()
        if not doc.exists:
            return None
        return Account.from_dict(doc.to_dict(), doc.id)

    @_translate_errors
    def create_account(self, uid, name, email, role, status, avatar=None):
        data = {
            'name': name,
            'email': email,
            'role': role,
            'status': status,
            'avatar': avatar or '',
            'completedLessonIds': [],
            'progress': {},
            'joinedAt': firestore.SERVER_TIMESTAMP,
        }
        self.db.collection('users').document(uid).set(data)
        return Account.from_dict(data, uid)

    @_translate_errors
    def update_account(self, uid, fields):
        self.db.collection('users').document(uid).update(fields)

    @_translate_errors
    def pending_accounts(self):
        query = self.db.collection('users').where('status', '==', 'pending').stream()
        return [Account.from_dict(doc.to_dict(), doc.id) for doc in query]

    def set_account_status(self, uid, status):
        self.update_account(uid, {'status': status})

    # --- Lessons ---

    @_translate_errors
    def list_lessons(self):
        lessons = [Lesson.from_dict(doc.to_dict(), doc.id) for doc in self.db.collection('lessons').stream()]
        return sorted(lessons, key=lambda l: l.id)

    @_translate_errors
    def get_lesson(self, lesson_id):
        doc = self.db.collection('lessons').document(lesson_id).get()
        if not doc.exists:
            return None
        return Lesson.from_dict(doc.to_dict(), doc.id)

    @_translate_errors
    def save_lesson(self, lesson):
        self.db.collection('lessons').document(lesson.id).set(lesson.to_dict())

    @_translate_errors
    def delete_lesson(self, lesson_id):
        self.db.collection('lessons').document(lesson_id).delete()

    @_translate_errors
    def seed_lessons(self, lessons):
        batch = self.db.batch()
        for lesson in lessons:
            batch.set(self.db.collection('lessons').document(lesson.id), lesson.to_dict())
        batch.commit()
        logger.info("Seeded %d lessons.", len(lessons))

    # --- Classes and live room ---

    @_translate_errors
    def list_classes(self):
        return [ScheduledClass.from_dict(doc.to_dict(), doc.id) for doc in self.db.collection('classes').stream()]

    @_translate_errors
    def add_class(self, scheduled):
        _, ref = self.db.collection('classes').add(scheduled.to_dict())
        return ref.id

    @_translate_errors
    def get_live_room(self):
        doc = self.db.collection(LIVE_ROOM_DOC[0]).document(LIVE_ROOM_DOC[1]).get()
        return LiveRoom.from_dict(doc.to_dict() if doc.exists else None)

    @_translate_errors
    def set_live_room(self, active, room_id='main-class'):
        data = {'active': active, 'roomId': room_id}
        if active:
            data['startedAt'] = firestore.SERVER_TIMESTAMP
        self.db.collection(LIVE_ROOM_DOC[0]).document(LIVE_ROOM_DOC[1]).set(data, merge=True)

    # --- Live subscriptions ---
    # Each callback receives the full replacement value for its slice.

    def watch_account(self, uid, callback):
        def on_snapshot(docs, changes, read_time):
            doc = docs[0] if docs else None
            callback(Account.from_dict(doc.to_dict(), doc.id) if doc is not None and doc.exists else None)
        return Subscription(self.db.collection('users').document(uid).on_snapshot(on_snapshot))

    def watch_lessons(self, callback):
        def on_snapshot(docs, changes, read_time):
            callback(sorted((Lesson.from_dict(d.to_dict(), d.id) for d in docs), key=lambda l: l.id))
        return Subscription(self.db.collection('lessons').on_snapshot(on_snapshot))

    def watch_classes(self, callback):
        def on_snapshot(docs, changes, read_time):
            callback([ScheduledClass.from_dict(d.to_dict(), d.id) for d in docs])
        return Subscription(self.db.collection('classes').on_snapshot(on_snapshot))

    def watch_live_room(self, callback):
        def on_snapshot(docs, changes, read_time):
            doc = docs[0] if docs else None
            callback(LiveRoom.from_dict(doc.to_dict() if doc is not None and doc.exists else None))
        ref = self.db.collection(LIVE_ROOM_DOC[0]).document(LIVE_ROOM_DOC[1])
        return Subscription(ref.on_snapshot(on_snapshot))
