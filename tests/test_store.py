import pytest
from google.api_core import exceptions as gcp_exceptions

from apexlabs.models import Lesson, ScheduledClass
from apexlabs.store import SetupRequiredError, Subscription, is_setup_error
from conftest import SERVER_TIME, FakeWatch, make_lesson, seed_account


def test_permission_denied_becomes_setup_error(store, fake_db):
    fake_db.fail_with = gcp_exceptions.PermissionDenied('Missing or insufficient permissions.')
    with pytest.raises(SetupRequiredError):
        store.get_account('u1')
    with pytest.raises(SetupRequiredError):
        store.list_lessons()


def test_disabled_api_message_becomes_setup_error(store, fake_db):
    fake_db.fail_with = RuntimeError('Cloud Firestore API has not been used in project demo before')
    with pytest.raises(SetupRequiredError):
        store.pending_accounts()


def test_other_errors_propagate_unchanged(store, fake_db):
    fake_db.fail_with = ConnectionError('socket closed')
    with pytest.raises(ConnectionError):
        store.get_lesson('l1')
    assert not is_setup_error(ConnectionError('socket closed'))


def test_account_round_trip(store, fake_db):
    account = store.create_account('u1', 'Ada', 'ada@example.com', 'student', 'pending', avatar='pic.svg')
    assert account.status == 'pending'
    assert fake_db.data['users']['u1']['joinedAt'] == SERVER_TIME
    assert store.get_account('u1').name == 'Ada'
    assert store.get_account('missing') is None


def test_pending_accounts_and_decision(store, fake_db):
    seed_account(fake_db, 'waiting', status='pending')
    seed_account(fake_db, 'approved')
    assert [a.id for a in store.pending_accounts()] == ['waiting']
    store.set_account_status('waiting', 'active')
    assert store.pending_accounts() == []


def test_lessons_sorted_and_seeded(store):
    store.seed_lessons([make_lesson('l2'), make_lesson('l1')])
    assert [l.id for l in store.list_lessons()] == ['l1', 'l2']
    store.save_lesson(Lesson(id='l3', title='New'))
    store.delete_lesson('l1')
    assert [l.id for l in store.list_lessons()] == ['l2', 'l3']


def test_classes_and_live_room(store, fake_db):
    class_id = store.add_class(ScheduledClass(id='', title='Office hours', date='2030-01-01T10:00:00.000Z'))
    assert [c.id for c in store.list_classes()] == [class_id]
    assert store.get_live_room().active is False
    store.set_live_room(True)
    room = store.get_live_room()
    assert room.active and room.room_id == 'main-class'
    assert room.started_at == SERVER_TIME
    store.set_live_room(False)
    assert store.get_live_room().active is False
    assert fake_db.data['rooms']['live-config']['startedAt'] == SERVER_TIME


def test_watchers_deliver_current_value(store, fake_db):
    seed_account(fake_db, 'u1')
    seen = []
    subscriptions = [
        store.watch_account('u1', lambda a: seen.append(('account', a.id))),
        store.watch_account('ghost', lambda a: seen.append(('ghost', a))),
        store.watch_lessons(lambda ls: seen.append(('lessons', len(ls)))),
        store.watch_live_room(lambda r: seen.append(('live', r.active))),
    ]
    assert seen == [('account', 'u1'), ('ghost', None), ('lessons', 0), ('live', False)]
    for subscription in subscriptions:
        subscription.cancel()
    assert all(w.unsubscribed == 1 for w in fake_db.watches)


def test_subscription_cancel_is_idempotent():
    watch = FakeWatch()
    subscription = Subscription(watch)
    subscription.cancel()
    subscription.cancel()
    assert subscription.cancelled
    assert watch.unsubscribed == 1
