"""Which screen a visitor may see, derived from identity, account and backend health."""

import enum


class Screen(enum.Enum):
    LOADING = 'loading'
    LOGIN = 'login'
    WAITING_ROOM = 'waiting_room'
    REJECTED = 'rejected'
    SETUP_REQUIRED = 'setup_required'
    APP = 'app'


ADMIN_VIEWS = frozenset({'admin_dashboard', 'lesson_editor'})


def resolve_screen(auth_resolved, account, config_error=False):
    if not auth_resolved:
        return Screen.LOADING
    if account is None:
        return Screen.LOGIN
    if not account.is_admin:
        if account.status == 'pending':
            return Screen.WAITING_ROOM
        if account.status == 'rejected':
            return Screen.REJECTED
    if config_error:
        return Screen.SETUP_REQUIRED
    return Screen.APP


def can_view(account, view):
    if view in ADMIN_VIEWS:
        return account is not None and account.is_admin
    return True


def parse_admin_emails(raw):
    return frozenset(e.strip().lower() for e in (raw or '').split(',') if e.strip())


def is_privileged(email, admin_emails):
    return bool(email) and email.strip().lower() in admin_emails


def promotion_update(account, admin_emails):
    """Fields to write when an allow-listed account is stored below admin/active."""
    if not is_privileged(account.email, admin_emails):
        return None
    update = {}
    if account.role != 'admin':
        update['role'] = 'admin'
    if account.status != 'active':
        update['status'] = 'active'
    return update or None


def initial_role_and_status(email, admin_emails):
    """New accounts start as pending students unless allow-listed."""
    if is_privileged(email, admin_emails):
        return 'admin', 'active'
    return 'student', 'pending'
