import os
import json
import time
import uuid
import queue
from urllib.parse import urlparse
from flask import Flask, request, render_template, jsonify, url_for, flash, redirect, session, abort, g, Response, stream_with_context
from flask_login import LoginManager, UserMixin, login_user, logout_user, current_user, login_required
from dotenv import load_dotenv
from flask_wtf.csrf import CSRFProtect
from functools import wraps
import requests

import google.generativeai as genai
from firebase_admin import auth

from apexlabs import grader
from apexlabs.access import Screen, resolve_screen, can_view, parse_admin_emails, promotion_update, initial_role_and_status
from apexlabs.curriculum import INITIAL_CURRICULUM
from apexlabs.models import Account, Lesson, QuizQuestion, ScheduledClass, AVATAR_URL, DIFFICULTIES, parse_iso, utc_now_iso
from apexlabs.progress import (
    IncompleteQuizError, apply_completion, completed_lessons, learning_stats,
    quiz_passed, quiz_score, score_quiz, upcoming_classes,
)
from apexlabs.store import FirestoreStore, SetupRequiredError, init_firestore

# --- Initialization ---
load_dotenv()
app = Flask(__name__)
app.config['SECRET_KEY'] = os.getenv("SECRET_KEY", "a-strong-default-secret-key-for-dev")
app.config['FIREBASE_WEB_API_KEY'] = os.getenv("FIREBASE_WEB_API_KEY")
app.config['FIREBASE_PROJECT_ID'] = os.getenv("FIREBASE_PROJECT_ID", "")
app.config['FIREBASE_AUTH_DOMAIN'] = os.getenv("FIREBASE_AUTH_DOMAIN") or (
    f"{app.config['FIREBASE_PROJECT_ID']}.firebaseapp.com" if app.config['FIREBASE_PROJECT_ID'] else None)
app.config['ADMIN_EMAILS'] = parse_admin_emails(os.getenv("ADMIN_EMAILS"))
app.config['EVENT_KEEPALIVE_SECONDS'] = 15

csrf = CSRFProtect(app)
login_manager = LoginManager(app)
login_manager.login_view = 'login'

# --- Firebase Initialization ---
db = init_firestore(os.getenv('FIREBASE_ADMIN_SDK_BASE64'))
store = FirestoreStore(db) if db else None

if os.getenv("GEMINI_API_KEY"):
    genai.configure(api_key=os.getenv("GEMINI_API_KEY"))

SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword?key={}"
FIRESTORE_SETUP_URL = "https://console.developers.google.com/apis/api/firestore.googleapis.com/overview?project={}"
ADMIN_DENIED = "Access Denied: This account does not have Instructor privileges."
SIGN_IN_ERRORS = {
    'INVALID_LOGIN_CREDENTIALS': "Invalid email or password.",
    'EMAIL_NOT_FOUND': "Invalid email or password.",
    'INVALID_PASSWORD': "Invalid email or password.",
    'INVALID_EMAIL': "Invalid email or password.",
    'USER_DISABLED': "This account has been disabled.",
    'TOO_MANY_ATTEMPTS_TRY_LATER': "Too many attempts. Please try again later.",
    'OPERATION_NOT_ALLOWED': "Login method not enabled. Please check Firebase Console.",
    'CONFIGURATION_NOT_FOUND': "Login method not enabled. Please check Firebase Console.",
}


# --- User and Auth Management ---
class User(UserMixin):
    def __init__(self, account):
        self.id = account.id
        self.uid = account.id
        self.account = account

    @property
    def is_admin(self):
        return self.account.is_admin


@login_manager.user_loader
def load_user(user_id):
    if not store: return None
    try:
        account = store.get_account(user_id)
    except SetupRequiredError as e:
        app.logger.error("Account store unavailable for %s: %s", user_id, e)
        g.account_setup_error = True
        return None
    except Exception as e:
        app.logger.error("Error loading user %s: %s", user_id, e)
        g.account_unavailable = True
        return None
    if account is None:
        # Sign-up wrote the identity but not the document yet.
        account = Account(id=user_id, avatar=AVATAR_URL.format(user_id))
    return User(account)


def finish_sign_in(uid, email, name, avatar=None, requested_role='student'):
    """Load or create the account, apply allow-list promotion and the admin-portal check."""
    account = store.get_account(uid)
    if account is None:
        role, status = initial_role_and_status(email, app.config['ADMIN_EMAILS'])
        account = store.create_account(uid, name or email.split('@')[0], email, role, status,
                                       avatar=avatar or AVATAR_URL.format(uid))
    else:
        promotion = promotion_update(account, app.config['ADMIN_EMAILS'])
        if promotion:
            store.update_account(uid, promotion)
            account.role = promotion.get('role', account.role)
            account.status = promotion.get('status', account.status)
            app.logger.info("Promoted %s to admin.", email)

    if requested_role == 'admin' and not account.is_admin:
        logout_user()
        session.clear()
        return None, ADMIN_DENIED

    login_user(User(account), remember=True)
    return account, None


# --- Helper Functions & Decorators ---
def wants_json():
    return request.is_json or request.accept_mimetypes.best == 'application/json'


def safe_next(target):
    """Only same-site paths are followed after sign-in."""
    if not target or '\\' in target:
        return url_for('dashboard')
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith('/'):
        return url_for('dashboard')
    return target


def render_setup_required():
    setup_url = FIRESTORE_SETUP_URL.format(app.config['FIREBASE_PROJECT_ID'])
    if wants_json():
        return jsonify({'error': 'setup_required', 'setup_url': setup_url}), 503
    return render_template('setup_required.html', setup_url=setup_url), 503


def load_lessons(account):
    lessons = store.list_lessons()
    if not lessons and account.is_admin:
        try:
            store.seed_lessons(INITIAL_CURRICULUM)
            lessons = store.list_lessons()
        except Exception as e:
            app.logger.error("Seeding failed (likely permission or API issue): %s", e)
    return lessons


def current_screen():
    authenticated = current_user.is_authenticated
    if g.get('account_setup_error'):
        return Screen.SETUP_REQUIRED
    account = current_user.account if authenticated else None
    auth_resolved = not (g.get('account_unavailable') and '_user_id' in session)
    screen = resolve_screen(auth_resolved, account)
    if screen is not Screen.APP:
        return screen
    try:
        g.lessons = load_lessons(account)
    except SetupRequiredError as e:
        app.logger.error("Lessons fetch error: %s", e)
        return resolve_screen(True, account, config_error=True)
    return screen


def check_db_connection(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not store:
            return render_setup_required()
        return f(*args, **kwargs)
    return decorated_function


def gated(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        screen = current_screen()
        if screen is Screen.APP:
            return f(*args, **kwargs)
        if screen is Screen.SETUP_REQUIRED:
            return render_setup_required()
        if wants_json():
            return jsonify({'error': screen.value}), 401 if screen is Screen.LOGIN else 403
        if screen is Screen.LOGIN:
            return redirect(url_for('login', next=request.path))
        if screen is Screen.LOADING:
            return render_template('loading.html')
        if screen is Screen.WAITING_ROOM:
            return render_template('waiting_room.html', account=current_user.account)
        return render_template('rejected.html'), 403
    return decorated_function


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not can_view(current_user.account, 'admin_dashboard'):
            if wants_json():
                return jsonify({'error': 'access_denied'}), 403
            return render_template('access_denied.html'), 403
        return f(*args, **kwargs)
    return decorated_function


def get_lesson_or_404(lesson_id):
    lesson = next((l for l in g.get('lessons', []) if l.id == lesson_id), None) or store.get_lesson(lesson_id)
    if not lesson: abort(404)
    return lesson


def record_completion(lesson_id, score):
    """Optimistically mark the lesson complete; a failed write is logged, never rolled back."""
    account = current_user.account
    updated, update = apply_completion(account, lesson_id, score)
    if update is None:
        return updated, False
    current_user.account = updated
    try:
        store.update_account(account.id, update)
    except Exception:
        app.logger.exception("Failed to save progress for %s on %s", account.id, lesson_id)
    return updated, True


def quiz_state_key(lesson_id):
    return f'quiz_{lesson_id}'


@app.context_processor
def inject_account():
    account = current_user.account if current_user.is_authenticated else None
    return {'account': account, 'is_admin': bool(account and account.is_admin),
            'can_view': lambda view: can_view(account, view)}


@app.errorhandler(SetupRequiredError)
def handle_setup_error(e):
    app.logger.error("Firestore setup error: %s", e)
    return render_setup_required()


# --- Authentication Routes ---
@app.route('/')
def index():
    return redirect(url_for('dashboard'))


@app.route('/register', methods=['GET', 'POST'])
@check_db_connection
def register():
    if current_user.is_authenticated: return redirect(url_for('dashboard'))
    if request.method == 'POST':
        name = request.form.get('name', '').strip()
        email = request.form.get('email', '').strip()
        password = request.form.get('password', '')
        if not name or not email or not password:
            flash('Name, email and password are required.', 'warning')
            return redirect(url_for('register'))

        try:
            user_record = auth.create_user(email=email, password=password, display_name=name)
        except auth.EmailAlreadyExistsError:
            flash('This email is already registered. Please log in instead.', 'warning')
            return redirect(url_for('login'))
        except ValueError as e:
            flash('Password should be at least 6 characters.' if 'assword' in str(e) else str(e), 'danger')
            return redirect(url_for('register'))
        except Exception as e:
            flash(f"An error occurred during registration: {e}", 'danger')
            return redirect(url_for('register'))

        # The portal toggle never grants a role; only the allow-list does.
        role, status = initial_role_and_status(email, app.config['ADMIN_EMAILS'])
        account = store.create_account(user_record.uid, name, email, role, status, avatar=AVATAR_URL.format(user_record.uid))
        login_user(User(account), remember=True)
        flash('Account created!', 'success')
        return redirect(url_for('dashboard'))

    return render_template('register.html')


@app.route('/login', methods=['GET', 'POST'])
@check_db_connection
def login():
    if current_user.is_authenticated: return redirect(url_for('dashboard'))
    if request.method == 'POST':
        email, password = request.form.get('email', '').strip(), request.form.get('password', '')
        requested_role = request.form.get('role', 'student')
        if not app.config['FIREBASE_WEB_API_KEY']:
            flash('Firebase Web API Key is not configured. Login is disabled.', 'danger')
            return redirect(url_for('login'))

        try:
            response = requests.post(SIGN_IN_URL.format(app.config['FIREBASE_WEB_API_KEY']),
                                     json={"email": email, "password": password, "returnSecureToken": True},
                                     timeout=10)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.HTTPError as e:
            try:
                code = e.response.json()['error']['message'].split(' ')[0]
            except (ValueError, KeyError, TypeError):
                code = ''
            flash(SIGN_IN_ERRORS.get(code, 'Invalid email or password.'), 'danger')
            return redirect(url_for('login'))
        except requests.exceptions.RequestException:
            flash('Network error. Please check your internet connection.', 'danger')
            return redirect(url_for('login'))

        account, error = finish_sign_in(payload['localId'], payload.get('email', email),
                                        payload.get('displayName'), requested_role=requested_role)
        if error:
            flash(error, 'danger')
            return redirect(url_for('login'))
        return redirect(safe_next(request.args.get('next')))

    return render_template('login.html', firebase_config={
        'apiKey': app.config['FIREBASE_WEB_API_KEY'],
        'authDomain': app.config['FIREBASE_AUTH_DOMAIN'],
    })


@app.route('/login/google', methods=['POST'])
@check_db_connection
def login_google():
    data = request.get_json(silent=True) or {}
    try:
        decoded = auth.verify_id_token(data.get('id_token', ''))
    except Exception as e:
        app.logger.warning("Federated sign-in rejected: %s", e)
        return jsonify({'error': 'Sign in cancelled.'}), 401

    account, error = finish_sign_in(decoded['uid'], decoded.get('email', ''), decoded.get('name'),
                                    avatar=decoded.get('picture'), requested_role=data.get('role', 'student'))
    if error:
        return jsonify({'error': error}), 403
    return jsonify({'redirect': url_for('dashboard')})


@app.route('/logout', methods=['GET', 'POST'])
def logout():
    logout_user()
    session.clear()
    flash('You have been logged out.', 'info')
    return redirect(url_for('login'))


# --- Student Routes ---
@app.route('/dashboard')
@check_db_connection
@gated
def dashboard():
    account = current_user.account
    lessons = g.lessons
    return render_template('dashboard.html', lessons=lessons,
                           stats=learning_stats(account, lessons),
                           classes=upcoming_classes(store.list_classes()),
                           live_room=store.get_live_room())


@app.route('/lesson/<string:lesson_id>')
@check_db_connection
@gated
def lesson_view(lesson_id):
    lesson = get_lesson_or_404(lesson_id)
    quiz_state = session.get(quiz_state_key(lesson_id), {})
    return render_template('lesson.html', lesson=lesson, quiz_state=quiz_state,
                           active_tab=request.args.get('tab', 'learn'),
                           celebrate=session.pop('celebrate', False))


@app.route('/lesson/<string:lesson_id>/run', methods=['POST'])
@check_db_connection
@gated
def run_lesson_code(lesson_id):
    lesson = get_lesson_or_404(lesson_id)
    code = (request.get_json(silent=True) or {}).get('code', '')
    result = grader.grade_code(code, lesson.task)
    response = result.to_dict()
    response['celebrate'] = False
    if result.error:
        response['state'] = 'errored'
        return jsonify(response)

    response['state'] = 'corrected' if result.is_correct else 'incorrect'
    if result.is_correct:
        account, _ = record_completion(lesson.id, 100)
        response['celebrate'] = True
        response['stats'] = learning_stats(account, g.lessons)
    return jsonify(response)


@app.route('/lesson/<string:lesson_id>/ask', methods=['POST'])
@check_db_connection
@gated
def ask_tutor(lesson_id):
    lesson = get_lesson_or_404(lesson_id)
    question = (request.get_json(silent=True) or {}).get('question', '').strip()
    if not question:
        return jsonify({'error': 'Ask a question first.'}), 400
    return jsonify({'answer': grader.get_ai_assistance(lesson.content, question)})


@app.route('/lesson/<string:lesson_id>/quiz', methods=['POST'])
@check_db_connection
@gated
def submit_quiz(lesson_id):
    lesson = get_lesson_or_404(lesson_id)
    key = quiz_state_key(lesson_id)
    if session.get(key, {}).get('submitted'):
        return redirect(url_for('lesson_view', lesson_id=lesson_id, tab='quiz'))

    answers = {}
    for question in lesson.quiz:
        raw = request.form.get(f'answer-{question.id}')
        if raw is not None and raw.isdigit():
            answers[question.id] = int(raw)

    try:
        correct = score_quiz(lesson.quiz, answers)
    except IncompleteQuizError as e:
        session[key] = {'answers': answers, 'submitted': False}
        flash(str(e), 'warning')
        return redirect(url_for('lesson_view', lesson_id=lesson_id, tab='quiz'))

    total = len(lesson.quiz)
    passed = quiz_passed(correct, total)
    session[key] = {'answers': answers, 'submitted': True, 'correct': correct, 'total': total, 'passed': passed}
    if passed:
        record_completion(lesson.id, quiz_score(correct, total))
        session['celebrate'] = True
    return redirect(url_for('lesson_view', lesson_id=lesson_id, tab='quiz'))


@app.route('/lesson/<string:lesson_id>/quiz/reset', methods=['POST'])
@check_db_connection
@gated
def reset_quiz(lesson_id):
    session.pop(quiz_state_key(lesson_id), None)
    return redirect(url_for('lesson_view', lesson_id=lesson_id, tab='quiz'))


@app.route('/sandbox')
@check_db_connection
@gated
def sandbox():
    return render_template('sandbox.html')


@app.route('/sandbox/run', methods=['POST'])
@check_db_connection
@gated
def sandbox_run():
    code = (request.get_json(silent=True) or {}).get('code', '')
    return jsonify(grader.execute_python_code(code).to_dict())


@app.route('/live')
@check_db_connection
@gated
def live_classroom():
    return render_template('live.html', live_room=store.get_live_room())


@app.route('/profile', methods=['GET', 'POST'])
@check_db_connection
@gated
def profile():
    account = current_user.account
    editing = False
    if request.method == 'POST':
        name = request.form.get('name', '').strip() or account.name
        avatar = request.form.get('avatar', '').strip()
        if 'regenerate' in request.form:
            avatar = AVATAR_URL.format(uuid.uuid4().hex[:7])
            return render_template('profile.html', editing=True, form={'name': name, 'avatar': avatar},
                                   stats=learning_stats(account, g.lessons),
                                   recent=completed_lessons(account, g.lessons)[:5])

        account.name, account.avatar = name, avatar
        try:
            auth.update_user(account.id, display_name=name, photo_url=avatar or None)
            store.update_account(account.id, {'name': name, 'avatar': avatar})
        except Exception:
            app.logger.exception("Error updating profile for %s", account.id)
        flash('Profile updated.', 'success')
    elif request.args.get('edit'):
        editing = True

    return render_template('profile.html', editing=editing, form={'name': account.name, 'avatar': account.avatar},
                           stats=learning_stats(account, g.lessons),
                           recent=completed_lessons(account, g.lessons)[:5])


# --- Admin Routes ---
@app.route('/admin/dashboard')
@check_db_connection
@gated
@admin_required
def admin_dashboard():
    return render_template('admin_dashboard.html', lessons=g.lessons,
                           pending_users=store.pending_accounts(),
                           classes=upcoming_classes(store.list_classes()),
                           live_room=store.get_live_room(),
                           active_tab=request.args.get('tab', 'content'))


@app.route('/admin/users/<string:user_id>/decide', methods=['POST'])
@check_db_connection
@gated
@admin_required
def decide_user(user_id):
    decision = request.form.get('decision')
    if decision == 'approve':
        store.set_account_status(user_id, 'active')
        flash('User approved.', 'success')
    elif decision == 'reject':
        store.set_account_status(user_id, 'rejected')
        flash('User rejected.', 'warning')
    else:
        abort(400)
    return redirect(url_for('admin_dashboard', tab='users'))


@app.route('/admin/lesson/new')
@app.route('/admin/lesson/<string:lesson_id>/edit')
@check_db_connection
@gated
@admin_required
def lesson_editor(lesson_id=None):
    if lesson_id:
        lesson = get_lesson_or_404(lesson_id)
    else:
        lesson = Lesson(id=str(int(time.time() * 1000)), content='# New Lesson\n\nIntroduction...',
                        initial_code='# Write your code here\n')
    return render_template('lesson_editor.html', lesson=lesson, difficulties=DIFFICULTIES)


def lesson_from_form(form):
    quiz = []
    ids, questions, corrects = form.getlist('quiz_id'), form.getlist('quiz_question'), form.getlist('quiz_correct')
    options = [form.getlist(f'quiz_option_{i}') for i in range(4)]
    for index, text in enumerate(questions):
        if not text.strip():
            continue
        correct = corrects[index] if index < len(corrects) else '0'
        quiz.append(QuizQuestion(
            id=(ids[index] if index < len(ids) and ids[index] else f'{int(time.time() * 1000)}_{index}'),
            question=text.strip(),
            options=[opts[index] if index < len(opts) else '' for opts in options],
            correct_answer=int(correct) if correct.isdigit() else 0,
        ))
    return Lesson(
        id=form.get('id', '').strip(),
        title=form.get('title', '').strip(),
        description=form.get('description', '').strip(),
        difficulty=form.get('difficulty', 'Beginner'),
        topics=[t.strip() for t in form.get('topics', '').split(',') if t.strip()],
        content=form.get('content', ''),
        initial_code=form.get('initial_code', ''),
        task=form.get('task', ''),
        expected_output=form.get('expected_output') or None,
        quiz=quiz,
    )


@app.route('/admin/lesson/save', methods=['POST'])
@check_db_connection
@gated
@admin_required
def save_lesson():
    lesson = lesson_from_form(request.form)
    if not lesson.id or not lesson.title or lesson.difficulty not in DIFFICULTIES:
        flash('A lesson needs an id, a title and a valid difficulty.', 'warning')
        return render_template('lesson_editor.html', lesson=lesson, difficulties=DIFFICULTIES), 400
    try:
        store.save_lesson(lesson)
    except SetupRequiredError:
        raise
    except Exception as e:
        app.logger.error("Error saving lesson %s: %s", lesson.id, e)
        flash('Failed to save lesson.', 'danger')
        return render_template('lesson_editor.html', lesson=lesson, difficulties=DIFFICULTIES), 500
    flash('Lesson saved.', 'success')
    return redirect(url_for('admin_dashboard'))


@app.route('/admin/lesson/<string:lesson_id>/delete', methods=['POST'])
@check_db_connection
@gated
@admin_required
def delete_lesson(lesson_id):
    try:
        store.delete_lesson(lesson_id)
        flash('Lesson deleted.', 'success')
    except SetupRequiredError:
        raise
    except Exception as e:
        app.logger.error("Error deleting lesson %s: %s", lesson_id, e)
        flash('Could not delete lesson.', 'danger')
    return redirect(url_for('admin_dashboard'))


@app.route('/admin/classes', methods=['POST'])
@check_db_connection
@gated
@admin_required
def schedule_class():
    starts_at = parse_iso(request.form.get('date'))
    title = request.form.get('title', '').strip()
    if not title or not starts_at:
        flash('A class needs a title and a start time.', 'warning')
        return redirect(url_for('admin_dashboard', tab='classes'))
    duration = request.form.get('duration_minutes', '60')
    store.add_class(ScheduledClass(
        id='', title=title, date=utc_now_iso(starts_at),
        duration_minutes=int(duration) if duration.isdigit() else 60,
        instructor_name=request.form.get('instructor_name', '').strip() or current_user.account.name,
        meeting_link=request.form.get('meeting_link', '').strip() or None,
    ))
    flash('Class scheduled.', 'success')
    return redirect(url_for('admin_dashboard', tab='classes'))


@app.route('/admin/live', methods=['POST'])
@check_db_connection
@gated
@admin_required
def toggle_live_class():
    active = request.form.get('action') == 'start'
    store.set_live_room(active)
    if active:
        return redirect(url_for('live_classroom'))
    flash('Live class ended.', 'info')
    return redirect(url_for('admin_dashboard'))


# --- Live Updates ---
def _event_payload(kind, value, lessons):
    if kind == 'account':
        if value is None:
            return None
        payload = {'status': value.status, 'role': value.role}
        if lessons is not None:
            payload['completedLessonIds'] = value.completed_lesson_ids
            payload['stats'] = learning_stats(value, lessons)
        return payload
    if kind == 'lessons':
        return [{'id': l.id, 'title': l.title, 'description': l.description, 'difficulty': l.difficulty}
                for l in value]
    if kind == 'classes':
        return [dict(c.to_dict(), id=c.id) for c in upcoming_classes(value)]
    return {'active': value.active, 'roomId': value.room_id}


@app.route('/events')
@login_required
@check_db_connection
def events():
    uid = current_user.uid
    # Accounts held at the gate only hear about their own status.
    full_access = resolve_screen(True, current_user.account) is Screen.APP
    updates = queue.Queue()
    keepalive = app.config['EVENT_KEEPALIVE_SECONDS']
    state = {'lessons': store.list_lessons() if full_access else None, 'account': None}

    def push(kind):
        return lambda value: updates.put((kind, value))

    subscriptions = []
    try:
        subscriptions.append(store.watch_account(uid, push('account')))
        if full_access:
            subscriptions.append(store.watch_lessons(push('lessons')))
            subscriptions.append(store.watch_classes(push('classes')))
            subscriptions.append(store.watch_live_room(push('live')))
    except Exception:
        for subscription in subscriptions:
            subscription.cancel()
        raise

    def stream():
        try:
            while True:
                try:
                    kind, value = updates.get(timeout=keepalive)
                except queue.Empty:
                    yield ": keep-alive\n\n"
                    continue
                if kind == 'lessons':
                    state['lessons'] = value
                elif kind == 'account':
                    state['account'] = value
                data = _event_payload(kind, value, state['lessons'])
                yield f"event: {kind}\ndata: {json.dumps(data, default=str)}\n\n"
                # Totals change with the curriculum, so resend the account stats.
                if kind == 'lessons' and state['account'] is not None:
                    data = _event_payload('account', state['account'], state['lessons'])
                    yield f"event: account\ndata: {json.dumps(data, default=str)}\n\n"
        finally:
            for subscription in subscriptions:
                subscription.cancel()

    headers = {'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'}
    return Response(stream_with_context(stream()), mimetype='text/event-stream', headers=headers)


if __name__ == '__main__':
    app.run(debug=True, threaded=True)
