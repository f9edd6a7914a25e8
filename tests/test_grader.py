import json

import pytest

from apexlabs import grader


@pytest.fixture
def no_key(monkeypatch):
    monkeypatch.delenv('GEMINI_API_KEY', raising=False)


def test_missing_key_messages(no_key):
    assert grader.execute_python_code('print(1)').error == 'API Key missing. Cannot execute code.'
    assert grader.grade_code('print(1)', 'Print 1').error == 'API Key missing. Cannot grade.'
    assert grader.get_ai_assistance('ctx', 'why?') == 'I need an API Key to help you!'


def test_execute_returns_trimmed_output(gemini):
    gemini.reply = '  Hello, World!\n'
    result = grader.execute_python_code('print("Hello, World!")')
    assert result.output == 'Hello, World!'
    assert result.error is None
    assert 'print("Hello, World!")' in gemini.calls[0][0]


def test_execute_failure(gemini):
    gemini.error = RuntimeError('boom')
    assert grader.execute_python_code('x').error == 'Failed to connect to CODESPHERE runtime.'


def test_grade_parses_structured_reply(gemini):
    gemini.reply = '```json\n' + json.dumps({'passed': True, 'output': 'Batman', 'feedback': 'Nice.'}) + '\n```'
    result = grader.grade_code('hero = "Batman"\nprint(hero)', 'Print Batman')
    assert result.is_correct is True
    assert result.output == 'Batman'
    assert result.feedback == 'Nice.'
    prompt, config = gemini.calls[0]
    assert 'Print Batman' in prompt
    assert config['response_mime_type'] == 'application/json'
    assert config['response_schema']['required'] == ['passed', 'output', 'feedback']


def test_grade_failing_submission(gemini):
    gemini.reply = json.dumps({'passed': False, 'output': '', 'feedback': 'Print the variable.'})
    result = grader.grade_code('hero = "Batman"', 'Print Batman')
    assert result.is_correct is False
    assert result.error is None


@pytest.mark.parametrize('reply,error', [('not json', None), ('{}', RuntimeError('quota'))])
def test_grade_service_errors(gemini, reply, error):
    gemini.reply, gemini.error = reply, error
    result = grader.grade_code('x', 'task')
    assert result.error == 'Grading service unavailable.'
    assert result.is_correct is None


def test_tutor(gemini):
    gemini.reply = 'Use print().'
    assert grader.get_ai_assistance('# Lesson', 'How do I output text?') == 'Use print().'
    gemini.reply = ''
    assert grader.get_ai_assistance('# Lesson', 'Hm?') == "I couldn't think of an answer right now."
    gemini.error = RuntimeError('offline')
    assert grader.get_ai_assistance('# Lesson', 'Hm?') == 'Sorry, I am offline.'
