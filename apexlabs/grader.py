import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

import google.generativeai as genai

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-2.5-flash'

EXECUTE_PROMPT = """
You are a Python interpreter.
Execute the following Python code and return the output.
If there is an error, return the error message.

Do NOT explain the code. ONLY return the output as if it were running in a console.
If the code requests input(), assume the input is "Test Input".

Code to execute:
{}
"""

GRADE_PROMPT = """
You are a strict code auto-grader for a Python course.

Task: "{}"
Student Code:
{}

Analyze if the code fulfills the task.
"""

TUTOR_PROMPT = "Context: {}\n\nStudent Question: {}\n\nProvide a helpful, short, and encouraging answer as a tutor named CodeSphere Bot."

GRADE_SCHEMA = {
    'type': 'OBJECT',
    'properties': {
        'passed': {'type': 'BOOLEAN', 'description': 'True if the code correctly fulfills the task.'},
        'output': {'type': 'STRING', 'description': 'The simulated output of the code.'},
        'feedback': {'type': 'STRING', 'description': 'Constructive feedback for the student.'},
    },
    'required': ['passed', 'output', 'feedback'],
}


@dataclass
class ExecutionResult:
    output: str = ''
    error: Optional[str] = None
    is_correct: Optional[bool] = None
    feedback: Optional[str] = None

    def to_dict(self):
        return {
            'output': self.output,
            'error': self.error,
            'is_correct': self.is_correct,
            'feedback': self.feedback,
        }


def _api_key():
    return os.getenv("GEMINI_API_KEY")


def _model():
    return genai.GenerativeModel(os.getenv("GEMINI_MODEL", DEFAULT_MODEL))


def _clean_json(text):
    return (text or '{}').strip().replace("```json", "").replace("```", "").strip()


def execute_python_code(code):
    """Ask the model to pretend to run `code`; there is no real interpreter."""
    if not _api_key():
        return ExecutionResult(error='API Key missing. Cannot execute code.')
    try:
        response = _model().generate_content(EXECUTE_PROMPT.format(code))
        return ExecutionResult(output=(response.text or '').strip())
    except Exception as e:
        logger.error("Gemini execution error: %s", e)
        return ExecutionResult(error='Failed to connect to CODESPHERE runtime.')


def grade_code(code, task):
    if not _api_key():
        return ExecutionResult(error='API Key missing. Cannot grade.')
    try:
        response = _model().generate_content(
            GRADE_PROMPT.format(task, code),
            generation_config={
                'response_mime_type': 'application/json',
                'response_schema': GRADE_SCHEMA,
            },
        )
        result = json.loads(_clean_json(response.text))
        return ExecutionResult(
            output=result.get('output') or '',
            is_correct=bool(result.get('passed')),
            feedback=result.get('feedback'),
        )
    except Exception as e:
        logger.error("Gemini grading error: %s", e)
        return ExecutionResult(error='Grading service unavailable.')


def get_ai_assistance(context, question):
    if not _api_key():
        return "I need an API Key to help you!"
    try:
        response = _model().generate_content(TUTOR_PROMPT.format(context, question))
        return response.text or "I couldn't think of an answer right now."
    except Exception as e:
        logger.error("Gemini tutor error: %s", e)
        return "Sorry, I am offline."
