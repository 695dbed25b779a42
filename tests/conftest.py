"""
Test Configuration and Fixtures
"""
import io
import json
import os

import pytest

from readable import create_app, session_bridge

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"


class FakeResponse:
    """Stand-in for requests.Response"""

    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload or {})

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def claude_reply(text):
    """Messages API success body carrying one text block"""
    return FakeResponse(200, {"content": [{"type": "text", "text": text}]})


@pytest.fixture(scope='session')
def app():
    """Create application for testing"""
    os.environ['SECRET_KEY'] = 'test-secret-key'

    app = create_app('testing')

    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture(autouse=True)
def empty_bridge():
    """Every test starts with no bridged documents"""
    session_bridge._slots.clear()
    yield
    session_bridge._slots.clear()


@pytest.fixture
def pdf_bytes():
    return PDF_BYTES


@pytest.fixture
def pdf_upload():
    """Factory for multipart form data carrying a PDF"""
    def make(data=PDF_BYTES, filename='doc.pdf', mimetype='application/pdf', **fields):
        form = dict(fields)
        form['file'] = (io.BytesIO(data), filename, mimetype)
        return form
    return make


@pytest.fixture
def lesson_payload():
    """Well-formed lesson as a provider would return it"""
    return {
        "Summary": ["Plants make food from light.", "Leaves hold chlorophyll."],
        "Vocabulary": [
            {"term": "Photosynthesis", "definition": "Making food from light", "example": "A leaf in the sun"},
            {"term": "Chlorophyll", "definition": "The green part of a leaf", "example": ""},
        ],
        "Questions": {
            "trueFalse": {"q": "Plants need light.", "answer": True, "explain": "Light powers photosynthesis."},
            "mcq": {
                "q": "What colour is chlorophyll?",
                "options": ["Red", "Green", "Blue", "Yellow"],
                "answer": "B",
                "explain": "Chlorophyll is green.",
            },
            "shortAnswer": {"q": "Why do leaves face the sun?", "idealAnswer": "To catch light.", "rubric": ["mentions light"]},
        },
        "Draw-it": {"title": "A leaf", "labels": ["stem", "vein"], "caption": "Label the parts."},
        "Review Plan": [{"when": "Tomorrow", "minutes": "10", "plan": ["Re-read the summary"]}],
        "isLastSection": False,
    }


def rejoins(segments, text):
    """True when segments are consecutive slices of the normalized text, at most one space apart"""
    normalized = ' '.join(text.split())
    pos = 0
    for seg in segments:
        if normalized.startswith(' ', pos):
            pos += 1
        if not seg or not normalized.startswith(seg, pos):
            return False
        pos += len(seg)
    return pos == len(normalized)
