"""Anthropic Messages API wrapper.

Document-aware calls (narration, ADHD chunking) send the PDF as a base64
document block; the blindness follow-up conversation sends narration text as
system context plus the prior turns.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import requests
from flask import current_app

from readable.models import (
    AnswerResult,
    ConversationTurn,
    FocusResult,
    Mode,
    NarrationResult,
    decode_answer,
    decode_result,
)
from readable.utils.text import safe_json_loads


def _headers() -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "x-api-key": (current_app.config.get("ANTHROPIC_API_KEY") or "").strip(),
        "anthropic-version": current_app.config.get("ANTHROPIC_VERSION") or "2023-06-01",
    }


def messages(
    content: List[Dict[str, Any]],
    max_tokens: int,
    system: Optional[str] = None,
) -> Tuple[Optional[str], str]:
    """POST one Messages request and return the concatenated text blocks."""
    body: Dict[str, Any] = {
        "model": current_app.config.get("ANTHROPIC_MODEL"),
        "max_tokens": max_tokens,
        "messages": content,
    }
    if system:
        body["system"] = system
    try:
        r = requests.post(
            current_app.config.get("ANTHROPIC_URL"),
            headers=_headers(),
            json=body,
            timeout=current_app.config.get("UPSTREAM_TIMEOUT"),
        )
    except requests.RequestException as e:
        return None, f"Claude request failed: {type(e).__name__}: {e}"

    if not r.ok:
        return None, f"Claude API Error ({r.status_code}): {r.text}"

    try:
        data = r.json()
    except ValueError:
        return None, "Claude API returned invalid JSON"
    blocks = data.get("content") if isinstance(data, dict) else None
    if not isinstance(blocks, list):
        return None, "Claude API response has no content"
    text = "".join(b.get("text") or "" for b in blocks if isinstance(b, dict) and b.get("type") == "text")
    return text.strip(), ""


def _document_block(pdf_base64: str) -> Dict[str, Any]:
    return {
        "type": "document",
        "source": {"type": "base64", "media_type": "application/pdf", "data": pdf_base64},
    }


NARRATE_PROMPT = (
    "Extract all text from this PDF and convert it into a conversational narration suitable for "
    "audio reading. Describe any images you see. Make it engaging and easy to follow."
)


def narrate_pdf(pdf_base64: str) -> Tuple[Optional[NarrationResult], str]:
    text, err = messages(
        [{"role": "user", "content": [_document_block(pdf_base64), {"type": "text", "text": NARRATE_PROMPT}]}],
        max_tokens=4000,
    )
    if err:
        return None, err
    return decode_result(Mode.BLINDNESS, text)


FOCUS_PROMPT = """
Rewrite this document for a reader with ADHD as a sequence of short, engaging sections.

Rules:
- 4 to 10 sections, in the document's order, together covering all of its content.
- Each section is markdown: a heading with one emoji, 2-4 short paragraphs or bullet lists, key terms in **bold**.
- End each section with a one-line "Quick check" question.

Return ONLY valid JSON: {"chunks": ["section 1 markdown", "section 2 markdown"]}
""".strip()


def chunk_pdf(pdf_base64: str) -> Tuple[Optional[FocusResult], str]:
    text, err = messages(
        [{"role": "user", "content": [_document_block(pdf_base64), {"type": "text", "text": FOCUS_PROMPT}]}],
        max_tokens=8000,
    )
    if err:
        return None, err
    obj, err = safe_json_loads(text)
    if err:
        return None, err
    return decode_result(Mode.ADHD, obj)


def conversation_system(context: str) -> str:
    return (
        "You are a helpful AI assistant for visually impaired users. You have access to the following "
        f"document content:\n\n{context}\n\n"
        "Please answer questions about this document in a clear, conversational way suitable for audio "
        "playback. Keep responses concise and easy to understand when spoken aloud."
    )


def answer_question(question: str, context: str, history: List[ConversationTurn]) -> Tuple[Optional[AnswerResult], str]:
    turns = [t.to_dict() for t in history]
    turns.append({"role": "user", "content": question})
    # The API requires the first turn to come from the user
    while turns and turns[0]["role"] != "user":
        turns.pop(0)
    text, err = messages(turns, max_tokens=1000, system=conversation_system(context))
    if err:
        return None, err
    return decode_answer(text)
