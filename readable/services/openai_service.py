"""OpenAI wrapper.

Chat completions back the dyslexia rewrite and the autism lesson; the speech
endpoint backs single-voice narration in the ADHD reader.
"""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app
from openai import OpenAI

from readable.models import (
    DyslexiaResult,
    Lesson,
    Mode,
    ReadingLevel,
    VOICES,
    decode_result,
)
from readable.utils.text import clamp_text, safe_json_loads, split_speech_text

# Provider input limit for the speech endpoint
SPEECH_MAX_CHARS = 4096


def get_client() -> OpenAI:
    # An empty key is sent as-is so the provider reports the auth failure
    key = (current_app.config.get("OPENAI_API_KEY") or "").strip()
    return OpenAI(api_key=key, timeout=current_app.config.get("UPSTREAM_TIMEOUT"), max_retries=0)


def model_name() -> str:
    return (current_app.config.get("OPENAI_MODEL") or "").strip() or "gpt-4o-mini"


def llm_json(messages: List[Dict[str, Any]], model: Optional[str] = None, temperature: float = 0.5) -> Tuple[Optional[Dict[str, Any]], str]:
    try:
        res = get_client().chat.completions.create(
            model=model or model_name(),
            messages=messages,
            temperature=temperature,
        )
        text = (res.choices[0].message.content or "").strip()
    except Exception as e:
        return None, f"LLM request failed: {type(e).__name__}: {e}"
    return safe_json_loads(text)


# ============ Dyslexia rewrite ============

REWRITE_SYSTEM = (
    "You are an assistant that helps summarize and rephrase text for people with dyslexia. "
    "Always be clear and friendly. Output ONLY valid JSON with two fields: summary and rephrased. "
    "For the rephrased version, add newline characters after the end of a sentence."
)

LEVEL_INSTRUCTIONS = {
    ReadingLevel.SMALLEST: "very short sentences and the simplest everyday words",
    ReadingLevel.SMALLER: "short sentences and simple words",
    ReadingLevel.MODERATE: "normal-length sentences and a standard reading level",
}


def rewrite_prompt(text: str, level: ReadingLevel) -> str:
    prompt = (
        f'Here is some text:\n\n"{text}"\n\n'
        "Please return a JSON object like this:\n"
        '{\n  "summary": "...",\n  "rephrased": "..."\n}\n\n'
        "Summarize it concisely."
    )
    if level == ReadingLevel.DEFAULT:
        prompt += '\n\nDo not rephrase the text. Just return an empty string for the "rephrased" field.'
    else:
        prompt += f"\n\nThen, rephrase the original text using {LEVEL_INSTRUCTIONS[level]}."
    return prompt


def rewrite_text(text: str, level: ReadingLevel) -> Tuple[Optional[DyslexiaResult], str]:
    excerpt = clamp_text(text, int(current_app.config.get("REWRITE_MAX_CHARS") or 16000))
    obj, err = llm_json([
        {"role": "system", "content": REWRITE_SYSTEM},
        {"role": "user", "content": rewrite_prompt(excerpt, level)},
    ])
    if err:
        return None, err
    result, err = decode_result(Mode.DYSLEXIA, obj)
    if err:
        return None, err
    if level == ReadingLevel.DEFAULT:
        result.rephrased = ""
    elif not result.rephrased:
        result.rephrased = excerpt
    return result, ""


# ============ Autism lesson ============

LESSON_SYSTEM = (
    "You are a patient teacher creating calm, predictable, literal learning material for autistic learners. "
    "Use short concrete sentences, no idioms or sarcasm, and a consistent structure. "
    "Return ONLY valid JSON with no markdown formatting."
)


def lesson_prompt(age: int, section: int) -> str:
    return f"""
Divide the attached document into consecutive sections of roughly equal length, each covering one idea.
Create a lesson for section number {section} (counting from 0) for a reader who is {age} years old.
If the document has no section {section}, use its final section.

Return JSON with exactly these keys:
{{
  "Summary": ["3-5 short bullet sentences"],
  "Vocabulary": [{{"term": "", "definition": "", "example": ""}}],
  "Questions": {{
    "trueFalse": {{"q": "", "answer": true, "explain": ""}},
    "mcq": {{"q": "", "options": ["", "", "", ""], "answer": "one of the options, verbatim", "explain": ""}},
    "shortAnswer": {{"q": "", "idealAnswer": "", "rubric": ["what a good answer mentions"]}}
  }},
  "Draw-it": {{"title": "", "labels": ["parts to draw and label"], "caption": ""}},
  "Review Plan": [{{"when": "e.g. Tomorrow", "minutes": 10, "plan": ["step"]}}],
  "isLastSection": false
}}

Rules:
- Vocabulary has exactly 3 terms taken from the section.
- Review Plan has 3 spaced sessions.
- Set isLastSection to true when this is the final section of the document.
""".strip()


def generate_lesson(pdf_base64: str, age: int, section: int) -> Tuple[Optional[Lesson], str]:
    model = (current_app.config.get("OPENAI_LESSON_MODEL") or "").strip() or model_name()
    obj, err = llm_json(
        [
            {"role": "system", "content": LESSON_SYSTEM},
            {
                "role": "user",
                "content": [
                    {
                        "type": "file",
                        "file": {
                            "filename": "document.pdf",
                            "file_data": f"data:application/pdf;base64,{pdf_base64}",
                        },
                    },
                    {"type": "text", "text": lesson_prompt(age, section)},
                ],
            },
        ],
        model=model,
        temperature=0.4,
    )
    if err:
        return None, err
    return decode_result(Mode.AUTISM, obj)


# ============ Speech ============

def synthesize_voice(text: str, voice: str, model: Optional[str] = None) -> Tuple[Optional[List[Dict[str, str]]], str]:
    """Return base64 mp3 clips for text, normally one."""
    if voice not in VOICES:
        return None, f"Unknown voice: {voice}"
    model = model or current_app.config.get("OPENAI_TTS_MODEL") or "tts-1"
    clips: List[Dict[str, str]] = []
    try:
        client = get_client()
        for part in split_speech_text(text, max_len=SPEECH_MAX_CHARS, split_punct=".?!"):
            res = client.audio.speech.create(model=model, voice=voice, input=part)
            clips.append({"shortText": part, "base64": base64.b64encode(res.content).decode("ascii")})
    except Exception as e:
        return None, f"TTS request failed: {type(e).__name__}: {e}"
    if not clips:
        return None, "No text to read"
    return clips, ""
