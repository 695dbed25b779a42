"""Google Translate TTS via gTTS.

Long text is split into short segments that are synthesized one by one so the
dyslexia reader can start playing the first segment while reading along.
"""
from __future__ import annotations

import base64
import io
from typing import Dict, List, Optional, Tuple

from flask import current_app
from gtts import gTTS

from readable.utils.text import split_speech_text

SEGMENT_CHARS = 200


def synthesize_segment(text: str, lang: str, slow: bool = False) -> bytes:
    buf = io.BytesIO()
    gTTS(text=text, lang=lang, slow=slow).write_to_fp(buf)
    return buf.getvalue()


def synthesize_chunks(text: str, slow: bool = False) -> Tuple[Optional[List[Dict[str, str]]], str]:
    """Return ordered [{shortText, base64}] mp3 segments covering all of text."""
    segments = split_speech_text(text, max_len=SEGMENT_CHARS)
    if not segments:
        return None, "Text is required"
    lang = current_app.config.get("TTS_LANG") or "en"
    out: List[Dict[str, str]] = []
    try:
        for seg in segments:
            audio = synthesize_segment(seg, lang, slow=slow)
            out.append({"shortText": seg, "base64": base64.b64encode(audio).decode("ascii")})
    except Exception as e:
        return None, f"TTS failed: {type(e).__name__}: {e}"
    return out, ""
