"""
API Blueprint - Conversion Gateway

Stateless JSON routes. Each route calls exactly one provider and reshapes its
output through the mode's decoder. Every failure leaves as a JSON envelope:
400 for bad input, 500 for provider failures or malformed provider output.
"""
from functools import wraps
from typing import Any, Optional, Tuple

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from readable.models import Mode, ReadingLevel, VOICES, decode_history
from readable.services import anthropic_service, openai_service, tts_service
from readable.services.pdf_service import (
    UploadPolicy,
    decode_pdf_base64,
    encode_pdf_base64,
    extract_text,
    read_upload,
)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def fail(error: str, status: int = 500, **extra: Any):
    return jsonify({"success": False, "error": error, **extra}), status


def gateway_route(f):
    """Convert anything a handler lets escape into a 500 envelope."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except RequestEntityTooLarge:
            raise
        except Exception as e:
            current_app.logger.exception("%s failed", f.__name__)
            return fail(f"{type(e).__name__}: {e}")
    return decorated_function


@api_bp.errorhandler(RequestEntityTooLarge)
def too_large(_e):
    return fail("Request too large", 413)


def policy_for(mode: Mode) -> UploadPolicy:
    return UploadPolicy.for_mode(current_app.config, mode.value)


def document_from_json(field: str, mode: Mode) -> Tuple[Optional[str], str]:
    """Pull a base64 PDF from the JSON body and run it through the upload policy."""
    payload = request.get_json(silent=True) or {}
    data, err = decode_pdf_base64(payload.get(field))
    if err:
        return None, err
    err = policy_for(mode).check(data)
    if err:
        return None, err
    # Re-encode so a data: URL prefix or stray whitespace never reaches a provider
    return encode_pdf_base64(data), ""


# ============ ADHD ============

@api_bp.route("/convert", methods=["POST"])
@gateway_route
def convert():
    payload = request.get_json(silent=True) or {}
    mode = Mode.parse(payload.get("mode") or Mode.ADHD.value)
    if mode != Mode.ADHD:
        return fail("Unsupported mode", 400)
    pdf_b64, err = document_from_json("pdfBase64", mode)
    if err:
        return fail(err, 400)

    result, err = anthropic_service.chunk_pdf(pdf_b64)
    if err:
        current_app.logger.warning("convert failed: %s", err)
        return fail(err)
    return jsonify({"success": True, "mode": mode.value, **result.to_dict()}), 200


# ============ Dyslexia ============

@api_bp.route("/ai-process", methods=["POST"])
@api_bp.route("/levels", methods=["POST"])
@gateway_route
def rewrite():
    payload = request.get_json(silent=True) or {}
    text = (payload.get("inputText") or "").strip()
    if not text:
        return fail("No text provided", 400)
    try:
        level = ReadingLevel((payload.get("readingLevel") or ReadingLevel.DEFAULT.value).strip().lower())
    except ValueError:
        return fail("Unknown reading level", 400)

    result, err = openai_service.rewrite_text(text, level)
    if err:
        current_app.logger.warning("rewrite failed: %s", err)
        return fail("Something went wrong.", details=err)
    return jsonify(result.to_dict()), 200


@api_bp.route("/parse", methods=["POST"])
@gateway_route
def parse():
    file = request.files.get("file")
    if not file:
        return fail("No file uploaded", 400)
    data, content_type = read_upload(file)
    err = policy_for(Mode.DYSLEXIA).check(data, content_type)
    if err:
        return fail(err, 400)

    text, err = extract_text(data, ocr_fallback=current_app.config.get("OCR_FALLBACK", True))
    if err:
        return fail(err)
    return jsonify({"text": text}), 200


# ============ Blindness ============

@api_bp.route("/narrate", methods=["POST"])
@gateway_route
def narrate():
    pdf_b64, err = document_from_json("pdfBase64", Mode.BLINDNESS)
    if err:
        return fail(err, 400)

    result, err = anthropic_service.narrate_pdf(pdf_b64)
    if err:
        current_app.logger.warning("narrate failed: %s", err)
        return fail(err)
    return jsonify({"success": True, **result.to_dict()}), 200


@api_bp.route("/conversation", methods=["POST"])
@gateway_route
def conversation():
    payload = request.get_json(silent=True) or {}
    question = (payload.get("question") or "").strip()
    if not question:
        return fail("No question provided", 400)
    context = (payload.get("context") or "").strip()
    history = decode_history(payload.get("conversationHistory"))

    result, err = anthropic_service.answer_question(question, context, history)
    if err:
        current_app.logger.warning("conversation failed: %s", err)
        return fail("Failed to get response from Claude", details=err)
    return jsonify({"success": True, **result.to_dict()}), 200


# ============ Speech ============

@api_bp.route("/tts", methods=["GET"])
@gateway_route
def tts_chunks():
    text = (request.args.get("text") or "").strip()
    if not text:
        return fail("Text is required", 400)

    chunks, err = tts_service.synthesize_chunks(text)
    if err:
        current_app.logger.warning("tts failed: %s", err)
        return fail("TTS failed", details=err)
    return jsonify({"base64Chunks": chunks}), 200


@api_bp.route("/tts", methods=["POST"])
@api_bp.route("/tts_adhd", methods=["POST"])
@gateway_route
def tts_voice():
    payload = request.get_json(silent=True) or {}
    text = (payload.get("text") or "").strip()
    if not text:
        return fail("Text is required", 400)
    voice = (payload.get("voice") or current_app.config.get("OPENAI_TTS_VOICE") or "alloy").strip().lower()
    if voice not in VOICES:
        return fail(f"Unknown voice: {voice}", 400)
    model = (payload.get("model") or "").strip() or None

    clips, err = openai_service.synthesize_voice(text, voice, model=model)
    if err:
        current_app.logger.warning("voice tts failed: %s", err)
        return fail("TTS failed", details=err)
    return jsonify({"base64Chunks": clips}), 200


# ============ Autism ============

def parse_int(value: Any, low: int, high: Optional[int] = None) -> Optional[int]:
    try:
        n = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    if n < low or (high is not None and n > high):
        return None
    return n


@api_bp.route("/generate-lesson", methods=["POST"])
@gateway_route
def generate_lesson():
    payload = request.get_json(silent=True) or {}
    age = parse_int(payload.get("age", 20), 1, 100)
    if age is None:
        return fail("Age must be a number between 1 and 100", 400)
    section = parse_int(payload.get("sectionNumber", 0), 0)
    if section is None:
        return fail("sectionNumber must be a non-negative integer", 400)
    pdf_b64, err = document_from_json("pdfData", Mode.AUTISM)
    if err:
        return fail(err, 400)

    lesson, err = openai_service.generate_lesson(pdf_b64, age, section)
    if err:
        current_app.logger.warning("lesson generation failed: %s", err)
        return fail(err)
    return jsonify({"success": True, "json": lesson.to_dict(), "sectionNumber": section}), 200
