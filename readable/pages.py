"""
Pages Blueprint - upload surfaces and readers

Upload forms post here; the handler validates the file with the mode's upload
policy, runs the conversion, stores the result in the session bridge and
redirects to the reader. Readers redirect back to their upload page when the
bridge holds nothing for their mode.
"""
from typing import Callable, Dict, Optional, Tuple

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from markupsafe import Markup

from readable import session_bridge
from readable.bridge import SessionContent
from readable.models import Mode, ReadingLevel, VOICES
from readable.readers import (
    FocusEvent,
    DyslexiaReaderState,
    FocusProgress,
    LessonProgress,
)
from readable.services import anthropic_service, openai_service
from readable.services.pdf_service import UploadPolicy, encode_pdf_base64, extract_text, read_upload
from readable.utils.text import clean_text_for_speech, markdown_to_html, split_sentences

pages_bp = Blueprint("pages", __name__)

MODE_RULE = "<any(dyslexia, blindness, autism, adhd):mode_name>"

MODE_INFO = {
    Mode.DYSLEXIA: {
        "title": "Dyslexia Reading Support",
        "tagline": "Clear, comfortable reading designed for dyslexia",
        "description": "Dyslexia-friendly fonts, adjustable spacing, colour overlays, "
                       "AI simplification at three reading levels and read-aloud.",
        "action": "Process & Start Reading",
    },
    Mode.BLINDNESS: {
        "title": "Audio Narration",
        "tagline": "Listen to any PDF and ask questions by voice",
        "description": "Your document becomes a spoken narration. Hold the space bar to ask "
                       "a question, release it to hear the answer.",
        "action": "Upload & Convert",
    },
    Mode.AUTISM: {
        "title": "Structured Learning",
        "tagline": "Predictable, step-by-step lessons",
        "description": "Simple summaries, vocabulary with examples, questions with immediate "
                       "feedback, a drawing prompt and a spaced review plan.",
        "action": "Create Lesson",
    },
    Mode.ADHD: {
        "title": "ADHD Focus Assistant",
        "tagline": "Bite-sized sections with a focus timer",
        "description": "Content delivered in manageable chunks with progress tracking, "
                       "narration and break reminders.",
        "action": "Start ADHD-Optimized Reading",
    },
}


@pages_bp.app_template_filter("markdown")
def markdown_filter(text):
    return Markup(markdown_to_html(text))


def policy_for(mode: Mode) -> UploadPolicy:
    return UploadPolicy.for_mode(current_app.config, mode.value)


def render_upload(mode: Mode, error: str = "", status: int = 200, form: Optional[dict] = None):
    return render_template(
        "upload.html",
        mode=mode,
        info=MODE_INFO[mode],
        policy=policy_for(mode),
        voices=VOICES,
        error=error,
        form=form or {},
    ), status


# ============ Conversions ============

def convert_dyslexia(data: bytes, form) -> Tuple[Optional[SessionContent], str]:
    text, err = extract_text(data, ocr_fallback=current_app.config.get("OCR_FALLBACK", True))
    if err:
        return None, err
    return SessionContent(mode=Mode.DYSLEXIA, result=text, state=DyslexiaReaderState(text)), ""


def convert_blindness(data: bytes, form) -> Tuple[Optional[SessionContent], str]:
    result, err = anthropic_service.narrate_pdf(encode_pdf_base64(data))
    if err:
        return None, err
    return SessionContent(mode=Mode.BLINDNESS, result=result), ""


def convert_autism(data: bytes, form) -> Tuple[Optional[SessionContent], str]:
    age = _age(form.get("age"))
    if age is None:
        return None, "Age must be a number between 1 and 100"
    doc = encode_pdf_base64(data)
    lesson, err = openai_service.generate_lesson(doc, age, 0)
    if err:
        return None, err
    return SessionContent(
        mode=Mode.AUTISM,
        result=lesson,
        document=doc,
        options={"age": age},
        state=LessonProgress(lesson),
    ), ""


def convert_adhd(data: bytes, form) -> Tuple[Optional[SessionContent], str]:
    voice = (form.get("voice") or current_app.config.get("OPENAI_TTS_VOICE") or "alloy").strip().lower()
    if voice not in VOICES:
        return None, f"Unknown voice: {voice}"
    result, err = anthropic_service.chunk_pdf(encode_pdf_base64(data))
    if err:
        return None, err
    return SessionContent(
        mode=Mode.ADHD,
        result=result,
        options={"voice": voice},
        state=FocusProgress(len(result.chunks)),
    ), ""


CONVERTERS: Dict[Mode, Callable] = {
    Mode.DYSLEXIA: convert_dyslexia,
    Mode.BLINDNESS: convert_blindness,
    Mode.AUTISM: convert_autism,
    Mode.ADHD: convert_adhd,
}


def _age(value) -> Optional[int]:
    try:
        age = int(str(value if value is not None else "20").strip())
    except ValueError:
        return None
    return age if 1 <= age <= 100 else None


def convert_upload(mode: Mode, data: bytes, form) -> Tuple[Optional[SessionContent], str]:
    try:
        return CONVERTERS[mode](data, form)
    except Exception:
        current_app.logger.exception("%s conversion raised", mode.value)
        return None, "Unexpected error while converting the document"


# ============ Upload surfaces ============

@pages_bp.route("/")
def index():
    return render_template("index.html", modes=MODE_INFO)


@pages_bp.route(f"/{MODE_RULE}", methods=["GET"])
def upload(mode_name):
    return render_upload(Mode(mode_name))


@pages_bp.route(f"/{MODE_RULE}", methods=["POST"])
def upload_submit(mode_name):
    mode = Mode(mode_name)
    form = request.form.to_dict()
    file = request.files.get("file")
    if not file or not file.filename:
        return render_upload(mode, "Please select a PDF file first", 400, form)

    data, content_type = read_upload(file)
    err = policy_for(mode).check(data, content_type)
    if err:
        return render_upload(mode, err, 400, form)

    content, err = convert_upload(mode, data, form)
    if err:
        current_app.logger.warning("%s upload failed: %s", mode.value, err)
        return render_upload(mode, f"Error: {err}", 500, form)

    session_bridge.put(content)
    return redirect(url_for(f"pages.{mode.value}_reader"))


def bridged(mode: Mode) -> Optional[SessionContent]:
    content = session_bridge.get(mode)
    if content is None:
        flash("Please upload a PDF first.", "warning")
    return content


# ============ Dyslexia reader ============

@pages_bp.route("/dyslexia/reader")
def dyslexia_reader():
    content = bridged(Mode.DYSLEXIA)
    if content is None:
        return redirect(url_for("pages.upload", mode_name=Mode.DYSLEXIA.value))
    state: DyslexiaReaderState = content.state

    try:
        level = ReadingLevel(request.args.get("level") or (state.level or ReadingLevel.MODERATE).value)
    except ValueError:
        abort(400)
    view = "summary" if request.args.get("view") == "summary" else "text"

    error = ""
    if state.needs_rewrite(level):
        result, err = openai_service.rewrite_text(state.text, level)
        if err:
            current_app.logger.warning("dyslexia rewrite failed: %s", err)
            error = "Error processing text."
        else:
            state.store(level, result)

    result = state.result if state.level == level else None
    body = (result.rephrased if result and result.rephrased else state.text)
    summary = result.summary if result else ""
    return render_template(
        "reader_dyslexia.html",
        levels=[lv for lv in ReadingLevel if lv != ReadingLevel.DEFAULT],
        level=level,
        view=view,
        sentences=split_sentences(summary if view == "summary" else body),
        speech_text=summary if view == "summary" else body,
        error=error,
    )


# ============ Blindness reader ============

@pages_bp.route("/blindness/reader")
def blindness_reader():
    content = bridged(Mode.BLINDNESS)
    if content is None:
        return redirect(url_for("pages.upload", mode_name=Mode.BLINDNESS.value))
    return render_template("reader_blindness.html", narration=content.result.narration)


# ============ Autism reader ============

def _autism_content():
    content = bridged(Mode.AUTISM)
    if content is None:
        return None, redirect(url_for("pages.upload", mode_name=Mode.AUTISM.value))
    return content, None


@pages_bp.route("/autism/reader")
def autism_reader():
    content, redirect_to = _autism_content()
    if redirect_to:
        return redirect_to
    progress: LessonProgress = content.state
    return render_template(
        "reader_autism.html",
        progress=progress,
        lesson=progress.lesson,
        questions=progress.lesson.to_dict()["Questions"],
    )


@pages_bp.route("/autism/reader/next", methods=["POST"])
def autism_next():
    content, redirect_to = _autism_content()
    if redirect_to:
        return redirect_to
    progress: LessonProgress = content.state
    try:
        lesson, err = openai_service.generate_lesson(content.document, content.options.get("age", 20), progress.section + 1)
    except Exception:
        current_app.logger.exception("next section raised")
        lesson, err = None, "Unexpected error while generating the lesson"
    if err:
        current_app.logger.warning("next section failed: %s", err)
        flash(f"Error processing PDF: {err}", "error")
    else:
        progress.advance(lesson)
        content.result = lesson
        session_bridge.put(content)
    return redirect(url_for("pages.autism_reader"))


# ============ ADHD reader ============

def _adhd_content():
    content = bridged(Mode.ADHD)
    if content is None:
        return None, redirect(url_for("pages.upload", mode_name=Mode.ADHD.value))
    return content, None


@pages_bp.route("/adhd/reader")
def adhd_reader():
    content, redirect_to = _adhd_content()
    if redirect_to:
        return redirect_to
    chunks = content.result.chunks
    chunk = request.args.get("chunk", type=int)
    if chunk is None:
        # A fresh visit starts over; in-page actions carry the chunk index
        content.state = FocusProgress(len(chunks))
    progress: FocusProgress = content.state
    if chunk is not None:
        progress.select(chunk)
    return render_template(
        "reader_adhd.html",
        chunks=chunks,
        speech=[clean_text_for_speech(c) for c in chunks],
        progress=progress,
        voice=content.options.get("voice", "alloy"),
        voices=VOICES,
        focus_seconds=int(current_app.config.get("FOCUS_MINUTES", 25)) * 60,
    )


@pages_bp.route("/adhd/reader/complete/<int:index>", methods=["POST"])
def adhd_complete(index):
    content, redirect_to = _adhd_content()
    if redirect_to:
        return redirect_to
    progress: FocusProgress = content.state
    if progress.complete(index) == FocusEvent.FINISHED:
        flash("You finished every section!", "celebrate")
    return redirect(url_for("pages.adhd_reader", chunk=progress.current))
