"""
Result Models

Key Models:
- Mode: the four accessibility profiles
- DyslexiaResult: summary + reading-level rewrite
- NarrationResult / AnswerResult: blindness narration and follow-up answers
- Lesson: structured autism lesson for one section
- FocusResult: ADHD chunked narrative
- ConversationTurn: one entry of the blindness conversation history

Provider output is decoded through DECODERS, one decoder per mode. Decoders
repair small drift (wrong scalar types, missing optional fields) and reject
output that lacks the fields the reader needs.
"""
import enum
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, List, Optional, Tuple


class Mode(enum.Enum):
    DYSLEXIA = "dyslexia"
    BLINDNESS = "blindness"
    AUTISM = "autism"
    ADHD = "adhd"

    @classmethod
    def parse(cls, value: Any) -> Optional["Mode"]:
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return None


class ReadingLevel(enum.Enum):
    DEFAULT = "default"
    SMALLEST = "smallest"
    SMALLER = "smaller"
    MODERATE = "moderate"

    @property
    def label(self) -> str:
        return READING_LEVEL_LABELS[self][0]

    @property
    def description(self) -> str:
        return READING_LEVEL_LABELS[self][1]


READING_LEVEL_LABELS = {
    ReadingLevel.DEFAULT: ("Original", "Summary only"),
    ReadingLevel.SMALLEST: ("Most Simplified", "Very short sentences"),
    ReadingLevel.SMALLER: ("Simplified", "Short sentences"),
    ReadingLevel.MODERATE: ("Standard", "Normal sentences"),
}

VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")


def _str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [_str(v) for v in value if _str(v)]


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "t")
    return bool(value)


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


# ============ Dyslexia ============

@dataclass
class DyslexiaResult:
    summary: str
    rephrased: str

    def to_dict(self) -> Dict[str, Any]:
        return {"summary": self.summary, "rephrased": self.rephrased}


def decode_dyslexia(obj: Any) -> Tuple[Optional[DyslexiaResult], str]:
    if not isinstance(obj, dict):
        return None, "Rewrite output is not an object"
    if "summary" not in obj and "rephrased" not in obj:
        return None, "Rewrite output has neither summary nor rephrased"
    return DyslexiaResult(summary=_str(obj.get("summary")), rephrased=_str(obj.get("rephrased"))), ""


# ============ Blindness ============

@dataclass
class NarrationResult:
    narration: str

    def to_dict(self) -> Dict[str, Any]:
        return {"narration": self.narration}


@dataclass
class AnswerResult:
    answer: str

    def to_dict(self) -> Dict[str, Any]:
        return {"answer": self.answer}


def decode_narration(obj: Any) -> Tuple[Optional[NarrationResult], str]:
    text = _str(obj.get("narration") if isinstance(obj, dict) else obj)
    if not text:
        return None, "Narration is empty"
    return NarrationResult(narration=text), ""


def decode_answer(obj: Any) -> Tuple[Optional[AnswerResult], str]:
    text = _str(obj.get("answer") if isinstance(obj, dict) else obj)
    if not text:
        return None, "Answer is empty"
    return AnswerResult(answer=text), ""


@dataclass
class ConversationTurn:
    role: str
    content: str

    ROLES = ("user", "assistant")

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


def decode_history(items: Any) -> List[ConversationTurn]:
    """Keep well-formed user/assistant turns in order, dropping the rest."""
    out: List[ConversationTurn] = []
    if not isinstance(items, list):
        return out
    for item in items:
        if not isinstance(item, dict):
            continue
        role = _str(item.get("role")).lower()
        content = _str(item.get("content"))
        if role in ConversationTurn.ROLES and content:
            out.append(ConversationTurn(role=role, content=content))
    return out


# ============ Autism ============

@dataclass
class VocabItem:
    term: str
    definition: str
    example: str = ""


@dataclass
class TrueFalseQuestion:
    q: str
    answer: bool
    explain: str = ""


@dataclass
class ChoiceQuestion:
    q: str
    options: List[str]
    answer: str
    explain: str = ""


@dataclass
class ShortAnswerQuestion:
    q: str
    idealAnswer: str
    rubric: List[str] = field(default_factory=list)


@dataclass
class Questions:
    trueFalse: TrueFalseQuestion
    mcq: ChoiceQuestion
    shortAnswer: ShortAnswerQuestion


@dataclass
class DrawIt:
    title: str
    labels: List[str]
    caption: str


@dataclass
class ReviewStep:
    when: str
    minutes: int
    plan: List[str]


@dataclass
class Lesson:
    summary: List[str]
    vocabulary: List[VocabItem]
    questions: Questions
    draw_it: Optional[DrawIt]
    review_plan: List[ReviewStep]
    is_last_section: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the wire keys the lesson contract uses."""
        return {
            "Summary": list(self.summary),
            "Vocabulary": [asdict(v) for v in self.vocabulary],
            "Questions": asdict(self.questions),
            "Draw-it": asdict(self.draw_it) if self.draw_it else None,
            "Review Plan": [asdict(r) for r in self.review_plan],
            "isLastSection": self.is_last_section,
        }

    def summary_speech(self) -> str:
        if not self.summary:
            return ""
        return " ".join(["Summary."] + [f"{b}." for b in self.summary])

    def vocabulary_speech(self) -> str:
        if not self.vocabulary:
            return ""
        parts = ["Vocabulary."]
        for v in self.vocabulary:
            parts.append(f"Term: {v.term}. Definition: {v.definition}. Example: {v.example or 'No example.'}.")
        return " ".join(parts)

    def questions_speech(self) -> str:
        q = self.questions
        options = " ".join(f"Option {chr(65 + i)}: {o}." for i, o in enumerate(q.mcq.options))
        return " ".join([
            "Questions.",
            f"True or False: {q.trueFalse.q}.",
            f"Multiple choice: {q.mcq.q}. {options}",
            f"Short answer: {q.shortAnswer.q}.",
        ])

    def draw_it_speech(self) -> str:
        d = self.draw_it
        if not d:
            return ""
        return " ".join([
            "Draw it.",
            f"Title: {d.title}.",
            f"Labels: {', '.join(d.labels)}.",
            f"Caption: {d.caption}.",
        ])

    def review_plan_speech(self) -> str:
        if not self.review_plan:
            return ""
        items = []
        for r in self.review_plan:
            tail = (". ".join(r.plan) + ".") if r.plan else ""
            items.append(f"{r.when}, {r.minutes} minutes. {tail}".strip())
        return "Review plan. " + " ".join(items)


def _decode_questions(obj: Any) -> Tuple[Optional[Questions], str]:
    if not isinstance(obj, dict):
        return None, "Lesson has no Questions"
    tf = obj.get("trueFalse") if isinstance(obj.get("trueFalse"), dict) else {}
    mcq = obj.get("mcq") if isinstance(obj.get("mcq"), dict) else {}
    sa = obj.get("shortAnswer") if isinstance(obj.get("shortAnswer"), dict) else {}

    if not _str(tf.get("q")):
        return None, "Lesson true/false question is missing"
    options = _str_list(mcq.get("options"))
    answer = _str(mcq.get("answer"))
    if not _str(mcq.get("q")) or len(options) < 2:
        return None, "Lesson multiple-choice question is missing"
    if answer not in options:
        # Providers sometimes answer with the option letter
        letter = answer.upper()[:1]
        if len(answer) == 1 and "A" <= letter <= chr(64 + len(options)):
            answer = options[ord(letter) - 65]
        else:
            return None, "Lesson multiple-choice answer is not one of its options"
    if not _str(sa.get("q")):
        return None, "Lesson short-answer question is missing"

    return Questions(
        trueFalse=TrueFalseQuestion(q=_str(tf.get("q")), answer=_bool(tf.get("answer")), explain=_str(tf.get("explain"))),
        mcq=ChoiceQuestion(q=_str(mcq.get("q")), options=options, answer=answer, explain=_str(mcq.get("explain"))),
        shortAnswer=ShortAnswerQuestion(
            q=_str(sa.get("q")),
            idealAnswer=_str(sa.get("idealAnswer") or sa.get("ideal_answer")),
            rubric=_str_list(sa.get("rubric")),
        ),
    ), ""


def decode_lesson(obj: Any) -> Tuple[Optional[Lesson], str]:
    if not isinstance(obj, dict):
        return None, "Lesson output is not an object"

    summary = _str_list(obj.get("Summary"))
    if not summary:
        return None, "Lesson has no Summary"

    raw_vocab = obj.get("Vocabulary") or []
    if not isinstance(raw_vocab, list):
        return None, "Lesson Vocabulary is not a list"
    vocabulary: List[VocabItem] = []
    for v in raw_vocab:
        if isinstance(v, dict) and _str(v.get("term")):
            vocabulary.append(VocabItem(term=_str(v.get("term")), definition=_str(v.get("definition")), example=_str(v.get("example"))))

    questions, err = _decode_questions(obj.get("Questions"))
    if err:
        return None, err

    draw = obj.get("Draw-it")
    draw_it = None
    if isinstance(draw, dict) and (_str(draw.get("title")) or _str_list(draw.get("labels"))):
        draw_it = DrawIt(title=_str(draw.get("title")), labels=_str_list(draw.get("labels")), caption=_str(draw.get("caption")))

    raw_plan = obj.get("Review Plan") or []
    if not isinstance(raw_plan, list):
        return None, "Lesson Review Plan is not a list"
    review_plan: List[ReviewStep] = []
    for r in raw_plan:
        if isinstance(r, dict) and _str(r.get("when")):
            review_plan.append(ReviewStep(when=_str(r.get("when")), minutes=max(_int(r.get("minutes")), 0), plan=_str_list(r.get("plan"))))

    return Lesson(
        summary=summary,
        vocabulary=vocabulary,
        questions=questions,
        draw_it=draw_it,
        review_plan=review_plan,
        is_last_section=_bool(obj.get("isLastSection")),
    ), ""


# ============ ADHD ============

@dataclass
class FocusResult:
    chunks: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"chunks": list(self.chunks)}


def decode_focus(obj: Any) -> Tuple[Optional[FocusResult], str]:
    if not isinstance(obj, dict):
        return None, "Conversion output is not an object"
    chunks = obj.get("chunks")
    if not isinstance(chunks, list):
        return None, "Conversion output has no chunks"
    cleaned = [c.strip() for c in chunks if isinstance(c, str) and c.strip()]
    if not cleaned:
        return None, "Conversion output has no chunks"
    return FocusResult(chunks=cleaned), ""


DECODERS: Dict[Mode, Callable[[Any], Tuple[Optional[Any], str]]] = {
    Mode.DYSLEXIA: decode_dyslexia,
    Mode.BLINDNESS: decode_narration,
    Mode.AUTISM: decode_lesson,
    Mode.ADHD: decode_focus,
}


def decode_result(mode: Mode, obj: Any) -> Tuple[Optional[Any], str]:
    """Decode provider output into the result variant for `mode`."""
    return DECODERS[mode](obj)
