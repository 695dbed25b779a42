"""
Reader state

Server-held state for the reader pages, kept in the session bridge next to
the converted content. ADHD progress lasts one visit to the reader; the
autism section cursor and the dyslexia rewrite last until the next upload.
"""
import enum
from typing import Optional, Set

from readable.models import DyslexiaResult, Lesson, ReadingLevel


# ============ ADHD ============

class FocusState(enum.Enum):
    VIEWING = "viewing"
    VIEWING_COMPLETED = "viewing_completed"
    ALL_COMPLETE = "all_complete"


class FocusEvent(enum.Enum):
    ADVANCED = "advanced"
    FINISHED = "finished"
    IGNORED = "ignored"


class FocusProgress:
    """Chunk-by-chunk progress through an ADHD reading."""

    def __init__(self, total: int):
        if total < 1:
            raise ValueError("a reading needs at least one chunk")
        self.total = total
        self.current = 0
        self.completed: Set[int] = set()
        self.celebrated = False

    @property
    def state(self) -> FocusState:
        if len(self.completed) == self.total:
            return FocusState.ALL_COMPLETE
        if self.current in self.completed:
            return FocusState.VIEWING_COMPLETED
        return FocusState.VIEWING

    @property
    def percent(self) -> int:
        return int(round(100 * len(self.completed) / self.total))

    def select(self, index: int) -> bool:
        if not 0 <= index < self.total or self.state == FocusState.ALL_COMPLETE:
            return False
        self.current = index
        return True

    def _next_incomplete(self, after: int) -> int:
        for step in range(1, self.total + 1):
            i = (after + step) % self.total
            if i not in self.completed:
                return i
        return after

    def complete(self, index: int) -> FocusEvent:
        """Mark a chunk done. FINISHED is returned once, for the last chunk."""
        if self.state == FocusState.ALL_COMPLETE:
            return FocusEvent.IGNORED
        if not 0 <= index < self.total or index in self.completed:
            return FocusEvent.IGNORED
        self.completed.add(index)
        if len(self.completed) == self.total:
            self.celebrated = True
            return FocusEvent.FINISHED
        self.current = self._next_incomplete(index)
        return FocusEvent.ADVANCED


# ============ Autism ============

class LessonProgress:
    """Section cursor for the lesson on screen. Quiz answers stay in the page."""

    def __init__(self, lesson: Lesson, section: int = 0):
        self.section = section
        self.lesson = lesson

    def advance(self, lesson: Lesson) -> None:
        """Replace the lesson with the next section's."""
        self.section += 1
        self.lesson = lesson


# ============ Dyslexia ============

class DyslexiaReaderState:
    """Extracted text plus the rewrite for the currently selected level."""

    def __init__(self, text: str):
        self.text = text
        self.level: Optional[ReadingLevel] = None
        self.result: Optional[DyslexiaResult] = None

    def needs_rewrite(self, level: ReadingLevel) -> bool:
        return self.result is None or level != self.level

    def store(self, level: ReadingLevel, result: DyslexiaResult) -> None:
        self.level = level
        self.result = result
