"""
Text helpers shared by the gateway services and the readers
"""
import json
import re
from typing import Any, Dict, List, Optional, Tuple

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markupsafe import escape


def clamp_text(s: str, limit: int) -> str:
    return (s or "")[:limit]


def normalize_whitespace(s: str) -> str:
    return re.sub(r"\s+", " ", s or "").strip()


def safe_json_loads(s: str) -> Tuple[Optional[Dict[str, Any]], str]:
    if not s:
        return None, "Empty model output"

    # Strip markdown code blocks if present
    text = s.strip()
    if text.startswith("```"):
        lines = text.split("\n", 1)
        if len(lines) > 1:
            text = lines[1]
        if text.endswith("```"):
            text = text[:-3].strip()
        elif "```" in text:
            text = text.rsplit("```", 1)[0].strip()

    try:
        obj = json.loads(text)
        if isinstance(obj, dict):
            return obj, ""
    except ValueError:
        pass

    # Fallback: extract first JSON object from text
    m = re.search(r"\{.*\}", text, flags=re.DOTALL)
    if m:
        try:
            obj = json.loads(m.group(0))
            if isinstance(obj, dict):
                return obj, ""
        except ValueError:
            pass
    return None, "Model did not return valid json"


_EMOJI = re.compile("[\U0001F300-\U0001FAFF\u2600-\u27BF\u2B50\u2B06]\uFE0F?\\s*")


def clean_text_for_speech(text: str) -> str:
    """Strip markdown and decorative emoji so a TTS voice reads prose only."""
    t = text or ""
    t = re.sub(r"#{1,6}\s", "", t)
    t = t.replace("**", "").replace("*", "")
    t = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", t)
    t = re.sub(r"`([^`]+)`", r"\1", t)
    t = t.replace("---", ". ")
    t = _EMOJI.sub("", t)
    t = re.sub(r"\n{3,}", "\n\n", t)
    t = t.replace("\n", ". ")
    return t.strip()


def split_sentences(text: str) -> List[str]:
    """Split into display sentences, one per line in the dyslexia reader."""
    parts = re.split(r"(?<=[.!?])\s+", normalize_whitespace(text))
    return [p for p in parts if p.strip(" .!?")]


def split_speech_text(text: str, max_len: int = 200, split_punct: str = ",.?") -> List[str]:
    """
    Split text into ordered segments of at most max_len characters.

    Breaks prefer the last punctuation mark from split_punct that is followed
    by a space, then the last space, then a hard cut at max_len.

    Segments are consecutive slices of the whitespace-normalized input. The
    single space at a punctuation or space break belongs to neither segment;
    a hard cut drops nothing. So joining the segments reproduces the
    normalized input once that one space is restored at each soft break.
    """
    if max_len < 1:
        raise ValueError("max_len must be positive")
    rest = normalize_whitespace(text)
    out: List[str] = []
    while rest:
        if len(rest) <= max_len:
            out.append(rest)
            break
        window = rest[:max_len + 1]
        cut = -1
        for i in range(max_len - 1, -1, -1):
            if window[i] in split_punct and (i + 1 >= len(window) or window[i + 1] == " "):
                cut = i + 1
                break
        if cut <= 0:
            cut = window.rfind(" ", 0, max_len + 1)
        if cut <= 0:
            cut = max_len
        seg = rest[:cut].strip()
        if seg:
            out.append(seg)
        rest = rest[cut:].lstrip()
    return out


_LIST_LINE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")
_SAFE_SCHEMES = ("http://", "https://", "mailto:", "#", "/")


class SafeLinks(Treeprocessor):
    """Drop hrefs with schemes a reader should never follow."""

    def run(self, root):
        for a in root.iter("a"):
            href = a.get("href")
            if href is not None and not href.strip().lower().startswith(_SAFE_SCHEMES):
                del a.attrib["href"]


class SafeLinksExtension(Extension):
    def extendMarkdown(self, md):
        md.treeprocessors.register(SafeLinks(md), "safe_links", 0)


def markdown_to_html(text: str) -> str:
    """
    Render model-written markdown for the ADHD reader.

    Raw HTML is escaped before rendering. Lists may follow a paragraph line
    directly and "•" counts as a bullet.
    """
    lines: List[str] = []
    prev = ""
    for line in str(escape(text or "")).splitlines():
        line = re.sub(r"^(\s*)•\s*", r"\1- ", line)
        if _LIST_LINE.match(line) and prev.strip() and not _LIST_LINE.match(prev):
            lines.append("")
        lines.append(line)
        prev = line
    return markdown.markdown("\n".join(lines), extensions=["sane_lists", SafeLinksExtension()])
