"""Turn ordered posts into narrative HTML paragraphs.

Each selected post becomes one paragraph introduced by a phrase that names
its author. The first paragraph uses the style's opening, the last its
closing, and everything in between cycles through the style's transitions.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import UTC, datetime

from tweetletter.models import CanonicalPost, NarrativeSettings

logger = logging.getLogger(__name__)

DEFAULT_STYLE = "professional"

# ── Phrase sets ({author} is replaced with the post's handle) ──────────────
OPENINGS: dict[str, str] = {
    "professional": "In recent developments, {author} reports that",
    "casual": "Here's what's new: {author} tells us that",
    "storytelling": "Our story begins as {author} reveals that",
}

TRANSITIONS: dict[str, list[str]] = {
    "professional": [
        "Furthermore, {author} indicates that",
        "According to {author}'s analysis,",
        "As reported by {author},",
        "{author} emphasizes that",
    ],
    "casual": [
        "Meanwhile, {author} says",
        "{author} chimes in with",
        "{author} also mentions that",
        "Adding to this, {author} points out",
    ],
    "storytelling": [
        "The story continues as {author} reveals",
        "Adding to the narrative, {author} shares",
        "In an interesting twist, {author} notes",
        "The plot thickens when {author} explains",
    ],
}

CLOSINGS: dict[str, str] = {
    "professional": "Finally, {author} concludes that",
    "casual": "To wrap things up, {author} adds that",
    "storytelling": "The story concludes as {author} shares that",
}

_TONE_CLASSES = {"formal": "text-gray-800", "conversational": "text-gray-700"}

EMPTY_FRAGMENT = (
    '<div class="newsletter-section"><p class="narrative-empty">'
    "No news content available. Try fetching tweets or adjusting your filters."
    "</p></div>"
)

# Floor for the per-paragraph word budget.
_MIN_WORDS_PER_PARAGRAPH = 12

_RT_PREFIX_RE = re.compile(r"^RT @\w+:\s*")
_SHORT_LINK_RE = re.compile(r"https://t\.co/\w+")
_NEWLINES_RE = re.compile(r"\n+")
_SPACES_RE = re.compile(r" {2,}")


def clean_text(text: str) -> str:
    """Strip retweet prefix and t.co links, flatten newlines, capitalise."""
    text = _RT_PREFIX_RE.sub("", text)
    text = _SHORT_LINK_RE.sub("", text)
    text = _NEWLINES_RE.sub(" ", text)
    text = _SPACES_RE.sub(" ", text).strip()
    return text[:1].upper() + text[1:]


def resolve_style(style: str) -> str:
    key = (style or "").strip().lower()
    if key not in OPENINGS:
        logger.debug("Unknown narrative style %r; using %s", style, DEFAULT_STYLE)
        return DEFAULT_STYLE
    return key


def phrase_for(style: str, index: int, paragraph_count: int) -> str:
    """Pick the opening, closing or transition template for *index*."""
    style = resolve_style(style)
    if index == 0:
        return OPENINGS[style]
    if index == paragraph_count - 1:
        return CLOSINGS[style]
    transitions = TRANSITIONS[style]
    return transitions[index % len(transitions)]


def _limit_words(text: str, limit: int) -> str:
    words = text.split()
    if len(words) <= limit:
        return text
    return " ".join(words[:limit]).rstrip(",;:") + "…"


def _paragraph(post: CanonicalPost, phrase: str, sentence: str, tone_class: str) -> str:
    author = html.escape(post.author_handle)
    lead = phrase.format(author=author)
    return (
        f'<p class="narrative-paragraph mb-6 {tone_class} leading-relaxed" '
        f'data-author="{author}">{lead} {html.escape(sentence)}</p>'
    )


def synthesize(
    posts: list[CanonicalPost],
    settings: NarrativeSettings,
    now: datetime | None = None,
) -> str:
    """Render *posts* (already newest-first) as a narrative HTML fragment.

    Pass *now* to pin the "Last updated" line; otherwise the current UTC time
    is used. The fragment is untrusted HTML and should be sanitised by the
    caller before display.
    """
    if not posts:
        return EMPTY_FRAGMENT

    paragraph_count = settings.paragraph_count
    word_budget = max(settings.word_count // paragraph_count, _MIN_WORDS_PER_PARAGRAPH)
    tone_class = _TONE_CLASSES.get(settings.tone, _TONE_CLASSES["conversational"])

    paragraphs: list[str] = []
    for index, post in enumerate(posts[:paragraph_count]):
        sentence = _limit_words(clean_text(post.text), word_budget)
        phrase = phrase_for(settings.style, index, paragraph_count)
        paragraphs.append(_paragraph(post, phrase, sentence, tone_class))

    stamp = (now or datetime.now(UTC)).strftime("%Y-%m-%d %H:%M %Z").strip()
    logger.info(
        "Synthesised %d paragraphs (style=%s, tone=%s)",
        len(paragraphs),
        resolve_style(settings.style),
        settings.tone,
    )
    body = "\n    ".join(paragraphs)
    return (
        '<div class="narrative-content">\n'
        '  <div class="prose max-w-none">\n'
        '    <h2 class="text-2xl font-semibold mb-4">Latest Updates</h2>\n'
        f"    {body}\n"
        f'    <div class="narrative-updated text-sm text-muted-foreground mt-8">'
        f"Last updated: {stamp}</div>\n"
        "  </div>\n"
        "</div>"
    )
