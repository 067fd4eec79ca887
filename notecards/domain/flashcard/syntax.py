"""
Flashcard syntax highlighting.

Locates flashcard markers inside block text so the editor can replace them
with icons. Unlike the parser, overlapping markers are resolved by position
and length: the longest marker starting at a position wins.
"""

import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Pattern, Tuple

from ..editor.models import DocumentNode, Visit
from .models import CardType


class SyntaxPattern(NamedTuple):
    pattern: Pattern[str]
    card_type: CardType
    disabled: bool


def _marker(marker: str, card_type: CardType, disabled: bool = False) -> SyntaxPattern:
    return SyntaxPattern(re.compile(re.escape(marker)), card_type, disabled)


SYNTAX_PATTERNS: Tuple[SyntaxPattern, ...] = (
    _marker(">>-", CardType.BASIC, True),
    _marker("<<-", CardType.BASIC, True),
    _marker("<>-", CardType.BASIC, True),
    _marker("==-", CardType.BASIC, True),
    _marker("::-", CardType.CONCEPT, True),
    _marker(":>-", CardType.CONCEPT, True),
    _marker(":<-", CardType.CONCEPT, True),
    _marker(";;<>-", CardType.DESCRIPTOR, True),
    _marker(";;<-", CardType.DESCRIPTOR, True),
    _marker(";;-", CardType.DESCRIPTOR, True),
    _marker(">>>", CardType.BASIC),
    _marker("<<<", CardType.BASIC),
    _marker("<><>", CardType.BASIC),
    _marker("===", CardType.BASIC),
    _marker(":::", CardType.CONCEPT),
    _marker(":>>", CardType.CONCEPT),
    _marker(":<<", CardType.CONCEPT),
    _marker(";;;", CardType.DESCRIPTOR),
    _marker(";;<>", CardType.DESCRIPTOR),
    _marker(";<<", CardType.DESCRIPTOR),
    _marker(";<>", CardType.DESCRIPTOR),
    _marker("<>", CardType.BASIC),
    _marker(">>", CardType.BASIC),
    _marker("<<", CardType.BASIC),
    _marker("==", CardType.BASIC),
    _marker("::", CardType.CONCEPT),
    _marker(":>", CardType.CONCEPT),
    _marker(":<", CardType.CONCEPT),
    _marker(";;", CardType.DESCRIPTOR),
    _marker(";<", CardType.DESCRIPTOR),
    SyntaxPattern(re.compile(r"\{\{([^}]+)\}\}"), CardType.CLOZE, False),
)

ICON_NAMES = {
    CardType.BASIC: "arrow-left-right",
    CardType.CONCEPT: "lightbulb",
    CardType.DESCRIPTOR: "file-text",
    CardType.CLOZE: "grid",
}

HIDDEN_CLASS = "flashcard-syntax-hidden"
CLOZE_CONTENT_CLASS = "flashcard-cloze-content"


@dataclass(frozen=True)
class SyntaxMatch:
    """A marker occurrence, as offsets into the block text."""

    from_: int
    to: int
    card_type: CardType
    disabled: bool
    text: str

    def overlaps(self, other: 'SyntaxMatch') -> bool:
        return self.from_ < other.to and other.from_ < self.to


class Selection(NamedTuple):
    from_: int
    to: int


@dataclass(frozen=True)
class Decoration:
    """Editor decoration: an icon widget at a point or a class over a range."""

    kind: str
    from_: int
    to: int
    css_class: Optional[str] = None
    html: Optional[str] = None
    side: int = 0
    key: Optional[str] = None

    @classmethod
    def widget(cls, pos: int, html: str, side: int, key: str) -> 'Decoration':
        return cls(kind="widget", from_=pos, to=pos, html=html, side=side, key=key)

    @classmethod
    def inline(cls, from_: int, to: int, css_class: str) -> 'Decoration':
        return cls(kind="inline", from_=from_, to=to, css_class=css_class)


def icon_html(card_type: CardType, disabled: bool) -> str:
    """Render the icon shown in place of a marker."""
    variant = "disabled" if disabled else card_type.value
    icon_class = f"flashcard-icon flashcard-icon-{variant}"
    return f'<span class="{icon_class}" contenteditable="false" data-icon="{ICON_NAMES[card_type]}"></span>'


def find_flashcard_syntax(text: str) -> List[SyntaxMatch]:
    """
    Find flashcard markers in text.

    Args:
        text (str): Block text

    Returns:
        List[SyntaxMatch]: Non-overlapping matches ordered by position
    """
    matches = [
        SyntaxMatch(match.start(), match.end(), syntax.card_type, syntax.disabled, match.group(0))
        for syntax in SYNTAX_PATTERNS
        for match in syntax.pattern.finditer(text)
    ]
    matches.sort(key=lambda m: (m.from_, -len(m.text)))

    accepted: List[SyntaxMatch] = []
    for match in matches:
        if not any(match.overlaps(existing) for existing in accepted):
            accepted.append(match)
    return accepted


def _selection_in_node(selection: Selection, pos: int, node: DocumentNode) -> bool:
    node_end = pos + node.node_size
    return pos <= selection.from_ <= node_end or pos <= selection.to <= node_end


def _decorate(match: SyntaxMatch, from_: int, to: int) -> List[Decoration]:
    icon = icon_html(match.card_type, match.disabled)
    if match.card_type is not CardType.CLOZE:
        return [
            Decoration.widget(from_, icon, side=-1, key=f"flashcard-icon-{from_}"),
            Decoration.inline(from_, to, HIDDEN_CLASS),
        ]

    # Cloze content stays visible, only the braces are hidden
    return [
        Decoration.widget(from_, icon, side=-1, key=f"flashcard-icon-before-{from_}"),
        Decoration.inline(from_, from_ + 2, HIDDEN_CLASS),
        Decoration.inline(to - 2, to, HIDDEN_CLASS),
        Decoration.inline(from_ + 2, to - 2, CLOZE_CONTENT_CLASS),
        Decoration.widget(to, icon, side=1, key=f"flashcard-icon-after-{from_}"),
    ]


def build_decorations(doc: DocumentNode, selection: Optional[Selection] = None) -> List[Decoration]:
    """
    Build marker decorations for every text block of a document.

    Blocks touched by the selection are left undecorated so their raw syntax
    stays editable.

    Args:
        doc (DocumentNode): Document root
        selection (Optional[Selection]): Current editor selection

    Returns:
        List[Decoration]: Decorations in document order
    """
    decorations: List[Decoration] = []

    def visit(node: DocumentNode, pos: int) -> Visit:
        if not node.is_textblock:
            return Visit.DESCEND
        if selection is not None and _selection_in_node(selection, pos, node):
            return Visit.SKIP

        for match in find_flashcard_syntax(node.text_content):
            decorations.extend(_decorate(match, pos + 1 + match.from_, pos + 1 + match.to))
        return Visit.SKIP

    doc.descendants(visit)
    return decorations
