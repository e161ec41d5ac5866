"""Markdown string bodies to rich-text blocks via markdown-it tokens"""

from markdown_it import MarkdownIt

from postingest.core.utils.keys import new_key


DECORATORS: dict[str, str] = {
    'strong_open': 'strong',
    'em_open':     'em',
    's_open':      'strike-through',
}
CLOSERS = {'strong_close', 'em_close', 's_close', 'link_close'}


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset)


def _heading_style(token) -> str | None:
    """Return 'h1'..'h6' for heading_open tokens, else None."""
    if token.type == 'heading_open' and len(token.tag) == 2 and token.tag[1].isdigit():
        return token.tag
    return None


def _append_span(spans: list[dict], text: str, marks: list[str]) -> None:
    """Add text, merging into the previous span when marks are identical."""
    if not text:
        return
    if spans and spans[-1]['marks'] == marks:
        spans[-1]['text'] += text
        return
    spans.append({'_type': 'span', 'text': text, 'marks': list(marks)})


def _inline_to_spans(token) -> tuple[list[dict], list[dict]]:
    """Convert an inline token's children to (spans, markDefs)."""
    spans: list[dict] = []
    mark_defs: list[dict] = []
    marks: list[str] = []

    for child in token.children or []:
        if child.type == 'text':
            _append_span(spans, child.content, marks)
        elif child.type in ('softbreak', 'hardbreak'):
            _append_span(spans, '\n', marks)
        elif child.type == 'html_inline':
            _append_span(spans, child.content, marks)
        elif child.type == 'code_inline':
            _append_span(spans, child.content, marks + ['code'])
        elif child.type in DECORATORS:
            marks.append(DECORATORS[child.type])
        elif child.type == 'link_open':
            key = new_key()
            mark_defs.append({'_key': key, '_type': 'link', 'href': child.attrGet('href') or ''})
            marks.append(key)
        elif child.type in CLOSERS and marks:
            marks.pop()
        elif child.type == 'image':
            _append_span(spans, child.content, marks)

    return spans or [{'_type': 'span', 'text': '', 'marks': []}], mark_defs


def markdown_to_blocks(text: str, preset: str = 'commonmark') -> list[dict]:
    """Convert markdown text to unkeyed rich-text blocks (keys are added by repair_body)."""
    tokens = _make_parser(preset).parse(text or '')
    blocks: list[dict] = []
    lists: list[str] = []
    quote_depth = 0
    heading: str | None = None

    for tok in tokens:
        if tok.type == 'bullet_list_open':
            lists.append('bullet')
        elif tok.type == 'ordered_list_open':
            lists.append('number')
        elif tok.type in ('bullet_list_close', 'ordered_list_close'):
            lists.pop()
        elif tok.type == 'blockquote_open':
            quote_depth += 1
        elif tok.type == 'blockquote_close':
            quote_depth -= 1
        elif tok.type == 'heading_open':
            heading = _heading_style(tok)
        elif tok.type == 'heading_close':
            heading = None
        elif tok.type == 'html_block':
            # Raw HTML is kept verbatim as text
            blocks.append({
                '_type': 'block', 'style': 'normal', 'markDefs': [],
                'children': [{'_type': 'span', 'text': tok.content.strip('\n'), 'marks': []}],
            })
        elif tok.type in ('fence', 'code_block'):
            blocks.append({
                '_type': 'block', 'style': 'normal', 'markDefs': [],
                'children': [{'_type': 'span', 'text': tok.content.rstrip('\n'), 'marks': ['code']}],
            })
        elif tok.type == 'inline':
            spans, mark_defs = _inline_to_spans(tok)
            block = {'_type': 'block', 'style': 'normal', 'markDefs': mark_defs, 'children': spans}
            if heading:
                block['style'] = heading
            elif lists:
                block['listItem'] = lists[-1]
                block['level'] = len(lists)
            elif quote_depth:
                block['style'] = 'blockquote'
            blocks.append(block)

    return blocks
