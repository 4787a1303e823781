# Turn raw version content (HTML, markdown-ish text, extracted PDF text)
# into display HTML and into plain text for diffing.
import html
import re
from dataclasses import dataclass
from typing import List, Optional

from versions import Section

WRAP_OPEN  = '<div class="bill-text-content">'
WRAP_CLOSE = "</div>"

HTML_TAG_RE = re.compile(
    r"<(?:!doctype|html|body|table|tr|td|th|div|p|span|br|h[1-6]|ul|ol|li|pre|code|"
    r"font|center|b|i|u|s|strike|em|strong)\b[^>]*>",
    re.IGNORECASE,
)
MD_HINT_RE = re.compile(r"(^#{1,3} |^- |\*\*[^*\n]+\*\*|\*(?=[^\s*])[^*\n]+?(?<=[^\s*])\*)", re.MULTILINE)


def detect_content_type(raw: str) -> str:
    """Return "html", "markdown" or "text"."""
    if not raw:
        return "text"
    if HTML_TAG_RE.search(raw):
        return "html"
    if MD_HINT_RE.search(raw):
        return "markdown"
    return "text"


def is_html(raw: str) -> bool:
    return detect_content_type(raw) == "html"


# flattening

def html_to_text(s: str) -> str:
    s = re.sub(r"(?is)<(script|style)[^>]*>.*?</\1>", " ", s)
    s = re.sub(r"(?is)<br\s*/?>", "\n", s)
    s = re.sub(r"(?is)</p>", "\n\n", s)
    s = re.sub(r"(?is)</(h\d|div|section|li|tr|td|thead|tbody)>", "\n", s)
    s = re.sub(r"(?is)<li[^>]*>", " • ", s)
    s = re.sub(r"(?is)<[^>]+>", " ", s)
    s = html.unescape(s)
    s = s.replace("\u00A0", " ")
    s = re.sub(r"[ \t]+", " ", s)
    s = re.sub(r"\n\s*\n\s*\n+", "\n\n", s)
    return s.strip()


HEADING_RE   = re.compile(r"^(#{1,3})[ \t]+(.+?)[ \t]*$", re.MULTILINE)
BOLD_RE      = re.compile(r"\*\*([^*\n]+)\*\*")
# emphasis hugs its text; "5 * 3 * 2" is arithmetic, not italics
ITALIC_RE    = re.compile(r"\*(?=[^\s*])([^*\n]+?)(?<=[^\s*])\*")
LIST_ITEM_RE = re.compile(r"^- (.+)$", re.MULTILINE)


def strip_markdown(s: str) -> str:
    s = HEADING_RE.sub(r"\2", s)
    s = BOLD_RE.sub(r"\1", s)
    return ITALIC_RE.sub(r"\1", s)


def to_plain_text(raw: str) -> str:
    """Plain text for the line diff; markup must not leak into the token stream."""
    if not raw:
        return ""
    kind = detect_content_type(raw)
    if kind == "html":
        s = html_to_text(raw)
    else:
        s = raw.replace("\r\n", "\n").replace("\r", "\n")
        if kind == "markdown":
            s = strip_markdown(s)
    s = s.replace("\u00A0", " ")
    trim = str.strip if kind == "html" else str.rstrip
    s = "\n".join(trim(ln) for ln in s.split("\n"))
    return s.strip()


# display html

def _collapse(s: str) -> str:
    s = re.sub(r">\s+<", "><", s)
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def _wrap_lists(s: str) -> str:
    out: List[str] = []
    run: List[str] = []
    for ln in s.split("\n"):
        if ln.startswith("<li>"):
            run.append(ln)
            continue
        if run:
            out.append("<ul>" + "".join(run) + "</ul>")
            run = []
        out.append(ln)
    if run:
        out.append("<ul>" + "".join(run) + "</ul>")
    return "\n".join(out)


def markdown_to_html(text: str) -> str:
    s = html.escape(text.replace("\r\n", "\n").replace("\r", "\n"), quote=False)
    s = HEADING_RE.sub(lambda m: f"<h{len(m.group(1))}>{m.group(2)}</h{len(m.group(1))}>", s)
    # bold first so "**" is never read as two italics
    s = BOLD_RE.sub(r"<strong>\1</strong>", s)
    s = ITALIC_RE.sub(r"<em>\1</em>", s)
    s = LIST_ITEM_RE.sub(r"<li>\1</li>", s)
    return _wrap_lists(s)


def _document_body(s: str) -> str:
    s = re.sub(r"(?is)<!doctype[^>]*>", " ", s)
    s = re.sub(r"(?is)<head[^>]*>.*?</head>", " ", s)
    m = re.search(r"(?is)<body[^>]*>(.*?)(?:</body>|$)", s)
    if m:
        s = m.group(1)
    return re.sub(r"(?is)</?html[^>]*>", " ", s)


EMBED_RE    = re.compile(r"(?is)<(script|style|iframe|object|embed)\b[^>]*>.*?</\1\s*>|<(?:script|iframe|object|embed)\b[^>]*/?>")
HANDLER_RE  = re.compile(r"""(?is)\s+on[a-z]+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""")
JS_URL_RE   = re.compile(r"""(?is)\s+(?:href|src|action|formaction|xlink:href)\s*=\s*(?:"\s*javascript:[^"]*"|'\s*javascript:[^']*'|javascript:[^\s>]*)""")
OPEN_TAG_RE = re.compile(r"<[a-zA-Z][^>]*>")


def _clean_tag(m: "re.Match") -> str:
    return JS_URL_RE.sub("", HANDLER_RE.sub("", m.group(0)))


def strip_active_content(s: str) -> str:
    """Drop scripts, embeds, event handler attributes and javascript: URLs."""
    s = EMBED_RE.sub(" ", s)
    return OPEN_TAG_RE.sub(_clean_tag, s)


def clean_html_content(s: str) -> str:
    s = strip_active_content(s)
    if re.search(r"(?is)<!doctype|<html\b|<body\b", s):
        s = _document_body(s)
    if "<table" in s.lower() and ("<tr" in s.lower() or "SECTION" in s):
        return extract_meaningful_content(s).to_html()
    return s


def normalize(raw: str) -> str:
    """HTML-safe, single-rooted display markup for a version's content."""
    if not raw or not raw.strip():
        return WRAP_OPEN + WRAP_CLOSE
    s = raw.strip()
    if s.startswith(WRAP_OPEN) and s.endswith(WRAP_CLOSE):
        return _collapse(strip_active_content(s))
    kind = detect_content_type(s)
    if kind == "html":
        body = clean_html_content(s)
    elif kind == "markdown":
        body = markdown_to_html(s)
    else:
        body = html.escape(s, quote=False)
    return f"{WRAP_OPEN}{_collapse(body)}{WRAP_CLOSE}"


# synopsis extraction for government-site pages

BILL_NUMBER_RE = re.compile(r"(?:HB|SB)\d+")
SYNOPSIS_RE    = re.compile(r"SYNOPSIS AS INTRODUCED:(.*?)(?:</td>|</code>)", re.IGNORECASE | re.DOTALL)
ACT_RE         = re.compile(r"AN ACT concerning(.*?)(?:</td>|</code>)", re.IGNORECASE | re.DOTALL)
GRID_TAG_RE    = re.compile(r"(?i)</?(?:table|tr|td|th|tbody|thead|colgroup|col|code)\b[^>]*>")


def _inner_text(s: str) -> str:
    s = re.sub(r"</?[^>]+(?:>|$)", "", s)
    s = html.unescape(s.replace("&nbsp;", " ")).replace("\u00A0", " ")
    return re.sub(r"\s+", " ", s).strip()


@dataclass
class ExtractedContent:
    bill_number: Optional[str] = None
    synopsis: Optional[str] = None
    act_content: Optional[str] = None
    body: Optional[str] = None

    def to_html(self) -> str:
        parts = []
        if self.bill_number:
            parts.append(f"<h2>{html.escape(self.bill_number)}</h2>")
        if self.synopsis:
            parts.append(f"<div><h3>SYNOPSIS</h3><p>{html.escape(self.synopsis)}</p></div>")
        if self.act_content:
            parts.append(f"<div><h3>ACT CONTENT</h3><p>{html.escape(self.act_content)}</p></div>")
        if self.body:
            paras = "".join(f"<p>{html.escape(p)}</p>" for p in self.body.split("\n\n"))
            parts.append(f"<div><h3>BILL TEXT</h3>{paras}</div>")
        return "".join(parts)


def extract_meaningful_content(page: str) -> ExtractedContent:
    """Pull the bill number, synopsis and act title out of a bill text page.

    Missing pieces are left as None; the sentence-filtered body is only
    filled in when neither the synopsis nor the act block was found.
    """
    out = ExtractedContent()
    m = BILL_NUMBER_RE.search(page)
    if m:
        out.bill_number = m.group(0)
    m = SYNOPSIS_RE.search(page)
    if m:
        out.synopsis = _inner_text(m.group(1)) or None
    m = ACT_RE.search(page)
    if m:
        out.act_content = _inner_text(m.group(1)) or None
    if out.synopsis or out.act_content:
        return out

    flat = GRID_TAG_RE.sub(" ", page)
    flat = re.sub(r"<[^>]+>", " ", flat)
    flat = html.unescape(flat.replace("&nbsp;", " ")).replace("\u00A0", " ")
    flat = re.sub(r"\s+", " ", flat)
    sentences = []
    for part in re.split(r"\.\s+", flat):
        part = part.strip()
        if len(part) > 20:
            sentences.append(part if part.endswith(".") else part + ".")
    if sentences:
        out.body = "\n\n".join(sentences)
    return out


# structure detection for flattened bill text

# line-start headings only; "Section 11-501 of the Code" is a reference, not a header
SEC_RE       = re.compile(r"^(?:SEC\.|Sec\.|SECTION|Section)\s+(\d+[A-Za-z\-]*)\.(?=\s|$)", re.MULTILINE)
TITLE_RE     = re.compile(r"^(?:TITLE\s+[IVXLC]+(?:\s*[\u2014-].*)?)$", re.MULTILINE)
DIVISION_RE  = re.compile(r"^(?:DIVISION\s+[A-Z](?:\s*[\u2014-].*)?)$", re.MULTILINE)
SUBTITLE_RE  = re.compile(r"^(?:SUBTITLE\s+[A-Z](?:\s*[\u2014-].*)?)$", re.MULTILINE)
MAX_SEC_MATCHES = 800


def _split_by_matches(raw: str, matches: List["re.Match"], id_prefix: str) -> List[Section]:
    blocks = []
    for i, m in enumerate(matches):
        end   = matches[i+1].start() if i+1 < len(matches) else len(raw)
        chunk = raw[m.start():end].strip()
        blocks.append(Section(id=f"{id_prefix}{i+1:03d}", title=m.group(0).strip(), content=chunk))
    return blocks


def split_sections(raw: str) -> List[Section]:
    raw = raw.strip()
    if not raw:
        return []
    sec = list(SEC_RE.finditer(raw))
    if sec and len(sec) <= MAX_SEC_MATCHES:
        out: List[Section] = []
        seen = set()
        preamble = raw[:sec[0].start()].strip()
        if preamble:
            out.append(Section(id="PRE", title="Preamble", content=preamble))
        for i, m in enumerate(sec):
            sid   = m.group(1)
            end   = sec[i+1].start() if i+1 < len(sec) else len(raw)
            block = raw[m.start():end].strip()
            head  = block.split("\n", 1)[0]
            title = head[m.end() - m.start():].strip() or f"Section {sid}"
            if sid in seen:
                sid = f"{sid}-{i+1}"
            seen.add(sid)
            out.append(Section(id=sid, title=title, content=block))
        return out
    for rx, pref in [(DIVISION_RE, "DIV"), (TITLE_RE, "TITLE"), (SUBTITLE_RE, "SUB")]:
        m = list(rx.finditer(raw))
        if m:
            return _split_by_matches(raw, m, pref)
    return [Section(id="ALL", title="FULL TEXT", content=raw)]
