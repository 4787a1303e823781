# Bill / version / section records and the checks run before comparing them
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from errors import UnknownVersionError


@dataclass(frozen=True)
class Section:
    id: str
    title: str
    content: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Section":
        return cls(id=str(d.get("id", "")), title=d.get("title") or "", content=d.get("content") or "")

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "content": self.content}


@dataclass(frozen=True)
class BillVersion:
    id: str
    name: str
    status: str = ""
    date: Optional[str] = None
    sections: Tuple[Section, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BillVersion":
        return cls(
            id=str(d.get("id", "")),
            name=d.get("name") or "",
            status=d.get("status") or "",
            date=d.get("date"),
            sections=tuple(Section.from_dict(s) for s in d.get("sections") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id, "name": self.name, "status": self.status, "date": self.date,
            "sections": [s.to_dict() for s in self.sections],
        }


@dataclass(frozen=True)
class Bill:
    id: str
    state: str
    number: str = ""
    title: str = ""
    sponsor: Optional[str] = None
    # versions embedded in the bill record itself (used when fetching fails)
    versions: Tuple[BillVersion, ...] = field(default_factory=tuple)

    @property
    def label(self) -> str:
        head = f"{self.state} {self.number}".strip() or self.id
        return f"{head} - {self.title}" if self.title else head


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    messages: Tuple[str, ...] = ()

    @property
    def message(self) -> str:
        return "; ".join(self.messages)


def has_content(version: BillVersion) -> bool:
    return any(s.content and s.content.strip() for s in version.sections)


def version_content(version: Optional[BillVersion]) -> str:
    """Content used for diffing: every non-empty section, in order."""
    if version is None:
        return ""
    return "\n\n".join(s.content for s in version.sections if s.content and s.content.strip())


def version_preview(version: Optional[BillVersion]) -> str:
    if version is None:
        return ""
    for s in version.sections:
        if s.content and s.content.strip():
            return s.content
    return ""


def validate(versions: Sequence[BillVersion]) -> ValidationResult:
    """Check that the original and amended versions carry text.

    Only the first two versions are inspected; they are the default pair the
    comparison view opens with.
    """
    if not versions:
        return ValidationResult(False, ("No versions available for comparison",))
    messages: List[str] = []
    for label, version in zip(("Original version", "Amended version"), versions[:2]):
        if not version.sections:
            messages.append(f"{label} has no sections")
        elif not has_content(version):
            messages.append(f"{label} sections have no content")
    return ValidationResult(not messages, tuple(messages))


def pick_default_pair(versions: Sequence[BillVersion]) -> Tuple[str, str]:
    if not versions:
        return "", ""
    if len(versions) == 1:
        return versions[0].id, versions[0].id
    return versions[0].id, versions[1].id


def find_version(versions: Sequence[BillVersion], version_id: str) -> BillVersion:
    for v in versions:
        if v.id == version_id:
            return v
    raise UnknownVersionError(version_id)
