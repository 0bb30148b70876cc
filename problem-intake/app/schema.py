"""Data models for the Problem Intake form.

Dataclasses for field descriptors, the derived classification state and
submission records. All models support JSON serialization via the
to_dict/from_dict pattern.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

FIELD_KINDS = ("text", "textarea", "date", "select", "checkbox-group", "radio-group")
TEXT_KINDS = ("text", "textarea", "date")
CHOICE_KINDS = ("select", "checkbox-group", "radio-group")

COMPLEXITY_LEVELS = ("simple", "standard", "complex")
PROJECT_TYPES = ("strategic", "technical", "operational")

DEFAULT_COMPLEXITY = "simple"
DEFAULT_PROJECT_TYPE = "strategic"


@dataclass(frozen=True)
class FieldDescriptor:
    """A single field of the intake form, as loaded from the catalog."""

    field_id: str              # assigned once at catalog load
    label: str
    kind: str = "text"         # one of FIELD_KINDS
    section: str = ""
    instructions: str = ""
    placeholder: str = ""
    required: bool = False
    is_universal: bool = False
    show_by_default: bool = True
    complexity_flags: dict[str, bool] = field(default_factory=dict)
    type_flags: dict[str, bool] = field(default_factory=dict)
    depends_on_field: str = ""
    depends_on_values: tuple[str, ...] = ()
    options: tuple[str, ...] = ()

    @property
    def is_multi_valued(self) -> bool:
        return self.kind == "checkbox-group"

    @property
    def is_text_like(self) -> bool:
        return self.kind in TEXT_KINDS

    def to_dict(self) -> dict:
        d = asdict(self)
        d["depends_on_values"] = list(self.depends_on_values)
        d["options"] = list(self.options)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> FieldDescriptor:
        data = {k: v for k, v in d.items() if k in cls.__dataclass_fields__}
        data["depends_on_values"] = tuple(data.get("depends_on_values", ()))
        data["options"] = tuple(data.get("options", ()))
        return cls(**data)


@dataclass(frozen=True)
class ClassificationState:
    """Current complexity level and project type of the form.

    Derived from the classification inputs on every change; never stored
    on its own.
    """

    complexity: str = DEFAULT_COMPLEXITY
    project_type: str = DEFAULT_PROJECT_TYPE

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Submission:
    """A completed set of answers, as stored by the backend."""

    submission_id: str
    submitted_at: str
    answers: dict = field(default_factory=dict)
    status: str = "pending"    # pending | saved_locally

    def to_dict(self) -> dict:
        """Flatten into the wire shape: answers plus metadata keys."""
        return {
            **self.answers,
            "submissionId": self.submission_id,
            "submittedAt": self.submitted_at,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Submission:
        answers = {
            k: v for k, v in d.items()
            if k not in ("submissionId", "submittedAt", "status")
        }
        return cls(
            submission_id=d.get("submissionId", ""),
            submitted_at=d.get("submittedAt", ""),
            answers=answers,
            status=d.get("status", "pending"),
        )


@dataclass
class AuditEntry:
    """A single audit trail entry."""

    timestamp: str
    action: str                # submission_received | submission_rejected | submission_saved_locally | classification_changed
    submission_id: str = ""
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> AuditEntry:
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})
