"""Change propagation for a live intake form.

FormSession owns the current answers, the ClassificationState derived from
them and the resulting field/section visibility. Every change goes through
``commit``:

- a budget or duration change recomputes the complexity level,
- a problem-category change recomputes the project type,
- if either axis moved, every field is re-resolved,
- otherwise only the fields that depend on the changed field are.

A pass clears the value of every field it hides. When a cleared field has
dependents of its own they are re-resolved in the same pass. When a cleared
field is a classification input, the state is re-derived and, if it moved,
the pass widens to every field. A pass always settles and running it again
changes nothing.

Free-text edits are debounced: ``edit`` on a text/textarea/date field only
schedules the commit, and ``poll`` fires it once the field has been quiet for
``text_debounce_seconds``. Choice fields commit immediately.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from app.catalog import Catalog
from app.classification import COMPLEXITY_INPUTS, TYPE_INPUTS, classify_values
from app.config import get_settings
from app.schema import ClassificationState, FieldDescriptor
from app.visibility import (
    empty_value,
    initial_visibility,
    is_empty,
    resolve,
    section_visibility,
)

logger = logging.getLogger(__name__)


@dataclass
class PassResult:
    """Outcome of one propagation pass."""

    scope: str                 # full | targeted | none
    previous_state: ClassificationState
    state: ClassificationState
    shown: list[str] = field(default_factory=list)
    hidden: list[str] = field(default_factory=list)
    cleared: list[str] = field(default_factory=list)

    @property
    def classification_changed(self) -> bool:
        return self.previous_state != self.state


class Debouncer:
    """Per-key trailing-edge debounce driven by an explicit poll.

    Submitting a key again before its deadline discards the pending callback
    and restarts the quiet period.
    """

    def __init__(self, wait: float, clock: Callable[[], float] = time.monotonic):
        self.wait = wait
        self._clock = clock
        self._pending: dict[str, tuple[float, Callable[[], Any]]] = {}

    @property
    def pending(self) -> list[str]:
        return list(self._pending)

    def submit(self, key: str, callback: Callable[[], Any]) -> None:
        self._pending[key] = (self._clock() + self.wait, callback)

    def cancel(self, key: str) -> None:
        self._pending.pop(key, None)

    def clear(self) -> None:
        self._pending.clear()

    def poll(self) -> list[Any]:
        """Fire every callback whose quiet period has elapsed."""
        now = self._clock()
        due = sorted(
            (deadline, key) for key, (deadline, _cb) in self._pending.items()
            if deadline <= now
        )
        return [self._pending.pop(key)[1]() for _deadline, key in due]

    def flush(self) -> list[Any]:
        """Fire every pending callback now, oldest deadline first."""
        due = sorted((deadline, key) for key, (deadline, _cb) in self._pending.items())
        return [self._pending.pop(key)[1]() for _deadline, key in due]


def normalize_value(field_def: FieldDescriptor, value: Any) -> str | list[str]:
    """Coerce a raw value into the shape stored for the field's kind.

    Checkbox groups store a list of checked options in option order; values
    that aren't options keep their given order after the known ones.
    """
    if field_def.is_multi_valued:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            items = [v for v in value.split("|") if v]
        else:
            items = [str(v) for v in value if str(v)]
        known = [o for o in field_def.options if o in items]
        extra = [v for v in items if v not in field_def.options]
        return known + extra
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "|".join(str(v) for v in value)
    return str(value)


class FormSession:
    """Answers, classification and visibility of one form being filled in."""

    def __init__(
        self,
        catalog: Catalog,
        values: Mapping[str, Any] | None = None,
        *,
        debounce_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.catalog = catalog
        self.values: dict[str, str | list[str]] = {f.field_id: empty_value(f) for f in catalog}
        if values:
            self._load(values)
        self.state = ClassificationState()
        self.visibility: dict[str, bool] = {f.field_id: initial_visibility(f) for f in catalog}
        self.sections: dict[str, bool] = section_visibility(catalog, self.visibility)

        if debounce_seconds is None:
            debounce_seconds = get_settings().text_debounce_seconds
        self._debouncer = Debouncer(debounce_seconds, clock)

    # -- Lifecycle ------------------------------------------------------------

    def start(self) -> PassResult:
        """Classify from the current values and resolve every field."""
        previous = self.state
        self.state = classify_values(self.values)
        return self._run_pass(self.catalog.fields, previous, "full")

    def restore(self, values: Mapping[str, Any]) -> PassResult:
        """Replace the answers with saved ones and resolve every field."""
        self._debouncer.clear()
        self.values = {f.field_id: empty_value(f) for f in self.catalog}
        self._load(values)
        return self.start()

    def reset(self) -> PassResult:
        """Clear every answer and return to the default classification."""
        self._debouncer.clear()
        self.values = {f.field_id: empty_value(f) for f in self.catalog}
        previous = self.state
        self.state = ClassificationState()
        return self._run_pass(self.catalog.fields, previous, "full")

    def _load(self, values: Mapping[str, Any]) -> None:
        for field_id, value in values.items():
            field_def = self.catalog.get(field_id)
            if field_def is not None:
                self.values[field_id] = normalize_value(field_def, value)

    # -- Changes --------------------------------------------------------------

    def edit(self, field_id: str, value: Any) -> PassResult | None:
        """Raw input from a widget.

        Text-like fields are debounced and return None; choice fields are
        committed at once.
        """
        field_def = self.catalog.get(field_id)
        if field_def is None:
            return None
        if field_def.is_text_like:
            self._debouncer.submit(field_id, lambda: self.commit(field_id, value))
            return None
        return self.commit(field_id, value)

    def poll(self) -> list[PassResult]:
        """Commit debounced edits whose quiet period has elapsed."""
        return self._debouncer.poll()

    def flush(self) -> list[PassResult]:
        """Commit every pending debounced edit now."""
        return self._debouncer.flush()

    @property
    def pending_edits(self) -> list[str]:
        return self._debouncer.pending

    def commit(self, field_id: str, value: Any) -> PassResult:
        """Apply a committed value change and propagate it."""
        previous = self.state
        field_def = self.catalog.get(field_id)
        if field_def is None:
            logger.debug("Ignoring change to unknown field %r", field_id)
            return PassResult("none", previous, previous)
        self._debouncer.cancel(field_id)
        if not self.visibility.get(field_id, False):
            logger.debug("Ignoring change to hidden field %r", field_id)
            return PassResult("none", previous, previous)

        self.values[field_id] = normalize_value(field_def, value)

        if field_id in COMPLEXITY_INPUTS or field_id in TYPE_INPUTS:
            derived = classify_values(self.values)
            if field_id in COMPLEXITY_INPUTS:
                self.state = replace(self.state, complexity=derived.complexity)
            if field_id in TYPE_INPUTS:
                self.state = replace(self.state, project_type=derived.project_type)

        if self.state != previous:
            if self.state.complexity != previous.complexity:
                logger.info("Complexity changed from %s to %s", previous.complexity, self.state.complexity)
            if self.state.project_type != previous.project_type:
                logger.info("Project type changed from %s to %s", previous.project_type, self.state.project_type)
            return self._run_pass(self.catalog.fields, previous, "full")

        dependents = self.catalog.dependents_of(field_id)
        if dependents:
            return self._run_pass(dependents, previous, "targeted")
        return PassResult("none", previous, self.state)

    def _run_pass(
        self,
        candidates: Iterable[FieldDescriptor],
        previous: ClassificationState,
        scope: str,
    ) -> PassResult:
        before = dict(self.visibility)
        cleared: list[str] = []

        queue = list(candidates)
        while queue:
            next_round: list[FieldDescriptor] = []
            cleared_input = False
            for f in queue:
                visible = resolve(f, self.state, self.values)
                self.visibility[f.field_id] = visible
                if not visible and not is_empty(self.values[f.field_id]):
                    self.values[f.field_id] = empty_value(f)
                    cleared.append(f.field_id)
                    next_round.extend(self.catalog.dependents_of(f.field_id))
                    if f.field_id in COMPLEXITY_INPUTS or f.field_id in TYPE_INPUTS:
                        cleared_input = True

            # clearing a classification input can move the state
            if cleared_input:
                derived = classify_values(self.values)
                if derived != self.state:
                    logger.info("Classification changed from %s to %s after clearing hidden inputs",
                                self.state, derived)
                    self.state = derived
                    scope = "full"
                    next_round = self.catalog.fields
            queue = next_round

        self.sections = section_visibility(self.catalog, self.visibility)

        return PassResult(
            scope=scope,
            previous_state=previous,
            state=self.state,
            shown=[k for k, v in self.visibility.items() if v and not before[k]],
            hidden=[k for k, v in self.visibility.items() if not v and before[k]],
            cleared=cleared,
        )

    # -- Reads ----------------------------------------------------------------

    def get_value(self, field_id: str) -> str | list[str] | None:
        return self.values.get(field_id)

    def is_visible(self, field_id: str) -> bool:
        return self.visibility.get(field_id, False)

    def visible_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.catalog if self.visibility.get(f.field_id, False)]

    def visible_values(self) -> dict[str, str | list[str]]:
        """Flatten visible answers for submission.

        A checkbox group with one checked option becomes a plain string, with
        several an ordered list; unanswered choice groups are left out.
        """
        data: dict[str, str | list[str]] = {}
        for f in self.visible_fields():
            value = self.values[f.field_id]
            if isinstance(value, list):
                if len(value) == 1:
                    data[f.field_id] = value[0]
                elif value:
                    data[f.field_id] = list(value)
            elif f.kind == "radio-group" and not value:
                continue
            else:
                data[f.field_id] = value
        return data
