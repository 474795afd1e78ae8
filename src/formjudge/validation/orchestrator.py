"""Validation orchestrator for formjudge.

Runs every rule attached to a field through the registry, waits for all
returned Validations to close and reports the aggregated outcome to the
caller's callbacks. Whole-form validation runs each field the same way and
settles once every field has settled.

A field run moves idle -> running -> settled. Triggering a field again while
its previous run is still running supersedes the old run: late closes from
the old run are ignored, and only the new run fires callbacks.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from formjudge.errors import DescriptorError, UnknownValidatorError
from formjudge.validation.fields import FieldElement, Form
from formjudge.validation.registry import ValidatorRegistry
from formjudge.validation.state import Validation
from formjudge.validation.types import parse_descriptors

logger = logging.getLogger(__name__)


class FieldStatus(Enum):
    """How a field run settled."""

    VALID = "valid"
    INVALID = "invalid"
    ERRORED = "errored"  # validity unknown (transport or validator failure)
    SKIPPED = "skipped"  # descriptor binding unusable


@dataclass
class FieldResult:
    """Settled outcome of one field run.

    Attributes:
        field: The validated field
        status: How the run settled
        messages: Aggregated messages, in descriptor order
        errors: Errors from Validations that closed without a verdict
    """

    field: FieldElement
    status: FieldStatus
    messages: list[str] = field(default_factory=list)
    errors: list[BaseException] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.status is FieldStatus.VALID

    def to_dict(self) -> dict:
        return {
            "field": self.field.name,
            "status": self.status.value,
            "messages": list(self.messages),
            "errors": [str(e) for e in self.errors],
        }


@dataclass
class FormResult:
    """Settled outcome of a whole-form run."""

    form: Form
    results: list[FieldResult] = field(default_factory=list)

    def _with_status(self, status: FieldStatus) -> list[FieldResult]:
        return [r for r in self.results if r.status is status]

    @property
    def invalid_fields(self) -> list[FieldElement]:
        return [r.field for r in self._with_status(FieldStatus.INVALID)]

    @property
    def errored_fields(self) -> list[FieldElement]:
        return [r.field for r in self._with_status(FieldStatus.ERRORED)]

    @property
    def skipped_fields(self) -> list[FieldElement]:
        return [r.field for r in self._with_status(FieldStatus.SKIPPED)]

    @property
    def valid(self) -> bool:
        """True when no field is invalid or errored. Skipped fields don't count."""
        return not self.invalid_fields and not self.errored_fields

    def to_dict(self) -> dict:
        return {
            "form": self.form.name,
            "valid": self.valid,
            "fields": [r.to_dict() for r in self.results],
        }


@dataclass
class FieldCallbacks:
    """Caller-supplied callbacks for a field run. Exactly one fires per settle."""

    valid: Callable[[FieldElement], None] | None = None
    invalid: Callable[[FieldElement, list[str]], None] | None = None
    error: Callable[[FieldElement, list[BaseException]], None] | None = None


@dataclass
class FormCallbacks:
    """Caller-supplied callbacks for a form run. Exactly one fires per settle."""

    valid: Callable[[Form], None] | None = None
    invalid: Callable[[Form, list[FieldElement]], None] | None = None
    error: Callable[[Form, list[FieldElement]], None] | None = None


class _FieldRun:
    """State of one in-progress field run."""

    def __init__(self, field: FieldElement, future: asyncio.Future):
        self.field = field
        self.future = future
        self.validations: list[Validation] = []
        self.remaining = 0
        self.superseded = False


def _forward(source: asyncio.Future, target: asyncio.Future) -> None:
    """Resolve target with source's result once source is done."""

    def done(f: asyncio.Future) -> None:
        if target.done():
            return
        if f.cancelled():
            target.cancel()
        elif f.exception() is not None:
            target.set_exception(f.exception())
        else:
            target.set_result(f.result())

    source.add_done_callback(done)


class ValidationOrchestrator:
    """Runs field and form validations against a registry.

    Example:
        orchestrator = ValidationOrchestrator(registry)
        result = await orchestrator.validate_field(
            field,
            FieldCallbacks(invalid=lambda f, msgs: show_errors(f, msgs)),
        )
    """

    def __init__(self, registry: ValidatorRegistry):
        self.registry = registry
        self._runs: dict[FieldElement, _FieldRun] = {}

    def is_running(self, field: FieldElement) -> bool:
        """Check if the field has an unsettled run."""
        return field in self._runs

    async def validate_field(
        self,
        field: FieldElement,
        callbacks: FieldCallbacks | None = None,
    ) -> FieldResult:
        """Validate one field and wait for it to settle.

        If the field is triggered again before this run settles, this call
        returns the newer run's result and this run's callbacks never fire.

        Args:
            field: The field to validate
            callbacks: valid/invalid/error callbacks for this run

        Returns:
            The settled FieldResult
        """
        callbacks = callbacks or FieldCallbacks()
        run = _FieldRun(field, asyncio.get_running_loop().create_future())

        previous = self._runs.get(field)
        self._runs[field] = run
        if previous is not None:
            logger.debug("Superseding running validation of '%s'", field.name)
            previous.superseded = True
            _forward(run.future, previous.future)

        self._start(run, callbacks)
        return await run.future

    async def validate_form(
        self,
        form: Form,
        callbacks: FieldCallbacks | None = None,
        form_callbacks: FormCallbacks | None = None,
    ) -> FormResult:
        """Validate every field of a form that carries rules.

        Fields run concurrently; the form settles once all of them have.

        Args:
            form: The form to validate
            callbacks: Field-level callbacks applied to every field
            form_callbacks: Callbacks fired once for the whole form

        Returns:
            The settled FormResult
        """
        fields = form.validated_fields()
        results = await asyncio.gather(*(self.validate_field(f, callbacks) for f in fields))
        result = FormResult(form=form, results=list(results))

        form_callbacks = form_callbacks or FormCallbacks()
        if result.invalid_fields:
            if form_callbacks.invalid:
                form_callbacks.invalid(form, result.invalid_fields)
        elif result.errored_fields:
            if form_callbacks.error:
                form_callbacks.error(form, result.errored_fields)
        elif form_callbacks.valid:
            form_callbacks.valid(form)

        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _start(self, run: _FieldRun, callbacks: FieldCallbacks) -> None:
        field = run.field
        try:
            descriptors = parse_descriptors(field.validate)
        except DescriptorError as e:
            logger.warning("Skipping validation of '%s': %s", field.name, e)
            self._finish(run, FieldResult(field, FieldStatus.SKIPPED, errors=[e]), None)
            return

        for descriptor in descriptors:
            if descriptor.allow_blank and field.blank:
                continue

            try:
                validation = self.registry.invoke(
                    descriptor.kind, field, descriptor.options, descriptor.messages
                )
            except UnknownValidatorError:
                logger.warning(
                    "Skipping unknown validator '%s' on '%s'", descriptor.kind, field.name
                )
                continue
            except Exception as e:
                logger.exception("Validator '%s' failed on '%s'", descriptor.kind, field.name)
                validation = Validation()
                validation.fail(e)

            run.validations.append(validation)

        run.remaining = len(run.validations)
        if run.remaining == 0:
            self._settle(run, callbacks)
            return

        for validation in run.validations:
            validation.on_close(lambda _v: self._closed(run, callbacks))

    def _closed(self, run: _FieldRun, callbacks: FieldCallbacks) -> None:
        if run.superseded:
            return
        run.remaining -= 1
        if run.remaining == 0:
            self._settle(run, callbacks)

    def _settle(self, run: _FieldRun, callbacks: FieldCallbacks) -> None:
        messages: list[str] = []
        errors: list[BaseException] = []
        for validation in run.validations:
            if validation.error is not None:
                errors.append(validation.error)
            else:
                messages.extend(validation.messages)

        # A known failure outranks an unknown one
        if messages:
            status = FieldStatus.INVALID
        elif errors:
            status = FieldStatus.ERRORED
        else:
            status = FieldStatus.VALID

        self._finish(run, FieldResult(run.field, status, messages, errors), callbacks)

    def _finish(
        self,
        run: _FieldRun,
        result: FieldResult,
        callbacks: FieldCallbacks | None,
    ) -> None:
        if self._runs.get(run.field) is run:
            del self._runs[run.field]

        try:
            if callbacks is not None:
                self._notify(result, callbacks)
        except Exception as e:
            logger.exception("Callback for '%s' raised", run.field.name)
            run.future.set_exception(e)
            return

        run.future.set_result(result)

    @staticmethod
    def _notify(result: FieldResult, callbacks: FieldCallbacks) -> None:
        if result.status is FieldStatus.VALID:
            if callbacks.valid:
                callbacks.valid(result.field)
        elif result.status is FieldStatus.INVALID:
            if callbacks.invalid:
                callbacks.invalid(result.field, list(result.messages))
        elif result.status is FieldStatus.ERRORED:
            if callbacks.error:
                callbacks.error(result.field, list(result.errors))
