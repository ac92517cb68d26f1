"""Helpers for validating JSON bodies with WTForms."""

from __future__ import annotations

from typing import TypeVar

from flask_wtf import FlaskForm  # type: ignore

from redrace.errors import ValidationError

F = TypeVar("F", bound=FlaskForm)


class JsonForm(FlaskForm):
    """A form filled from a JSON request body.

    CSRFProtect checks the token header for these requests, so the form
    carries no token field of its own.
    """

    class Meta:
        csrf = False


def validated(form_cls: type[F]) -> F:
    """Build ``form_cls`` from the current request or raise ValidationError."""
    form = form_cls()
    if not form.validate():
        for field, errors in form.errors.items():
            label = getattr(form, field).label.text if hasattr(form, field) else field
            raise ValidationError(f"{label}: {errors[0]}")
    return form
