"""Forms for the admin blueprint."""

from wtforms import BooleanField, SelectField, StringField
from wtforms.validators import DataRequired, Length, Optional

from redrace.constants import ROLE_COMMENTATOR, ROLES
from redrace.core.forms import JsonForm


class AddUserForm(JsonForm):
    """Form for adding a user or updating an existing one."""

    discordUsername = StringField(
        "Discord username", validators=[DataRequired(), Length(max=64)]
    )
    displayName = StringField("Display name", validators=[Optional(), Length(max=50)])
    role = SelectField(
        "Role", choices=[(r, r) for r in ROLES], default=ROLE_COMMENTATOR
    )
    isAdmin = BooleanField("Admin")
