"""Forms for the user blueprint."""

from wtforms import StringField
from wtforms.validators import DataRequired, Length

from redrace.core.forms import JsonForm


class DisplayNameForm(JsonForm):
    """Form for changing the logged-in user's display name."""

    displayName = StringField(
        "Display name", validators=[DataRequired(), Length(max=50)]
    )
