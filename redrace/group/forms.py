"""Forms for the group blueprint."""

from wtforms import StringField
from wtforms.validators import DataRequired, Optional

from redrace.core.forms import JsonForm


class CreateGroupForm(JsonForm):
    """Form for drawing a group from the seeding pots."""

    pot1UserId = StringField("Pot 1 runner", validators=[DataRequired()])
    pot2UserId = StringField("Pot 2 runner", validators=[DataRequired()])
    pot3UserId = StringField("Pot 3 runner", validators=[Optional()])
    round = StringField("Round", validators=[Optional()])
    bracket = StringField("Bracket", validators=[Optional()])
