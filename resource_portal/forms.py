"""
WTForms forms validating API input (JSON bodies and multipart uploads).
"""

from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import IntegerField, PasswordField, SelectMultipleField, StringField, TextAreaField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional, Regexp
from wtforms.validators import ValidationError as FieldError

from .exceptions import ValidationError


def first_error(form):
    """First field error of a form, as "field: message"."""
    for name, messages in form.errors.items():
        if messages:
            label = getattr(form, name).label.text if hasattr(form, name) else name
            return f'{label}: {messages[0]}'
    return 'Invalid input'


def validate_or_raise(form):
    if not form.validate():
        raise ValidationError(first_error(form))
    return form


class RegisterForm(FlaskForm):
    """Student self-registration."""
    email = StringField('Email', validators=[DataRequired(), Length(max=255),
                                             Regexp(r'^[^@\s]+@[^@\s]+\.[^@\s]+$', message='Invalid email')])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=6)])
    full_name = StringField('Full name', validators=[DataRequired(), Length(max=255)])


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])


class ProfileForm(FlaskForm):
    full_name = StringField('Full name', validators=[DataRequired(), Length(max=255)])


class UploadForm(FlaskForm):
    """Resource upload; tag choices are filled in by the view."""
    title = StringField('Title', validators=[DataRequired(), Length(max=255)])
    description = TextAreaField('Description', validators=[Optional()])
    file = FileField('File', validators=[FileRequired()])
    tag_ids = SelectMultipleField('Tags', coerce=str)


class ResourceEditForm(FlaskForm):
    title = StringField('Title', validators=[DataRequired(), Length(max=255)])
    description = TextAreaField('Description', validators=[Optional()])


class RejectForm(FlaskForm):
    reason = TextAreaField('Reason', validators=[Optional(), Length(max=1000)])


class RatingForm(FlaskForm):
    rating = IntegerField('Rating', validators=[InputRequired(), NumberRange(min=1, max=5)])
    review = TextAreaField('Review', validators=[Optional(), Length(max=5000)])

    def validate_rating(self, field):
        raw = field.raw_data[0] if field.raw_data else None
        if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
            raise FieldError('Rating must be a whole number')


class TagForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    color = StringField('Color', validators=[Optional(), Regexp(r'^#[0-9A-Fa-f]{6}$', message='Use #RRGGBB')])


class ResourceTagsForm(FlaskForm):
    tag_ids = SelectMultipleField('Tags', coerce=str)
