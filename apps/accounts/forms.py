from django import forms
from django.utils.translation import gettext_lazy as _


# LOGIN FORM
class LoginForm(forms.Form):
    email = forms.EmailField(
        label=_('Email Address'),
        max_length=255,
        required=True,
        error_messages={'required': _('Email is required'), 'invalid': _('Enter a valid email address')},
    )

    password = forms.CharField(
        label=_('Password'),
        required=True,
        strip=False,
        error_messages={'required': _('Password is required')},
    )

    remember = forms.BooleanField(
        label=_('Remember me'),
        required=False,
        initial=False,
    )

    def clean_email(self):

        email = self.cleaned_data.get('email', '')
        return email.lower().strip()
