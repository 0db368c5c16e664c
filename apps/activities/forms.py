from datetime import timedelta

from django import forms
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.accounts.models import User
from .models import Activity


class ActivityCreateForm(forms.ModelForm):
    """
    New activity, with or without a prospect

    - custom_type is only kept when the type is "Otro"
    - is_urgent dates the activity yesterday so it shows as overdue
    - assigned_to defaults to the creator (set in the view)
    """

    is_urgent = forms.BooleanField(required=False)

    class Meta:
        model = Activity
        fields = ['prospect', 'activity_type', 'custom_type', 'scheduled_date', 'notes', 'assigned_to']

        error_messages = {
            'activity_type': {'required': 'Activity type is required', 'invalid_choice': 'Invalid activity type'},
            'scheduled_date': {'invalid': 'Invalid date format, expected YYYY-MM-DD'},
            'prospect': {'invalid_choice': 'Prospect does not exist'},
            'assigned_to': {'invalid_choice': 'Assigned user does not exist'},
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['assigned_to'].queryset = User.objects.filter(is_active=True)
        self.fields['scheduled_date'].required = False

    def clean_custom_type(self):
        return (self.cleaned_data.get('custom_type') or '').strip() or None

    def clean(self):
        cleaned_data = super().clean()
        activity_type = cleaned_data.get('activity_type')
        today = timezone.localdate()

        if activity_type == Activity.TYPE_OTHER:
            if not cleaned_data.get('custom_type'):
                raise ValidationError({'custom_type': 'Specify the activity type'})
        else:
            cleaned_data['custom_type'] = None

        if cleaned_data.get('is_urgent'):
            cleaned_data['scheduled_date'] = today - timedelta(days=1)
        elif not cleaned_data.get('scheduled_date'):
            if 'scheduled_date' not in self.errors:
                raise ValidationError({'scheduled_date': 'Scheduled date is required'})
        elif cleaned_data['scheduled_date'] < today:
            raise ValidationError({'scheduled_date': 'Scheduled date cannot be in the past'})

        return cleaned_data


class ActivityOutcomeForm(forms.Form):
    OUTCOME_CHOICES = [
        ('complete', 'Completada'),
        ('not-complete', 'No completada'),
        ('block', 'Bloqueada'),
    ]

    outcome = forms.ChoiceField(choices=OUTCOME_CHOICES, error_messages={'required': 'Outcome is required', 'invalid_choice': 'Invalid outcome'})
    comment = forms.CharField(required=False, strip=True)


class NextActivityForm(forms.Form):
    activity_type = forms.ChoiceField(choices=Activity.TYPE_CHOICES, error_messages={'required': 'Activity type is required', 'invalid_choice': 'Invalid activity type'})
    custom_type = forms.CharField(required=False, max_length=100)
    scheduled_date = forms.DateField(error_messages={'required': 'Scheduled date is required', 'invalid': 'Invalid date format, expected YYYY-MM-DD'})
    description = forms.CharField(required=False, strip=True)
