from decimal import Decimal

from django import forms
from django.core.exceptions import ValidationError
from django.db.models import F

from .models import Prospect


class ProspectForm(forms.ModelForm):
    class Meta:
        model = Prospect
        fields = ['company_name', 'contact_name', 'phone', 'email', 'current_phase', 'estimated_value', 'notes']

        error_messages = {
            'company_name': {'required': 'Company name is required', 'max_length': 'Company name is too long (max 200 characters)'},
            'email': {'invalid': 'Enter a valid email address'},
            'current_phase': {'invalid_choice': 'Invalid phase'},
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        # Missing values fall back to the model defaults on create
        self.fields['current_phase'].required = False
        self.fields['estimated_value'].required = False

    def clean_company_name(self):
        company_name = (self.cleaned_data.get('company_name') or '').strip()
        if not company_name:
            raise ValidationError('Company name is required')
        return company_name

    def clean_email(self):
        email = self.cleaned_data.get('email')
        if email:
            return email.strip().lower()
        return None

    def clean_current_phase(self):
        phase = self.cleaned_data.get('current_phase')
        if not phase:
            return self.instance.current_phase if self.instance.pk else Prospect.PHASE_PROSPECTING
        return phase

    def clean_estimated_value(self):
        value = self.cleaned_data.get('estimated_value')
        if value is None:
            return self.instance.estimated_value if self.instance.pk else Decimal('0')
        if value < 0:
            raise ValidationError('Estimated value cannot be negative')
        return value


class ProspectPhaseChangeForm(forms.Form):
    phase = forms.ChoiceField(choices=Prospect.PHASE_CHOICES, required=True, error_messages={'required': 'Phase is required', 'invalid_choice': 'Invalid phase'})


class ProspectFilterForm(forms.Form):
    """Search, phase filter and sorting of the management table"""

    SORT_CHOICES = [
        ('company_name', 'Empresa'),
        ('current_phase', 'Fase'),
        ('estimated_value', 'Valor estimado'),
        ('pending_activities', 'Actividades pendientes'),
        ('next_activity_date', 'Próxima actividad'),
    ]

    DIRECTION_CHOICES = [
        ('asc', 'Ascendente'),
        ('desc', 'Descendente'),
    ]

    search = forms.CharField(required=False)
    phase = forms.ChoiceField(choices=[('', 'Todas las fases')] + Prospect.PHASE_CHOICES, required=False)
    sort = forms.ChoiceField(choices=SORT_CHOICES, required=False)
    direction = forms.ChoiceField(choices=DIRECTION_CHOICES, required=False)

    def filter_queryset(self, queryset):
        """Apply the cleaned filters to an annotated prospect queryset"""
        data = self.cleaned_data

        search = (data.get('search') or '').strip()
        if search:
            queryset = queryset.search(search)

        if data.get('phase'):
            queryset = queryset.in_phase(data['phase'])

        sort = F(data.get('sort') or 'company_name')
        if data.get('direction') == 'desc':
            return queryset.order_by(sort.desc(nulls_last=True), 'id')
        return queryset.order_by(sort.asc(nulls_last=True), 'id')
