import csv
import logging

import openpyxl
from openpyxl.styles import Font, PatternFill
from django.contrib.auth.decorators import login_required
from django.db import DatabaseError, transaction
from django.forms.models import model_to_dict
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from apps.accounts.decorators import json_body
from apps.activities.models import Activity
from .forms import ProspectFilterForm, ProspectForm, ProspectPhaseChangeForm
from .models import Prospect

logger = logging.getLogger(__name__)

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 10

EXPORT_HEADERS = [
    'ID', 'Empresa', 'Contacto', 'Teléfono', 'Email', 'Fase',
    'Valor estimado', 'Días en fase', 'Actividades pendientes',
    'Próxima actividad', 'Asignado a',
]


def _form_errors(form):
    return JsonResponse({
        'success': False,
        'errors': {field: [str(e) for e in errors] for field, errors in form.errors.items()}
    }, status=400)


def _filtered_prospects(request):
    """Management table rows honoring search, phase and sort parameters"""
    queryset = Prospect.objects.with_activity_stats(request.user)
    filter_form = ProspectFilterForm(request.GET)
    if filter_form.is_valid():
        return filter_form.filter_queryset(queryset), filter_form
    return queryset.order_by('company_name', 'id'), filter_form


@login_required
@require_GET
def prospect_list_view(request):
    """Management table (Gestion): one row per prospect with its next pending activity"""
    prospects, filter_form = _filtered_prospects(request)

    return JsonResponse({
        'success': True,
        'count': prospects.count(),
        'filters': filter_form.cleaned_data if filter_form.is_valid() else {},
        'prospects': [prospect.to_dict() for prospect in prospects],
    })


@login_required
@require_GET
def prospect_pipeline_view(request):
    """Prospects grouped by phase, in pipeline order"""
    prospects = Prospect.objects.with_activity_stats(request.user).order_by('-updated_at')

    search_query = request.GET.get('search', '').strip()
    if search_query:
        prospects = prospects.search(search_query)

    by_phase = {phase: [] for phase, _label in Prospect.PHASE_CHOICES}
    for prospect in prospects:
        by_phase[prospect.current_phase].append(prospect.to_dict())

    phases = []
    for phase, label in Prospect.PHASE_CHOICES:
        phases.append({
            'phase': phase,
            'label': label,
            'count': len(by_phase[phase]),
            'prospects': by_phase[phase],
        })

    return JsonResponse({
        'success': True,
        'total_count': sum(len(rows) for rows in by_phase.values()),
        'phases': phases,
    })


@login_required
@require_POST
@json_body
def prospect_create_view(request):
    form = ProspectForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    try:
        with transaction.atomic():
            prospect = form.save()
    except DatabaseError:
        logger.exception('Error creating prospect')
        return JsonResponse({
            'success': False,
            'error': 'Could not create the prospect, please try again'
        }, status=500)

    logger.info('Prospect %s created by %s', prospect.pk, request.user)
    return JsonResponse({
        'success': True,
        'message': f'Prospect "{prospect.company_name}" created',
        'prospect': prospect.to_dict(),
    }, status=201)


@login_required
@require_GET
def prospect_detail_view(request, pk):
    """Prospect data plus its activity history (only visible activities)"""
    prospect = get_object_or_404(Prospect.objects.with_activity_stats(request.user), pk=pk)

    activities = (
        Activity.objects.visible_to(request.user)
        .filter(prospect=prospect)
        .select_related('assigned_to', 'prospect')
        .order_by('-scheduled_date', '-created_at')
    )

    return JsonResponse({
        'success': True,
        'prospect': prospect.to_dict(),
        'activities': [activity.to_dict() for activity in activities],
    })


@login_required
@require_POST
@json_body
def prospect_edit_view(request, pk):
    prospect = get_object_or_404(Prospect, pk=pk)
    old_phase = prospect.current_phase

    # Partial updates keep the stored values for missing fields
    data = model_to_dict(prospect, fields=ProspectForm.Meta.fields)
    data.update(request.data)

    form = ProspectForm(data, instance=prospect)
    if not form.is_valid():
        return _form_errors(form)

    new_phase = form.cleaned_data['current_phase']

    try:
        with transaction.atomic():
            prospect = form.save(commit=False)
            prospect.current_phase = old_phase
            prospect.save()
            if new_phase != old_phase:
                prospect.change_phase(new_phase, user=request.user, request=request)
    except DatabaseError:
        logger.exception('Error updating prospect %s', pk)
        return JsonResponse({
            'success': False,
            'error': 'Could not update the prospect, please try again'
        }, status=500)

    return JsonResponse({
        'success': True,
        'message': 'Prospect updated',
        'prospect': prospect.to_dict(),
    })


@login_required
@require_POST
@json_body
def prospect_change_phase_view(request, pk):
    prospect = get_object_or_404(Prospect, pk=pk)

    form = ProspectPhaseChangeForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    try:
        with transaction.atomic():
            changed = prospect.change_phase(form.cleaned_data['phase'], user=request.user, request=request)
    except DatabaseError:
        logger.exception('Error changing phase of prospect %s', pk)
        return JsonResponse({
            'success': False,
            'error': 'Could not change the phase, please try again'
        }, status=500)

    return JsonResponse({
        'success': True,
        'changed': changed,
        'message': f'Phase changed to {prospect.current_phase}' if changed else 'Phase unchanged',
        'prospect': prospect.to_dict(),
    })


@login_required
@require_GET
def prospect_search_view(request):
    """Autocomplete for the activity forms"""
    term = request.GET.get('q', '').strip()

    prospects = Prospect.objects.all()
    if len(term) >= SEARCH_MIN_LENGTH:
        prospects = prospects.search(term)
    prospects = prospects.order_by('company_name')[:SEARCH_LIMIT]

    return JsonResponse({
        'success': True,
        'results': [
            {
                'id': prospect.id,
                'company_name': prospect.company_name,
                'contact_name': prospect.contact_name,
                'current_phase': prospect.current_phase,
            }
            for prospect in prospects
        ],
    })


def _export_row(prospect):
    assignee = ' '.join(
        part for part in (prospect.next_assignee_first_name, prospect.next_assignee_last_name) if part
    )
    return [
        prospect.id,
        prospect.company_name,
        prospect.contact_name,
        prospect.phone,
        prospect.email or '',
        prospect.current_phase,
        float(prospect.estimated_value),
        prospect.days_in_phase(),
        prospect.pending_activities,
        prospect.next_activity_date.strftime('%Y-%m-%d') if prospect.next_activity_date else '',
        assignee,
    ]


@login_required
@require_GET
def prospect_export_view(request):
    """Export the management table as Excel (default) or CSV"""
    export_format = request.GET.get('format', 'excel')
    prospects, _filter_form = _filtered_prospects(request)
    timestamp = timezone.now().strftime('%Y%m%d_%H%M%S')

    if export_format == 'excel':
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = 'Prospectos'

        for col, header in enumerate(EXPORT_HEADERS, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = Font(bold=True, color='FFFFFF')
            cell.fill = PatternFill(start_color='1F4E79', end_color='1F4E79', fill_type='solid')

        for row, prospect in enumerate(prospects, start=2):
            for col, value in enumerate(_export_row(prospect), start=1):
                ws.cell(row=row, column=col, value=value)

        for col in ws.columns:
            max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in col)
            ws.column_dimensions[col[0].column_letter].width = min(max_length + 2, 50)

        response = HttpResponse(
            content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )
        response['Content-Disposition'] = f'attachment; filename="prospectos_{timestamp}.xlsx"'
        wb.save(response)
        return response

    if export_format == 'csv':
        response = HttpResponse(content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="prospectos_{timestamp}.csv"'

        # BOM so Excel opens the file as UTF-8
        response.write('\ufeff')

        writer = csv.writer(response)
        writer.writerow(EXPORT_HEADERS)
        for prospect in prospects:
            writer.writerow(_export_row(prospect))
        return response

    return JsonResponse({
        'success': False,
        'error': 'Invalid export format'
    }, status=400)
