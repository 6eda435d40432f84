"""
Django Admin para o Service Desk.

Consulta de tickets, áreas e configuração. Auditoria e eventos
são somente leitura.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import (
    AreaModel,
    AuditTrailModel,
    DomainEventModel,
    SLAModel,
    TicketModel,
    WorkflowModel,
)


STATUS_COLORS = {
    'OPEN': '#17a2b8',
    'ASSIGNED': '#6f42c1',
    'IN_PROGRESS': '#ffc107',
    'RESOLVED': '#28a745',
    'CLOSED': '#343a40',
    'CANCELLED': '#6c757d',
}

PRIORITY_COLORS = {
    'LOW': '#28a745',
    'MEDIUM': '#ffc107',
    'HIGH': '#fd7e14',
    'URGENT': '#dc3545',
}


def _badge(color: str, label: str):
    return format_html(
        '<span style="background-color: {}; color: white; padding: 3px 8px; '
        'border-radius: 3px; font-size: 11px;">{}</span>',
        color,
        label,
    )


class ReadOnlyAdmin(admin.ModelAdmin):
    """Registros append-only: sem inclusão, edição ou remoção."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AreaModel)
class AreaAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['id', 'name']
    readonly_fields = ['id', 'created_at']


@admin.register(TicketModel)
class TicketAdmin(admin.ModelAdmin):
    """Admin para TicketModel."""

    list_display = [
        'short_id',
        'title',
        'status_badge',
        'priority_badge',
        'area',
        'requester_id',
        'assignee_id',
        'created_at',
        'sla_status',
    ]

    list_filter = ['status', 'priority', 'area', 'sla_breached', 'created_at']

    search_fields = ['id', 'title', 'description', 'requester_id', 'assignee_id']

    readonly_fields = [
        'id',
        'created_at',
        'updated_at',
        'first_response_at',
        'resolved_at',
        'closed_at',
        'sla_target_at',
        'sla_breached',
        'version',
    ]

    fieldsets = [
        ('Identificação', {
            'fields': ['id', 'title', 'description', 'area'],
        }),
        ('Status', {
            'fields': ['status', 'priority', 'resolution_summary'],
        }),
        ('Responsáveis', {
            'fields': ['requester_id', 'assignee_id'],
        }),
        ('SLA', {
            'fields': ['sla_target_at', 'sla_breached'],
        }),
        ('Timestamps', {
            'fields': [
                'created_at', 'updated_at', 'first_response_at',
                'resolved_at', 'closed_at', 'version',
            ],
            'classes': ['collapse'],
        }),
    ]

    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    def short_id(self, obj):
        return obj.id[:8] + '...'
    short_id.short_description = 'ID'

    def status_badge(self, obj):
        return _badge(STATUS_COLORS.get(obj.status, '#6c757d'), obj.get_status_display())
    status_badge.short_description = 'Status'

    def priority_badge(self, obj):
        return _badge(PRIORITY_COLORS.get(obj.priority, '#6c757d'), obj.get_priority_display())
    priority_badge.short_description = 'Prioridade'

    def sla_status(self, obj):
        """Exibe a flag de SLA gravada."""
        if not obj.sla_target_at:
            return '-'
        if obj.sla_breached:
            return format_html('<span style="color: #dc3545; font-weight: bold;">{}</span>', '⚠ Estourado')
        return format_html('<span style="color: #28a745;">{}</span>', '✓ No prazo')
    sla_status.short_description = 'SLA'


@admin.register(WorkflowModel)
class WorkflowAdmin(ReadOnlyAdmin):
    list_display = ['area', 'version', 'created_at']
    list_filter = ['area']
    ordering = ['area', '-version']


@admin.register(SLAModel)
class SLAAdmin(admin.ModelAdmin):
    list_display = ['area', 'response_time_minutes', 'resolution_time_minutes', 'updated_at']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(AuditTrailModel)
class AuditTrailAdmin(ReadOnlyAdmin):
    list_display = ['occurred_at', 'action', 'entity_type', 'entity_id', 'actor_id', 'ticket_id']
    list_filter = ['action', 'entity_type', 'occurred_at']
    search_fields = ['entity_id', 'ticket_id', 'actor_id']


@admin.register(DomainEventModel)
class DomainEventAdmin(ReadOnlyAdmin):
    """Admin para eventos de domínio."""

    list_display = [
        'short_event_id',
        'event_type',
        'aggregate_type',
        'short_aggregate_id',
        'sequence',
        'occurred_at',
    ]

    list_filter = ['event_type', 'aggregate_type', 'occurred_at']

    search_fields = ['event_id', 'aggregate_id', 'event_type']

    def short_event_id(self, obj):
        return obj.event_id[:8] + '...'
    short_event_id.short_description = 'Event ID'

    def short_aggregate_id(self, obj):
        return obj.aggregate_id[:8] + '...'
    short_aggregate_id.short_description = 'Aggregate'
