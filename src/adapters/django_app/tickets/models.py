"""
Django Models para o domínio de Tickets.

Estes models são ADAPTERS - implementam a persistência para as
entidades de domínio definidas em src/core/tickets/.

IMPORTANTE:
- Models NÃO contêm lógica de negócio
- Lógica de negócio fica nas Entities do Core
- Models são mapeados para/de Entities via Mappers

Tabelas:
- AreaModel: Áreas (departamentos)
- TicketModel: Tickets (com versão para concorrência otimista)
- WorkflowModel: Versões de workflow por área (append-only)
- SLAModel: Configuração de SLA (uma por área)
- AuditTrailModel: Trilha de auditoria (append-only)
- DomainEventModel: Event Store
"""

from django.db import models
from django.utils import timezone


class TicketStatusChoices(models.TextChoices):
    """Choices para status de ticket (espelha TicketStatus do Core)."""
    OPEN = 'OPEN', 'Aberto'
    ASSIGNED = 'ASSIGNED', 'Atribuído'
    IN_PROGRESS = 'IN_PROGRESS', 'Em Progresso'
    RESOLVED = 'RESOLVED', 'Resolvido'
    CLOSED = 'CLOSED', 'Fechado'
    CANCELLED = 'CANCELLED', 'Cancelado'


class TicketPriorityChoices(models.TextChoices):
    """Choices para prioridade de ticket (espelha TicketPriority do Core)."""
    LOW = 'LOW', 'Baixa'
    MEDIUM = 'MEDIUM', 'Média'
    HIGH = 'HIGH', 'Alta'
    URGENT = 'URGENT', 'Urgente'


class AreaModel(models.Model):
    """Model Django para Áreas."""

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    name = models.CharField(
        max_length=100,
        unique=True,
        help_text="Nome da área (departamento)"
    )

    description = models.TextField(null=True, blank=True)

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Área aceita novos tickets"
    )

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'areas'
        verbose_name = 'Área'
        verbose_name_plural = 'Áreas'
        ordering = ['name']

    def __str__(self):
        return self.name


class TicketModel(models.Model):
    """
    Model Django para persistência de Tickets.

    Este model é um ADAPTER que persiste dados do TicketEntity.
    NÃO contém lógica de negócio - apenas estrutura de dados.

    Fields:
        id: UUID como primary key (gerado pela Entity)
        area: Área responsável
        status / priority: Choices espelhando os enums do Core
        requester_id / assignee_id: IDs de usuários (strings)
        first_response_at / resolved_at / closed_at: Marcos do ciclo de vida
        sla_target_at / sla_breached: Estado de SLA
        version: Concorrência otimista
    """

    # Primary Key - UUID gerado pela Entity
    id = models.CharField(
        max_length=36,
        primary_key=True,
        editable=False,
        help_text="UUID único do ticket"
    )

    # Dados principais
    title = models.CharField(
        max_length=200,
        db_index=True,
        help_text="Título do ticket"
    )

    description = models.TextField(
        blank=True,
        default='',
        help_text="Descrição detalhada do problema"
    )

    # Estado
    status = models.CharField(
        max_length=20,
        choices=TicketStatusChoices.choices,
        default=TicketStatusChoices.OPEN,
        db_index=True,
    )

    priority = models.CharField(
        max_length=10,
        choices=TicketPriorityChoices.choices,
        default=TicketPriorityChoices.MEDIUM,
        db_index=True,
    )

    # Relacionamentos (strings para flexibilidade de integração)
    requester_id = models.CharField(
        max_length=100,
        db_index=True,
        help_text="ID do solicitante"
    )

    assignee_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        db_index=True,
        help_text="ID do agente responsável"
    )

    area = models.ForeignKey(
        AreaModel,
        on_delete=models.PROTECT,
        related_name='tickets',
    )

    # Timestamps
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(default=timezone.now)
    first_response_at = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    # SLA
    sla_target_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Prazo de resolução"
    )

    sla_breached = models.BooleanField(default=False, db_index=True)

    resolution_summary = models.TextField(null=True, blank=True)

    version = models.PositiveIntegerField(
        default=1,
        help_text="Versão para concorrência otimista"
    )

    class Meta:
        db_table = 'tickets'
        verbose_name = 'Ticket'
        verbose_name_plural = 'Tickets'
        ordering = ['-created_at']
        indexes = [
            # Índices compostos para queries frequentes
            models.Index(fields=['area', 'status'], name='tickets_area_status_idx'),
            models.Index(fields=['area', 'created_at'], name='tickets_area_created_idx'),
            models.Index(fields=['assignee_id', 'status'], name='tickets_assignee_status_idx'),
            models.Index(fields=['sla_breached', 'sla_target_at'], name='tickets_sla_idx'),
        ]

    def __str__(self):
        return f"[{self.id[:8]}] {self.title}"

    def __repr__(self):
        return f"<TicketModel id={self.id[:8]} status={self.status} v{self.version}>"


class WorkflowModel(models.Model):
    """
    Versão de workflow de uma área.

    Append-only: cada configuração grava uma nova linha.
    """

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    area = models.ForeignKey(
        AreaModel,
        on_delete=models.PROTECT,
        related_name='workflows',
    )

    version = models.PositiveIntegerField()

    transitions = models.JSONField(
        default=dict,
        help_text="Estado → lista de próximos estados"
    )

    required_fields = models.JSONField(
        default=dict,
        blank=True,
        help_text="Estado → lista de campos obrigatórios"
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'workflows'
        verbose_name = 'Workflow'
        verbose_name_plural = 'Workflows'
        ordering = ['area', 'version']
        constraints = [
            models.UniqueConstraint(
                fields=['area', 'version'],
                name='unique_workflow_version_per_area',
            ),
        ]

    def __str__(self):
        return f"Workflow {self.area_id} v{self.version}"


class SLAModel(models.Model):
    """Configuração de SLA (uma por área)."""

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    area = models.OneToOneField(
        AreaModel,
        on_delete=models.PROTECT,
        related_name='sla',
    )

    response_time_minutes = models.PositiveIntegerField()
    resolution_time_minutes = models.PositiveIntegerField()

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'slas'
        verbose_name = 'SLA'
        verbose_name_plural = 'SLAs'

    def __str__(self):
        return (
            f"SLA {self.area_id}: resposta {self.response_time_minutes}min, "
            f"resolução {self.resolution_time_minutes}min"
        )


class AuditTrailModel(models.Model):
    """
    Trilha de auditoria.

    Registra cada ação que altera ticket, área, SLA ou workflow.
    Nunca é atualizada ou removida pela aplicação.
    """

    id = models.CharField(max_length=36, primary_key=True, editable=False)

    actor_id = models.CharField(max_length=100, db_index=True)
    action = models.CharField(max_length=50, db_index=True)
    entity_type = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=36)

    changes = models.JSONField(default=dict, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    ticket_id = models.CharField(
        max_length=36,
        null=True,
        blank=True,
        db_index=True,
        help_text="Ticket relacionado (consulta por ticket)"
    )

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, null=True, blank=True)

    occurred_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'audit_trail'
        verbose_name = 'Registro de Auditoria'
        verbose_name_plural = 'Trilha de Auditoria'
        ordering = ['occurred_at']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id'], name='audit_entity_idx'),
            models.Index(fields=['ticket_id', 'occurred_at'], name='audit_ticket_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.entity_type}:{self.entity_id[:8]} por {self.actor_id}"


class DomainEventModel(models.Model):
    """
    Event Store genérico para Domain Events.

    Persiste todos os eventos de domínio para:
    - Auditoria completa
    - Replay de eventos
    - Integração com outros sistemas
    """

    # Identificação
    event_id = models.CharField(
        max_length=36,
        primary_key=True,
        help_text="UUID único do evento"
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Tipo do evento (ex: ticket.status_changed)"
    )

    aggregate_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Tipo do agregado (ex: Ticket)"
    )

    aggregate_id = models.CharField(
        max_length=36,
        db_index=True,
        help_text="ID do agregado que gerou o evento"
    )

    # Dados do evento
    event_data = models.JSONField(
        default=dict,
        help_text="Dados serializados do evento"
    )

    # Versionamento
    version = models.IntegerField(
        default=1,
        help_text="Versão do schema do evento"
    )

    sequence = models.BigIntegerField(
        default=0,
        help_text="Sequência do evento no agregado"
    )

    occurred_at = models.DateTimeField(
        help_text="Quando o evento ocorreu"
    )

    recorded_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Quando o evento foi persistido"
    )

    class Meta:
        db_table = 'domain_events'
        verbose_name = 'Evento de Domínio'
        verbose_name_plural = 'Eventos de Domínio'
        ordering = ['recorded_at']
        indexes = [
            models.Index(fields=['aggregate_id', 'sequence'], name='events_aggregate_seq_idx'),
            models.Index(fields=['aggregate_type', 'recorded_at'], name='events_aggtype_recorded_idx'),
            models.Index(fields=['event_type', 'recorded_at'], name='events_type_recorded_idx'),
        ]

    def __str__(self):
        return f"{self.event_type} - {self.aggregate_id[:8]} @ {self.occurred_at}"
