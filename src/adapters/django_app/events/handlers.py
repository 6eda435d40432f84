"""
Event Handlers - Processadores de Eventos de Domínio.

Handlers são executados de forma assíncrona via Celery quando
Domain Events são publicados (EVENT_PUBLISHER_MODE=celery).

Tipos de Handlers:
- Notificação: avisar solicitante, responsável e equipe da área
- Agregação: registrar métricas operacionais
- Agendados (Beat): verificação de SLA, relatório diário, limpeza

Padrão:
    @shared_task(bind=True, ...)
    def handle_<evento>(self, event_data: dict) -> None:
        # event_data é DomainEvent.to_dict(); payload em event_data['data']
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from celery import shared_task
from django.conf import settings

from src.core.shared.events import utcnow

logger = logging.getLogger(__name__)


def _data(event_data: Dict[str, Any]) -> Dict[str, Any]:
    return event_data.get('data') or {}


# =============================================================================
# Event Handlers - Tickets
# =============================================================================

@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    acks_late=True,
)
def handle_ticket_created(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para ticket.created.

    Ações:
    - Notificar equipe da área (prioridade alta/urgente)
    - Registrar métrica
    """
    data = _data(event_data)
    ticket_id = event_data.get('aggregate_id')
    priority = data.get('priority', 'MEDIUM')

    logger.info(
        f"[HANDLER] ticket.created: {ticket_id} | "
        f"Área: {data.get('area_id')} | Título: {data.get('title')}"
    )

    if priority in ('HIGH', 'URGENT'):
        notify_area_team.delay(
            area_id=data.get('area_id'),
            ticket_id=ticket_id,
            message=f"Novo ticket {priority}: {data.get('title')}",
            priority='high' if priority == 'URGENT' else 'normal',
        )

    record_metric.delay(
        metric_name='tickets_created',
        value=1,
        tags={'priority': priority, 'area_id': data.get('area_id')},
    )


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_ticket_assigned(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para ticket.assigned.

    Ações:
    - Notificar o responsável
    """
    data = _data(event_data)
    ticket_id = event_data.get('aggregate_id')
    assignee_id = data.get('assignee_id')

    logger.info(f"[HANDLER] ticket.assigned: {ticket_id} | Responsável: {assignee_id}")

    notify_user.delay(
        user_id=assignee_id,
        message=f"Você foi atribuído ao ticket {ticket_id[:8]}...",
        channel='email',
    )


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_ticket_status_changed(self, event_data: Dict[str, Any]) -> None:
    """Handler para ticket.status_changed (métrica por transição)."""
    data = _data(event_data)

    logger.info(
        f"[HANDLER] ticket.status_changed: {event_data.get('aggregate_id')} | "
        f"{data.get('from')} -> {data.get('to')}"
    )

    record_metric.delay(
        metric_name='ticket_transitions',
        value=1,
        tags={'from': data.get('from'), 'to': data.get('to')},
    )


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_ticket_closed(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para ticket.closed.

    Ações:
    - Notificar solicitante (se notify_requester)
    - Registrar métrica
    """
    data = _data(event_data)
    ticket_id = event_data.get('aggregate_id')

    logger.info(f"[HANDLER] ticket.closed: {ticket_id}")

    if data.get('notify_requester', True) and data.get('requester_id'):
        notify_user.delay(
            user_id=data['requester_id'],
            message=(
                f"Seu ticket {ticket_id[:8]}... foi fechado: "
                f"{data.get('resolution_summary') or ''}"
            ),
            channel='email',
        )

    record_metric.delay(metric_name='tickets_closed', value=1, tags={})


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_ticket_sla_breached(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para ticket.sla_breached.

    Ações:
    - Alertar equipe da área
    - Registrar métrica
    """
    data = _data(event_data)
    ticket_id = event_data.get('aggregate_id')

    logger.warning(
        f"[HANDLER] ticket.sla_breached: {ticket_id} | "
        f"Prazo: {data.get('sla_target_at')}"
    )

    notify_area_team.delay(
        area_id=data.get('area_id'),
        ticket_id=ticket_id,
        message="SLA de resolução estourado",
        priority='high',
    )

    record_metric.delay(
        metric_name='tickets_sla_breached',
        value=1,
        tags={'area_id': data.get('area_id')},
    )


@shared_task(bind=True, ignore_result=True)
def handle_configuration_changed(self, event_data: Dict[str, Any]) -> None:
    """Handler para eventos de área, workflow e SLA (apenas registro)."""
    logger.info(
        f"[HANDLER] {event_data.get('event_type')}: "
        f"{event_data.get('aggregate_type')} {event_data.get('aggregate_id')}"
    )


# =============================================================================
# Event Dispatcher (Router)
# =============================================================================

EVENT_HANDLERS = {
    'ticket.created': handle_ticket_created,
    'ticket.assigned': handle_ticket_assigned,
    'ticket.status_changed': handle_ticket_status_changed,
    'ticket.closed': handle_ticket_closed,
    'ticket.sla_breached': handle_ticket_sla_breached,
    'workflow.created': handle_configuration_changed,
    'workflow.updated': handle_configuration_changed,
    'sla.created': handle_configuration_changed,
    'sla.updated': handle_configuration_changed,
    'area.created': handle_configuration_changed,
    'area.updated': handle_configuration_changed,
    'area.deactivated': handle_configuration_changed,
}


@shared_task(bind=True, max_retries=5, default_retry_delay=30)
def dispatch_domain_event(self, event_type: str, event_data: Dict[str, Any]) -> None:
    """
    Dispatcher central para Domain Events.

    Roteia eventos para os handlers apropriados.

    Args:
        event_type: Tipo do evento (ex: 'ticket.closed')
        event_data: Evento serializado (DomainEvent.to_dict())
    """
    handler = EVENT_HANDLERS.get(event_type)

    if handler:
        logger.info(f"[DISPATCHER] Roteando {event_type} para handler")
        handler.delay(event_data)
    else:
        logger.warning(f"[DISPATCHER] Handler não encontrado para {event_type}")


# =============================================================================
# Notification Tasks
# =============================================================================

@shared_task(bind=True, max_retries=3, default_retry_delay=120)
def notify_user(self, user_id: str, message: str, channel: str = 'email') -> None:
    """
    Notifica usuário por canal especificado.

    Args:
        user_id: ID do usuário
        message: Mensagem a enviar
        channel: Canal (email, push, sms)
    """
    logger.info(f"[NOTIFICATION] {channel.upper()} para {user_id}: {message}")


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def notify_area_team(
    self,
    area_id: Optional[str],
    ticket_id: str,
    message: str,
    priority: str = 'normal',
) -> None:
    """Notifica equipe da área responsável."""
    logger.info(
        f"[NOTIFICATION] Equipe da área {area_id} [{priority}]: "
        f"Ticket {ticket_id[:8]}... - {message}"
    )


# =============================================================================
# Metric Tasks
# =============================================================================

@shared_task(bind=True, ignore_result=True)
def record_metric(
    self,
    metric_name: str,
    value: float,
    tags: Optional[Dict[str, Any]] = None,
) -> None:
    """Registra métrica operacional no log estruturado."""
    logger.info(f"[METRIC] {metric_name}={value} | tags={tags or {}}")


# =============================================================================
# Scheduled Tasks (Beat)
# =============================================================================

@shared_task(bind=True)
def check_sla_breaches(self) -> int:
    """
    Marca tickets com prazo de SLA vencido.

    Executada periodicamente pelo Celery Beat
    (SLA_BREACH_CHECK_INTERVAL_SECONDS).

    Returns:
        Número de tickets marcados nesta execução
    """
    logger.info("[SCHEDULED] Verificando SLAs vencidos...")

    # Importação tardia para evitar circular import
    from src.config.container import get_container

    breached = get_container().check_sla_breaches_service().execute()

    logger.info(f"[SCHEDULED] {len(breached)} tickets marcados como fora do SLA")
    return len(breached)


@shared_task(bind=True)
def generate_daily_sla_report(self) -> Dict[str, Any]:
    """
    Gera relatório diário de conformidade de SLA (últimas 24h).

    Returns:
        Métricas serializadas
    """
    logger.info("[SCHEDULED] Gerando relatório diário de SLA...")

    from src.config.container import get_container
    from src.core.tickets.dtos import MetricsQueryDTO

    now = utcnow()
    metrics = get_container().compute_sla_metrics_service().execute(
        MetricsQueryDTO(date_from=now - timedelta(days=1), date_to=now)
    )

    report = {'generated_at': now.isoformat(), **metrics.to_dict()}
    logger.info(f"[SCHEDULED] Relatório gerado: {report}")
    return report


@shared_task(bind=True)
def cleanup_old_events(self, days: Optional[int] = None) -> int:
    """
    Remove eventos antigos do Event Store.

    Args:
        days: Dias de retenção (padrão: EVENT_RETENTION_DAYS)

    Returns:
        Número de eventos removidos
    """
    days = days if days is not None else getattr(settings, 'EVENT_RETENTION_DAYS', 90)
    logger.info(f"[SCHEDULED] Limpando eventos com mais de {days} dias...")

    from src.adapters.django_app.tickets.models import DomainEventModel

    cutoff_date = utcnow() - timedelta(days=days)
    deleted, _ = DomainEventModel.objects.filter(occurred_at__lt=cutoff_date).delete()

    logger.info(f"[SCHEDULED] {deleted} eventos removidos")
    return deleted
