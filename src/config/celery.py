"""
Configuração do Celery para processamento assíncrono.

O Celery é usado para:
- Processar Domain Events de forma assíncrona (EVENT_PUBLISHER_MODE=celery)
- Verificação periódica de SLA vencido
- Relatório diário de conformidade de SLA
- Limpeza do Event Store

Arquitetura:
- Broker: RabbitMQ (mensagens entre Django e Workers)
- Backend: Redis (resultados de tarefas)
- Workers: Processos que executam as tarefas

Uso:
    # Iniciar worker
    celery -A src.config.celery worker -l INFO

    # Iniciar beat (tarefas agendadas)
    celery -A src.config.celery beat -l INFO
"""

import os

from celery import Celery
from celery.schedules import crontab
from kombu import Exchange, Queue

# Definir módulo de settings do Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')

app = Celery('servicedesk')

# CELERY_* do settings (broker, backend, serialização, retries)
app.config_from_object('django.conf:settings', namespace='CELERY')

app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='America/Sao_Paulo',
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    worker_send_task_events=True,
    task_send_sent_event=True,
)

# Definir filas
app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('events', Exchange('events'), routing_key='events.#'),
    Queue('notifications', Exchange('notifications'), routing_key='notifications.#'),
    Queue('reports', Exchange('reports'), routing_key='reports.#'),
)
app.conf.task_default_queue = 'default'

_HANDLERS = 'src.adapters.django_app.events.handlers'

# Roteamento de tarefas para filas
app.conf.task_routes = {
    f'{_HANDLERS}.notify_user': {'queue': 'notifications'},
    f'{_HANDLERS}.notify_area_team': {'queue': 'notifications'},
    f'{_HANDLERS}.generate_daily_sla_report': {'queue': 'reports'},
    f'{_HANDLERS}.*': {'queue': 'events'},
}

# Auto-descoberta de tarefas
app.autodiscover_tasks(['src.adapters.django_app.events'], related_name='handlers')

# Tarefas agendadas (beat)
app.conf.beat_schedule = {
    'check-sla-breaches': {
        'task': f'{_HANDLERS}.check_sla_breaches',
        'schedule': float(os.environ.get('SLA_BREACH_CHECK_INTERVAL_SECONDS', 300)),
    },

    # Relatório diário às 8h
    'daily-sla-report': {
        'task': f'{_HANDLERS}.generate_daily_sla_report',
        'schedule': crontab(hour=8, minute=0),
    },

    # Limpar eventos antigos semanalmente
    'cleanup-old-events': {
        'task': f'{_HANDLERS}.cleanup_old_events',
        'schedule': crontab(hour=3, minute=0, day_of_week='sunday'),
    },
}
