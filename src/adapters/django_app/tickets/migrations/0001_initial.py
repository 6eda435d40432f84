"""
Migration inicial do Service Desk.

Cria as tabelas:
- areas: Áreas (departamentos)
- tickets: Tickets com versão para concorrência otimista
- workflows: Versões de workflow por área
- slas: Configuração de SLA por área
- audit_trail: Trilha de auditoria
- domain_events: Event Store
"""

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        # =================================================================
        # Tabela: areas
        # =================================================================
        migrations.CreateModel(
            name='AreaModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='Nome da área (departamento)', max_length=100, unique=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('is_active', models.BooleanField(db_index=True, default=True, help_text='Área aceita novos tickets')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Área',
                'verbose_name_plural': 'Áreas',
                'db_table': 'areas',
                'ordering': ['name'],
            },
        ),

        # =================================================================
        # Tabela: tickets
        # =================================================================
        migrations.CreateModel(
            name='TicketModel',
            fields=[
                ('id', models.CharField(editable=False, help_text='UUID único do ticket', max_length=36, primary_key=True, serialize=False)),
                ('title', models.CharField(db_index=True, help_text='Título do ticket', max_length=200)),
                ('description', models.TextField(blank=True, default='', help_text='Descrição detalhada do problema')),
                ('status', models.CharField(
                    choices=[
                        ('OPEN', 'Aberto'),
                        ('ASSIGNED', 'Atribuído'),
                        ('IN_PROGRESS', 'Em Progresso'),
                        ('RESOLVED', 'Resolvido'),
                        ('CLOSED', 'Fechado'),
                        ('CANCELLED', 'Cancelado'),
                    ],
                    db_index=True,
                    default='OPEN',
                    max_length=20,
                )),
                ('priority', models.CharField(
                    choices=[
                        ('LOW', 'Baixa'),
                        ('MEDIUM', 'Média'),
                        ('HIGH', 'Alta'),
                        ('URGENT', 'Urgente'),
                    ],
                    db_index=True,
                    default='MEDIUM',
                    max_length=10,
                )),
                ('requester_id', models.CharField(db_index=True, help_text='ID do solicitante', max_length=100)),
                ('assignee_id', models.CharField(blank=True, db_index=True, help_text='ID do agente responsável', max_length=100, null=True)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('first_response_at', models.DateTimeField(blank=True, null=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('sla_target_at', models.DateTimeField(blank=True, db_index=True, help_text='Prazo de resolução', null=True)),
                ('sla_breached', models.BooleanField(db_index=True, default=False)),
                ('resolution_summary', models.TextField(blank=True, null=True)),
                ('version', models.PositiveIntegerField(default=1, help_text='Versão para concorrência otimista')),
                ('area', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets',
                    to='tickets.areamodel',
                )),
            ],
            options={
                'verbose_name': 'Ticket',
                'verbose_name_plural': 'Tickets',
                'db_table': 'tickets',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['area', 'status'], name='tickets_area_status_idx'),
                    models.Index(fields=['area', 'created_at'], name='tickets_area_created_idx'),
                    models.Index(fields=['assignee_id', 'status'], name='tickets_assignee_status_idx'),
                    models.Index(fields=['sla_breached', 'sla_target_at'], name='tickets_sla_idx'),
                ],
            },
        ),

        # =================================================================
        # Tabela: workflows
        # =================================================================
        migrations.CreateModel(
            name='WorkflowModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('version', models.PositiveIntegerField()),
                ('transitions', models.JSONField(default=dict, help_text='Estado → lista de próximos estados')),
                ('required_fields', models.JSONField(blank=True, default=dict, help_text='Estado → lista de campos obrigatórios')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('area', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='workflows',
                    to='tickets.areamodel',
                )),
            ],
            options={
                'verbose_name': 'Workflow',
                'verbose_name_plural': 'Workflows',
                'db_table': 'workflows',
                'ordering': ['area', 'version'],
                'constraints': [
                    models.UniqueConstraint(fields=('area', 'version'), name='unique_workflow_version_per_area'),
                ],
            },
        ),

        # =================================================================
        # Tabela: slas
        # =================================================================
        migrations.CreateModel(
            name='SLAModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('response_time_minutes', models.PositiveIntegerField()),
                ('resolution_time_minutes', models.PositiveIntegerField()),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('area', models.OneToOneField(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='sla',
                    to='tickets.areamodel',
                )),
            ],
            options={
                'verbose_name': 'SLA',
                'verbose_name_plural': 'SLAs',
                'db_table': 'slas',
            },
        ),

        # =================================================================
        # Tabela: audit_trail
        # =================================================================
        migrations.CreateModel(
            name='AuditTrailModel',
            fields=[
                ('id', models.CharField(editable=False, max_length=36, primary_key=True, serialize=False)),
                ('actor_id', models.CharField(db_index=True, max_length=100)),
                ('action', models.CharField(db_index=True, max_length=50)),
                ('entity_type', models.CharField(max_length=50)),
                ('entity_id', models.CharField(max_length=36)),
                ('changes', models.JSONField(blank=True, default=dict)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('ticket_id', models.CharField(blank=True, db_index=True, help_text='Ticket relacionado (consulta por ticket)', max_length=36, null=True)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.CharField(blank=True, max_length=255, null=True)),
                ('occurred_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Registro de Auditoria',
                'verbose_name_plural': 'Trilha de Auditoria',
                'db_table': 'audit_trail',
                'ordering': ['occurred_at'],
                'indexes': [
                    models.Index(fields=['entity_type', 'entity_id'], name='audit_entity_idx'),
                    models.Index(fields=['ticket_id', 'occurred_at'], name='audit_ticket_idx'),
                ],
            },
        ),

        # =================================================================
        # Tabela: domain_events (Event Store)
        # =================================================================
        migrations.CreateModel(
            name='DomainEventModel',
            fields=[
                ('event_id', models.CharField(help_text='UUID único do evento', max_length=36, primary_key=True, serialize=False)),
                ('event_type', models.CharField(db_index=True, help_text='Tipo do evento (ex: ticket.status_changed)', max_length=100)),
                ('aggregate_type', models.CharField(db_index=True, help_text='Tipo do agregado (ex: Ticket)', max_length=100)),
                ('aggregate_id', models.CharField(db_index=True, help_text='ID do agregado que gerou o evento', max_length=36)),
                ('event_data', models.JSONField(default=dict, help_text='Dados serializados do evento')),
                ('version', models.IntegerField(default=1, help_text='Versão do schema do evento')),
                ('sequence', models.BigIntegerField(default=0, help_text='Sequência do evento no agregado')),
                ('occurred_at', models.DateTimeField(help_text='Quando o evento ocorreu')),
                ('recorded_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Quando o evento foi persistido')),
            ],
            options={
                'verbose_name': 'Evento de Domínio',
                'verbose_name_plural': 'Eventos de Domínio',
                'db_table': 'domain_events',
                'ordering': ['recorded_at'],
                'indexes': [
                    models.Index(fields=['aggregate_id', 'sequence'], name='events_aggregate_seq_idx'),
                    models.Index(fields=['aggregate_type', 'recorded_at'], name='events_aggtype_recorded_idx'),
                    models.Index(fields=['event_type', 'recorded_at'], name='events_type_recorded_idx'),
                ],
            },
        ),
    ]
