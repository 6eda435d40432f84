#!/usr/bin/env python
"""
Setup rápido para desenvolvimento local.

Este script:
1. Configura Django settings
2. Cria banco de dados SQLite
3. Executa migrations
4. Cria áreas, SLAs, workflow e chamados de exemplo (opcional)

Uso:
    python scripts/quick_setup.py
    python scripts/quick_setup.py --with-sample-data
"""

import os
import sys
import argparse

# Raiz do projeto no path para imports "src..."
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def setup_django():
    """Configura Django para uso standalone."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')

    # Sem DATABASE_HOST/DATABASE_NAME o settings usa SQLite
    os.environ.pop('DATABASE_URL', None)

    import django
    django.setup()


def run_migrations():
    """Executa migrations."""
    from django.core.management import call_command

    print("📦 Executando migrations...")
    call_command('migrate', verbosity=1)
    print("✅ Migrations concluídas!")


def create_sample_data():
    """Cria dados de exemplo pelos use cases do container."""
    from src.config.container import get_container
    from src.core.tickets.dtos import (
        AssignTicketInputDTO,
        ConfigureSLAInputDTO,
        ConfigureWorkflowInputDTO,
        CreateAreaInputDTO,
        CreateTicketInputDTO,
    )

    container = get_container()
    actor = 'setup'

    sample_areas = [
        ('Engenharia Clínica', 'Equipamentos médico-hospitalares', 30, 240),
        ('Manutenção Predial', 'Elétrica, hidráulica e climatização', 60, 1440),
        ('TI Assistencial', 'Prontuário eletrônico e estações', 15, 480),
    ]

    print("🏥 Criando áreas e SLAs...")

    areas = {}
    for name, description, response, resolution in sample_areas:
        area = container.create_area_service().execute(
            CreateAreaInputDTO(name=name, description=description, actor_id=actor)
        )
        container.configure_sla_service().execute(
            ConfigureSLAInputDTO(
                area_id=area.id,
                response_time_minutes=response,
                resolution_time_minutes=resolution,
                actor_id=actor,
            )
        )
        areas[name] = area.id
        print(f"   ✓ {name} (SLA {response}/{resolution} min)")

    container.configure_workflow_service().execute(
        ConfigureWorkflowInputDTO(
            area_id=areas['Engenharia Clínica'],
            transitions={
                'OPEN': ['ASSIGNED', 'CANCELLED'],
                'ASSIGNED': ['IN_PROGRESS'],
                'IN_PROGRESS': ['RESOLVED'],
                'RESOLVED': ['CLOSED', 'IN_PROGRESS'],
            },
            required_fields={'CLOSED': ['resolutionSummary']},
            actor_id=actor,
        )
    )
    print("   ✓ Workflow da Engenharia Clínica")

    sample_tickets = [
        ('Bomba de infusão com alarme de oclusão', 'Engenharia Clínica', 'URGENT', 'enf-uti-01'),
        ('Ar-condicionado da sala 3 do centro cirúrgico', 'Manutenção Predial', 'HIGH', 'cc-02'),
        ('Impressora de pulseiras sem comunicação', 'TI Assistencial', 'MEDIUM', 'recepcao-01'),
        ('Lâmpada queimada no corredor B', 'Manutenção Predial', 'LOW', 'hotelaria-03'),
    ]

    print("📝 Abrindo chamados de exemplo...")

    created = []
    for title, area_name, priority, requester in sample_tickets:
        ticket = container.create_ticket_service().execute(
            CreateTicketInputDTO(
                title=title,
                description='',
                requester_id=requester,
                area_id=areas[area_name],
                priority=priority,
                actor_id=requester,
            )
        )
        created.append(ticket)
        print(f"   ✓ [{priority}] {title[:50]}")

    container.assign_ticket_service().execute(
        AssignTicketInputDTO(ticket_id=created[0].id, assignee_id='tec-eng-01', actor_id=actor)
    )

    print(f"✅ {len(created)} chamados criados!")


def check_connection():
    """Verifica conexão com o banco."""
    from django.db import connection

    print("🔍 Verificando conexão com o banco...")

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        print("✅ Conexão OK!")
        return True
    except Exception as e:
        print(f"❌ Erro de conexão: {e}")
        return False


def show_info():
    """Mostra informações do setup."""
    from django.conf import settings

    print("\n" + "=" * 60)
    print("📊 Informações do Setup")
    print("=" * 60)
    print(f"  Database Engine: {settings.DATABASES['default']['ENGINE']}")
    print(f"  Database Name: {settings.DATABASES['default']['NAME']}")
    print(f"  Event Publisher: {settings.EVENT_PUBLISHER_MODE}")
    print("=" * 60)
    print("\n🚀 Próximos passos:")
    print("   1. django-admin runserver --settings=src.config.settings")
    print("   2. Acesse: http://localhost:8000/api/tickets/")
    print("   3. Acesse: http://localhost:8000/api/metrics/sla/")
    print("\n")


def main():
    parser = argparse.ArgumentParser(description='Setup rápido para desenvolvimento')
    parser.add_argument(
        '--with-sample-data',
        action='store_true',
        help='Criar dados de exemplo'
    )
    parser.add_argument(
        '--check-only',
        action='store_true',
        help='Apenas verificar conexão'
    )

    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("🔧 Hospital Service Desk - Quick Setup")
    print("=" * 60 + "\n")

    setup_django()

    if args.check_only:
        check_connection()
        return

    if not check_connection():
        print("\n⚠️  Certifique-se de que o banco de dados está rodando.")
        return

    run_migrations()

    if args.with_sample_data:
        create_sample_data()

    show_info()


if __name__ == '__main__':
    main()
