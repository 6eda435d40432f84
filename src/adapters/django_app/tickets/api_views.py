"""
API Views JSON para o Service Desk.

DRIVING ADAPTERS: traduzem HTTP em DTOs, chamam os Use Cases
do container e traduzem exceções de domínio em status HTTP.

Endpoints (prefixo /api/):
- GET  /areas/ - Listar áreas
- POST /areas/ - Criar área
- PUT  /areas/<id>/ - Atualizar área
- POST /areas/<id>/deactivate/ - Desativar área
- GET  /areas/<id>/workflow/ - Workflow vigente (+ histórico)
- PUT  /areas/<id>/workflow/ - Configurar workflow (nova versão)
- PUT  /areas/<id>/sla/ - Configurar SLA
- GET  /tickets/ - Listar tickets (paginado)
- POST /tickets/ - Abrir ticket
- GET  /tickets/<id>/ - Obter ticket
- POST /tickets/<id>/assign/ - Atribuir ticket
- POST /tickets/<id>/transition/ - Transicionar status
- POST /tickets/<id>/close/ - Fechar ticket
- GET  /tickets/<id>/audit/ - Trilha de auditoria
- GET  /tickets/<id>/history/ - Exportar histórico do ticket
- GET  /metrics/sla/ - Métricas de SLA

Formato:
- Entrada: JSON
- Saída: JSON com estrutura {success, data/error, meta}
"""

import json
import logging
from typing import Any, Dict, Optional

from django.http import HttpRequest, JsonResponse
from django.utils.dateparse import parse_datetime
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from src.config.container import get_container
from src.core.shared.exceptions import (
    BusinessRuleViolationError,
    ConcurrencyError,
    DomainException,
    EntityNotFoundError,
    ValidationError,
)
from src.core.tickets.dtos import (
    AssignTicketInputDTO,
    CloseTicketInputDTO,
    ConfigureSLAInputDTO,
    ConfigureWorkflowInputDTO,
    CreateAreaInputDTO,
    CreateTicketInputDTO,
    DeactivateAreaInputDTO,
    ListTicketsQueryDTO,
    MetricsQueryDTO,
    TransitionTicketStatusInputDTO,
    UpdateAreaInputDTO,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def json_response(success: bool, data: Any = None, error: str = None,
                  status: int = 200, meta: Dict = None) -> JsonResponse:
    """
    Cria resposta JSON padronizada.

    Args:
        success: Se operação foi bem sucedida
        data: Dados da resposta
        error: Mensagem de erro (se aplicável)
        status: HTTP status code
        meta: Metadados adicionais

    Returns:
        JsonResponse formatada
    """
    response = {'success': success}

    if data is not None:
        response['data'] = data

    if error is not None:
        response['error'] = error

    if meta is not None:
        response['meta'] = meta

    return JsonResponse(response, status=status, safe=False)


def parse_json_body(request: HttpRequest) -> Dict:
    """
    Parseia body JSON do request.

    Raises:
        ValueError: Se JSON inválido ou não for um objeto
    """
    if not request.body:
        return {}

    try:
        data = json.loads(request.body)
    except json.JSONDecodeError as e:
        raise ValueError(f"JSON inválido: {e}")

    if not isinstance(data, dict):
        raise ValueError("Corpo da requisição deve ser um objeto JSON")
    return data


def get_actor_id(request: HttpRequest, data: Optional[Dict] = None) -> str:
    """
    Identifica quem executa a ação.

    Usuário autenticado tem precedência; depois actor_id do corpo.
    """
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return str(user.id)
    if data and data.get('actor_id'):
        return str(data['actor_id'])
    return 'anonymous'


def _parse_int(value: Optional[str], field: str, default: int) -> int:
    if value in (None, ''):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} deve ser um inteiro", field=field)


def _parse_date(value: Optional[str], field: str):
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValidationError(f"{field} deve ser uma data ISO-8601", field=field)
    return parsed


# =============================================================================
# Base API View
# =============================================================================

@method_decorator(csrf_exempt, name='dispatch')
class BaseAPIView(View):
    """
    View base para APIs JSON.

    Fornece:
    - Parsing de JSON
    - Acesso aos services do container DI
    - Tratamento de erros padronizado
    """

    def get_service(self, service_name: str):
        """Obtém service do container."""
        return getattr(get_container(), service_name)()

    def parse_body(self, request: HttpRequest) -> Dict:
        return parse_json_body(request)

    def handle_exception(self, e: Exception) -> JsonResponse:
        """
        Traduz exceções em resposta HTTP.

        Validação 400, não encontrado 404, conflito de versão 409,
        regra de negócio 422, inesperado 500.
        """
        if isinstance(e, ValidationError):
            return json_response(
                success=False,
                error=str(e),
                status=400,
                meta={'field': getattr(e, 'field', None)}
            )

        if isinstance(e, EntityNotFoundError):
            return json_response(success=False, error=str(e), status=404)

        if isinstance(e, ConcurrencyError):
            return json_response(success=False, error=str(e), status=409)

        if isinstance(e, BusinessRuleViolationError):
            return json_response(
                success=False,
                error=str(e),
                status=422,
                meta={'rule': getattr(e, 'rule', None)}
            )

        if isinstance(e, (DomainException, ValueError)):
            return json_response(success=False, error=str(e), status=400)

        logger.exception(f"Erro inesperado na API: {e}")
        return json_response(
            success=False,
            error="Erro interno do servidor",
            status=500
        )


# =============================================================================
# Áreas e configuração
# =============================================================================

class AreaAPIListView(BaseAPIView):
    """
    API para listar e criar áreas.

    GET /api/areas/ - Lista áreas (?only_active=true filtra ativas)
    POST /api/areas/ - Cria área
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            only_active = request.GET.get('only_active', '').lower() in ('1', 'true')
            areas = self.get_service('list_areas_service').execute(only_active=only_active)
            return json_response(
                success=True,
                data=[area.to_dict() for area in areas],
                meta={'total': len(areas)},
            )

        except Exception as e:
            return self.handle_exception(e)

    def post(self, request: HttpRequest) -> JsonResponse:
        try:
            data = self.parse_body(request)
            output = self.get_service('create_area_service').execute(
                CreateAreaInputDTO(
                    name=data.get('name', ''),
                    description=data.get('description'),
                    actor_id=get_actor_id(request, data),
                )
            )
            logger.info(f"API: Área criada: {output.id}")
            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class AreaAPIDetailView(BaseAPIView):
    """PUT /api/areas/<id>/ - Atualiza nome e descrição."""

    def put(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            data = self.parse_body(request)
            output = self.get_service('update_area_service').execute(
                UpdateAreaInputDTO(
                    area_id=pk,
                    name=data.get('name', ''),
                    description=data.get('description'),
                    actor_id=get_actor_id(request, data),
                )
            )
            logger.info(f"API: Área atualizada: {output.id}")
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class AreaAPIDeactivateView(BaseAPIView):
    """POST /api/areas/<id>/deactivate/"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            data = self.parse_body(request)
            output = self.get_service('deactivate_area_service').execute(
                DeactivateAreaInputDTO(
                    area_id=pk,
                    actor_id=get_actor_id(request, data),
                    reason=data.get('reason'),
                )
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class AreaAPIWorkflowView(BaseAPIView):
    """
    Workflow da área.

    GET /api/areas/<id>/workflow/ - Versão vigente e histórico
    PUT /api/areas/<id>/workflow/ - Grava nova versão
    """

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            service = self.get_service('get_workflow_service')
            current = service.execute(pk)
            history = service.history(pk)

            return json_response(
                success=True,
                data=current.to_dict() if current else None,
                meta={'versions': [w.version for w in history]},
            )

        except Exception as e:
            return self.handle_exception(e)

    def put(self, request: HttpRequest, pk: str) -> JsonResponse:
        """
        Body JSON:
        {
            "transitions": {"OPEN": ["ASSIGNED"], ...},
            "required_fields": {"CLOSED": ["resolution_summary"]} (opcional)
        }
        """
        try:
            data = self.parse_body(request)
            output = self.get_service('configure_workflow_service').execute(
                ConfigureWorkflowInputDTO(
                    area_id=pk,
                    transitions=data.get('transitions'),
                    required_fields=data.get('required_fields') or {},
                    actor_id=get_actor_id(request, data),
                )
            )
            logger.info(f"API: Workflow v{output.version} configurado para área {pk}")
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class AreaAPISLAView(BaseAPIView):
    """PUT /api/areas/<id>/sla/"""

    def put(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            data = self.parse_body(request)
            output = self.get_service('configure_sla_service').execute(
                ConfigureSLAInputDTO(
                    area_id=pk,
                    response_time_minutes=data.get('response_time_minutes'),
                    resolution_time_minutes=data.get('resolution_time_minutes'),
                    actor_id=get_actor_id(request, data),
                )
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


# =============================================================================
# Tickets
# =============================================================================

class TicketAPIListView(BaseAPIView):
    """
    API para listar e abrir tickets.

    GET /api/tickets/ - Lista tickets
    POST /api/tickets/ - Abre ticket
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        """
        Query params: status, area_id, assignee_id, requester_id,
        page (default 1), per_page (default 20).
        """
        try:
            query = ListTicketsQueryDTO(
                status=request.GET.get('status') or None,
                area_id=request.GET.get('area_id') or None,
                assignee_id=request.GET.get('assignee_id') or None,
                requester_id=request.GET.get('requester_id') or None,
                page=_parse_int(request.GET.get('page'), 'page', 1),
                per_page=_parse_int(request.GET.get('per_page'), 'per_page', 20),
            )
            result = self.get_service('list_tickets_service').execute(query)
            payload = result.to_dict()

            return json_response(
                success=True,
                data=payload.pop('items'),
                meta=payload,
            )

        except Exception as e:
            return self.handle_exception(e)

    def post(self, request: HttpRequest) -> JsonResponse:
        """
        Body JSON:
        {
            "title": "string",
            "description": "string",
            "area_id": "string",
            "priority": "LOW|MEDIUM|HIGH|URGENT" (opcional),
            "requester_id": "string" (opcional, default: ator)
        }
        """
        try:
            data = self.parse_body(request)
            actor_id = get_actor_id(request, data)

            output = self.get_service('create_ticket_service').execute(
                CreateTicketInputDTO(
                    title=data.get('title', ''),
                    description=data.get('description', ''),
                    requester_id=data.get('requester_id') or actor_id,
                    area_id=data.get('area_id', ''),
                    priority=data.get('priority', 'MEDIUM'),
                    actor_id=actor_id,
                )
            )

            logger.info(f"API: Ticket criado: {output.id}")
            return json_response(success=True, data=output.to_dict(), status=201)

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIDetailView(BaseAPIView):
    """GET /api/tickets/<id>/"""

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            ticket = self.get_service('get_ticket_service').execute(pk)
            return json_response(success=True, data=ticket.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIAssignView(BaseAPIView):
    """POST /api/tickets/<id>/assign/"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            data = self.parse_body(request)

            if not data.get('assignee_id'):
                return json_response(
                    success=False,
                    error="assignee_id é obrigatório",
                    status=400,
                    meta={'field': 'assignee_id'},
                )

            output = self.get_service('assign_ticket_service').execute(
                AssignTicketInputDTO(
                    ticket_id=pk,
                    assignee_id=data['assignee_id'],
                    actor_id=get_actor_id(request, data),
                )
            )

            logger.info(f"API: Ticket {pk} atribuído a {data['assignee_id']}")
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPITransitionView(BaseAPIView):
    """
    POST /api/tickets/<id>/transition/

    Body JSON:
    {
        "status": "IN_PROGRESS",
        "resolution_summary": "..." (opcional),
        "expected_version": 3 (opcional)
    }
    """

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            data = self.parse_body(request)
            output = self.get_service('transition_ticket_status_service').execute(
                TransitionTicketStatusInputDTO(
                    ticket_id=pk,
                    status=data.get('status', ''),
                    actor_id=get_actor_id(request, data),
                    resolution_summary=data.get('resolution_summary'),
                    expected_version=data.get('expected_version'),
                )
            )
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPICloseView(BaseAPIView):
    """POST /api/tickets/<id>/close/"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            data = self.parse_body(request)
            output = self.get_service('close_ticket_service').execute(
                CloseTicketInputDTO(
                    ticket_id=pk,
                    resolution_summary=data.get('resolution_summary', ''),
                    actor_id=get_actor_id(request, data),
                    notify_requester=bool(data.get('notify_requester', True)),
                )
            )

            logger.info(f"API: Ticket {pk} fechado")
            return json_response(success=True, data=output.to_dict())

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIAuditView(BaseAPIView):
    """GET /api/tickets/<id>/audit/"""

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            entries = self.get_service('get_ticket_audit_trail_service').execute(pk)
            return json_response(
                success=True,
                data=[entry.to_dict() for entry in entries],
                meta={'total': len(entries)},
            )

        except Exception as e:
            return self.handle_exception(e)


class TicketAPIHistoryView(BaseAPIView):
    """GET /api/tickets/<id>/history/ - Exporta ticket + auditoria."""

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            history = self.get_service('export_ticket_history_service').execute(pk)
            return json_response(
                success=True,
                data=history.to_dict(),
                meta={'audit_entries': len(history.audit_trail)},
            )

        except Exception as e:
            return self.handle_exception(e)


# =============================================================================
# Métricas
# =============================================================================

class SLAMetricsAPIView(BaseAPIView):
    """
    GET /api/metrics/sla/

    Query params: area_id, date_from, date_to (ISO-8601, inclusivos).
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            query = MetricsQueryDTO(
                area_id=request.GET.get('area_id') or None,
                date_from=_parse_date(request.GET.get('date_from'), 'date_from'),
                date_to=_parse_date(request.GET.get('date_to'), 'date_to'),
            )
            metrics = self.get_service('compute_sla_metrics_service').execute(query)
            return json_response(success=True, data=metrics.to_dict())

        except Exception as e:
            return self.handle_exception(e)
