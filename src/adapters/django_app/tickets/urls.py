"""
URL patterns da API JSON do Service Desk (montadas em /api/).

Áreas:
- GET|POST /api/areas/ - Listar / criar
- PUT /api/areas/<id>/ - Atualizar
- POST /api/areas/<id>/deactivate/ - Desativar área
- GET|PUT /api/areas/<id>/workflow/ - Workflow da área
- PUT /api/areas/<id>/sla/ - SLA da área

Tickets:
- GET|POST /api/tickets/ - Listar / abrir
- GET /api/tickets/<id>/ - Detalhes
- POST /api/tickets/<id>/assign/ - Atribuir
- POST /api/tickets/<id>/transition/ - Transicionar status
- POST /api/tickets/<id>/close/ - Fechar
- GET /api/tickets/<id>/audit/ - Trilha de auditoria
- GET /api/tickets/<id>/history/ - Exportar histórico

Métricas:
- GET /api/metrics/sla/ - Conformidade de SLA
"""

from django.urls import path

from . import api_views

app_name = 'tickets'

urlpatterns = [
    # =========================================================================
    # Áreas
    # =========================================================================

    path('areas/', api_views.AreaAPIListView.as_view(), name='api_areas'),
    path('areas/<str:pk>/', api_views.AreaAPIDetailView.as_view(), name='api_area_detail'),
    path('areas/<str:pk>/deactivate/', api_views.AreaAPIDeactivateView.as_view(), name='api_area_deactivate'),
    path('areas/<str:pk>/workflow/', api_views.AreaAPIWorkflowView.as_view(), name='api_area_workflow'),
    path('areas/<str:pk>/sla/', api_views.AreaAPISLAView.as_view(), name='api_area_sla'),

    # =========================================================================
    # Tickets
    # =========================================================================

    path('tickets/', api_views.TicketAPIListView.as_view(), name='api_list'),
    path('tickets/<str:pk>/', api_views.TicketAPIDetailView.as_view(), name='api_detail'),
    path('tickets/<str:pk>/assign/', api_views.TicketAPIAssignView.as_view(), name='api_assign'),
    path('tickets/<str:pk>/transition/', api_views.TicketAPITransitionView.as_view(), name='api_transition'),
    path('tickets/<str:pk>/close/', api_views.TicketAPICloseView.as_view(), name='api_close'),
    path('tickets/<str:pk>/audit/', api_views.TicketAPIAuditView.as_view(), name='api_audit'),
    path('tickets/<str:pk>/history/', api_views.TicketAPIHistoryView.as_view(), name='api_history'),

    # =========================================================================
    # Métricas
    # =========================================================================

    path('metrics/sla/', api_views.SLAMetricsAPIView.as_view(), name='api_sla_metrics'),
]
