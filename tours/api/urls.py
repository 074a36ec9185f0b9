from django.urls import path
from tours.api import views

urlpatterns = [
    # Public APIs
    path('', views.TourListView.as_view(), name='tour-list'),
    path('<int:pk>/', views.TourDetailView.as_view(), name='tour-detail'),

    # Operator APIs
    path('operator/application/', views.OperatorApplicationView.as_view(), name='operator-application'),
    path('operator/tours/', views.OperatorTourListCreateView.as_view(), name='operator-tours'),
    path('operator/tours/<int:pk>/', views.OperatorTourDetailView.as_view(), name='operator-tour-detail'),
    path('operator/tours/<int:pk>/toggle-active/', views.OperatorTourToggleView.as_view(), name='operator-tour-toggle'),

    # Admin APIs
    path('admin/dashboard/', views.AdminDashboardView.as_view(), name='admin-dashboard'),
    path('admin/operators/', views.AdminOperatorListView.as_view(), name='admin-operators'),
    path('admin/operators/<int:profile_id>/', views.AdminOperatorDetailView.as_view(), name='admin-operator-detail'),
    path('admin/operators/<int:profile_id>/approve/', views.OperatorApprovalView.as_view(approve=True), name='approve-operator'),
    path('admin/operators/<int:profile_id>/revoke/', views.OperatorApprovalView.as_view(approve=False), name='revoke-operator'),
]
