from django.urls import path
from quotes.api import views

urlpatterns = [
    # Customer APIs
    path('', views.CustomerQuoteListCreateView.as_view(), name='customer-quotes'),
    path('<int:pk>/', views.CustomerQuoteDetailView.as_view(), name='customer-quote-detail'),
    path('<int:pk>/accept/', views.QuoteAcceptView.as_view(), name='accept-quote'),
    path('<int:pk>/reject/', views.QuoteRejectView.as_view(), name='reject-quote'),
    path('<int:pk>/cancel/', views.QuoteCancelView.as_view(), name='cancel-quote'),

    # Conversation (customer, operator, admin read-only)
    path('<int:pk>/messages/', views.QuoteMessagesView.as_view(), name='quote-messages'),

    # Operator APIs
    path('operator/', views.OperatorQuoteListView.as_view(), name='operator-quotes'),
    path('operator/dashboard/', views.OperatorDashboardView.as_view(), name='operator-dashboard'),
    path('operator/<int:pk>/', views.OperatorQuoteDetailView.as_view(), name='operator-quote-detail'),
    path('operator/<int:pk>/respond/', views.OperatorQuoteRespondView.as_view(), name='respond-quote'),
]
