from django.urls import path
from payments.api import views

urlpatterns = [
    # Gateway webhook
    path('callback/', views.PaymentCallbackView.as_view(), name='payment-callback'),
]
