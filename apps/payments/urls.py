from django.urls import path
from . import views

app_name = 'payments'

urlpatterns = [
    # Wizard / remote front-end submits the booking here
    path('checkout/', views.checkout, name='checkout'),

    # Razorpay server-side webhook (CSRF-exempt)
    path('webhook/', views.razorpay_webhook, name='webhook'),

    # Customer lands here after paying (callback_url of the payment link)
    path('result/<uuid:group_id>/', views.payment_result, name='result'),
]
