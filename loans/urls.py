from django.urls import path
from .views import (
    RegisterView,
    CheckEligibilityView,
    CreateLoanView,
    ViewLoanView,
    MakePaymentView,
    ViewStatementView,
)

urlpatterns = [
    path('register', RegisterView.as_view(), name='register'),
    path('check-eligibility', CheckEligibilityView.as_view(), name='check-eligibility'),
    path('create-loan', CreateLoanView.as_view(), name='create-loan'),
    path('view-loan/<str:loan_id>', ViewLoanView.as_view(), name='view-loan'),
    path('make-payment/<str:customer_id>/<str:loan_id>', MakePaymentView.as_view(), name='make-payment'),
    path('view-statement/<str:customer_id>/<str:loan_id>', ViewStatementView.as_view(), name='view-statement'),
]
