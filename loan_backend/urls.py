from django.urls import include, path
from loans.views import ReadyView

urlpatterns = [
    path('', include('loans.urls')),
    path('', ReadyView.as_view(), name='ready'),
]

handler404 = 'loans.views.not_found'
