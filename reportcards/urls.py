from django.urls import path
from . import views

app_name = 'reportcards'

urlpatterns = [
    # Report cards
    path('', views.report_card_lookup, name='lookup'),
    path('save/', views.report_card_save, name='save'),
    path('<uuid:report_id>/', views.report_card_detail, name='detail'),
    path('<uuid:report_id>/publish/', views.report_card_publish, name='publish'),
    path('<uuid:report_id>/audit/', views.report_card_audit_history, name='audit'),

    # Class level
    path('classes/<int:class_id>/status/', views.class_status, name='class_status'),
    path('classes/<int:class_id>/publish/', views.class_bulk_publish, name='class_bulk_publish'),
    path('classes/<int:class_id>/export/', views.class_results_export, name='class_export'),
    path('classes/<int:class_id>/students/<int:student_id>/initial/', views.class_initial_payload, name='initial_payload'),
]
