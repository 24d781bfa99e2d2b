from django.urls import path
from . import views

app_name = 'sequences'

urlpatterns = [
    # GET  /api/sequences/                  - List counters
    # GET  /api/sequences/{entity}/         - Preview next value
    # PUT  /api/sequences/{entity}/         - Override counter (admin)
    # POST /api/sequences/{entity}/next/    - Consume next value
    path('', views.sequence_list, name='sequence-list'),
    path('<str:entity>/', views.sequence_detail, name='sequence-detail'),
    path('<str:entity>/next/', views.sequence_next, name='sequence-next'),
]
