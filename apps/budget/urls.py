from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'budget'

router = DefaultRouter()
router.register(r'budgetItems', views.BudgetItemViewSet, basename='budget-item')

urlpatterns = [
    # GET    /api/budgetItems/                    - List budget items (?projectId=)
    # POST   /api/budgetItems/                    - Create budget item
    # GET    /api/budgetItems/{id}/               - Get budget item
    # PUT    /api/budgetItems/{id}/               - Update budget item
    # DELETE /api/budgetItems/{id}/               - Delete budget item
    # POST   /api/budgetItems/rebuild/?projectId= - Rebuild project ledger
    # GET    /api/budgetCategories/               - List categories
    # PUT    /api/budgetCategories/               - Replace categories
    path('budgetCategories/', views.budget_categories, name='budget-categories'),
    path('', include(router.urls)),
]
