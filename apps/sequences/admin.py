# ==========================================
# apps/sequences/admin.py
# ==========================================

from django.contrib import admin
from .models import NumberSequence


@admin.register(NumberSequence)
class NumberSequenceAdmin(admin.ModelAdmin):
    """Counters can be corrected by hand; ``current`` is the next value issued."""

    list_display = ['entity', 'current', 'updated_at']
    search_fields = ['entity']
    readonly_fields = ['updated_at']
    ordering = ['entity']
