from rest_framework import serializers
from .models import User


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization in audit trails."""
    
    display_name = serializers.SerializerMethodField()
    
    class Meta:
        model = User
        fields = ['id', 'email', 'display_name', 'role']
        read_only_fields = fields
    
    def get_display_name(self, obj):
        return obj.get_display_name()
