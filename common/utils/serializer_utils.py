import datetime

import django_virtual_models as v
from rest_framework import serializers


class VirtualModelSerializer(v.VirtualModelSerializerMixin, serializers.ModelSerializer):
    pass


class IsoDateListField(serializers.ListField):
    """Serializes a sequence of dates as ``YYYY-MM-DD`` strings."""

    child = serializers.DateField(format="%Y-%m-%d")

    def to_representation(self, data):
        return [
            self.child.to_representation(value) if isinstance(value, datetime.date) else value
            for value in data
        ]
