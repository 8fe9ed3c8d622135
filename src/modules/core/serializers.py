from collections.abc import Mapping

from rest_framework import serializers


class StrictFieldsMixin:
    """Rejects payload keys the serializer does not declare.

    Computed fields (prices, fees, totals, status) are never declared on
    input serializers, so a client trying to send them gets a 400 instead
    of having them silently dropped.
    """

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            unknown = sorted(set(data) - set(self.fields))
            if unknown:
                raise serializers.ValidationError(
                    {key: ["Campo no permitido."] for key in unknown}
                )
        return super().to_internal_value(data)
