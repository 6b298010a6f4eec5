from rest_framework import serializers

from .domain import ShippingMethod

SHIPPING_METHOD_CHOICES = [method.value for method in ShippingMethod]


# Incoming requests


class WebhookOrderSerializer(serializers.Serializer):
    """
    Shape check for a Shopify order webhook.
    Only ``id`` is required; the transformer tolerates everything else missing.
    """

    id = serializers.CharField(max_length=255)
    order_number = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    line_items = serializers.ListField(child=serializers.DictField(), required=False, allow_null=True)
    shipping_address = serializers.DictField(required=False, allow_null=True)
    shipping_lines = serializers.ListField(child=serializers.DictField(), required=False, allow_null=True)


class OrderReferenceSerializer(serializers.Serializer):
    orderId = serializers.CharField(max_length=255)


class DimensionsSerializer(serializers.Serializer):
    lengthCm = serializers.FloatField(source="length_cm")
    widthCm = serializers.FloatField(source="width_cm")
    heightCm = serializers.FloatField(source="height_cm")
    weightKg = serializers.FloatField(source="weight_kg")
    boxCount = serializers.IntegerField(source="box_count", min_value=1, default=1)

    def validate(self, attrs):
        errors = {
            name: "Must be greater than zero."
            for name, key in (
                ("lengthCm", "length_cm"),
                ("widthCm", "width_cm"),
                ("heightCm", "height_cm"),
                ("weightKg", "weight_kg"),
            )
            if attrs[key] <= 0
        }
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class MeasurementsSerializer(OrderReferenceSerializer):
    dimensions = DimensionsSerializer()
    method = serializers.ChoiceField(choices=SHIPPING_METHOD_CHOICES, required=False, allow_null=True)


class PickupPointUpdateSerializer(OrderReferenceSerializer):
    pickupPoint = serializers.DictField()


class ShipmentRequestSerializer(OrderReferenceSerializer):
    serviceId = serializers.CharField(max_length=32, required=False, allow_blank=True)


class PickupPointSearchSerializer(serializers.Serializer):
    streetAddress = serializers.CharField()
    postcode = serializers.CharField()
    locality = serializers.CharField(required=False, allow_blank=True, default="")
    countryCode = serializers.CharField(required=False, max_length=2, default="FI")
    limit = serializers.IntegerField(required=False, min_value=1, max_value=50, default=1)


class ProductLookupSerializer(serializers.Serializer):
    productId = serializers.CharField(max_length=255)


# Responses


class LineItemSerializer(serializers.Serializer):
    title = serializers.CharField(allow_null=True)
    product_id = serializers.CharField(allow_null=True)
    variant_id = serializers.CharField(allow_null=True)
    requires_shipping = serializers.BooleanField()
    quantity = serializers.IntegerField()
    product = serializers.DictField(allow_null=True)


class ShippingAddressSerializer(serializers.Serializer):
    name = serializers.CharField(allow_null=True)
    address1 = serializers.CharField(allow_null=True)
    address2 = serializers.CharField(allow_null=True)
    city = serializers.CharField(allow_null=True)
    postcode = serializers.CharField(allow_null=True)
    country_code = serializers.CharField(allow_null=True)
    phone = serializers.CharField(allow_null=True)


class ShippingLineSerializer(serializers.Serializer):
    title = serializers.CharField()
    code = serializers.CharField(allow_null=True)
    price = serializers.CharField(allow_null=True)


class DimensionsOutSerializer(serializers.Serializer):
    length_cm = serializers.FloatField()
    width_cm = serializers.FloatField()
    height_cm = serializers.FloatField()
    weight_kg = serializers.FloatField()
    box_count = serializers.IntegerField()


class OrderSerializer(serializers.Serializer):
    """Read-only representation of an ``orders.domain.Order``."""

    external_id = serializers.CharField()
    order_number = serializers.CharField()
    source_name = serializers.CharField(allow_null=True)
    email = serializers.CharField(allow_null=True)
    line_items = LineItemSerializer(many=True)
    total_item_count = serializers.IntegerField()
    shipping_address = ShippingAddressSerializer(allow_null=True)
    shipping_lines = ShippingLineSerializer(many=True)
    shipping_method = serializers.SerializerMethodField()
    shipping_method_overridden = serializers.BooleanField()
    dimensions = DimensionsOutSerializer(allow_null=True)
    pickup_point = serializers.DictField(allow_null=True)
    tracking_number = serializers.CharField(allow_null=True)
    is_fulfilled = serializers.BooleanField()
    fulfilled_at = serializers.DateTimeField(allow_null=True)
    source_created_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()

    def get_shipping_method(self, obj):
        return ShippingMethod(obj.shipping_method).value


class ShipmentResultSerializer(serializers.Serializer):
    shipment_id = serializers.CharField(allow_null=True)
    tracking_number = serializers.CharField(allow_null=True)
    label_url = serializers.CharField(allow_null=True)
