from rest_framework import serializers


class CartItemReadSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    type = serializers.CharField(source="product_type")
    productId = serializers.CharField(source="product_id")
    quantity = serializers.IntegerField()
    price = serializers.DecimalField(max_digits=15, decimal_places=4)
    total = serializers.DecimalField(max_digits=18, decimal_places=4)
    attributes = serializers.DictField()


class CartReadSerializer(serializers.Serializer):
    exists = serializers.SerializerMethodField()
    id = serializers.IntegerField(allow_null=True)
    state = serializers.CharField(allow_null=True)
    userId = serializers.IntegerField(source="user_id", allow_null=True)
    itemCount = serializers.IntegerField(source="item_count")
    total = serializers.DecimalField(max_digits=18, decimal_places=4)
    items = CartItemReadSerializer(many=True)

    def get_exists(self, obj) -> bool:
        return getattr(obj, "id", None) is not None


class AddItemSerializer(serializers.Serializer):
    type = serializers.CharField(required=False, default="product", max_length=100)
    productId = serializers.CharField(max_length=64)
    # Range checks belong to the cart manager so the error code stays INVALID_QUANTITY.
    quantity = serializers.IntegerField(required=False, default=1)
    attributes = serializers.DictField(required=False, default=dict)
    configuration = serializers.JSONField(required=False)

    def to_parameters(self):
        data = self.validated_data
        parameters = {"attributes": dict(data.get("attributes") or {})}
        if "configuration" in data:
            parameters["configuration"] = data["configuration"]
        return parameters


class ProductRefSerializer(serializers.Serializer):
    type = serializers.CharField(required=False, default="product", max_length=100)
    productId = serializers.CharField(max_length=64)


class ForgetResponseSerializer(serializers.Serializer):
    cartId = serializers.IntegerField(allow_null=True)


class RemovedResponseSerializer(serializers.Serializer):
    removed = serializers.BooleanField()
