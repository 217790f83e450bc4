from django.db import models


class Product(models.Model):
    """Default sellable model; carts reference it as ``product`` or ``catalog.product``."""

    id = models.AutoField(primary_key=True)
    title = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, blank=True, default="")
    price = models.DecimalField(max_digits=15, decimal_places=4)
    description = models.TextField(blank=True, default="")
    image = models.TextField(blank=True, default="")
    thumbnail = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.title

    class Meta:
        indexes = [
            models.Index(fields=["title"], name="product_title_idx"),
            models.Index(fields=["sku"], name="product_sku_idx"),
        ]
