from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.AutoField(primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=255)),
                ("sku", models.CharField(blank=True, default="", max_length=64)),
                ("price", models.DecimalField(decimal_places=4, max_digits=15)),
                ("description", models.TextField(blank=True, default="")),
                ("image", models.TextField(blank=True, default="")),
                ("thumbnail", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["title"], name="product_title_idx"),
                    models.Index(fields=["sku"], name="product_sku_idx"),
                ],
            },
        ),
    ]
