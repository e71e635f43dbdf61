from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion

ORDER_STATUS_CHOICES = [("new", "New"), ("processing", "Processing"), ("awaiting_production", "Awaiting production"), ("framed", "Framed"), ("awaiting_packing", "Awaiting packing"), ("packed", "Packed"), ("awaiting_dispatch", "Awaiting dispatch"), ("sent", "Sent"), ("completed", "Completed"), ("customer_returned", "Customer returned"), ("fix_requested", "Fix requested"), ("received_back", "Received back"), ("packing_received_back", "Packing received back"), ("resent_to_production", "Resent to production"), ("awaiting_reproduction", "Awaiting reproduction"), ("stored", "Stored"), ("resent_to_customer", "Resent to customer"), ("cancelled", "Cancelled")]
PRINTING_STATUS_CHOICES = [("not_printed", "Not printed"), ("queued", "Queued"), ("printing", "Printing"), ("printed", "Printed"), ("received_by_production", "Received by production"), ("received_by_packing", "Received by packing"), ("reprint_requested", "Reprint requested"), ("awaiting_reprint", "Awaiting reprint"), ("in_stock", "In stock")]
FRAME_CUTTING_STATUS_CHOICES = [("not_cut", "Not cut"), ("queued", "Queued"), ("cutting", "Cutting"), ("cut", "Cut"), ("recut_requested", "Recut requested"), ("awaiting_recut", "Awaiting recut"), ("not_applicable", "Not applicable"), ("in_stock", "In stock")]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=64, unique=True)),
                ("customer_name", models.CharField(max_length=200)),
                ("customer_phone", models.CharField(max_length=32)),
                ("customer_address", models.CharField(blank=True, default="", max_length=500)),
                ("order_type", models.CharField(choices=[("normal", "Normal"), ("urgent", "Urgent"), ("shopee", "Shopee"), ("tiktok", "Tiktok")], default="normal", max_length=16)),
                ("status", models.CharField(choices=ORDER_STATUS_CHOICES, default="new", max_length=32)),
                ("printing_status", models.CharField(choices=PRINTING_STATUS_CHOICES, default="not_printed", max_length=32)),
                (
                    "frame_cutting_status",
                    models.CharField(choices=FRAME_CUTTING_STATUS_CHOICES, default="not_cut", max_length=32),
                ),
                ("note", models.TextField(blank=True, default="")),
                ("mention_ids", models.JSONField(blank=True, default=list)),
                ("painting_price", models.BigIntegerField(default=0)),
                ("construction_price", models.BigIntegerField(default=0)),
                ("design_fee", models.BigIntegerField(default=0)),
                ("shipping_installation_price", models.BigIntegerField(default=0)),
                ("customer_pays_shipping", models.BooleanField(default=True)),
                ("extra_fee_name", models.CharField(blank=True, default="", max_length=200)),
                ("extra_fee_amount", models.BigIntegerField(default=0)),
                ("include_vat", models.BooleanField(default=True)),
                ("vat", models.BigIntegerField(default=0)),
                ("deposit_amount", models.BigIntegerField(default=0)),
                ("total_amount", models.BigIntegerField(default=0)),
                ("cod", models.BigIntegerField(default=0)),
                ("actual_received_amount", models.BigIntegerField(default=0)),
                ("shipping_method", models.CharField(blank=True, choices=[("viettel", "Viettel"), ("external_courier", "External courier"), ("customer_pickup", "Customer pickup"), ("install_delivery", "Install delivery")], max_length=32, null=True)),
                ("shipping_tracking_code", models.CharField(blank=True, default="", max_length=100)),
                ("shipping_external_info", models.CharField(blank=True, default="", max_length=500)),
                ("shipping_external_cost", models.BigIntegerField(default=0)),
                ("deposit_images", models.JSONField(blank=True, default=list)),
                ("payment_bill_images", models.JSONField(blank=True, default=list)),
                ("expected_completion_date", models.DateField(blank=True, null=True)),
                ("actual_completion_date", models.DateTimeField(blank=True, null=True)),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
                    models.Index(fields=["order_type", "created_at"], name="order_type_created_idx"),
                    models.Index(fields=["created_by", "created_at"], name="order_creator_created_idx"),
                    models.Index(fields=["actual_completion_date"], name="order_completed_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Painting",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("painting_type", models.CharField(choices=[("flat", "Flat"), ("glass_mounted", "Glass mounted"), ("framed", "Framed"), ("round", "Round"), ("print_only", "Print only"), ("mirror", "Mirror"), ("relief_print", "Relief print"), ("oil", "Oil")], default="framed", max_length=32)),
                ("width", models.FloatField()),
                ("height", models.FloatField()),
                ("frame_type", models.CharField(max_length=120)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("note", models.TextField(blank=True, default="")),
                ("mention_ids", models.JSONField(blank=True, default=list)),
                ("images", models.JSONField(blank=True, default=list)),
                ("files", models.JSONField(blank=True, default=list)),
                ("position", models.PositiveIntegerField(default=0)),
                ("is_printed", models.BooleanField(default=False)),
                ("printed_at", models.DateTimeField(blank=True, null=True)),
                ("received_by_production", models.BooleanField(default=False)),
                ("production_received_at", models.DateTimeField(blank=True, null=True)),
                ("received_by_packing", models.BooleanField(default=False)),
                ("packing_received_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="paintings", to="orders.order"
                    ),
                ),
                (
                    "printed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "production_received_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "packing_received_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["position", "id"],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=ORDER_STATUS_CHOICES, max_length=32)),
                ("note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="status_history", to="orders.order"
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="ProfitShare",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("percentage", models.FloatField(default=0)),
                ("amount", models.BigIntegerField(default=0)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="profit_shares", to="orders.order"
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profit_shares",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="OrderAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(max_length=32)),
                ("assigned_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="assignments", to="orders.order"
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="order_assignments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("order", "user", "role"), name="order_assignment_unique"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderDraft",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")], default="pending", max_length=16)),
                ("original", models.JSONField(default=dict)),
                ("proposed", models.JSONField(default=dict)),
                ("changed_fields", models.JSONField(blank=True, default=list)),
                ("review_note", models.TextField(blank=True, default="")),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="drafts", to="orders.order"
                    ),
                ),
                (
                    "proposed_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="proposed_order_drafts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reviewed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "pending")),
                        fields=("order",),
                        name="order_single_pending_draft",
                    ),
                ],
            },
        ),
    ]
