from decimal import Decimal

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="CustomUser",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(
                    default=False,
                    help_text="Designates that this user has all permissions without explicitly assigning them.",
                    verbose_name="superuser status",
                )),
                ("username", models.CharField(
                    error_messages={"unique": "A user with that username already exists."},
                    help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.",
                    max_length=150,
                    unique=True,
                    validators=[django.contrib.auth.validators.UnicodeUsernameValidator()],
                    verbose_name="username",
                )),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(
                    default=False,
                    help_text="Designates whether the user can log into this admin site.",
                    verbose_name="staff status",
                )),
                ("is_active", models.BooleanField(
                    default=True,
                    help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.",
                    verbose_name="active",
                )),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("role", models.CharField(
                    choices=[("admin", "Admin"), ("manager", "Manager"), ("cashier", "Cashier")],
                    db_index=True,
                    default="cashier",
                    max_length=20,
                )),
                ("groups", models.ManyToManyField(
                    blank=True,
                    help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                    related_name="user_set",
                    related_query_name="user",
                    to="auth.group",
                    verbose_name="groups",
                )),
                ("user_permissions", models.ManyToManyField(
                    blank=True,
                    help_text="Specific permissions for this user.",
                    related_name="user_set",
                    related_query_name="user",
                    to="auth.permission",
                    verbose_name="user permissions",
                )),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(
                    choices=[
                        ("COMPLETED", "Completed"),
                        ("PENDING", "Pending"),
                        ("CANCELLED", "Cancelled"),
                        ("REFUNDED", "Refunded"),
                    ],
                    db_index=True,
                    default="PENDING",
                    max_length=20,
                )),
                ("payment_method", models.CharField(
                    choices=[
                        ("CASH", "Cash"),
                        ("CARD", "Card"),
                        ("QRIS", "QRIS"),
                        ("BANK_TRANSFER", "Bank Transfer"),
                    ],
                    db_index=True,
                    default="CASH",
                    max_length=20,
                )),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("voucher_discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("promo_discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("tax", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("final_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("points_earned", models.IntegerField(default=0)),
                ("points_used", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("cashier", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="transactions",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ("-created_at", "-id"),
                "indexes": [
                    models.Index(fields=["cashier", "status", "created_at"], name="cashier_tra_cashier_9b1f2e_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_name", models.CharField(max_length=150)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("transaction", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="items",
                    to="cashier.transaction",
                )),
            ],
        ),
        migrations.CreateModel(
            name="Shift",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(
                    choices=[("OPEN", "Open"), ("CLOSED", "Closed")],
                    default="OPEN",
                    max_length=10,
                )),
                ("started_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("ended_at", models.DateTimeField(blank=True, null=True)),
                ("opening_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("closing_balance", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("physical_cash", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("system_total", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("difference", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("note", models.CharField(blank=True, default="", max_length=255)),
                ("cashier", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="shifts",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ["-started_at", "-id"],
                "indexes": [
                    models.Index(fields=["cashier", "status", "started_at"], name="cashier_shi_cashier_4c7d1a_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(status="OPEN"),
                        fields=("cashier",),
                        name="uniq_open_shift_per_cashier",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("closing_balance__isnull", True),
                                ("difference__isnull", True),
                                ("ended_at__isnull", True),
                                ("physical_cash__isnull", True),
                                ("status", "OPEN"),
                                ("system_total__isnull", True),
                            ),
                            models.Q(
                                ("closing_balance__isnull", False),
                                ("difference__isnull", False),
                                ("ended_at__isnull", False),
                                ("physical_cash__isnull", False),
                                ("status", "CLOSED"),
                                ("system_total__isnull", False),
                            ),
                            _connector="OR",
                        ),
                        name="shift_closing_fields_all_or_none",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("opening_balance__gte", 0)),
                        name="shift_opening_balance_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ShiftLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(
                    choices=[
                        ("OPEN_SHIFT", "Open shift"),
                        ("CLOSE_SHIFT", "Close shift"),
                        ("UPDATE_SHIFT", "Update shift"),
                    ],
                    db_index=True,
                    max_length=20,
                )),
                ("details", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("shift", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="logs",
                    to="cashier.shift",
                )),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
    ]
