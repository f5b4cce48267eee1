# Generated manually
import bizpos.purchasing.models
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SavedGRN',
            fields=[
                ('id', models.CharField(default=bizpos.purchasing.models.generate_grn_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ('name', models.CharField(blank=True, default='', max_length=255)),
                ('grn_number', models.CharField(max_length=100)),
                ('supplier_name', models.CharField(blank=True, default='', max_length=255)),
                ('supplier_id', models.CharField(blank=True, default='', max_length=100)),
                ('supplier_phone', models.CharField(blank=True, default='', max_length=50)),
                ('supplier_email', models.CharField(blank=True, default='', max_length=255)),
                ('supplier_address', models.TextField(blank=True, default='')),
                ('supplier_tin_number', models.CharField(blank=True, default='', max_length=100)),
                ('business_name', models.CharField(blank=True, default='', max_length=255)),
                ('business_address', models.TextField(blank=True, default='')),
                ('business_phone', models.CharField(blank=True, default='', max_length=50)),
                ('business_email', models.CharField(blank=True, default='', max_length=255)),
                ('business_stock_type', models.CharField(blank=True, max_length=100, null=True)),
                ('is_vatable', models.BooleanField(default=False)),
                ('po_number', models.CharField(blank=True, default='', max_length=100)),
                ('delivery_note_number', models.CharField(blank=True, default='', max_length=100)),
                ('vehicle_number', models.CharField(blank=True, default='', max_length=100)),
                ('driver_name', models.CharField(blank=True, default='', max_length=255)),
                ('received_by', models.CharField(blank=True, default='', max_length=255)),
                ('received_location', models.CharField(blank=True, default='', max_length=255)),
                ('items', models.JSONField(blank=True, default=list)),
                ('receiving_costs', models.JSONField(blank=True, default=list)),
                ('quality_check_notes', models.TextField(blank=True, default='')),
                ('discrepancies', models.TextField(blank=True, default='')),
                ('prepared_by', models.CharField(blank=True, default='', max_length=255)),
                ('prepared_date', models.DateField(blank=True, null=True)),
                ('checked_by', models.CharField(blank=True, default='', max_length=255)),
                ('checked_date', models.DateField(blank=True, null=True)),
                ('approved_by', models.CharField(blank=True, default='', max_length=255)),
                ('approved_date', models.DateField(blank=True, null=True)),
                ('received_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('completed', 'Completed'), ('pending', 'Pending'), ('cancelled', 'Cancelled')], default='completed', max_length=20)),
                ('total_amount', models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saved_grns', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'saved_grns',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', '-created_at'], name='idx_grn_user_created'),
                    models.Index(fields=['grn_number'], name='idx_grn_number'),
                ],
            },
        ),
    ]
