import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('classes', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(db_index=True, help_text='Payer email', max_length=254)),
                ('amount', models.PositiveIntegerField(help_text='Settled amount in currency subunits (cents)')),
                ('currency', models.CharField(default='usd', max_length=3)),
                ('class_ids', models.JSONField(default=list, help_text='Sorted, distinct ids of the classes settled')),
                ('transaction_id', models.CharField(blank=True, help_text='Gateway reference reported by the client', max_length=255)),
                ('idempotency_key', models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ('created', models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                'ordering': ['-created'],
            },
        ),
        migrations.CreateModel(
            name='CapacityIncrement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('applied_at', models.DateTimeField(auto_now_add=True)),
                ('enrolled_class', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='capacity_increments', to='classes.class')),
                ('payment', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='capacity_increments', to='payments.payment')),
            ],
        ),
        migrations.AddConstraint(
            model_name='capacityincrement',
            constraint=models.UniqueConstraint(fields=('payment', 'enrolled_class'), name='unique_capacity_increment_per_payment'),
        ),
    ]
