import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('prospects', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Activity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('activity_type', models.CharField(choices=[('Llamada', 'Llamada'), ('Correo', 'Correo'), ('Visita', 'Visita'), ('Seguimiento', 'Seguimiento'), ('Propuesta', 'Propuesta'), ('Cotización', 'Cotización'), ('Facturación', 'Facturación'), ('General', 'General'), ('Otro', 'Otro')], default='Llamada', max_length=20)),
                ('custom_type', models.CharField(blank=True, help_text='Only kept when the type is "Otro"', max_length=100, null=True)),
                ('scheduled_date', models.DateField(db_index=True)),
                ('status', models.CharField(choices=[('pending', 'Pendiente'), ('completed', 'Completada'), ('blocked', 'Bloqueada')], db_index=True, default='pending', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('completion_comment', models.TextField(blank=True, null=True)),
                ('block_reason', models.TextField(blank=True, null=True)),
                ('created_by', models.CharField(choices=[('system', 'Sistema'), ('manager', 'Gerente'), ('salesperson', 'Vendedor')], default='salesperson', max_length=20)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_to', models.ForeignKey(blank=True, help_text='Salesperson responsible for this activity', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_activities', to=settings.AUTH_USER_MODEL)),
                ('previous_activity', models.ForeignKey(blank=True, help_text='Completed activity this one follows up', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='follow_ups', to='activities.activity')),
                ('prospect', models.ForeignKey(blank=True, help_text='Empty for general tasks', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='activities', to='prospects.prospect')),
            ],
            options={
                'verbose_name': 'Activity',
                'verbose_name_plural': 'Activities',
                'db_table': 'activities',
                'ordering': ['scheduled_date', 'created_at'],
                'indexes': [
                    models.Index(fields=['assigned_to', 'status', 'scheduled_date'], name='activity_assignee_status_idx'),
                    models.Index(fields=['prospect', 'status'], name='activity_prospect_status_idx'),
                    models.Index(fields=['created_by', 'activity_type', 'scheduled_date'], name='activity_origin_type_date_idx'),
                ],
            },
        ),
    ]
