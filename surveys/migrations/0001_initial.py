import uuid

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
            name='Form',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, default='')),
                ('type', models.CharField(choices=[('MEDICOS', 'Médicos'), ('DISTRIBUIDORES', 'Distribuidores'), ('CUSTOM', 'Custom')], db_index=True, default='CUSTOM', max_length=20)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('PUBLISHED', 'Published'), ('PAUSED', 'Paused'), ('CLOSED', 'Closed'), ('ARCHIVED', 'Archived')], db_index=True, default='DRAFT', max_length=20)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('max_responses', models.PositiveIntegerField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('creator', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='forms', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'surveys_form',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'created_at'], name='surveys_for_status_5c0f2e_idx')],
            },
        ),
        migrations.CreateModel(
            name='Respondent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('type', models.CharField(choices=[('MEDICO', 'Médico'), ('DISTRIBUIDOR', 'Distribuidor')], db_index=True, max_length=20)),
                ('category', models.CharField(blank=True, db_index=True, default='', max_length=100)),
                ('specialty', models.CharField(blank=True, default='', max_length=100)),
                ('crm', models.CharField(blank=True, default='', max_length=30)),
                ('phone', models.CharField(blank=True, default='', max_length=30)),
                ('city', models.CharField(blank=True, default='', max_length=100)),
                ('state', models.CharField(blank=True, default='', max_length=2)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('consent', models.BooleanField(default=False)),
                ('consent_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'surveys_respondent',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['type', 'category'], name='surveys_res_type_3b9d41_idx')],
            },
        ),
        migrations.CreateModel(
            name='Question',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('NPS', 'NPS (0-10)'), ('RATING_1_5', 'Rating (1-5)'), ('COMPARISON', 'Comparison'), ('TEXT_SHORT', 'Short text'), ('TEXT_LONG', 'Long text'), ('MULTIPLE_CHOICE', 'Multiple choice'), ('SINGLE_CHOICE', 'Single choice')], db_index=True, max_length=20)),
                ('text', models.TextField()),
                ('description', models.TextField(blank=True, default='')),
                ('required', models.BooleanField(default=False)),
                ('order', models.PositiveIntegerField()),
                ('options', models.JSONField(blank=True, default=list)),
                ('scale_min', models.IntegerField(blank=True, null=True)),
                ('scale_max', models.IntegerField(blank=True, null=True)),
                ('conditional_logic', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('form', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='questions', to='surveys.form')),
            ],
            options={
                'db_table': 'surveys_question',
                'ordering': ['order'],
                'indexes': [models.Index(fields=['form', 'order'], name='surveys_que_form_id_8a1c77_idx')],
                'unique_together': {('form', 'order')},
            },
        ),
        migrations.CreateModel(
            name='Response',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('token', models.CharField(max_length=64, unique=True)),
                ('status', models.CharField(choices=[('IN_PROGRESS', 'In progress'), ('COMPLETED', 'Completed'), ('ABANDONED', 'Abandoned')], db_index=True, default='IN_PROGRESS', max_length=20)),
                ('progress', models.PositiveSmallIntegerField(default=0)),
                ('started_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('completed_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('form', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='responses', to='surveys.form')),
                ('respondent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='responses', to='surveys.respondent')),
            ],
            options={
                'db_table': 'surveys_response',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['form', 'status'], name='surveys_res_form_id_41e6d2_idx'),
                    models.Index(fields=['form', 'respondent'], name='surveys_res_form_id_b7305a_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Answer',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('numeric_value', models.IntegerField(blank=True, null=True)),
                ('text_value', models.TextField(blank=True, null=True)),
                ('selected_option', models.CharField(blank=True, max_length=500, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('question', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='answers', to='surveys.question')),
                ('response', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='answers', to='surveys.response')),
            ],
            options={
                'db_table': 'surveys_answer',
                'indexes': [models.Index(fields=['question', 'response'], name='surveys_ans_questio_9e02bb_idx')],
                'unique_together': {('response', 'question')},
            },
        ),
    ]
