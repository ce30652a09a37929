import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Student',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('prn', models.CharField(db_index=True, max_length=32, unique=True, verbose_name='PRN')),
                ('roll_no', models.CharField(blank=True, db_index=True, max_length=32)),
                ('full_name', models.CharField(max_length=150)),
                ('branch', models.CharField(help_text='Department name, e.g. Computer Engineering', max_length=128)),
                ('year_of_study', models.CharField(max_length=32)),
                ('division', models.CharField(help_text='Division or sub-batch, e.g. A or A1', max_length=8)),
                ('mobile_no', models.CharField(blank=True, max_length=32)),
                ('father_mobile', models.CharField(blank=True, max_length=32)),
                ('mother_mobile', models.CharField(blank=True, max_length=32)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ('branch', 'year_of_study', 'division', 'roll_no'),
            },
        ),
        migrations.CreateModel(
            name='BatchDefinition',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('department', models.CharField(max_length=128)),
                ('year', models.CharField(max_length=32, verbose_name='Class')),
                ('division', models.CharField(max_length=8)),
                ('sub_batch', models.CharField(blank=True, max_length=8)),
                ('rbt_from', models.CharField(max_length=32, verbose_name='RBT from')),
                ('rbt_to', models.CharField(max_length=32, verbose_name='RBT to')),
                ('academic_year', models.CharField(max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Batch Definition',
                'verbose_name_plural': 'Batch Definitions',
                'ordering': ('department', 'year', 'division', 'sub_batch'),
            },
        ),
        migrations.CreateModel(
            name='TeacherBatchConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_name', models.CharField(blank=True, max_length=255)),
                ('department', models.CharField(max_length=128)),
                ('year', models.CharField(max_length=32, verbose_name='Class')),
                ('division', models.CharField(max_length=8)),
                ('rbt_from', models.CharField(max_length=32, verbose_name='RBT from')),
                ('rbt_to', models.CharField(max_length=32, verbose_name='RBT to')),
                ('academic_year', models.CharField(max_length=16)),
                ('status', models.CharField(choices=[('Pending', 'Pending'), ('Approved', 'Approved'), ('Rejected', 'Rejected')], default='Pending', max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('batch_definition', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='allocations', to='academics.batchdefinition')),
                ('teacher', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='batch_config', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Teacher Batch Config',
                'verbose_name_plural': 'Teacher Batch Configs',
            },
        ),
    ]
