# Initial schema for the project → episode → scene hierarchy

import django.db.models.deletion
import modelcluster.fields
import wagtail.search.index
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Project',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('genre', models.CharField(max_length=100)),
                ('target_word_count', models.PositiveIntegerField(help_text='Goal for the whole project, rounded down to whole episodes')),
                ('words_written', models.PositiveIntegerField(default=0, help_text='Cached sum of episode word counts')),
                ('pace', models.CharField(choices=[('Slow', 'Slow'), ('Medium', 'Medium'), ('Fast', 'Fast')], default='Medium', max_length=20)),
                ('number_of_episodes', models.PositiveIntegerField(default=0)),
                ('cover_color', models.CharField(blank=True, max_length=32)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('archived', 'Archived')], default='draft', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='writing_projects', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
            bases=(wagtail.search.index.Indexed, models.Model),
        ),
        migrations.CreateModel(
            name='Episode',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('sequence_number', models.PositiveIntegerField(help_text='1-based rank within the project')),
                ('target_word_count', models.PositiveIntegerField(default=0)),
                ('current_word_count', models.PositiveIntegerField(default=0, help_text='Cached sum of scene word counts')),
                ('status', models.CharField(choices=[('not_started', 'Not Started'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('revised', 'Revised')], default='not_started', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('project', modelcluster.fields.ParentalKey(on_delete=django.db.models.deletion.CASCADE, related_name='episodes', to='manuscript.project')),
            ],
            options={
                'ordering': ['project', 'sequence_number'],
                'unique_together': {('project', 'sequence_number')},
            },
        ),
        migrations.CreateModel(
            name='Scene',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('content', models.TextField(blank=True, default='')),
                ('word_count', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('revised', 'Revised')], default='draft', max_length=20)),
                ('sequence_number', models.PositiveIntegerField(help_text='1-based rank within the episode')),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('episode', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scenes', to='manuscript.episode')),
            ],
            options={
                'ordering': ['episode', 'sequence_number'],
                'unique_together': {('episode', 'sequence_number')},
            },
        ),
    ]
