"""
Export a project's episodes and scenes to YAML.

Usage:
    python manage.py export_project 12
    python manage.py export_project 12 --output ./exports/my-serial.yaml

Episodes and scenes are written in rank order, with their cached word counts
and the scene text.
"""

import os

import yaml
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from manuscript.models import Project


class ManuscriptDumper(yaml.SafeDumper):
    """SafeDumper that writes multi-line strings as literal blocks."""


def str_representer(dumper, data):
    """Use literal block style for multi-line strings."""
    if '\n' in data:
        return dumper.represent_scalar('tag:yaml.org,2002:str', data, style='|')
    return dumper.represent_scalar('tag:yaml.org,2002:str', data)


ManuscriptDumper.add_representer(str, str_representer)


def build_export(project):
    """Nested dict of a project and its scenes, ready for YAML."""
    episodes = []
    for episode in project.get_episodes():
        episodes.append({
            'sequence_number': episode.sequence_number,
            'title': episode.title,
            'status': episode.status,
            'target_word_count': episode.target_word_count,
            'current_word_count': episode.current_word_count,
            'scenes': [
                {
                    'sequence_number': scene.sequence_number,
                    'title': scene.title,
                    'status': scene.status,
                    'word_count': scene.word_count,
                    'content': scene.content,
                }
                for scene in episode.get_scenes()
            ],
        })

    return {
        'project': {
            'title': project.title,
            'genre': project.genre,
            'pace': project.pace,
            'status': project.status,
            'target_word_count': project.target_word_count,
            'words_written': project.words_written,
            'number_of_episodes': project.number_of_episodes,
        },
        'episodes': episodes,
        'exported_at': timezone.now().isoformat(),
    }


class Command(BaseCommand):
    help = 'Export a project with its episodes and scenes as YAML'

    def add_arguments(self, parser):
        parser.add_argument('project_id', type=int)
        parser.add_argument(
            '--output',
            default=None,
            help='File to write (default: print to stdout)',
        )

    def handle(self, *args, **options):
        try:
            project = Project.objects.get(pk=options['project_id'])
        except Project.DoesNotExist:
            raise CommandError(f"Project {options['project_id']} does not exist")

        text = yaml.dump(
            build_export(project),
            Dumper=ManuscriptDumper,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )

        output = options['output']
        if not output:
            self.stdout.write(text)
            return

        directory = os.path.dirname(output)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(output, 'w', encoding='utf-8') as f:
            f.write(text)
        self.stdout.write(self.style.SUCCESS(f"Wrote {output}"))
